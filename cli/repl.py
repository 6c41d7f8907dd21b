"""REPL with prompt_toolkit for user interaction."""

import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import (
    close_session,
    handle_delete,
    handle_download,
    handle_list,
    handle_login,
    handle_ops,
    handle_photo,
    handle_prune,
    handle_revoke,
    handle_share,
    handle_shared,
    handle_upload,
)
from cli.completer import MediVaultCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    DeleteCommand,
    DownloadCommand,
    ListCommand,
    LoginCommand,
    OpsCommand,
    PhotoCommand,
    PruneCommand,
    RevokeCommand,
    ShareCommand,
    SharedCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command

_HANDLERS = {
    LoginCommand: handle_login,
    UploadCommand: handle_upload,
    DownloadCommand: handle_download,
    DeleteCommand: handle_delete,
    ShareCommand: handle_share,
    RevokeCommand: handle_revoke,
    ListCommand: handle_list,
    SharedCommand: handle_shared,
    PhotoCommand: handle_photo,
    OpsCommand: handle_ops,
    PruneCommand: handle_prune,
}


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_welcome() -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    print(WELCOME_HELP)


async def dispatch_command(cmd_obj, session=None) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = _HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj)}"
    return await handler(cmd_obj, session)


async def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=MediVaultCompleter(), history=history, style=STYLE
    )

    clear_screen()
    show_welcome()

    try:
        while True:
            try:
                user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])
                command = user_input.strip()

                if not command:
                    continue

                if command == "exit":
                    print("Goodbye!")
                    break

                if command == "help":
                    print(HELP_TEXT)
                    continue

                if command == "clear":
                    clear_screen()
                    show_welcome()
                    continue

                cmd_obj = parse_command(user_input)
                result = await dispatch_command(cmd_obj)
                print(result)

            except ParseError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
    finally:
        await close_session()
