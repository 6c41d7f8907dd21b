"""Command parser for CLI input."""

import shlex
from typing import Optional

from cli.models import (
    CommandRequest,
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
from transfer.catalog import CATEGORIES


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name, args = tokens[0], tokens[1:]

    parser = _PARSERS.get(command_name)
    if parser is None:
        raise ParseError(f"Unknown command: {command_name}")
    return parser(args)


def _take_option(args: list[str], flag: str) -> tuple[list[str], Optional[str]]:
    """Remove ``flag VALUE`` from args; return the rest and VALUE."""
    if flag not in args:
        return args, None
    index = args.index(flag)
    if index + 1 >= len(args):
        raise ParseError(f"{flag} requires a value")
    value = args[index + 1]
    return args[:index] + args[index + 2:], value


def _take_flag(args: list[str], flag: str) -> tuple[list[str], bool]:
    if flag not in args:
        return args, False
    return [a for a in args if a != flag], True


def _parse_login(args: list[str]) -> LoginCommand:
    """Parse 'login <principal>' command."""
    if len(args) != 1:
        raise ParseError("login requires exactly 1 argument: <principal>")
    return LoginCommand(principal=args[0])


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [--profile]' command."""
    args, profile = _take_flag(args, "--profile")
    if len(args) != 1:
        raise ParseError("upload requires exactly 1 file path")
    return UploadCommand(path=args[0], profile=profile)


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <name> [output_path] [--owner P]' command."""
    args, owner = _take_option(args, "--owner")
    if not 1 <= len(args) <= 2:
        raise ParseError("download requires <name> [output_path]")
    output_path = args[1] if len(args) > 1 else None
    return DownloadCommand(name=args[0], output_path=output_path, owner=owner)


def _parse_delete(args: list[str]) -> DeleteCommand:
    """Parse 'delete <name>...' command."""
    if not args:
        raise ParseError("delete requires at least one file name")
    return DeleteCommand(names=tuple(args))


def _parse_share(args: list[str]) -> ShareCommand:
    """Parse 'share <name> <principal> [--view] [--download] [--days N]' command."""
    args, days = _take_option(args, "--days")
    args, can_view = _take_flag(args, "--view")
    args, can_download = _take_flag(args, "--download")

    if len(args) != 2:
        raise ParseError("share requires <name> <principal>")

    expiry_days = None
    if days is not None:
        try:
            expiry_days = int(days)
        except ValueError:
            raise ParseError(f"--days must be a whole number, got '{days}'")
        if expiry_days < 1:
            raise ParseError("--days must be at least 1")

    if not can_view and not can_download:
        can_view = True

    return ShareCommand(
        name=args[0],
        grantee=args[1],
        can_view=can_view,
        can_download=can_download,
        expiry_days=expiry_days,
    )


def _parse_revoke(args: list[str]) -> RevokeCommand:
    """Parse 'revoke <name> <principal>' command."""
    if len(args) != 2:
        raise ParseError("revoke requires exactly 2 arguments: <name> <principal>")
    return RevokeCommand(name=args[0], grantee=args[1])


def _parse_no_args(command_cls):
    def parse(args: list[str]):
        if args:
            raise ParseError(f"{command_cls.command} takes no arguments")
        return command_cls()
    return parse


def _parse_list(args: list[str]) -> ListCommand:
    """Parse 'list [category] [--search TEXT]' command."""
    args, query = _take_option(args, "--search")
    if len(args) > 1:
        raise ParseError("list takes at most 1 category")
    category = args[0] if args else "all"
    if category not in CATEGORIES:
        raise ParseError(f"Unknown category '{category}'. Expected one of: {', '.join(CATEGORIES)}")
    return ListCommand(category=category, query=query)


def _parse_photo(args: list[str]) -> PhotoCommand:
    if len(args) > 1:
        raise ParseError("photo takes at most 1 argument: [principal]")
    return PhotoCommand(principal=args[0] if args else None)


def _parse_ops(args: list[str]) -> OpsCommand:
    if len(args) > 1:
        raise ParseError("ops takes at most 1 argument: [limit]")
    if not args:
        return OpsCommand()
    try:
        limit = int(args[0])
    except ValueError:
        raise ParseError(f"ops limit must be a whole number, got '{args[0]}'")
    if limit < 1:
        raise ParseError("ops limit must be at least 1")
    return OpsCommand(limit=limit)


_PARSERS = {
    "login": _parse_login,
    "upload": _parse_upload,
    "download": _parse_download,
    "delete": _parse_delete,
    "share": _parse_share,
    "revoke": _parse_revoke,
    "list": _parse_list,
    "shared": _parse_no_args(SharedCommand),
    "photo": _parse_photo,
    "ops": _parse_ops,
    "prune": _parse_no_args(PruneCommand),
}
