"""Custom completer for the MediVault CLI with file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, UPLOADS_DIR


class MediVaultCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - File path completion for the 'upload' command from uploads/ directory
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        if tokens[0].lower() != "upload":
            return

        path_args = [t for t in tokens[1:] if not t.startswith("--")]
        current_word = "" if is_typing_new_token else tokens[-1]
        if current_word.startswith("--"):
            return
        # upload takes a single path
        if len(path_args) > (0 if is_typing_new_token else 1):
            return

        yield from self._complete_uploads_files(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_uploads_files(self, partial: str) -> Iterable[Completion]:
        """
        Complete file paths from the uploads/ directory.

        Shows a message if no files are available.
        """
        uploads_path = Path.cwd() / UPLOADS_DIR

        if not uploads_path.is_dir():
            if not partial or UPLOADS_DIR.startswith(partial):
                yield Completion(
                    "",
                    start_position=0,
                    display=f"(no files found - {UPLOADS_DIR}/ directory missing)",
                )
            return

        available_files = sorted(
            f"{UPLOADS_DIR}/{item.name}" for item in uploads_path.iterdir() if item.is_file()
        )

        if not available_files:
            if not partial or partial.startswith(UPLOADS_DIR) or UPLOADS_DIR.startswith(partial):
                yield Completion("", start_position=0, display=f"(no files found in {UPLOADS_DIR}/)")
            return

        partial_lower = partial.lower()
        for file_path in available_files:
            if file_path.lower().startswith(partial_lower):
                yield Completion(file_path, start_position=-len(partial))
