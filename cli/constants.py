"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "login", "upload", "download", "delete", "share", "revoke", "list",
    "shared", "photo", "ops", "prune", "clear", "exit", "help",
]

STYLE = Style.from_dict(
    {
        "prompt": "#2BA84A bold",
        "command": "#0088ff bold",
    }
)

GREEN = "\033[38;2;43;168;74m"
RED = "\033[38;2;220;50;47m"
RESET = "\033[0m"

LOGO = f"""{GREEN}
 ███╗   ███╗███████╗██████╗ ██╗██╗   ██╗ █████╗ ██╗   ██╗██╗  ████████╗
 ████╗ ████║██╔════╝██╔══██╗██║██║   ██║██╔══██╗██║   ██║██║  ╚══██╔══╝
 ██╔████╔██║█████╗  ██║  ██║██║██║   ██║███████║██║   ██║██║     ██║
 ██║╚██╔╝██║██╔══╝  ██║  ██║██║╚██╗ ██╔╝██╔══██║██║   ██║██║     ██║
 ██║ ╚═╝ ██║███████╗██████╔╝██║ ╚████╔╝ ██║  ██║╚██████╔╝███████╗██║
 ╚═╝     ╚═╝╚══════╝╚═════╝ ╚═╝  ╚═══╝  ╚═╝  ╚═╝ ╚═════╝ ╚══════╝╚═╝
{RESET}"""

WELCOME_TITLE = "MediVault CLI - Chunked file transfer and sharing"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "medivault> "

UPLOADS_DIR = "uploads"
DOWNLOADS_DIR = "downloads"

HELP_TEXT = """Available commands:
  login <principal>                              Use <principal> as the session identity
  upload <path> [--profile]                      Upload a file (--profile: as profile photo)
  download <name> [output] [--owner P]           Download a file (output uses downloads/ prefix)
  delete <name>...                               Delete one or more of your files
  share <name> <principal> [--view] [--download] [--days N]
                                                 Grant access (defaults to --view)
  revoke <name> <principal>                      Remove a principal's access
  list [category] [--search TEXT]                List your files with their grants
                                                 (all, images, documents, videos, audio, archives, profile)
  shared                                         List files shared with you, by owner
  photo [principal]                              Show the current profile photo
  ops [limit]                                    Show recent operations
  prune                                          Drop completed operations
  clear                                          Clear screen and redisplay welcome message
  help                                           Show this help
  exit                                           Exit REPL

Examples:
  login abcde-12345
  upload uploads/scan.pdf
  upload uploads/me.png --profile
  share scan.pdf fghij-67890 --view --download --days 7
  download report.pdf --owner fghij-67890
  list documents --search lab
  delete old.txt draft.txt"""
