"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional, Union


@dataclass(frozen=True)
class LoginCommand:
    """Set the session principal."""

    principal: str
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class UploadCommand:
    """Upload a local file, optionally as the profile photo."""

    path: str
    profile: bool = False
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Download file by name."""

    name: str
    output_path: Optional[str] = None
    owner: Optional[str] = None
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete one or more files."""

    names: tuple[str, ...]
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class ShareCommand:
    """Grant a principal access to a file."""

    name: str
    grantee: str
    can_view: bool
    can_download: bool
    expiry_days: Optional[int] = None
    command: Literal["share"] = "share"


@dataclass(frozen=True)
class RevokeCommand:
    """Revoke a principal's access to a file."""

    name: str
    grantee: str
    command: Literal["revoke"] = "revoke"


@dataclass(frozen=True)
class ListCommand:
    """List own files, optionally narrowed to a category and search text."""

    category: str = "all"
    query: Optional[str] = None
    command: Literal["list"] = "list"


@dataclass(frozen=True)
class SharedCommand:
    command: Literal["shared"] = "shared"


@dataclass(frozen=True)
class PhotoCommand:
    """Show a principal's current profile photo (own when omitted)."""

    principal: Optional[str] = None
    command: Literal["photo"] = "photo"


@dataclass(frozen=True)
class OpsCommand:
    """Show recent operations."""

    limit: Optional[int] = None
    command: Literal["ops"] = "ops"


@dataclass(frozen=True)
class PruneCommand:
    command: Literal["prune"] = "prune"


CommandRequest = Union[
    LoginCommand,
    UploadCommand,
    DownloadCommand,
    DeleteCommand,
    ShareCommand,
    RevokeCommand,
    ListCommand,
    SharedCommand,
    PhotoCommand,
    OpsCommand,
    PruneCommand,
]
