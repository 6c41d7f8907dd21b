"""Command handler functions for CLI operations."""

import functools
import mimetypes
import re
from pathlib import Path
from typing import Optional

import httpx

from common.constants import PRINCIPAL_PATTERN, PROFILE_PHOTO_PROGRESS_KEY, RECENT_OPERATIONS_LIMIT
from common.logging_config import get_logger
from common.types import StoredObjectMetadata, utc_now
from cli.config import Config
from cli.constants import DOWNLOADS_DIR
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
from cli.utils import ProgressPrinter, format_file_size, format_operation, render_progress
from transfer.catalog import filter_objects
from transfer.exceptions import ValidationError, VaultError
from transfer.file_service import FileService
from transfer.vault_client import VaultClient

logger = get_logger(__name__)

_PRINCIPAL_RE = re.compile(PRINCIPAL_PATTERN)


class CliSession:
    """Vault client, file service and config shared by every command of one REPL run."""

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Args:
            config: Configuration instance
            transport: Optional httpx transport (tests)
        """
        self.config = config
        self.client = VaultClient(
            config.get_base_url(),
            principal=config.get_principal(),
            timeout=config.get_timeout(),
            transport=transport,
            **config.get_retry_config(),
        )
        self.service = FileService(self.client, bulk_item_delay=config.get_bulk_item_delay())

    def login(self, principal: str) -> None:
        """
        Raises:
            ValidationError: If ``principal`` is malformed
        """
        if not _PRINCIPAL_RE.match(principal):
            raise ValidationError(
                f"Invalid principal '{principal}': expected dash-separated groups of up to 5 lowercase letters or digits"
            )
        self.client.principal = principal
        self.config.set_principal(principal)
        logger.info(f"Session principal set to {principal}")

    async def close(self) -> None:
        await self.client.aclose()


_session: Optional[CliSession] = None


def get_session() -> CliSession:
    """
    Get or create global CliSession instance.

    Returns:
        CliSession instance
    """
    global _session
    if _session is None:
        logger.debug("Creating new CliSession instance")
        _session = CliSession(Config())
    return _session


async def close_session() -> None:
    global _session
    if _session is not None:
        await _session.close()
        _session = None


def reports_errors(handler):
    """Turn vault errors raised by ``handler`` into an 'Error: ...' message."""

    @functools.wraps(handler)
    async def wrapper(cmd, session: Optional[CliSession] = None) -> str:
        try:
            return await handler(cmd, session or get_session())
        except VaultError as e:
            logger.debug(f"{cmd.command} failed: {type(e).__name__}: {e}")
            return f"Error: {e}"

    return wrapper


def _capabilities(can_view: bool, can_download: bool) -> str:
    return "+".join(c for c, on in (("view", can_view), ("download", can_download)) if on)


def _describe_grants(obj: StoredObjectMetadata) -> str:
    if not obj.permissions:
        return ""
    now = utc_now()
    parts = []
    for grant in obj.permissions:
        caps = _capabilities(grant.can_view, grant.can_download)
        expiry = ""
        if grant.expires_at is not None:
            expiry = " expired" if grant.is_expired(now) else f" until {grant.expires_at.date().isoformat()}"
        parts.append(f"{grant.grantee} ({caps}{expiry})")
    return "  shared with: " + ", ".join(parts)


def _describe_object(obj: StoredObjectMetadata) -> str:
    marker = " [profile]" if obj.is_distinguished else ""
    return f"  {obj.name}{marker}  {format_file_size(obj.size)}  {obj.content_type}"


def _resolve_download_path(output_path: Optional[str], name: str) -> Path:
    """
    Target file under the downloads/ directory.

    Raises:
        ValidationError: If ``output_path`` lacks the downloads/ prefix or escapes it
    """
    base_dir = (Path.cwd() / DOWNLOADS_DIR).resolve()

    if output_path is None:
        target = base_dir / Path(name).name
    else:
        prefix = f"{DOWNLOADS_DIR}/"
        if not output_path.startswith(prefix):
            raise ValidationError(
                f"Download output path must start with '{prefix}' - did you mean '{prefix}{output_path}'?"
            )
        target = (base_dir / output_path[len(prefix):]).resolve()
        try:
            target.relative_to(base_dir)
        except ValueError:
            raise ValidationError(f"Invalid path: '{output_path}' is outside downloads directory")

    target.parent.mkdir(parents=True, exist_ok=True)
    return target


@reports_errors
async def handle_login(cmd: LoginCommand, session: CliSession) -> str:
    session.login(cmd.principal)
    return f"Logged in as {cmd.principal}"


@reports_errors
async def handle_upload(cmd: UploadCommand, session: CliSession) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with path and profile flag
        session: CliSession (injected in tests)

    Returns:
        Success or error message
    """
    path = Path(cmd.path)
    if not path.is_file():
        return f"Error: File not found: {cmd.path}"

    logger.info(f"Executing upload command: path={cmd.path} profile={cmd.profile}")
    data = path.read_bytes()
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

    key = PROFILE_PHOTO_PROGRESS_KEY if cmd.profile else path.name
    unsubscribe = session.service.subscribe_progress(key, ProgressPrinter(path.name))
    try:
        if cmd.profile:
            operation = await session.service.upload_profile_photo(path.name, data, content_type)
        else:
            operation = await session.service.upload(path.name, data, content_type)
    finally:
        unsubscribe()

    return f"Uploaded: {operation.object_name} ({format_file_size(len(data))})"


@reports_errors
async def handle_download(cmd: DownloadCommand, session: CliSession) -> str:
    """
    Handle 'download' command.

    Returns:
        Success message with the saved location, or an error message
    """
    logger.info(f"Executing download command: name={cmd.name} output_path={cmd.output_path} owner={cmd.owner}")
    target = _resolve_download_path(cmd.output_path, cmd.name)

    downloaded = await session.service.download(cmd.name, owner=cmd.owner)

    try:
        target.write_bytes(downloaded.data)
    except OSError as e:
        return f"Error writing file: {e}"

    return f"Downloaded: {cmd.name} ({format_file_size(downloaded.size)})\nSaved to: {target}"


@reports_errors
async def handle_delete(cmd: DeleteCommand, session: CliSession) -> str:
    if len(cmd.names) == 1:
        await session.service.delete(cmd.names[0])
        return f"Deleted: {cmd.names[0]}"

    results = await session.service.delete_many(list(cmd.names))
    lines = [
        f"Deleted: {r.name}" if r.ok else f"Failed: {r.name} - {r.error}"
        for r in results
    ]
    deleted = sum(1 for r in results if r.ok)
    lines.append(f"{deleted}/{len(results)} files deleted")
    return "\n".join(lines)


@reports_errors
async def handle_share(cmd: ShareCommand, session: CliSession) -> str:
    await session.service.share(
        cmd.name,
        cmd.grantee,
        can_view=cmd.can_view,
        can_download=cmd.can_download,
        expiry_days=cmd.expiry_days,
    )
    caps = _capabilities(cmd.can_view, cmd.can_download)
    expiry = f" for {cmd.expiry_days} days" if cmd.expiry_days else ""
    return f"Shared '{cmd.name}' with {cmd.grantee} ({caps}){expiry}"


@reports_errors
async def handle_revoke(cmd: RevokeCommand, session: CliSession) -> str:
    await session.service.revoke_share(cmd.name, cmd.grantee)
    return f"Revoked {cmd.grantee}'s access to '{cmd.name}'"


@reports_errors
async def handle_list(cmd: ListCommand, session: CliSession) -> str:
    objects = filter_objects(await session.service.list_mine(), cmd.category, cmd.query)
    if not objects:
        return "No files found"

    lines = [f"Your files ({len(objects)}):"]
    for obj in objects:
        lines.append(_describe_object(obj))
        grants = _describe_grants(obj)
        if grants:
            lines.append(grants)
    return "\n".join(lines)


@reports_errors
async def handle_shared(cmd: SharedCommand, session: CliSession) -> str:
    groups = await session.service.list_shared_with_me()
    if not groups:
        return "Nothing has been shared with you"

    lines = []
    for group in groups:
        lines.append(f"From {group.owner}:")
        for obj in group.objects:
            grant = obj.permissions[0] if obj.permissions else None
            caps = ""
            if grant is not None:
                caps = f"  ({_capabilities(grant.can_view, grant.can_download)})"
            lines.append(_describe_object(obj) + caps)
    return "\n".join(lines)


@reports_errors
async def handle_photo(cmd: PhotoCommand, session: CliSession) -> str:
    photo = await session.service.get_distinguished_object(cmd.principal)
    if photo is None:
        return f"No profile photo found for {cmd.principal}" if cmd.principal else "No profile photo found"
    return (
        f"Profile photo: {photo.name} ({format_file_size(photo.size)}, {photo.content_type})\n"
        f"Uploaded: {photo.created_at.strftime('%Y-%m-%d %H:%M:%S')}"
    )


@reports_errors
async def handle_ops(cmd: OpsCommand, session: CliSession) -> str:
    operations = session.service.recent_operations(cmd.limit or RECENT_OPERATIONS_LIMIT)
    in_flight = session.service.pending_uploads()
    if not operations and not in_flight:
        return "No operations yet"
    lines = [format_operation(op) for op in operations]
    lines.extend(render_progress(p.name, p) for p in in_flight)
    return "\n".join(lines)


@reports_errors
async def handle_prune(cmd: PruneCommand, session: CliSession) -> str:
    pruned = session.service.prune_completed()
    return f"Pruned {pruned} completed operation{'s' if pruned != 1 else ''}"
