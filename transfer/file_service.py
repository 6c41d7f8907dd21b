"""Consumer-facing file operations with operation and progress tracking."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

from common.constants import (
    BULK_ITEM_DELAY_SECONDS,
    CHUNK_SIZE_BYTES,
    PROFILE_PHOTO_PROGRESS_KEY,
    RECENT_OPERATIONS_LIMIT,
)
from common.logging_config import get_logger
from common import permissions
from common.permissions import SharedWithMe
from common.types import Capability, ObjectSummary, StoredObjectMetadata
from transfer.cancellation import CancellationToken
from transfer.exceptions import NotFoundError, NotInitializedError, ResumeToken, ValidationError
from transfer.operation_registry import (
    OperationKind,
    OperationRegistry,
    OperationStatus,
    ProgressListener,
    ProgressTable,
    TransferOperation,
    TransferProgress,
    Unsubscribe,
)
from transfer.profile_naming import profile_object_name, validate_profile_photo
from transfer.transfer_client import DownloadedObject, TransferClient
from transfer.vault_client import VaultClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of one item in a bulk delete or download."""
    name: str
    ok: bool
    error: Optional[str] = None
    result: Any = None


class FileService:
    """
    Upload, download, delete and sharing operations for the session principal.

    Every tracked operation gets its own record in the OperationRegistry;
    failures are written to that record and then re-raised. Upload progress
    is mirrored into the ProgressTable under the object name.
    """

    def __init__(
        self,
        store: VaultClient,
        registry: Optional[OperationRegistry] = None,
        progress: Optional[ProgressTable] = None,
        chunk_size: int = CHUNK_SIZE_BYTES,
        bulk_item_delay: float = BULK_ITEM_DELAY_SECONDS,
    ):
        self.store = store
        self.transfers = TransferClient(store, chunk_size=chunk_size)
        self.registry = registry if registry is not None else OperationRegistry()
        self.progress = progress if progress is not None else ProgressTable()
        self.bulk_item_delay = bulk_item_delay

    @property
    def principal(self) -> str:
        if not self.store.principal:
            raise NotInitializedError("Vault session not established. Log in with a principal first.")
        return self.store.principal

    async def _tracked(self, kind: OperationKind, name: str, action: Callable[[str], Awaitable[Any]]) -> Any:
        """Run ``action(operation_id)`` under a new operation record."""
        operation_id = self.registry.begin(kind, name)
        try:
            result = await action(operation_id)
        except Exception as e:
            logger.error(f"{kind.value.capitalize()} failed for {name}: {e}")
            self.registry.update(operation_id, status=OperationStatus.ERROR, error=str(e) or type(e).__name__)
            raise
        self.registry.update(operation_id, status=OperationStatus.COMPLETED)
        return result

    async def upload(
        self,
        name: str,
        data: bytes,
        content_type: str,
        is_distinguished: bool = False,
        cancel_token: Optional[CancellationToken] = None,
        compensate: bool = True,
        resume: Optional[ResumeToken] = None,
        progress_key: Optional[str] = None,
    ) -> TransferOperation:
        """
        Upload ``data`` as ``name`` and return the completed operation record.

        Args:
            progress_key: Side-table key for progress events; defaults to ``name``
        """
        key = progress_key or name

        async def run(operation_id: str) -> str:
            def on_progress(event: TransferProgress) -> None:
                self.progress.publish(key, event)
                self.registry.update(
                    operation_id,
                    status=OperationStatus.IN_PROGRESS,
                    progress_percent=event.progress,
                )

            try:
                await self.transfers.upload(
                    name,
                    data,
                    content_type,
                    is_distinguished=is_distinguished,
                    on_progress=on_progress,
                    cancel_token=cancel_token,
                    compensate=compensate,
                    resume=resume,
                )
                self.registry.update(operation_id, progress_percent=100)
            except Exception as e:
                self.progress.publish(key, TransferProgress(
                    name=name, progress=0, current_chunk=0, total_chunks=0,
                    is_complete=False, error=str(e) or type(e).__name__,
                ))
                raise
            finally:
                self.progress.clear(key)
            return operation_id

        operation_id = await self._tracked(OperationKind.UPLOAD, name, run)
        return self.registry.get(operation_id)

    async def upload_profile_photo(
        self,
        source_name: str,
        data: bytes,
        content_type: str,
        uploaded_at: Optional[datetime] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> TransferOperation:
        """
        Validate an image and upload it as a new distinguished object.

        Raises:
            ValidationError: If it is not an image or is larger than 5 MiB
        """
        validate_profile_photo(content_type, len(data))
        name = profile_object_name(source_name, uploaded_at)
        logger.info(f"Uploading profile photo {source_name} as {name}")
        return await self.upload(
            name,
            data,
            content_type,
            is_distinguished=True,
            cancel_token=cancel_token,
            progress_key=PROFILE_PHOTO_PROGRESS_KEY,
        )

    async def download(
        self,
        name: str,
        owner: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> DownloadedObject:
        async def run(operation_id: str) -> DownloadedObject:
            def on_progress(event: TransferProgress) -> None:
                self.registry.update(operation_id, progress_percent=event.progress)

            return await self.transfers.download(
                name, owner=owner, on_progress=on_progress, cancel_token=cancel_token
            )

        return await self._tracked(OperationKind.DOWNLOAD, name, run)

    async def delete(self, name: str) -> None:
        async def run(operation_id: str) -> None:
            await self.transfers.delete(name)

        await self._tracked(OperationKind.DELETE, name, run)

    async def share(
        self,
        name: str,
        grantee: str,
        can_view: bool = True,
        can_download: bool = False,
        expiry_days: Optional[int] = None,
    ) -> None:
        """
        Grant ``grantee`` access to ``name``, replacing any earlier grant.

        Raises:
            ValidationError: If neither capability is requested or expiry_days < 1
            ShareError: If the vault rejects the grant
        """
        if not can_view and not can_download:
            raise ValidationError("Please grant at least one permission (view or download)")
        if expiry_days is not None and expiry_days < 1:
            raise ValidationError("Expiry must be at least one day")

        async def run(operation_id: str) -> None:
            await self.store.share_file(name, grantee, can_download, can_view, expiry_days)
            logger.info(f"File \"{name}\" shared successfully with {grantee}")

        await self._tracked(OperationKind.SHARE, name, run)

    async def revoke_share(self, name: str, grantee: str) -> None:
        """
        Raises:
            RevokeError: If the vault rejects the revocation
        """
        await self.store.revoke_file_sharing(name, grantee)
        logger.info(f"File sharing revoked for \"{name}\" from {grantee}")

    async def list_mine(self) -> List[StoredObjectMetadata]:
        return await self.store.list_objects_with_metadata()

    async def list_summaries(self) -> List[ObjectSummary]:
        return await self.store.list_objects()

    async def list_shared_with_me(self, now: Optional[datetime] = None) -> List[SharedWithMe]:
        """Objects shared with the session principal, grouped by owner, expired grants excluded."""
        objects = await self.store.list_shared_with_me()
        return permissions.list_granted_to_me(objects, self.principal, now)

    async def get_metadata(self, name: str, owner: Optional[str] = None) -> StoredObjectMetadata:
        """
        Raises:
            NotFoundError: If the object does not exist or is not visible
        """
        metadata = await self.store.get_object_metadata(name, owner=owner)
        if metadata is None:
            raise NotFoundError(f"File \"{name}\" not found")
        return metadata

    async def get_distinguished_object(self, principal: Optional[str] = None) -> Optional[StoredObjectMetadata]:
        return await self.store.get_distinguished_object(principal or self.principal)

    def can_access(
        self,
        obj: StoredObjectMetadata,
        capability: Capability,
        now: Optional[datetime] = None,
    ) -> bool:
        return permissions.can_access(obj, self.principal, capability, now)

    async def _bulk(
        self,
        names: List[str],
        action: Callable[[str], Awaitable[Any]],
    ) -> List[BatchItemResult]:
        results = []
        for position, name in enumerate(names):
            if position > 0 and self.bulk_item_delay:
                await asyncio.sleep(self.bulk_item_delay)
            try:
                value = await action(name)
            except Exception as e:
                results.append(BatchItemResult(name=name, ok=False, error=str(e) or type(e).__name__))
                continue
            results.append(BatchItemResult(name=name, ok=True, result=value))
        return results

    async def delete_many(self, names: List[str]) -> List[BatchItemResult]:
        """Delete each name in turn; one failure does not stop the batch."""
        return await self._bulk(names, self.delete)

    async def download_many(self, names: List[str], owner: Optional[str] = None) -> List[BatchItemResult]:
        """Download each name in turn; one failure does not stop the batch."""
        return await self._bulk(names, lambda name: self.download(name, owner=owner))

    def subscribe_progress(self, name: str, listener: ProgressListener) -> Unsubscribe:
        return self.progress.subscribe(name, listener)

    def pending_uploads(self) -> List[TransferProgress]:
        """Uploads that have reported progress and not yet finished."""
        return self.progress.pending()

    def recent_operations(self, limit: int = RECENT_OPERATIONS_LIMIT) -> List[TransferOperation]:
        return self.registry.recent(limit)

    def remove_operation(self, operation_id: str) -> bool:
        return self.registry.remove(operation_id)

    def prune_completed(self) -> int:
        return self.registry.prune_completed()
