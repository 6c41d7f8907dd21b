"""Chunked upload/download orchestration against the vault primitives."""

import inspect
from dataclasses import dataclass
from itertools import islice
from typing import Awaitable, Callable, List, Optional, Union

from common.constants import CHUNK_SIZE_BYTES
from common.logging_config import get_logger
from transfer import chunk_codec
from transfer.cancellation import CancellationToken
from transfer.exceptions import (
    CorruptObjectError,
    DeleteFailedError,
    DuplicateNameError,
    NotFoundError,
    ReconstructionError,
    ResumeToken,
    TransferCancelledError,
    UploadInterruptedError,
    ValidationError,
)
from transfer.operation_registry import TransferProgress
from transfer.vault_client import VaultClient

logger = get_logger(__name__)

ProgressCallback = Callable[[TransferProgress], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class DownloadedObject:
    """A reassembled object with its stored content type."""
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def progress_percent(completed_chunks: int, total_chunks: int) -> int:
    """
    Whole-number progress after ``completed_chunks`` of ``total_chunks``.

    Rounds half up, and never reports 100 before the final chunk.
    """
    percent = (200 * completed_chunks + total_chunks) // (2 * total_chunks)
    if completed_chunks < total_chunks:
        return min(percent, 99)
    return 100


async def _emit(callback: Optional[ProgressCallback], progress: TransferProgress) -> None:
    if callback is None:
        return
    result = callback(progress)
    if inspect.isawaitable(result):
        await result


class TransferClient:
    """
    Drives one logical file transfer at a time against a VaultClient.

    Chunk calls within a transfer are strictly sequential: the next chunk
    is not sent (or requested) until the previous call has returned, so at
    most one chunk buffer is held and the store sees ordered writes.
    """

    def __init__(self, store: VaultClient, chunk_size: int = CHUNK_SIZE_BYTES):
        self.store = store
        self.chunk_size = chunk_size

    async def upload(
        self,
        name: str,
        data: bytes,
        content_type: str,
        is_distinguished: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        compensate: bool = True,
        resume: Optional[ResumeToken] = None,
    ) -> int:
        """
        Upload ``data`` as object ``name`` chunk by chunk.

        Args:
            name: Target object name; must not exist yet (unless resuming)
            data: Object bytes
            content_type: MIME type stored with the object
            is_distinguished: Flag the object as a subject's distinguished object
            on_progress: Called after every acknowledged chunk (sync or async)
            cancel_token: Checked before every chunk write
            compensate: Delete the partial object if the upload fails
            resume: Token from a previous interrupted upload of the same bytes

        Returns:
            Total number of chunks in the object

        Raises:
            ValidationError: If ``data`` is empty or ``resume`` does not match
            DuplicateNameError: If ``name`` already exists
            TransferCancelledError: If ``cancel_token`` fires
            UploadInterruptedError: If a chunk write fails with compensate=False
        """
        total_chunks = chunk_codec.chunk_count(len(data), self.chunk_size)
        if total_chunks == 0:
            raise ValidationError(f"Cannot upload empty file '{name}'")

        if resume is None:
            if await self.store.exists(name):
                raise DuplicateNameError(f"File \"{name}\" already exists")
            start_index = 0
        else:
            if resume.name != name or resume.total_chunks != total_chunks:
                raise ValidationError(f"Resume token does not match upload of '{name}'")
            start_index = resume.next_chunk_index

        logger.info(
            f"Starting upload: {name}, size={len(data)}, chunks={total_chunks}, start={start_index}"
        )

        chunks = islice(chunk_codec.iter_chunks(data, self.chunk_size), start_index, None)
        index = start_index

        try:
            for index, chunk in enumerate(chunks, start_index):
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled(name)

                await self.store.write_chunk(name, chunk, index, content_type, is_distinguished)

                completed = index + 1
                await _emit(on_progress, TransferProgress(
                    name=name,
                    progress=progress_percent(completed, total_chunks),
                    current_chunk=completed,
                    total_chunks=total_chunks,
                    is_complete=completed == total_chunks,
                ))
                logger.debug(f"Uploaded chunk {completed}/{total_chunks} for {name}")

        except DuplicateNameError:
            raise
        except Exception as exc:
            await self._handle_upload_failure(name, index, total_chunks, exc, compensate)
            raise

        logger.info(f"File upload completed: {name}")
        return total_chunks

    async def _handle_upload_failure(
        self,
        name: str,
        failed_index: int,
        total_chunks: int,
        exc: Exception,
        compensate: bool,
    ) -> None:
        """
        Clean up or convert the error of a failed upload.

        Chunks ``0..failed_index-1`` are on the store. With ``compensate``
        the partial object is deleted and the original error propagates;
        otherwise a resumable error carrying a ResumeToken is raised.
        """
        logger.error(f"Upload of {name} failed at chunk {failed_index}: {exc}")

        if compensate:
            if failed_index > 0:
                await self._compensate(name)
            return

        token = ResumeToken(name=name, next_chunk_index=failed_index, total_chunks=total_chunks)
        if isinstance(exc, TransferCancelledError):
            raise TransferCancelledError(str(exc), resume_token=token) from exc
        raise UploadInterruptedError(
            f"Upload of '{name}' interrupted at chunk {failed_index}: {exc}",
            resume_token=token,
        ) from exc

    async def _compensate(self, name: str) -> None:
        try:
            deleted = await self.store.delete_object(name)
        except Exception as e:
            logger.error(f"Failed to delete partially uploaded object {name}: {e}")
            return
        if deleted:
            logger.info(f"Deleted partially uploaded object {name}")
        else:
            logger.warning(f"Partially uploaded object {name} was not deleted by the vault")

    async def download(
        self,
        name: str,
        owner: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> DownloadedObject:
        """
        Fetch every chunk of ``name`` in order and reassemble it.

        Args:
            name: Object name
            owner: Owning principal when reading an object shared with the caller
            on_progress: Called after every fetched chunk (sync or async)
            cancel_token: Checked before every chunk read

        Raises:
            NotFoundError: If the object has no content type (absent)
            CorruptObjectError: If the object reports zero chunks
            ReconstructionError: If any chunk comes back empty or missing
            TransferCancelledError: If ``cancel_token`` fires
        """
        content_type = await self.store.get_content_type(name, owner=owner)
        if not content_type:
            raise NotFoundError(f"File \"{name}\" not found")

        total_chunks = await self.store.get_total_chunks(name, owner=owner)
        if total_chunks == 0:
            raise CorruptObjectError(f"No chunks found for file \"{name}\"")

        logger.info(f"Starting download: {name}, chunks={total_chunks}")

        chunks: List[bytes] = []
        for index in range(total_chunks):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(name)

            chunk = await self.store.read_chunk(name, index, owner=owner)
            if not chunk:
                raise ReconstructionError(f"Failed to download chunk {index} for file \"{name}\"")
            chunks.append(chunk)

            completed = index + 1
            await _emit(on_progress, TransferProgress(
                name=name,
                progress=progress_percent(completed, total_chunks),
                current_chunk=completed,
                total_chunks=total_chunks,
                is_complete=completed == total_chunks,
            ))

        data = chunk_codec.reassemble(chunks)
        logger.info(f"File download completed: {name} ({len(data)} bytes)")
        return DownloadedObject(name=name, content_type=content_type, data=data)

    async def delete(self, name: str) -> None:
        """
        Raises:
            DeleteFailedError: If the vault does not confirm the deletion
        """
        if not await self.store.delete_object(name):
            raise DeleteFailedError(f"Failed to delete file \"{name}\"")
        logger.info(f"File \"{name}\" deleted successfully")
