"""Exception taxonomy for the transfer client."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ResumeToken:
    """
    Position an interrupted upload can continue from.

    ``next_chunk_index`` is the first chunk the remote store has not acknowledged.
    """
    name: str
    next_chunk_index: int
    total_chunks: int


class VaultError(Exception):
    """
    Base exception class for all vault transfer errors.
    """
    pass


class NotInitializedError(VaultError):
    """
    Raised when no vault session (principal) has been established.
    """
    pass


class ValidationError(VaultError):
    """
    Raised when a caller-side size or content-type check fails.
    """
    pass


class VaultUnavailableError(VaultError):
    """
    Raised when the remote store cannot be reached after all retries.
    """
    pass


class RemoteStoreError(VaultError):
    """
    Raised when the remote store answers with an unexpected error.
    """

    def __init__(self, message: str, code: str = 'UNKNOWN', status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class TransferError(VaultError):
    """
    Base class for errors that abort a chunked transfer.

    ``resume_token`` is set when an upload was left resumable.
    """

    def __init__(self, message: str, resume_token: Optional[ResumeToken] = None):
        super().__init__(message)
        self.resume_token = resume_token


class DuplicateNameError(TransferError):
    """
    Raised when an upload targets a name that already exists.
    """
    pass


class NotFoundError(TransferError):
    """
    Raised when a download or metadata query targets an absent object.
    """
    pass


class CorruptObjectError(TransferError):
    """
    Raised when the remote store reports zero chunks for an object.
    """
    pass


class ReconstructionError(TransferError):
    """
    Raised when a chunk is missing or empty during reassembly.
    """
    pass


class TransferCancelledError(TransferError):
    """
    Raised when a cancellation token fires between chunk calls.
    """
    pass


class DeleteFailedError(VaultError):
    """
    Raised when the remote store does not confirm a deletion.
    """
    pass


class ShareError(VaultError):
    """
    Raised when the remote store rejects a sharing grant.
    """
    pass


class RevokeError(VaultError):
    """
    Raised when the remote store rejects a grant revocation.
    """
    pass


class UploadInterruptedError(TransferError):
    """
    Raised by a resumable upload when a chunk write fails.

    The underlying error is chained as ``__cause__``.
    """
    pass
