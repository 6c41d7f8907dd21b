"""Cooperative cancellation for chunked transfers."""

from typing import Optional

from transfer.exceptions import ResumeToken, TransferCancelledError


class CancellationToken:
    """
    Flag checked by TransferClient before every chunk call.

    Cancelling never interrupts a chunk call already in flight; the transfer
    stops at the next chunk boundary.
    """

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        self._cancelled = True
        self.reason = reason

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, name: str, resume_token: Optional[ResumeToken] = None) -> None:
        """
        Raises:
            TransferCancelledError: If cancel() has been called
        """
        if self._cancelled:
            message = f"Transfer of '{name}' cancelled"
            if self.reason:
                message = f"{message}: {self.reason}"
            raise TransferCancelledError(message, resume_token=resume_token)
