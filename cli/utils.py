"""Utility functions for CLI output."""

import sys
from typing import Optional, TextIO

from cli.constants import GREEN, RED, RESET
from transfer.operation_registry import OperationStatus, TransferOperation, TransferProgress


class ProgressPrinter:
    """Progress listener that redraws a single upload progress line."""

    def __init__(self, label: str, stream: Optional[TextIO] = None):
        """
        Args:
            label: Display name for the transfer
            stream: Output stream (stdout by default)
        """
        self.label = label
        self.stream = stream or sys.stdout
        self._finished = False

    def __call__(self, progress: TransferProgress) -> None:
        self.stream.write(f"\r{render_progress(self.label, progress)}")
        self.stream.flush()
        if (progress.is_complete or progress.error) and not self._finished:
            self.finish()

    def finish(self) -> None:
        """Finalize progress display with newline."""
        self._finished = True
        self.stream.write('\n')
        self.stream.flush()


def render_progress(label: str, progress: TransferProgress) -> str:
    """
    Render one progress event as a status line.

    Returns:
        e.g. "Uploading scan.pdf: chunk 2/3 (67%)"
    """
    if progress.error:
        return f"Uploading {label}: {RED}failed: {progress.error}{RESET}"
    return (
        f"Uploading {label}: chunk {progress.current_chunk}/{progress.total_chunks} "
        f"({GREEN}{progress.progress}%{RESET})"
    )


def format_operation(operation: TransferOperation) -> str:
    line = (
        f"{operation.created_at.strftime('%Y-%m-%d %H:%M:%S')}  {operation.kind.value:<8} "
        f"{operation.status.value:<11} {operation.object_name}"
    )
    if operation.progress_percent is not None and operation.status is not OperationStatus.COMPLETED:
        line += f" ({operation.progress_percent}%)"
    if operation.error:
        line += f" - {operation.error}"
    return line


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
