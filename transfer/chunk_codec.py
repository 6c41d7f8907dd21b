"""Splitting byte buffers into fixed-size chunks and reassembling them."""

import math
from typing import Iterator, List, Optional, Sequence

from common.constants import CHUNK_SIZE_BYTES
from transfer.exceptions import ReconstructionError


def chunk_count(total_size: int, chunk_size: int = CHUNK_SIZE_BYTES) -> int:
    """
    Number of chunks needed for ``total_size`` bytes.

    Args:
        total_size: Payload size in bytes
        chunk_size: Chunk size in bytes

    Returns:
        ceil(total_size / chunk_size); 0 for an empty payload
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return math.ceil(total_size / chunk_size)


def iter_chunks(data: bytes, chunk_size: int = CHUNK_SIZE_BYTES) -> Iterator[bytes]:
    """
    Yield consecutive chunks of ``data`` lazily.

    Only the final chunk may be shorter than ``chunk_size``.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    view = memoryview(data)
    for offset in range(0, len(data), chunk_size):
        yield bytes(view[offset:offset + chunk_size])


def split(data: bytes, chunk_size: int = CHUNK_SIZE_BYTES) -> List[bytes]:
    """
    Split ``data`` into an ordered list of chunks.

    Args:
        data: Payload to split
        chunk_size: Chunk size in bytes

    Returns:
        ceil(len(data) / chunk_size) chunks; empty list for empty data
    """
    return list(iter_chunks(data, chunk_size))


def reassemble(chunks: Sequence[Optional[bytes]]) -> bytes:
    """
    Concatenate ``chunks`` in order into one contiguous buffer.

    Raises:
        ReconstructionError: If any chunk is missing or empty
    """
    for index, chunk in enumerate(chunks):
        if not chunk:
            raise ReconstructionError(f"Chunk {index} is missing or empty")
    return b''.join(chunks)
