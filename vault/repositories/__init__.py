"""Repository layer for data access."""

from vault.repositories.object_repository import ObjectRecord, ObjectRepository
from vault.repositories.chunk_repository import ChunkRepository
from vault.repositories.permission_repository import PermissionRepository

__all__ = [
    "ObjectRecord",
    "ObjectRepository",
    "ChunkRepository",
    "PermissionRepository",
]
