"""Shared pytest fixtures for all tests."""

import dataclasses
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from cli.config import Config
from common import permissions
from common.types import ObjectSummary, StoredObjectMetadata
from transfer.exceptions import DuplicateNameError, RemoteStoreError, RevokeError, ShareError
from transfer.profile_naming import pick_current_distinguished

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeVaultStore:
    """
    In-memory stand-in for VaultClient with failure injection.

    Enforces the same chunk-order rules as the vault server and records
    every call in ``calls`` as ``(method, name, *args)``.
    """

    def __init__(self, principal: Optional[str] = 'alice'):
        self.principal = principal
        self.metadata: Dict[str, StoredObjectMetadata] = {}
        self.chunks: Dict[str, List[bytes]] = {}
        self.shared: List[StoredObjectMetadata] = []
        self.calls: List[tuple] = []
        self.fail_write_at: Optional[int] = None
        self.write_error: Exception = RemoteStoreError("Server error", code="INTERNAL_ERROR", status_code=500)
        self.delete_error: Optional[Exception] = None
        self.clock = BASE_TIME

    def _tick(self) -> datetime:
        self.clock += timedelta(seconds=1)
        return self.clock

    def add_object(self, name: str, data_chunks: List[bytes], content_type: str = 'text/plain',
                   is_distinguished: bool = False) -> StoredObjectMetadata:
        """Seed a complete object without going through write_chunk."""
        created = self._tick()
        self.chunks[name] = list(data_chunks)
        self.metadata[name] = StoredObjectMetadata(
            name=name,
            owner=self.principal,
            size=sum(len(c) for c in data_chunks),
            content_type=content_type,
            created_at=created,
            modified_at=created,
            is_distinguished=is_distinguished,
        )
        return self.metadata[name]

    async def exists(self, name: str) -> bool:
        self.calls.append(('exists', name))
        return name in self.metadata

    async def write_chunk(self, name, data, index, content_type, is_distinguished):
        self.calls.append(('write_chunk', name, index))
        if self.fail_write_at == index:
            raise self.write_error

        if index == 0:
            if name in self.metadata:
                raise DuplicateNameError(f"File \"{name}\" already exists")
            created = self._tick()
            self.metadata[name] = StoredObjectMetadata(
                name=name, owner=self.principal, size=0, content_type=content_type,
                created_at=created, modified_at=created, is_distinguished=is_distinguished,
            )
            self.chunks[name] = []
        elif name not in self.chunks or len(self.chunks[name]) != index:
            raise RemoteStoreError("Out of order", code="CHUNK_OUT_OF_ORDER", status_code=409)

        self.chunks[name].append(bytes(data))
        meta = self.metadata[name]
        self.metadata[name] = dataclasses.replace(meta, size=meta.size + len(data))

    async def read_chunk(self, name, index, owner=None):
        self.calls.append(('read_chunk', name, index))
        chunks = self.chunks.get(name)
        if chunks is None or index >= len(chunks):
            return None
        return chunks[index]

    async def get_total_chunks(self, name, owner=None):
        self.calls.append(('get_total_chunks', name))
        return len(self.chunks.get(name, []))

    async def get_content_type(self, name, owner=None):
        self.calls.append(('get_content_type', name))
        meta = self.metadata.get(name)
        return meta.content_type if meta else None

    async def get_object_metadata(self, name, owner=None):
        return self.metadata.get(name)

    async def list_objects(self):
        return [ObjectSummary(m.name, m.size, m.content_type) for m in self.metadata.values()]

    async def list_objects_with_metadata(self):
        return list(self.metadata.values())

    async def share_file(self, name, grantee, can_download, can_view, expiry_days=None):
        self.calls.append(('share_file', name, grantee))
        if name not in self.metadata:
            raise ShareError(f"File \"{name}\" not found")
        now = self._tick()
        expires_at = now + timedelta(days=expiry_days) if expiry_days else None
        self.metadata[name] = permissions.grant(
            self.metadata[name], grantee, can_view, can_download, expires_at=expires_at, now=now
        )

    async def revoke_file_sharing(self, name, grantee):
        self.calls.append(('revoke_file_sharing', name, grantee))
        meta = self.metadata.get(name)
        if meta is None or not any(p.grantee == grantee for p in meta.permissions):
            raise RevokeError(f"No permission found for {grantee} on \"{name}\"")
        self.metadata[name] = permissions.revoke(meta, grantee)

    async def list_shared_with_me(self):
        return list(self.shared)

    async def get_distinguished_object(self, principal):
        if principal != self.principal:
            return None
        return pick_current_distinguished(self.metadata.values())

    async def delete_object(self, name):
        self.calls.append(('delete_object', name))
        if self.delete_error is not None:
            raise self.delete_error
        self.chunks.pop(name, None)
        return self.metadata.pop(name, None) is not None

    def call_names(self, method: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == method]


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .medivault directory
    """
    config_dir = tmp_path / '.medivault'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')


@pytest.fixture
def fake_store():
    return FakeVaultStore()


@pytest.fixture
def three_chunk_payload():
    """Payload that splits into chunks of 4, 4 and 2 bytes at chunk_size=4."""
    return b'abcdefghij'


@pytest.fixture
def sample_file(tmp_path):
    """
    Create a sample file for testing file uploads.

    Returns:
        Path to sample text file
    """
    file_path = tmp_path / 'test.txt'
    file_path.write_text('Sample content for testing')
    return file_path


@pytest.fixture
def vault_db(tmp_path, monkeypatch):
    """
    Point the vault server at a fresh SQLite file.

    Returns:
        Path to the initialized database
    """
    from vault import config as vault_config
    from vault.database import init_database

    db_path = tmp_path / 'vault.db'
    monkeypatch.setattr(vault_config, 'DATABASE_PATH', str(db_path))
    init_database()
    return db_path
