"""Vault service for chunk storage, metadata and sharing rules."""

import dataclasses
import sqlite3
from datetime import timedelta
from typing import List, Optional

from common import permissions
from common.logging_config import get_logger
from common.types import Capability, SharePermission, StoredObjectMetadata, utc_now
from vault.auth import is_valid_principal
from vault.database import get_db_connection
from vault.exceptions import (
    AccessDeniedError,
    ChunkOrderError,
    InvalidShareError,
    ObjectAlreadyExistsError,
    ObjectNotFoundError,
    PermissionNotFoundError,
)
from vault.repositories import ChunkRepository, ObjectRecord, ObjectRepository, PermissionRepository

logger = get_logger(__name__)


class VaultService:
    def __init__(self):
        self.object_repo = ObjectRepository()
        self.chunk_repo = ChunkRepository()
        self.permission_repo = PermissionRepository()

    def _to_metadata(self, record: ObjectRecord) -> StoredObjectMetadata:
        return StoredObjectMetadata(
            name=record.name,
            owner=record.owner,
            size=record.size,
            content_type=record.content_type,
            created_at=record.created_at,
            modified_at=record.modified_at,
            is_distinguished=record.is_distinguished,
            permissions=tuple(self.permission_repo.list_for_object(record.owner, record.name)),
        )

    def _authorized(
        self,
        principal: str,
        owner: str,
        name: str,
        capability: Capability,
    ) -> StoredObjectMetadata:
        """
        Load an object and check ``principal`` holds ``capability`` on it.

        Raises:
            ObjectNotFoundError: If the object does not exist
            AccessDeniedError: If the principal is neither owner nor active grantee
        """
        record = self.object_repo.get(owner, name)
        if record is None:
            raise ObjectNotFoundError(f"File \"{name}\" not found")

        metadata = self._to_metadata(record)
        if not permissions.can_access(metadata, principal, capability):
            raise AccessDeniedError(f"No {capability.value} access to \"{name}\"")
        return metadata

    def exists(self, owner: str, name: str) -> bool:
        return self.object_repo.get(owner, name) is not None

    def write_chunk(
        self,
        owner: str,
        name: str,
        chunk_index: int,
        data: bytes,
        content_type: str,
        is_distinguished: bool,
    ) -> int:
        """
        Append chunk ``chunk_index`` to ``owner``'s object ``name``.

        Chunk 0 creates the object; every later index must equal the
        current chunk count.

        Returns:
            New chunk count

        Raises:
            ObjectAlreadyExistsError: If chunk 0 targets an existing name
            ChunkOrderError: If the index is not the next expected one
        """
        now = utc_now()

        with get_db_connection() as conn:
            try:
                record = self.object_repo.get(owner, name, conn=conn)

                if chunk_index == 0:
                    if record is not None:
                        raise ObjectAlreadyExistsError(f"File \"{name}\" already exists")
                    self.object_repo.create(owner, name, content_type, is_distinguished, now, conn=conn)
                else:
                    expected = record.total_chunks if record is not None else 0
                    if record is None or chunk_index != expected:
                        raise ChunkOrderError(
                            f"Expected chunk {expected} for \"{name}\", got {chunk_index}"
                        )

                self.chunk_repo.insert(owner, name, chunk_index, data, conn=conn)
                total = self.object_repo.record_chunk(owner, name, len(data), now, conn=conn)
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                if chunk_index == 0:
                    raise ObjectAlreadyExistsError(f"File \"{name}\" already exists") from e
                raise ChunkOrderError(f"Chunk {chunk_index} of \"{name}\" already written") from e
            except Exception:
                conn.rollback()
                raise

        logger.debug(f"Stored chunk {chunk_index} of {name} [owner={owner}] total={total}")
        return total

    def read_chunk(self, principal: str, owner: str, name: str, chunk_index: int) -> bytes:
        self._authorized(principal, owner, name, Capability.DOWNLOAD)
        data = self.chunk_repo.get(owner, name, chunk_index)
        if data is None:
            raise ObjectNotFoundError(f"Chunk {chunk_index} of \"{name}\" not found")
        return data

    def total_chunks(self, principal: str, owner: str, name: str) -> int:
        record = self.object_repo.get(owner, name)
        if record is None:
            raise ObjectNotFoundError(f"File \"{name}\" not found")
        self._authorized(principal, owner, name, Capability.DOWNLOAD)
        return record.total_chunks

    def content_type(self, principal: str, owner: str, name: str) -> str:
        return self._authorized(principal, owner, name, Capability.DOWNLOAD).content_type

    def metadata(self, principal: str, owner: str, name: str) -> StoredObjectMetadata:
        metadata = self._authorized(principal, owner, name, Capability.VIEW)
        if principal != owner:
            metadata = self._narrow_to(metadata, principal)
        return metadata

    @staticmethod
    def _narrow_to(metadata: StoredObjectMetadata, grantee: str) -> StoredObjectMetadata:
        """Hide other grantees' grants from a non-owner."""
        own = tuple(p for p in metadata.permissions if p.grantee == grantee)
        return dataclasses.replace(metadata, permissions=own)

    def list_objects(self, owner: str) -> List[StoredObjectMetadata]:
        return [self._to_metadata(record) for record in self.object_repo.list_by_owner(owner)]

    def share(
        self,
        owner: str,
        name: str,
        grantee: str,
        can_view: bool,
        can_download: bool,
        expiry_days: Optional[int] = None,
    ) -> StoredObjectMetadata:
        """
        Grant ``grantee`` access, replacing any earlier grant for them.

        Raises:
            ObjectNotFoundError: If the owner has no such object
            InvalidShareError: If the grantee is malformed or is the owner
        """
        if not is_valid_principal(grantee):
            raise InvalidShareError(f"Invalid principal: {grantee}")
        if grantee == owner:
            raise InvalidShareError("Cannot share a file with yourself")
        if not can_view and not can_download:
            raise InvalidShareError("A grant needs view or download permission")

        if self.object_repo.get(owner, name) is None:
            raise ObjectNotFoundError(f"File \"{name}\" not found")

        now = utc_now()
        expires_at = now + timedelta(days=expiry_days) if expiry_days else None
        self.permission_repo.replace_grant(owner, name, SharePermission(
            grantee=grantee,
            can_view=can_view,
            can_download=can_download,
            expires_at=expires_at,
            granted_at=now,
        ))
        return self._to_metadata(self.object_repo.get(owner, name))

    def revoke(self, owner: str, name: str, grantee: str) -> None:
        """
        Raises:
            ObjectNotFoundError: If the owner has no such object
            PermissionNotFoundError: If no grant exists for ``grantee``
        """
        if self.object_repo.get(owner, name) is None:
            raise ObjectNotFoundError(f"File \"{name}\" not found")

        removed = self.permission_repo.delete_grants(owner, name, grantee)
        if removed == 0:
            raise PermissionNotFoundError(f"No permission found for {grantee} on \"{name}\"")
        logger.info(f"Revoked {removed} grant(s) [owner={owner}, name={name}, grantee={grantee}]")

    def shared_with(self, principal: str) -> List[StoredObjectMetadata]:
        """Objects with an active grant to ``principal``, narrowed to their own grants."""
        now = utc_now()
        shared = []
        for record in self.object_repo.list_shared_with(principal):
            metadata = self._narrow_to(self._to_metadata(record), principal)
            if permissions.active_grants(metadata, principal, now):
                shared.append(metadata)
        return shared

    def distinguished(self, subject: str) -> Optional[StoredObjectMetadata]:
        """Newest distinguished object of ``subject`` (grants hidden)."""
        record = self.object_repo.latest_distinguished(subject)
        if record is None:
            return None
        return dataclasses.replace(self._to_metadata(record), permissions=())

    def delete(self, owner: str, name: str) -> bool:
        return self.object_repo.delete(owner, name)
