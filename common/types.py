"""Shared data type definitions (StoredObjectMetadata, SharePermission, ObjectSummary)."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Capability(str, Enum):
    """Access capability checked against a sharing grant."""

    VIEW = "view"
    DOWNLOAD = "download"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp from the wire.

    Naive values are taken to be UTC; a trailing 'Z' is accepted.
    """
    if value is None:
        return None
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return as_utc(datetime.fromisoformat(value))


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return as_utc(value).isoformat()


@dataclass(frozen=True)
class SharePermission:
    """
    A sharing grant attached to a stored object.

    Never mutated in place: re-sharing with the same grantee produces a new record.
    """
    grantee: str
    can_view: bool
    can_download: bool
    granted_at: datetime
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and as_utc(self.expires_at) <= as_utc(now)

    def allows(self, capability: Capability) -> bool:
        if capability is Capability.VIEW:
            return self.can_view
        return self.can_download

    def to_dict(self) -> Dict[str, Any]:
        return {
            'grantee': self.grantee,
            'can_view': self.can_view,
            'can_download': self.can_download,
            'expires_at': format_timestamp(self.expires_at),
            'granted_at': format_timestamp(self.granted_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SharePermission':
        return cls(
            grantee=data['grantee'],
            can_view=bool(data['can_view']),
            can_download=bool(data['can_download']),
            expires_at=parse_timestamp(data.get('expires_at')),
            granted_at=parse_timestamp(data['granted_at']),
        )


@dataclass(frozen=True)
class StoredObjectMetadata:
    """
    Complete metadata for an object in an owner's vault namespace.

    ``name`` is unique per ``owner``.
    """
    name: str
    owner: str
    size: int
    content_type: str
    created_at: datetime
    modified_at: datetime
    is_distinguished: bool = False
    permissions: Tuple[SharePermission, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'owner': self.owner,
            'size': self.size,
            'content_type': self.content_type,
            'created_at': format_timestamp(self.created_at),
            'modified_at': format_timestamp(self.modified_at),
            'is_distinguished': self.is_distinguished,
            'permissions': [p.to_dict() for p in self.permissions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredObjectMetadata':
        return cls(
            name=data['name'],
            owner=data['owner'],
            size=int(data['size']),
            content_type=data['content_type'],
            created_at=parse_timestamp(data['created_at']),
            modified_at=parse_timestamp(data['modified_at']),
            is_distinguished=bool(data.get('is_distinguished', False)),
            permissions=tuple(SharePermission.from_dict(p) for p in data.get('permissions', [])),
        )


@dataclass(frozen=True)
class ObjectSummary:
    """Basic listing entry returned by an owner listing."""
    name: str
    size: int
    content_type: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ObjectSummary':
        return cls(name=data['name'], size=int(data['size']), content_type=data['content_type'])
