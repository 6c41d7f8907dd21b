"""Ownership and sharing-grant predicates over stored object metadata."""

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from common.types import Capability, SharePermission, StoredObjectMetadata, utc_now


@dataclass(frozen=True)
class SharedWithMe:
    """Objects one owner has actively shared with the requester.

    Each object's ``permissions`` is narrowed to the requester's active grants.
    """
    owner: str
    objects: List[StoredObjectMetadata]


def active_grants(
    obj: StoredObjectMetadata,
    requester: str,
    now: datetime,
) -> List[SharePermission]:
    """Grants on ``obj`` issued to ``requester`` that have not expired at ``now``."""
    return [
        p for p in obj.permissions
        if p.grantee == requester and not p.is_expired(now)
    ]


def can_access(
    obj: StoredObjectMetadata,
    requester: str,
    capability: Capability,
    now: Optional[datetime] = None,
) -> bool:
    """
    Decide whether ``requester`` currently holds ``capability`` on ``obj``.

    Owners always have full capability. Anyone else needs an unexpired grant
    with the matching flag set. Expiry is evaluated against ``now`` on every
    call; expired grants stay stored but are inert.
    """
    if requester == obj.owner:
        return True

    if now is None:
        now = utc_now()

    return any(p.allows(capability) for p in active_grants(obj, requester, now))


def grant(
    obj: StoredObjectMetadata,
    grantee: str,
    can_view: bool,
    can_download: bool,
    expires_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> StoredObjectMetadata:
    """
    Return a copy of ``obj`` with a new grant for ``grantee``.

    Any earlier grant for the same grantee is dropped first, so an object
    holds at most one grant per grantee.
    """
    if now is None:
        now = utc_now()

    permission = SharePermission(
        grantee=grantee,
        can_view=can_view,
        can_download=can_download,
        expires_at=expires_at,
        granted_at=now,
    )
    kept = tuple(p for p in obj.permissions if p.grantee != grantee)
    return dataclasses.replace(obj, permissions=kept + (permission,))


def revoke(obj: StoredObjectMetadata, grantee: str) -> StoredObjectMetadata:
    """Return a copy of ``obj`` without any grant for ``grantee``."""
    kept = tuple(p for p in obj.permissions if p.grantee != grantee)
    return dataclasses.replace(obj, permissions=kept)


def list_granted_to_me(
    objects: Iterable[StoredObjectMetadata],
    requester: str,
    now: Optional[datetime] = None,
) -> List[SharedWithMe]:
    """
    Group every object carrying an active grant to ``requester`` by owner.

    Owners appear in the order their first matching object is seen.
    """
    if now is None:
        now = utc_now()

    grouped: Dict[str, List[StoredObjectMetadata]] = {}
    for obj in objects:
        if obj.owner == requester:
            continue
        grants = active_grants(obj, requester, now)
        if not grants:
            continue
        grouped.setdefault(obj.owner, []).append(
            dataclasses.replace(obj, permissions=tuple(grants))
        )

    return [SharedWithMe(owner=owner, objects=objs) for owner, objs in grouped.items()]
