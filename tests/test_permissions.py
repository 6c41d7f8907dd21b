"""Tests for ownership and sharing-grant rules."""

from datetime import datetime, timedelta, timezone

import pytest

from common import permissions
from common.types import Capability, SharePermission, StoredObjectMetadata

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_object(name='scan.pdf', owner='alice', grants=()):
    return StoredObjectMetadata(
        name=name,
        owner=owner,
        size=10,
        content_type='application/pdf',
        created_at=T0,
        modified_at=T0,
        permissions=tuple(grants),
    )


def make_grant(grantee='bob', can_view=True, can_download=False, expires_at=None):
    return SharePermission(
        grantee=grantee,
        can_view=can_view,
        can_download=can_download,
        granted_at=T0,
        expires_at=expires_at,
    )


class TestCanAccess:
    def test_owner_has_every_capability_without_grants(self):
        obj = make_object()
        assert permissions.can_access(obj, 'alice', Capability.VIEW, T0)
        assert permissions.can_access(obj, 'alice', Capability.DOWNLOAD, T0)

    def test_stranger_has_nothing(self):
        obj = make_object(grants=[make_grant('bob')])
        assert not permissions.can_access(obj, 'carol', Capability.VIEW, T0)

    def test_capability_flags_respected(self):
        obj = make_object(grants=[make_grant('bob', can_view=True, can_download=False)])
        assert permissions.can_access(obj, 'bob', Capability.VIEW, T0)
        assert not permissions.can_access(obj, 'bob', Capability.DOWNLOAD, T0)

    def test_download_only_grant(self):
        obj = make_object(grants=[make_grant('bob', can_view=False, can_download=True)])
        assert not permissions.can_access(obj, 'bob', Capability.VIEW, T0)
        assert permissions.can_access(obj, 'bob', Capability.DOWNLOAD, T0)

    def test_expiry_evaluated_at_call_time(self):
        expires = T0 + timedelta(days=1)
        obj = make_object(grants=[make_grant('bob', expires_at=expires)])

        assert permissions.can_access(obj, 'bob', Capability.VIEW, T0)
        assert permissions.can_access(obj, 'bob', Capability.VIEW, expires - timedelta(seconds=1))
        assert not permissions.can_access(obj, 'bob', Capability.VIEW, expires)
        assert not permissions.can_access(obj, 'bob', Capability.VIEW, expires + timedelta(days=3))

    def test_naive_now_treated_as_utc(self):
        expires = T0 + timedelta(days=1)
        obj = make_object(grants=[make_grant('bob', expires_at=expires)])
        naive = expires.replace(tzinfo=None)

        assert permissions.can_access(obj, 'bob', Capability.VIEW, naive - timedelta(seconds=1))
        assert not permissions.can_access(obj, 'bob', Capability.VIEW, naive)

    def test_expired_grant_stays_stored(self):
        obj = make_object(grants=[make_grant('bob', expires_at=T0 - timedelta(days=1))])
        assert not permissions.can_access(obj, 'bob', Capability.VIEW, T0)
        assert len(obj.permissions) == 1

    def test_no_expiry_never_expires(self):
        obj = make_object(grants=[make_grant('bob')])
        assert permissions.can_access(obj, 'bob', Capability.VIEW, T0 + timedelta(days=10000))


class TestGrantAndRevoke:
    def test_grant_then_revoke_scenario(self):
        obj = make_object()

        obj = permissions.grant(obj, 'bob', can_view=True, can_download=True, now=T0)
        assert permissions.can_access(obj, 'bob', Capability.DOWNLOAD, T0)

        obj = permissions.revoke(obj, 'bob')
        assert not permissions.can_access(obj, 'bob', Capability.VIEW, T0)
        assert obj.permissions == ()

    def test_regrant_replaces_previous_grant(self):
        obj = make_object()
        obj = permissions.grant(obj, 'bob', can_view=True, can_download=True, now=T0)
        obj = permissions.grant(obj, 'bob', can_view=True, can_download=False, now=T0 + timedelta(hours=1))

        assert len(obj.permissions) == 1
        assert not permissions.can_access(obj, 'bob', Capability.DOWNLOAD, T0 + timedelta(hours=2))

    def test_grant_keeps_other_grantees(self):
        obj = make_object(grants=[make_grant('carol')])
        obj = permissions.grant(obj, 'bob', can_view=True, can_download=False, now=T0)

        assert [p.grantee for p in obj.permissions] == ['carol', 'bob']

    def test_grant_does_not_mutate_original(self):
        original = make_object()
        permissions.grant(original, 'bob', can_view=True, can_download=False, now=T0)
        assert original.permissions == ()

    def test_revoke_unknown_grantee_is_noop(self):
        obj = make_object(grants=[make_grant('bob')])
        assert permissions.revoke(obj, 'carol').permissions == obj.permissions


class TestListGrantedToMe:
    def test_groups_by_owner_in_first_seen_order(self):
        objects = [
            make_object('a.pdf', owner='dave', grants=[make_grant('bob')]),
            make_object('b.pdf', owner='alice', grants=[make_grant('bob')]),
            make_object('c.pdf', owner='dave', grants=[make_grant('bob')]),
        ]

        groups = permissions.list_granted_to_me(objects, 'bob', T0)

        assert [g.owner for g in groups] == ['dave', 'alice']
        assert [o.name for o in groups[0].objects] == ['a.pdf', 'c.pdf']

    def test_excludes_expired_and_foreign_grants(self):
        objects = [
            make_object('expired.pdf', grants=[make_grant('bob', expires_at=T0 - timedelta(seconds=1))]),
            make_object('other.pdf', grants=[make_grant('carol')]),
            make_object('mine.pdf', owner='bob'),
            make_object('live.pdf', grants=[make_grant('bob'), make_grant('carol')]),
        ]

        groups = permissions.list_granted_to_me(objects, 'bob', T0)

        assert len(groups) == 1
        assert [o.name for o in groups[0].objects] == ['live.pdf']
        assert [p.grantee for p in groups[0].objects[0].permissions] == ['bob']

    @pytest.mark.parametrize('objects', [[], [make_object()]])
    def test_nothing_shared(self, objects):
        assert permissions.list_granted_to_me(objects, 'bob', T0) == []
