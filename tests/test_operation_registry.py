"""Tests for operation records and the progress side-table."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from transfer.operation_registry import (
    OperationKind,
    OperationRegistry,
    OperationStatus,
    ProgressTable,
    TransferProgress,
)

def progress(name='scan.pdf', value=33, current=1, total=3, complete=False):
    return TransferProgress(
        name=name, progress=value, current_chunk=current, total_chunks=total, is_complete=complete
    )

class TestOperationRegistry:
    def test_begin_creates_in_progress_record(self):
        registry = OperationRegistry()
        op_id = registry.begin(OperationKind.UPLOAD, 'scan.pdf')

        op = registry.get(op_id)
        assert op.kind is OperationKind.UPLOAD
        assert op.object_name == 'scan.pdf'
        assert op.status is OperationStatus.IN_PROGRESS
        assert op.progress_percent is None
        assert op.error is None

    def test_ids_are_unique_per_operation(self):
        registry = OperationRegistry()
        first = registry.begin(OperationKind.UPLOAD, 'scan.pdf')
        second = registry.begin(OperationKind.UPLOAD, 'scan.pdf')

        assert first != second
        assert len(registry) == 2

    def test_update_merges_fields(self):
        registry = OperationRegistry()
        op_id = registry.begin(OperationKind.DOWNLOAD, 'scan.pdf')

        registry.update(op_id, progress_percent=50)
        updated = registry.update(op_id, status=OperationStatus.ERROR, error='boom')

        assert updated.progress_percent == 50
        assert updated.status is OperationStatus.ERROR
        assert updated.error == 'boom'
        assert registry.get(op_id) == updated

    def test_update_unknown_id_is_ignored(self):
        registry = OperationRegistry()
        assert registry.update('nope', status=OperationStatus.COMPLETED) is None
        assert len(registry) == 0

    def test_recent_is_newest_first_and_limited(self):
        registry = OperationRegistry()
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        ids = []
        for i in range(12):
            with patch('transfer.operation_registry.utc_now', return_value=base + timedelta(seconds=i)):
                ids.append(registry.begin(OperationKind.UPLOAD, f'f{i}.txt'))

        recent = registry.recent()
        assert len(recent) == 10
        assert [op.id for op in recent] == list(reversed(ids))[:10]
        assert [op.id for op in registry.recent(3)] == list(reversed(ids))[:3]

    def test_recent_breaks_timestamp_ties_by_insertion(self):
        registry = OperationRegistry()
        same = datetime(2024, 5, 1, tzinfo=timezone.utc)
        with patch('transfer.operation_registry.utc_now', return_value=same):
            first = registry.begin(OperationKind.UPLOAD, 'a.txt')
            second = registry.begin(OperationKind.UPLOAD, 'b.txt')

        assert [op.id for op in registry.recent()] == [second, first]

    def test_remove_and_prune_completed(self):
        registry = OperationRegistry()
        done = registry.begin(OperationKind.UPLOAD, 'a.txt')
        failed = registry.begin(OperationKind.UPLOAD, 'b.txt')
        running = registry.begin(OperationKind.UPLOAD, 'c.txt')
        registry.update(done, status=OperationStatus.COMPLETED)
        registry.update(failed, status=OperationStatus.ERROR, error='x')

        assert registry.prune_completed() == 1
        assert registry.get(done) is None
        assert registry.remove(failed) is True
        assert registry.remove(failed) is False
        assert [op.id for op in registry.recent()] == [running]

    def test_subscribers_see_every_change_until_unsubscribed(self):
        registry = OperationRegistry()
        seen = []
        unsubscribe = registry.subscribe(seen.append)

        op_id = registry.begin(OperationKind.SHARE, 'a.txt')
        registry.update(op_id, status=OperationStatus.COMPLETED)
        unsubscribe()
        registry.update(op_id, progress_percent=100)

        assert [op.status for op in seen] == [OperationStatus.IN_PROGRESS, OperationStatus.COMPLETED]

    def test_failing_subscriber_does_not_break_registry(self):
        registry = OperationRegistry()

        def broken(op):
            raise RuntimeError('listener bug')

        registry.subscribe(broken)
        op_id = registry.begin(OperationKind.DELETE, 'a.txt')

        assert registry.get(op_id) is not None

class TestProgressTable:
    def test_last_write_wins(self):
        table = ProgressTable()
        table.publish('scan.pdf', progress(value=33))
        table.publish('scan.pdf', progress(value=67, current=2))

        assert table.latest('scan.pdf').progress == 67
        assert table.latest('other.pdf') is None

    def test_clear(self):
        table = ProgressTable()
        table.publish('scan.pdf', progress())
        table.clear('scan.pdf')
        table.clear('never-published')

        assert table.latest('scan.pdf') is None

    def test_pending_excludes_complete(self):
        table = ProgressTable()
        table.publish('a', progress('a'))
        table.publish('b', progress('b', value=100, current=3, complete=True))

        assert [p.name for p in table.pending()] == ['a']

    def test_subscribe_per_key(self):
        table = ProgressTable()
        seen = []
        unsubscribe = table.subscribe('a', lambda p: seen.append(p.progress))

        table.publish('a', progress('a', value=33))
        table.publish('b', progress('b', value=50))
        unsubscribe()
        table.publish('a', progress('a', value=67))

        assert seen == [33]

    @pytest.mark.parametrize('key', ['scan.pdf', 'profile_photo'])
    def test_failing_listener_still_records(self, key):
        table = ProgressTable()
        table.subscribe(key, lambda p: 1 / 0)
        table.publish(key, progress(key))

        assert table.latest(key) is not None
