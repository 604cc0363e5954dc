"""
Tests for backup retention.
"""

from datetime import datetime, timezone

import pytest

from yarnstash.backup import RetentionManager, coerce_keep_count
from yarnstash.backup.retention import is_backup_of
from yarnstash.exceptions import ObjectStoreError, ValidationError
from yarnstash.models import SyncStatus, SyncType
from yarnstash.storage import BACKUPS_FOLDER, AuditedObjectStore, InMemoryObjectStore


def backup_name(user_id, month):
    return f"backup_{user_id}_2024-{month:02d}-01T03-00-00-000Z.json"


class StoreWithBrokenDelete(InMemoryObjectStore):
    """Refuses to delete the objects it is told to."""

    def __init__(self, broken_ids=(), vanished_ids=()):
        super().__init__()
        self.broken_ids = set(broken_ids)
        self.vanished_ids = set(vanished_ids)

    async def delete(self, object_id):
        if object_id in self.broken_ids:
            raise ObjectStoreError(f"Drive returned 500 for {object_id}")
        if object_id in self.vanished_ids:
            del self.objects[object_id]
        await super().delete(object_id)


async def seed_backups(inner, user_id=7, months=(1, 2, 3, 4, 5)):
    """Store one backup per month, created in that month."""
    folder_id = await inner.resolve_app_folder(BACKUPS_FOLDER)
    ids = {}
    for month in months:
        inner.clock = lambda m=month: datetime(2024, m, 1, 3, tzinfo=timezone.utc)
        result = await inner._put(b"{}", backup_name(user_id, month), "application/json", folder_id)
        ids[month] = result.object_id
    return ids


class TestCoerceKeepCount:

    @pytest.mark.parametrize("value,expected", [
        (None, 10),
        ("", 10),
        ("3", 3),
        (" 4 ", 4),
        (0, 0),
        (-5, 0),
        ("-1", 0),
    ])
    def test_values(self, value, expected):
        assert coerce_keep_count(value) == expected

    @pytest.mark.parametrize("value", ["abc", "2.5", True])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ValidationError) as exc_info:
            coerce_keep_count(value)
        assert exc_info.value.error_code == "INVALID_KEEP_COUNT"


def test_backup_name_matching():
    assert is_backup_of(backup_name(7, 1), 7)
    assert not is_backup_of(backup_name(7, 1), 70)
    assert not is_backup_of("backup_7_notes.txt", 7)
    assert not is_backup_of("thumb_backup_7_2024.json", 7)


class TestRetentionManager:
    """Tests for keep-last-N cleanup."""

    @pytest.mark.asyncio
    async def test_keeps_newest(self, sync_log):
        inner = InMemoryObjectStore()
        ids = await seed_backups(inner)
        store = AuditedObjectStore(inner, sync_log, user_id=7)

        result = await RetentionManager().cleanup_old_backups(7, store, keep_count=2)

        assert result.deleted == 3
        assert result.to_dict()["deletedCount"] == 3
        assert result.kept == 2
        assert result.deleted_names == [backup_name(7, m) for m in (3, 2, 1)]
        assert ids[5] in inner.objects and ids[4] in inner.objects
        assert all(ids[m] not in inner.objects for m in (1, 2, 3))

        assert len(sync_log.entries) == 3
        assert all(e.sync_type == SyncType.FILE_DELETE for e in sync_log.entries)
        assert all(e.entity_type == "backup" for e in sync_log.entries)

    @pytest.mark.asyncio
    async def test_fewer_backups_than_keep_count(self, sync_log):
        inner = InMemoryObjectStore()
        await seed_backups(inner, months=(1, 2))
        store = AuditedObjectStore(inner, sync_log, user_id=7)

        result = await RetentionManager().cleanup_old_backups(7, store)

        assert result.deleted == 0
        assert result.attempted == 0
        assert sync_log.entries == []

    @pytest.mark.asyncio
    async def test_keep_zero_deletes_everything(self, sync_log):
        inner = InMemoryObjectStore()
        await seed_backups(inner, months=(1, 2))
        store = AuditedObjectStore(inner, sync_log, user_id=7)

        result = await RetentionManager().cleanup_old_backups(7, store, keep_count=0)

        assert result.deleted == 2

    @pytest.mark.asyncio
    async def test_ignores_other_files(self, sync_log):
        inner = InMemoryObjectStore()
        await seed_backups(inner, user_id=7, months=(1, 2, 3))
        await seed_backups(inner, user_id=8, months=(1, 2, 3))
        folder_id = await inner.resolve_app_folder(BACKUPS_FOLDER)
        await inner._put(b"x", "readme.txt", "text/plain", folder_id)
        store = AuditedObjectStore(inner, sync_log, user_id=7)

        manager = RetentionManager()
        result = await manager.cleanup_old_backups(7, store, keep_count=1)

        assert result.deleted == 2
        assert len(await manager.list_backups(8, store)) == 3
        assert any(o.name == "readme.txt" for o in inner.objects.values())

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_the_pass(self, sync_log):
        inner = StoreWithBrokenDelete()
        ids = await seed_backups(inner)
        inner.broken_ids = {ids[2]}
        inner.vanished_ids = {ids[1]}
        store = AuditedObjectStore(inner, sync_log, user_id=7)

        result = await RetentionManager().cleanup_old_backups(7, store, keep_count=2)

        assert result.attempted == 3
        # an object already gone counts as deleted
        assert result.deleted == 2
        assert result.failed == 1
        assert result.errors[0]["name"] == backup_name(7, 2)
        assert ids[2] in inner.objects

        statuses = [e.status for e in sync_log.entries]
        assert statuses == [SyncStatus.SUCCESS, SyncStatus.ERROR, SyncStatus.ERROR]

    @pytest.mark.asyncio
    async def test_equal_creation_times_order_by_name(self, sync_log):
        inner = InMemoryObjectStore(clock=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc))
        folder_id = await inner.resolve_app_folder(BACKUPS_FOLDER)
        for month in (2, 3, 1):
            await inner._put(b"{}", backup_name(7, month), "application/json", folder_id)
        store = AuditedObjectStore(inner, sync_log, user_id=7)

        backups = await RetentionManager().list_backups(7, store)

        assert [b.name for b in backups] == [backup_name(7, m) for m in (3, 2, 1)]
