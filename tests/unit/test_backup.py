"""
Tests for backup assembly and pattern file uploads.
"""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from yarnstash.backup import BackupAssembler, PatternBatchUploader
from yarnstash.exceptions import ObjectStoreError
from yarnstash.models import BackupSnapshot, SyncStatus, SyncType
from yarnstash.storage import BACKUPS_FOLDER, AuditedObjectStore, InMemoryObjectStore

from conftest import ts


class ExplodingYarnRepository:
    async def find_all(self, user_id, start=None, end=None):
        raise RuntimeError("disk I/O error")


class TestBackupSnapshot:

    def test_filename(self):
        snapshot = BackupSnapshot(
            user_id=7,
            backup_date=datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc),
        )
        assert snapshot.filename == "backup_7_2024-01-02T03-04-05-678Z.json"

    def test_round_trip_keeps_entities(self):
        snapshot = BackupSnapshot(user_id=1, backup_date=ts(2024, 1, 1))
        restored = BackupSnapshot.from_dict(json.loads(json.dumps(snapshot.to_dict())))
        assert restored.user_id == 1
        assert restored.backup_date == ts(2024, 1, 1)
        assert restored.yarn_inventory == []


class TestBackupAssembler:
    """Tests for full backups."""

    @pytest.mark.asyncio
    async def test_snapshot_holds_only_the_users_rows(self, seed, repos):
        await seed.yarn(1, "Teal", ts(2024, 1, 1))
        await seed.yarn(1, "Red", ts(2024, 1, 2))
        pattern_id = await seed.pattern(1, "Shawl", ts(2024, 1, 3))
        await seed.project(1, "Shawl Project", ts(2024, 1, 4), pattern_id=pattern_id)
        await seed.yarn(2, "Bob's Yarn", ts(2024, 1, 1))
        await seed.project(2, "Bob's Project", ts(2024, 1, 1))

        assembler = BackupAssembler(repos.yarn, repos.pattern, repos.project)
        snapshot = await assembler.assemble_snapshot(1)

        assert {y.colorway for y in snapshot.yarn_inventory} == {"Teal", "Red"}
        assert [p.title for p in snapshot.patterns] == ["Shawl"]
        assert [p.project_name for p in snapshot.projects] == ["Shawl Project"]
        assert snapshot.projects[0].pattern_title == "Shawl"
        assert all(y.user_id == 1 for y in snapshot.yarn_inventory)

    @pytest.mark.asyncio
    async def test_full_backup_upload(self, seed, repos, sync_log):
        await seed.yarn(1, "Teal", ts(2024, 1, 1))
        inner = InMemoryObjectStore()
        store = AuditedObjectStore(inner, sync_log, user_id=1)

        assembler = BackupAssembler(repos.yarn, repos.pattern, repos.project)
        result = await assembler.create_full_backup(1, store)

        stored = inner.objects[result.object_id]
        assert stored.name.startswith("backup_1_")
        assert stored.name.endswith("Z.json")
        assert stored.mime_type == "application/json"
        assert stored.parent_id == await store.resolve_app_folder(BACKUPS_FOLDER)

        document = json.loads(stored.content)
        assert document["userId"] == 1
        assert [y["colorway"] for y in document["entities"]["yarnInventory"]] == ["Teal"]
        # indented JSON
        assert stored.content.startswith(b'{\n  "backupDate"')

        assert len(sync_log.entries) == 1
        entry = sync_log.entries[0]
        assert entry.sync_type == SyncType.FULL_BACKUP
        assert entry.status == SyncStatus.SUCCESS
        assert entry.entity_type == "backup"
        assert entry.action == "create"
        assert entry.path == f"{BACKUPS_FOLDER}/{stored.name}"

    @pytest.mark.asyncio
    async def test_assembly_failure_is_logged(self, repos, sync_log):
        store = AuditedObjectStore(InMemoryObjectStore(), sync_log, user_id=1)
        assembler = BackupAssembler(ExplodingYarnRepository(), repos.pattern, repos.project)

        with pytest.raises(ObjectStoreError) as exc_info:
            await assembler.create_full_backup(1, store)

        assert exc_info.value.error_code == "BACKUP_FAILED"
        assert len(sync_log.entries) == 1
        assert sync_log.entries[0].sync_type == SyncType.FULL_BACKUP
        assert sync_log.entries[0].status == SyncStatus.ERROR


class TestPatternBatchUploader:
    """Tests for uploading unsynced pattern files."""

    @pytest.mark.asyncio
    async def test_uploads_pending_and_continues_past_failures(self, seed, repos, sync_log):
        with tempfile.TemporaryDirectory() as tmpdir:
            Path(tmpdir, "shawl.pdf").write_bytes(b"%PDF-1.4 shawl")
            ok_id = await seed.pattern(
                1, "Shawl", ts(2024, 1, 1),
                local_file_path="shawl.pdf", original_filename="Shawl.pdf",
            )
            missing_id = await seed.pattern(
                1, "Lost", ts(2024, 1, 2), local_file_path="lost.pdf",
            )
            escape_id = await seed.pattern(
                1, "Escape", ts(2024, 1, 3), local_file_path="../secret.pdf",
            )
            await seed.pattern(
                1, "Done", ts(2024, 1, 4), local_file_path="done.pdf", drive_file_id="obj-9",
            )
            await seed.pattern(2, "Bob's", ts(2024, 1, 1), local_file_path="shawl.pdf")

            inner = InMemoryObjectStore()
            store = AuditedObjectStore(inner, sync_log, user_id=1)
            report = await PatternBatchUploader(repos.pattern, tmpdir).upload_pending(1, store)

        assert report.uploaded == 1
        assert report.failed == 2
        assert [r.pattern_id for r in report.results] == [ok_id, missing_id, escape_id]

        uploaded = report.results[0]
        assert inner.objects[uploaded.object_id].name == "Shawl.pdf"
        assert inner.objects[uploaded.object_id].mime_type == "application/pdf"

        remaining = await repos.pattern.find_unsynced(1)
        assert {p.id for p in remaining} == {missing_id, escape_id}

        # only the attempted upload is audited
        assert len(sync_log.entries) == 1
        assert sync_log.entries[0].entity_type == "pattern"
        assert sync_log.entries[0].entity_id == ok_id

    @pytest.mark.asyncio
    async def test_nothing_pending(self, seed, repos, sync_log):
        inner = InMemoryObjectStore()
        store = AuditedObjectStore(inner, sync_log, user_id=1)

        report = await PatternBatchUploader(repos.pattern, "unused").upload_pending(1, store)

        assert report.to_dict() == {"uploaded": 0, "failed": 0, "results": []}
        assert inner.objects == {}
