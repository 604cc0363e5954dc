"""
Full backup assembly and upload.
"""

import asyncio
import json
import logging
import time

from ..data.base import PatternRepository, ProjectRepository, YarnRepository
from ..exceptions import ObjectStoreError, YarnStashException, create_error_context
from ..models.base import utc_now
from ..models.snapshot import BackupSnapshot
from ..models.sync_log import SyncStatus, SyncType
from ..storage.audited import AuditedObjectStore
from ..storage.base import BACKUPS_FOLDER, UploadResult

logger = logging.getLogger(__name__)

BACKUP_MIME_TYPE = "application/json"


class BackupAssembler:
    """Builds a user's backup snapshot and stores it in the Backups folder."""

    def __init__(
        self,
        yarn_repo: YarnRepository,
        pattern_repo: PatternRepository,
        project_repo: ProjectRepository,
    ):
        self.yarn_repo = yarn_repo
        self.pattern_repo = pattern_repo
        self.project_repo = project_repo

    async def assemble_snapshot(self, user_id: int) -> BackupSnapshot:
        """
        Collect every yarn item, pattern and project owned by a user.

        The backup date is taken before any read is issued. The three
        reads run concurrently and are not isolated from each other, so the
        snapshot reflects the data approximately as of that date.

        Args:
            user_id: Owning user

        Returns:
            The assembled snapshot
        """
        backup_date = utc_now()
        yarn, patterns, projects = await asyncio.gather(
            self.yarn_repo.find_all(user_id),
            self.pattern_repo.find_all(user_id),
            self.project_repo.find_all(user_id),
        )
        logger.debug(
            f"Assembled snapshot for user {user_id}: {len(yarn)} yarn, "
            f"{len(patterns)} patterns, {len(projects)} projects"
        )
        return BackupSnapshot(
            user_id=user_id,
            backup_date=backup_date,
            yarn_inventory=yarn,
            patterns=patterns,
            projects=projects,
        )

    async def create_full_backup(self, user_id: int, store: AuditedObjectStore) -> UploadResult:
        """
        Assemble a snapshot and upload it as indented JSON.

        The upload itself writes the ``full_backup`` sync log entry. A
        failure before the upload is reached (assembly or folder lookup)
        writes an error entry here. Nothing is cleaned up on failure.

        Args:
            user_id: Owning user
            store: Audited store bound to the same user

        Returns:
            The upload result of the backup object

        Raises:
            ObjectStoreError: If the backup could not be stored
        """
        started = time.monotonic()
        try:
            snapshot = await self.assemble_snapshot(user_id)
            content = json.dumps(snapshot.to_dict(), indent=2).encode("utf-8")
            folder_id = await store.resolve_app_folder(BACKUPS_FOLDER)
        except Exception as e:
            if isinstance(e, YarnStashException):
                error = e
            else:
                error = ObjectStoreError(
                    message=f"Backup assembly failed: {e}",
                    error_code="BACKUP_FAILED",
                    context=create_error_context(operation="create_full_backup", user_id=user_id),
                    user_message="The backup could not be created. Please try again.",
                    cause=e,
                )
            await store.record(
                SyncType.FULL_BACKUP, "backup", "create", SyncStatus.ERROR, started,
                error_message=error.message,
            )
            logger.error(f"Full backup failed for user {user_id}: {error.to_log_string()}")
            raise error

        result = await store.upload(
            content,
            snapshot.filename,
            BACKUP_MIME_TYPE,
            folder_id,
            sync_type=SyncType.FULL_BACKUP,
            entity_type="backup",
            action="create",
            path=f"{BACKUPS_FOLDER}/{snapshot.filename}",
        )
        logger.info(f"Created backup {result.name} for user {user_id} ({result.size} bytes)")
        return result
