"""
Nightly backups using APScheduler.
"""

import logging
from typing import Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..backup.assembler import BackupAssembler
from ..backup.retention import RetentionManager
from ..exceptions import ConfigurationError, YarnStashException, create_error_context
from ..storage.provider import StoreProvider

logger = logging.getLogger(__name__)

JOB_ID = "nightly-backup"


class BackupScheduler:
    """Runs a full backup plus retention for every connected user once a day."""

    def __init__(
        self,
        provider: StoreProvider,
        assembler: BackupAssembler,
        retention: RetentionManager,
        keep_count: int = 10,
        hour: int = 3,
        timezone: str = "UTC",
    ):
        """Initialize backup scheduler.

        Args:
            provider: Builds a store per user
            assembler: Snapshot builder
            retention: Old backup cleanup
            keep_count: Backups kept per user
            hour: Hour of day (0-23) the job runs at
            timezone: Timezone of ``hour``
        """
        self.provider = provider
        self.assembler = assembler
        self.retention = retention
        self.keep_count = keep_count
        self.hour = hour
        self.scheduler = AsyncIOScheduler(timezone=timezone)
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            logger.warning("Backup scheduler already running")
            return

        try:
            self.scheduler.add_job(
                self.run_once,
                trigger=CronTrigger(hour=self.hour, minute=0),
                id=JOB_ID,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            self.scheduler.start()
        except Exception as e:
            logger.error(f"Failed to start backup scheduler: {e}")
            raise ConfigurationError(
                message=f"Failed to start backup scheduler: {e}",
                error_code="SCHEDULER_START_FAILED",
                context=create_error_context(operation="scheduler_start"),
                user_message="Failed to start the backup scheduler. Please check the configuration.",
            )

        self._running = True
        logger.info(f"Backup scheduler started, daily at {self.hour:02d}:00")

    async def stop(self, wait: bool = True) -> None:
        if not self._running:
            return
        self.scheduler.shutdown(wait=wait)
        self._running = False
        logger.info("Backup scheduler stopped")

    async def backup_user(self, user_id: int) -> Optional[str]:
        """
        Back up one user and prune old backups.

        Returns:
            The backup object id, or None if the backup failed
        """
        try:
            store = await self.provider.for_user(user_id)
            result = await self.assembler.create_full_backup(user_id, store)
        except YarnStashException as e:
            logger.error(f"Scheduled backup failed for user {user_id}: {e.to_log_string()}")
            return None

        try:
            await self.retention.cleanup_old_backups(user_id, store, self.keep_count)
        except YarnStashException as e:
            logger.warning(f"Scheduled retention failed for user {user_id}: {e.to_log_string()}")
        return result.object_id

    async def run_once(self) -> Dict[int, Optional[str]]:
        """Back up every connected user, one after another."""
        users = await self.provider.connected_users()
        logger.info(f"Running scheduled backups for {len(users)} users")

        results = {}
        for user_id in users:
            results[user_id] = await self.backup_user(user_id)

        failed = sum(1 for object_id in results.values() if object_id is None)
        logger.info(f"Scheduled backups complete: {len(users) - failed} ok, {failed} failed")
        return results
