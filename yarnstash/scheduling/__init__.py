"""
Scheduled jobs for YarnStash.
"""

from .backup_scheduler import BackupScheduler

__all__ = ["BackupScheduler"]
