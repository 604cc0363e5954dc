"""
Backup retention for the Backups folder.

Keeps the most recent backups of a user and deletes the rest, one at a
time, continuing past individual failures.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..exceptions import NotFoundError, ValidationError, YarnStashException
from ..storage.audited import AuditedObjectStore
from ..storage.base import BACKUPS_FOLDER, ObjectMetadata

logger = logging.getLogger(__name__)

DEFAULT_KEEP_COUNT = 10
BACKUP_NAME_PATTERN = re.compile(r"^backup_(\d+)_([0-9A-Za-z\-]+)\.json$")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def coerce_keep_count(value: Any, default: int = DEFAULT_KEEP_COUNT) -> int:
    """
    Coerce a caller supplied keep count.

    Args:
        value: Raw value (None, int or numeric string)
        default: Used when no value is supplied

    Returns:
        A non-negative integer; negative values become 0

    Raises:
        ValidationError: If the value is not an integer
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValidationError("keepCount must be an integer", error_code="INVALID_KEEP_COUNT")
    try:
        count = int(str(value).strip())
    except ValueError:
        raise ValidationError(
            f"keepCount must be an integer, got {value!r}",
            error_code="INVALID_KEEP_COUNT",
        )
    return max(count, 0)


def is_backup_of(name: str, user_id: int) -> bool:
    match = BACKUP_NAME_PATTERN.match(name)
    return bool(match) and int(match.group(1)) == user_id


@dataclass
class RetentionResult:
    """Outcome of a retention pass.

    ``deleted`` counts objects confirmed gone, including those that were
    already missing when the delete was issued.
    """
    attempted: int = 0
    deleted: int = 0
    failed: int = 0
    kept: int = 0
    deleted_names: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deletedCount": self.deleted,
            "attemptedCount": self.attempted,
            "failedCount": self.failed,
            "keptCount": self.kept,
            "deleted": self.deleted_names,
            "errors": self.errors,
        }


class RetentionManager:
    """Enforces the "keep last N backups" policy."""

    async def list_backups(self, user_id: int, store: AuditedObjectStore) -> List[ObjectMetadata]:
        """
        List a user's backups, newest first.

        Ties on creation time are ordered by name, descending.
        """
        folder_id = await store.resolve_app_folder(BACKUPS_FOLDER)
        objects = await store.list_objects(folder_id)
        backups = [o for o in objects if not o.is_folder and is_backup_of(o.name, user_id)]
        backups.sort(key=lambda o: (o.created_at or _OLDEST, o.name), reverse=True)
        return backups

    async def cleanup_old_backups(
        self,
        user_id: int,
        store: AuditedObjectStore,
        keep_count: Optional[int] = DEFAULT_KEEP_COUNT,
    ) -> RetentionResult:
        """
        Delete every backup of a user beyond the ``keep_count`` newest.

        Deletes run sequentially. A failed delete is recorded and the pass
        continues with the next object.

        Args:
            user_id: Owning user
            store: Audited store bound to the same user
            keep_count: Number of backups to keep; coerced to a non-negative int

        Returns:
            Counts and names of the deleted backups and any failures
        """
        keep_count = coerce_keep_count(keep_count)
        backups = await self.list_backups(user_id, store)
        excess = backups[keep_count:]

        result = RetentionResult(attempted=len(excess), kept=len(backups) - len(excess))
        for backup in excess:
            try:
                await store.delete(
                    backup.id, entity_type="backup", path=f"{BACKUPS_FOLDER}/{backup.name}"
                )
            except NotFoundError:
                logger.info(f"Backup {backup.name} was already deleted")
            except YarnStashException as e:
                result.failed += 1
                result.errors.append({"name": backup.name, "error": e.user_message})
                logger.warning(f"Failed to delete backup {backup.name}: {e.message}")
                continue
            result.deleted += 1
            result.deleted_names.append(backup.name)

        if excess:
            logger.info(
                f"Retention for user {user_id}: deleted {result.deleted} of "
                f"{result.attempted} old backups ({result.failed} failed)"
            )
        return result
