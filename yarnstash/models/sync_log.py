"""
Sync audit log entries.

One entry is appended for every upload or delete issued against the
external object store. Entries are never updated.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from .base import isoformat, parse_datetime, utc_now


class SyncStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    PENDING = "pending"


class SyncType(str, Enum):
    FILE_UPLOAD = "file_upload"
    FILE_DELETE = "file_delete"
    FULL_BACKUP = "full_backup"


@dataclass
class SyncLogEntry:
    """Outcome of one object store operation."""
    user_id: int
    sync_type: SyncType
    entity_type: str
    action: str
    status: SyncStatus
    duration_ms: int = 0
    entity_id: Optional[int] = None
    external_object_id: Optional[str] = None
    path: Optional[str] = None
    error_message: Optional[str] = None
    byte_size: Optional[int] = None
    created_at: datetime = field(default_factory=utc_now)
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "syncType": self.sync_type.value,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "action": self.action,
            "externalObjectId": self.external_object_id,
            "path": self.path,
            "status": self.status.value,
            "errorMessage": self.error_message,
            "byteSize": self.byte_size,
            "durationMs": self.duration_ms,
            "createdAt": isoformat(self.created_at),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SyncLogEntry":
        return cls(
            id=row.get("id"),
            user_id=row["user_id"],
            sync_type=SyncType(row["sync_type"]),
            entity_type=row["entity_type"],
            entity_id=row.get("entity_id"),
            action=row["action"],
            external_object_id=row.get("external_object_id"),
            path=row.get("path"),
            status=SyncStatus(row["status"]),
            error_message=row.get("error_message"),
            byte_size=row.get("byte_size"),
            duration_ms=row.get("duration_ms") or 0,
            created_at=parse_datetime(row["created_at"]),
        )
