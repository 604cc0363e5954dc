"""
Backup snapshot document.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from .base import isoformat, parse_datetime
from .entities import Pattern, Project, YarnStock


@dataclass
class BackupSnapshot:
    """All of one user's yarn, patterns and projects as of ``backup_date``.

    ``backup_date`` is taken when assembly starts. The family reads are not
    isolated from concurrent writes, so the snapshot is approximate.
    """
    user_id: int
    backup_date: datetime
    yarn_inventory: List[YarnStock] = field(default_factory=list)
    patterns: List[Pattern] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backupDate": isoformat(self.backup_date),
            "userId": self.user_id,
            "entities": {
                "yarnInventory": [y.to_dict() for y in self.yarn_inventory],
                "patterns": [p.to_dict() for p in self.patterns],
                "projects": [p.to_dict() for p in self.projects],
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackupSnapshot":
        entities = data.get("entities", {})
        return cls(
            user_id=data["userId"],
            backup_date=parse_datetime(data["backupDate"]),
            yarn_inventory=[YarnStock.from_dict(y) for y in entities.get("yarnInventory", [])],
            patterns=[Pattern.from_dict(p) for p in entities.get("patterns", [])],
            projects=[Project.from_dict(p) for p in entities.get("projects", [])],
        )

    @property
    def filename(self) -> str:
        """``backup_{userId}_{timestamp}.json`` with ':' and '.' replaced by '-'."""
        stamp = self.backup_date.strftime("%Y-%m-%dT%H:%M:%S.")
        stamp += f"{self.backup_date.microsecond // 1000:03d}Z"
        return f"backup_{self.user_id}_{stamp.replace(':', '-').replace('.', '-')}.json"
