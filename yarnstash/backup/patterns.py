"""
Batch upload of pattern files to the Patterns folder.
"""

import asyncio
import logging
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..data.base import PatternRepository
from ..exceptions import YarnStashException
from ..models.entities import Pattern
from ..storage.audited import AuditedObjectStore
from ..storage.base import PATTERNS_FOLDER

logger = logging.getLogger(__name__)


@dataclass
class PatternUploadOutcome:
    pattern_id: int
    name: Optional[str] = None
    object_id: Optional[str] = None
    thumbnail_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"patternId": self.pattern_id, "name": self.name}
        if self.ok:
            data["objectId"] = self.object_id
            data["thumbnailId"] = self.thumbnail_id
        else:
            data["error"] = self.error
        return data


@dataclass
class PatternUploadReport:
    results: List[PatternUploadOutcome] = field(default_factory=list)

    @property
    def uploaded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uploaded": self.uploaded,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


class PatternBatchUploader:
    """Uploads every pattern file that has not been stored in Drive yet."""

    def __init__(self, pattern_repo: PatternRepository, files_dir: str):
        """
        Args:
            pattern_repo: Pattern repository
            files_dir: Directory holding the uploaded pattern files
        """
        self.pattern_repo = pattern_repo
        self.files_dir = Path(files_dir)

    def _resolve_path(self, pattern: Pattern) -> Path:
        path = (self.files_dir / pattern.local_file_path).resolve()
        if self.files_dir.resolve() not in path.parents:
            raise ValueError(f"Pattern file outside of {self.files_dir}: {pattern.local_file_path}")
        return path

    async def upload_pending(self, user_id: int, store: AuditedObjectStore) -> PatternUploadReport:
        """
        Upload the user's unsynced pattern files one by one.

        A failure for one pattern is recorded in the report and does not
        stop the batch.

        Args:
            user_id: Owning user
            store: Audited store bound to the same user

        Returns:
            Per-pattern outcomes with uploaded and failed counts
        """
        patterns = await self.pattern_repo.find_unsynced(user_id)
        report = PatternUploadReport()
        if not patterns:
            return report

        folder_id = await store.resolve_app_folder(PATTERNS_FOLDER)

        for pattern in patterns:
            name = pattern.original_filename or Path(pattern.local_file_path).name
            outcome = PatternUploadOutcome(pattern_id=pattern.id, name=name)
            try:
                path = self._resolve_path(pattern)
                content = await asyncio.to_thread(path.read_bytes)
                mime_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
                result = await store.upload(
                    content,
                    name,
                    mime_type,
                    folder_id,
                    entity_type="pattern",
                    entity_id=pattern.id,
                    path=f"{PATTERNS_FOLDER}/{name}",
                )
                await self.pattern_repo.set_drive_file(
                    user_id, pattern.id, result.object_id, result.thumbnail_id
                )
                outcome.object_id = result.object_id
                outcome.thumbnail_id = result.thumbnail_id
            except YarnStashException as e:
                outcome.error = e.user_message
                logger.warning(f"Pattern {pattern.id} upload failed: {e.message}")
            except (OSError, ValueError) as e:
                outcome.error = "Pattern file could not be read"
                logger.warning(f"Pattern {pattern.id} file unreadable: {e}")
            report.results.append(outcome)

        logger.info(
            f"Pattern backup for user {user_id}: {report.uploaded} uploaded, {report.failed} failed"
        )
        return report
