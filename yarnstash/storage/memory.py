"""
In-process object store.

Used when ``STORAGE_BACKEND=memory`` for local development and as the
store behind unit tests. Contents are lost when the process exits.
"""

import itertools
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .base import FOLDER_MIME_TYPE, ObjectMetadata, ObjectStore, StorageQuota, UploadResult
from ..exceptions import NotFoundError, create_error_context
from ..models.base import utc_now


@dataclass
class _StoredObject:
    id: str
    name: str
    mime_type: str
    parent_id: Optional[str]
    content: bytes
    created_at: datetime


class InMemoryObjectStore(ObjectStore):
    """Dictionary backed object store."""

    def __init__(
        self,
        quota_limit: int = 15 * 1024 ** 3,
        clock: Callable[[], datetime] = utc_now,
        app_folder_name: Optional[str] = None,
    ):
        if app_folder_name:
            self.app_folder_name = app_folder_name
        self.quota_limit = quota_limit
        self.clock = clock
        self.objects: Dict[str, _StoredObject] = {}
        self._ids = itertools.count(1)

    def _new_id(self) -> str:
        return f"obj-{next(self._ids)}"

    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> str:
        folder = _StoredObject(
            id=self._new_id(),
            name=name,
            mime_type=FOLDER_MIME_TYPE,
            parent_id=parent_id,
            content=b"",
            created_at=self.clock(),
        )
        self.objects[folder.id] = folder
        return folder.id

    async def find_folder(self, name: str, parent_id: Optional[str] = None) -> Optional[str]:
        for obj in self.objects.values():
            if obj.mime_type != FOLDER_MIME_TYPE or obj.name != name:
                continue
            if parent_id is None or obj.parent_id == parent_id:
                return obj.id
        return None

    async def _put(
        self,
        content: bytes,
        name: str,
        mime_type: str,
        folder_id: Optional[str] = None,
    ) -> UploadResult:
        obj = _StoredObject(
            id=self._new_id(),
            name=name,
            mime_type=mime_type,
            parent_id=folder_id,
            content=bytes(content),
            created_at=self.clock(),
        )
        self.objects[obj.id] = obj
        return UploadResult(
            object_id=obj.id,
            name=name,
            size=len(obj.content),
            mime_type=mime_type,
            view_url=f"memory://{obj.id}",
        )

    def _get(self, object_id: str, operation: str) -> _StoredObject:
        obj = self.objects.get(object_id)
        if obj is None:
            raise NotFoundError(
                message=f"Object not found: {object_id}",
                error_code="OBJECT_NOT_FOUND",
                context=create_error_context(operation=operation, object_id=object_id),
            )
        return obj

    async def download(self, object_id: str) -> bytes:
        return self._get(object_id, "download").content

    async def delete(self, object_id: str) -> None:
        self._get(object_id, "delete")
        del self.objects[object_id]

    async def list_objects(self, folder_id: str) -> List[ObjectMetadata]:
        children = [o for o in self.objects.values() if o.parent_id == folder_id]
        children.sort(key=lambda o: o.created_at, reverse=True)
        return [
            ObjectMetadata(
                id=o.id,
                name=o.name,
                mime_type=o.mime_type,
                size=len(o.content),
                created_at=o.created_at,
                modified_at=o.created_at,
            )
            for o in children
        ]

    async def get_quota(self) -> StorageQuota:
        usage = sum(len(o.content) for o in self.objects.values())
        return StorageQuota(limit=self.quota_limit, usage=usage, usage_in_drive=usage)
