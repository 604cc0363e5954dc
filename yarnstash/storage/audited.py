"""
Audited object store wrapper.

Every upload and delete issued through ``AuditedObjectStore`` appends
exactly one ``SyncLogEntry`` whose status matches the outcome, written
before the result is returned or the error propagates. Each external call
is bounded by a timeout; a timed out call is recorded as an error.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, List, Optional

from .base import ObjectMetadata, ObjectStore, StorageQuota, UploadResult
from ..data.base import SyncLogRepository
from ..exceptions import ObjectStoreError, YarnStashException, create_error_context
from ..models.sync_log import SyncLogEntry, SyncStatus, SyncType

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT = 60.0


class AuditedObjectStore:
    """Object store facade for one user that writes the sync audit log."""

    def __init__(
        self,
        inner: ObjectStore,
        sync_log: SyncLogRepository,
        user_id: int,
        timeout: float = DEFAULT_CALL_TIMEOUT,
    ):
        """
        Initialize the wrapper.

        Args:
            inner: Store bound to this user's credentials
            sync_log: Audit log repository
            user_id: Owner of every operation issued through this wrapper
            timeout: Per-call timeout in seconds
        """
        self.inner = inner
        self.sync_log = sync_log
        self.user_id = user_id
        self.timeout = timeout

    async def _timed(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise ObjectStoreError(
                message=f"Object store {operation} timed out after {self.timeout}s",
                error_code="OBJECT_STORE_TIMEOUT",
                context=create_error_context(operation=operation, user_id=self.user_id),
                user_message="The storage provider took too long to respond. Please try again.",
                cause=e,
            )

    async def record(
        self,
        sync_type: SyncType,
        entity_type: str,
        action: str,
        status: SyncStatus,
        started: float,
        entity_id: Optional[int] = None,
        external_object_id: Optional[str] = None,
        path: Optional[str] = None,
        error_message: Optional[str] = None,
        byte_size: Optional[int] = None,
    ) -> None:
        """
        Append a sync log entry. A failed write is logged, never raised.

        Args:
            started: ``time.monotonic()`` value taken when the operation began
        """
        entry = SyncLogEntry(
            user_id=self.user_id,
            sync_type=sync_type,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            external_object_id=external_object_id,
            path=path,
            status=status,
            error_message=error_message,
            byte_size=byte_size,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        try:
            await self.sync_log.add(entry)
        except Exception as e:
            logger.error(
                f"Failed to write sync log entry ({sync_type.value}/{action}) "
                f"for user {self.user_id}: {e}"
            )

    def _as_store_error(self, error: Exception, operation: str) -> YarnStashException:
        if isinstance(error, YarnStashException):
            return error
        return ObjectStoreError(
            message=f"Object store {operation} failed: {error}",
            context=create_error_context(operation=operation, user_id=self.user_id),
            cause=error,
        )

    async def upload(
        self,
        content: bytes,
        name: str,
        mime_type: str,
        folder_id: Optional[str] = None,
        sync_type: SyncType = SyncType.FILE_UPLOAD,
        entity_type: str = "file",
        entity_id: Optional[int] = None,
        action: str = "upload",
        path: Optional[str] = None,
    ) -> UploadResult:
        """
        Upload an object and record the outcome.

        Raises:
            ObjectStoreError: If the upload fails or times out
        """
        started = time.monotonic()
        path = path or name
        try:
            result = await self._timed("upload", self.inner.upload(content, name, mime_type, folder_id))
        except Exception as e:
            error = self._as_store_error(e, "upload")
            await self.record(
                sync_type, entity_type, action, SyncStatus.ERROR, started,
                entity_id=entity_id, path=path, error_message=error.message,
                byte_size=len(content),
            )
            logger.error(f"Upload of {name} failed: {error.to_log_string()}")
            raise error

        await self.record(
            sync_type, entity_type, action, SyncStatus.SUCCESS, started,
            entity_id=entity_id, external_object_id=result.object_id, path=path,
            byte_size=result.size,
        )
        return result

    async def delete(
        self,
        object_id: str,
        entity_type: str = "file",
        entity_id: Optional[int] = None,
        path: Optional[str] = None,
    ) -> None:
        """
        Delete an object and record the outcome.

        Raises:
            NotFoundError: If the object does not exist
            ObjectStoreError: If the delete fails or times out
        """
        started = time.monotonic()
        try:
            await self._timed("delete", self.inner.delete(object_id))
        except Exception as e:
            error = self._as_store_error(e, "delete")
            await self.record(
                SyncType.FILE_DELETE, entity_type, "delete", SyncStatus.ERROR, started,
                entity_id=entity_id, external_object_id=object_id, path=path,
                error_message=error.message,
            )
            logger.error(f"Delete of {object_id} failed: {error.to_log_string()}")
            raise error

        await self.record(
            SyncType.FILE_DELETE, entity_type, "delete", SyncStatus.SUCCESS, started,
            entity_id=entity_id, external_object_id=object_id, path=path,
        )

    async def download(self, object_id: str) -> bytes:
        return await self._timed("download", self.inner.download(object_id))

    async def list_objects(self, folder_id: str) -> List[ObjectMetadata]:
        return await self._timed("list", self.inner.list_objects(folder_id))

    async def get_quota(self) -> StorageQuota:
        return await self._timed("get_quota", self.inner.get_quota())

    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> str:
        return await self._timed("create_folder", self.inner.create_folder(name, parent_id))

    async def resolve_app_folder(self, name: Optional[str] = None) -> str:
        return await self._timed("resolve_folder", self.inner.resolve_app_folder(name))

    async def ensure_app_folders(self) -> Dict[str, str]:
        return await self._timed("ensure_folders", self.inner.ensure_app_folders())
