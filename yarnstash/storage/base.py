"""
External object store interface.

Concrete stores implement the primitive calls (``_put``, ``download``,
``delete``, ``list_objects`` and friends). The shared ``upload`` adds the
best-effort image preview, and the folder helpers resolve the application
folder tree.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from .thumbnails import is_image, make_thumbnail
from ..models.base import isoformat

logger = logging.getLogger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
APP_FOLDER_NAME = "Yarn Management"
APP_SUBFOLDERS = ["Patterns", "Yarn Photos", "Project Photos", "Backups"]
BACKUPS_FOLDER = "Backups"
PATTERNS_FOLDER = "Patterns"


@dataclass
class UploadResult:
    """Outcome of a successful upload."""
    object_id: str
    name: str
    size: int
    mime_type: str = "application/octet-stream"
    thumbnail_id: Optional[str] = None
    view_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "objectId": self.object_id,
            "name": self.name,
            "size": self.size,
            "mimeType": self.mime_type,
            "thumbnailId": self.thumbnail_id,
            "viewUrl": self.view_url,
            "thumbnailUrl": self.thumbnail_url,
        }


@dataclass
class ObjectMetadata:
    """Listing entry for a stored object or folder."""
    id: str
    name: str
    mime_type: str
    size: int = 0
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    thumbnail_url: Optional[str] = None

    @property
    def is_folder(self) -> bool:
        return self.mime_type == FOLDER_MIME_TYPE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "mimeType": self.mime_type,
            "size": self.size,
            "createdTime": isoformat(self.created_at),
            "modifiedTime": isoformat(self.modified_at),
            "thumbnailLink": self.thumbnail_url,
        }


@dataclass
class StorageQuota:
    limit: int = 0
    usage: int = 0
    usage_in_drive: int = 0
    usage_in_trash: int = 0

    @property
    def used(self) -> int:
        return self.usage

    def to_dict(self) -> Dict[str, Any]:
        return {
            "limit": self.limit,
            "usage": self.usage,
            "usageInDrive": self.usage_in_drive,
            "usageInDriveTrash": self.usage_in_trash,
        }


class ObjectStore(ABC):
    """Abstract base class for external object stores."""

    app_folder_name: str = APP_FOLDER_NAME

    @abstractmethod
    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> str:
        """
        Create a folder.

        Args:
            name: Folder name
            parent_id: Optional parent folder id

        Returns:
            The new folder id
        """
        pass

    @abstractmethod
    async def find_folder(self, name: str, parent_id: Optional[str] = None) -> Optional[str]:
        """
        Look up a folder by name.

        Args:
            name: Folder name
            parent_id: Parent folder to search in, or anywhere when None

        Returns:
            Folder id if found
        """
        pass

    @abstractmethod
    async def _put(
        self,
        content: bytes,
        name: str,
        mime_type: str,
        folder_id: Optional[str] = None,
    ) -> UploadResult:
        """Store a single object without any derived previews."""
        pass

    @abstractmethod
    async def download(self, object_id: str) -> bytes:
        """
        Download an object's content.

        Raises:
            NotFoundError: If the object does not exist
            ObjectStoreError: On any other failure
        """
        pass

    @abstractmethod
    async def delete(self, object_id: str) -> None:
        """
        Delete an object.

        Raises:
            NotFoundError: If the object does not exist
            ObjectStoreError: On any other failure
        """
        pass

    @abstractmethod
    async def list_objects(self, folder_id: str) -> List[ObjectMetadata]:
        """List the direct children of a folder."""
        pass

    @abstractmethod
    async def get_quota(self) -> StorageQuota:
        pass

    async def upload(
        self,
        content: bytes,
        name: str,
        mime_type: str,
        folder_id: Optional[str] = None,
    ) -> UploadResult:
        """
        Upload an object. Images also get a ``thumb_{name}`` JPEG preview in
        the same folder; failure to build or store the preview is logged and
        does not fail the upload.

        Args:
            content: Object bytes
            name: Object name
            mime_type: Content type
            folder_id: Optional parent folder id

        Returns:
            Upload result, with thumbnail fields set when a preview was stored
        """
        result = await self._put(content, name, mime_type, folder_id)

        if is_image(mime_type):
            try:
                preview = make_thumbnail(content)
                thumb = await self._put(preview, f"thumb_{name}", "image/jpeg", folder_id)
                result.thumbnail_id = thumb.object_id
                result.thumbnail_url = thumb.view_url
            except Exception as e:
                logger.warning(f"Thumbnail upload failed for {name}: {e}")

        return result

    async def get_or_create_folder(self, name: str, parent_id: Optional[str] = None) -> str:
        """Return the id of a named folder, creating it if absent."""
        folder_id = await self.find_folder(name, parent_id)
        if folder_id:
            return folder_id
        folder_id = await self.create_folder(name, parent_id)
        logger.info(f"Created folder: {name}")
        return folder_id

    async def resolve_app_folder(self, name: Optional[str] = None) -> str:
        """
        Resolve a folder inside the application folder.

        Args:
            name: Subfolder name, or None for the application folder itself

        Returns:
            Folder id
        """
        root_id = await self.get_or_create_folder(self.app_folder_name)
        if name is None:
            return root_id
        return await self.get_or_create_folder(name, root_id)

    async def ensure_app_folders(self) -> Dict[str, str]:
        """Create the application folder and its standard subfolders."""
        root_id = await self.get_or_create_folder(self.app_folder_name)
        folders = {"root": root_id}
        for name in APP_SUBFOLDERS:
            folders[name] = await self.get_or_create_folder(name, root_id)
        return folders
