"""
Google Drive object store.

Each ``GoogleDriveStore`` is bound to a single user's credentials and is
built per request through ``create_client``; no Drive service handle is
shared between users. Access token refresh is left to google-auth.
"""

import asyncio
import io
import logging
import re
from datetime import timezone
from typing import Any, Callable, Dict, List, Optional

from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload, MediaIoBaseUpload

from .base import FOLDER_MIME_TYPE, ObjectMetadata, ObjectStore, StorageQuota, UploadResult
from .oauth import GOOGLE_TOKEN_URL, OAuthTokens, SCOPES
from ..config.settings import DriveConfig
from ..exceptions import NotFoundError, ObjectStoreError, create_error_context
from ..models.base import parse_datetime

logger = logging.getLogger(__name__)

LIST_FIELDS = "nextPageToken, files(id, name, size, createdTime, modifiedTime, mimeType, thumbnailLink)"
UPLOAD_FIELDS = "id, name, size, mimeType, webViewLink, thumbnailLink"

_SECRET_PATTERNS = [
    (re.compile(r"(access_token|refresh_token|client_secret|key)=[^&\s\"']+", re.IGNORECASE),
     r"\1=[redacted]"),
    (re.compile(r"Bearer\s+[A-Za-z0-9._\-]+", re.IGNORECASE), "Bearer [redacted]"),
]


def scrub_message(message: str) -> str:
    """Remove token material from an SDK error message."""
    for pattern, replacement in _SECRET_PATTERNS:
        message = pattern.sub(replacement, message)
    return message


def _escape(value: str) -> str:
    """Escape a literal for a Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveStore(ObjectStore):
    """Object store backed by the Google Drive v3 API."""

    def __init__(self, credentials: Credentials, app_folder_name: Optional[str] = None):
        """
        Initialize the store.

        Args:
            credentials: OAuth credentials of a single user
            app_folder_name: Name of the application root folder
        """
        self.credentials = credentials
        if app_folder_name:
            self.app_folder_name = app_folder_name
        self._service = None

    def _get_service(self):
        """Get or create the Drive service for these credentials."""
        if self._service is None:
            self._service = build(
                "drive", "v3", credentials=self.credentials, cache_discovery=False
            )
        return self._service

    async def _call(self, operation: str, func: Callable[[], Any], object_id: Optional[str] = None) -> Any:
        """Run a blocking SDK call in a worker thread and map its errors."""
        try:
            return await asyncio.to_thread(func)
        except HttpError as e:
            status = getattr(e.resp, "status", None)
            message = scrub_message(str(e))
            if status == 404:
                raise NotFoundError(
                    message=f"Drive object not found during {operation}: {object_id}",
                    error_code="OBJECT_NOT_FOUND",
                    context=create_error_context(operation=operation, object_id=object_id),
                    cause=e,
                )
            raise ObjectStoreError(
                message=f"Drive {operation} failed: {message}",
                context=create_error_context(operation=operation, object_id=object_id, status=status),
                cause=e,
            )
        except RefreshError as e:
            raise ObjectStoreError(
                message=f"Drive {operation} failed: access token refresh rejected",
                error_code="DRIVE_AUTH_FAILED",
                context=create_error_context(operation=operation, object_id=object_id),
                user_message="Google Drive authorization expired. Please reconnect your account.",
                cause=e,
            )
        except Exception as e:
            raise ObjectStoreError(
                message=f"Drive {operation} failed: {scrub_message(str(e))}",
                context=create_error_context(operation=operation, object_id=object_id),
                cause=e,
            )

    async def create_folder(self, name: str, parent_id: Optional[str] = None) -> str:
        body: Dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
        if parent_id:
            body["parents"] = [parent_id]

        service = self._get_service()
        folder = await self._call(
            "create_folder",
            lambda: service.files().create(body=body, fields="id").execute(),
        )
        return folder["id"]

    async def find_folder(self, name: str, parent_id: Optional[str] = None) -> Optional[str]:
        query = f"name='{_escape(name)}' and mimeType='{FOLDER_MIME_TYPE}' and trashed=false"
        if parent_id:
            query += f" and '{_escape(parent_id)}' in parents"

        service = self._get_service()
        response = await self._call(
            "find_folder",
            lambda: service.files().list(q=query, spaces="drive", fields="files(id)").execute(),
        )
        files = response.get("files", [])
        return files[0]["id"] if files else None

    async def _put(
        self,
        content: bytes,
        name: str,
        mime_type: str,
        folder_id: Optional[str] = None,
    ) -> UploadResult:
        metadata: Dict[str, Any] = {"name": name}
        if folder_id:
            metadata["parents"] = [folder_id]
        media = MediaIoBaseUpload(io.BytesIO(content), mimetype=mime_type, resumable=False)

        service = self._get_service()
        file = await self._call(
            "upload",
            lambda: service.files().create(
                body=metadata, media_body=media, fields=UPLOAD_FIELDS
            ).execute(),
        )

        return UploadResult(
            object_id=file["id"],
            name=file.get("name", name),
            size=int(file.get("size", len(content))),
            mime_type=file.get("mimeType", mime_type),
            view_url=file.get("webViewLink"),
            thumbnail_url=file.get("thumbnailLink"),
        )

    async def download(self, object_id: str) -> bytes:
        service = self._get_service()

        def fetch() -> bytes:
            buffer = io.BytesIO()
            downloader = MediaIoBaseDownload(buffer, service.files().get_media(fileId=object_id))
            done = False
            while not done:
                _, done = downloader.next_chunk()
            return buffer.getvalue()

        return await self._call("download", fetch, object_id)

    async def delete(self, object_id: str) -> None:
        service = self._get_service()
        await self._call(
            "delete",
            lambda: service.files().delete(fileId=object_id).execute(),
            object_id,
        )

    async def list_objects(self, folder_id: str) -> List[ObjectMetadata]:
        service = self._get_service()
        query = f"'{_escape(folder_id)}' in parents and trashed=false"

        def fetch_all() -> List[Dict[str, Any]]:
            files = []
            page_token = None
            while True:
                response = service.files().list(
                    q=query,
                    spaces="drive",
                    fields=LIST_FIELDS,
                    orderBy="createdTime desc",
                    pageToken=page_token,
                ).execute()
                files.extend(response.get("files", []))
                page_token = response.get("nextPageToken")
                if not page_token:
                    return files

        files = await self._call("list", fetch_all, folder_id)
        return [
            ObjectMetadata(
                id=f["id"],
                name=f["name"],
                mime_type=f.get("mimeType", "application/octet-stream"),
                size=int(f.get("size", 0)),
                created_at=parse_datetime(f.get("createdTime")),
                modified_at=parse_datetime(f.get("modifiedTime")),
                thumbnail_url=f.get("thumbnailLink"),
            )
            for f in files
        ]

    async def get_quota(self) -> StorageQuota:
        service = self._get_service()
        about = await self._call(
            "get_quota",
            lambda: service.about().get(fields="storageQuota").execute(),
        )
        quota = about.get("storageQuota", {})
        return StorageQuota(
            limit=int(quota.get("limit", 0)),
            usage=int(quota.get("usage", 0)),
            usage_in_drive=int(quota.get("usageInDrive", 0)),
            usage_in_trash=int(quota.get("usageInDriveTrash", 0)),
        )


def build_credentials(tokens: OAuthTokens, config: DriveConfig) -> Credentials:
    """Build refreshable google-auth credentials from stored tokens."""
    expiry = None
    if tokens.expires_at is not None:
        # google-auth compares against naive UTC datetimes
        expiry = tokens.expires_at.astimezone(timezone.utc).replace(tzinfo=None)
    return Credentials(
        token=tokens.access_token,
        refresh_token=tokens.refresh_token or None,
        token_uri=GOOGLE_TOKEN_URL,
        client_id=config.client_id,
        client_secret=config.client_secret,
        scopes=SCOPES,
        expiry=expiry,
    )


def create_client(tokens: OAuthTokens, config: DriveConfig) -> GoogleDriveStore:
    """
    Create a Drive store bound to one user's tokens.

    Args:
        tokens: The user's decrypted OAuth tokens
        config: Drive settings

    Returns:
        A new store instance; callers must not share it across users
    """
    return GoogleDriveStore(build_credentials(tokens, config), config.app_folder)
