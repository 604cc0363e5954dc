"""
External object storage for YarnStash.

Provides the object store interface, the Google Drive and in-memory
implementations, the audited per-user wrapper and the Drive OAuth flow.
"""

from .base import (
    APP_FOLDER_NAME,
    APP_SUBFOLDERS,
    BACKUPS_FOLDER,
    PATTERNS_FOLDER,
    ObjectMetadata,
    ObjectStore,
    StorageQuota,
    UploadResult,
)
from .audited import AuditedObjectStore
from .memory import InMemoryObjectStore
from .google_drive import GoogleDriveStore, build_credentials, create_client
from .oauth import (
    DriveCredentialStore,
    GoogleOAuthFlow,
    OAuthState,
    OAuthTokens,
    TokenCipher,
)
from .provider import StoreProvider
from .thumbnails import make_thumbnail, is_image

__all__ = [
    "APP_FOLDER_NAME",
    "APP_SUBFOLDERS",
    "BACKUPS_FOLDER",
    "PATTERNS_FOLDER",
    "ObjectMetadata",
    "ObjectStore",
    "StorageQuota",
    "UploadResult",
    "AuditedObjectStore",
    "InMemoryObjectStore",
    "GoogleDriveStore",
    "build_credentials",
    "create_client",
    "DriveCredentialStore",
    "GoogleOAuthFlow",
    "OAuthState",
    "OAuthTokens",
    "TokenCipher",
    "StoreProvider",
    "make_thumbnail",
    "is_image",
]
