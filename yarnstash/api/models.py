"""
Request and response models for the YarnStash API.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Drive
# ============================================================================

class StorageQuotaResponse(BaseModel):
    limit: int
    usage: int
    usageInDrive: int
    usageInDriveTrash: int


class DriveStatusResponse(BaseModel):
    """Connection state of the caller's object store."""
    connected: bool
    backend: str
    quota: Optional[StorageQuotaResponse] = None


class DriveConnectResponse(BaseModel):
    """Response for OAuth initiation."""
    authUrl: str
    state: str


class MessageResponse(BaseModel):
    message: str


class UploadResponse(BaseModel):
    objectId: str
    name: str
    size: int
    mimeType: str
    thumbnailId: Optional[str] = None
    viewUrl: Optional[str] = None
    thumbnailUrl: Optional[str] = None


class BackupResponse(BaseModel):
    message: str
    backup: UploadResponse


class ObjectResponse(BaseModel):
    id: str
    name: str
    mimeType: str
    size: int = 0
    createdTime: Optional[str] = None
    modifiedTime: Optional[str] = None
    thumbnailLink: Optional[str] = None


class RetentionResponse(BaseModel):
    """Result of a backup cleanup.

    ``deletedCount`` counts backups confirmed removed.
    """
    message: str
    deletedCount: int
    attemptedCount: int
    failedCount: int
    keptCount: int
    deleted: List[str] = Field(default_factory=list)
    errors: List[Dict[str, str]] = Field(default_factory=list)


class PatternBackupResponse(BaseModel):
    message: str
    uploaded: int
    failed: int
    results: List[Dict[str, Any]] = Field(default_factory=list)


class FolderCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    parentId: Optional[str] = None


class FolderResponse(BaseModel):
    folderId: str
    name: str


class SyncLogResponse(BaseModel):
    entries: List[Dict[str, Any]]
    total: int


# ============================================================================
# Health
# ============================================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    storage_backend: str
    scheduler_running: bool = False
