"""
Google Drive connection, backup and file API routes.
"""

import logging
import os
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import RedirectResponse, Response

from . import (
    get_backup_assembler,
    get_config,
    get_oauth_flow,
    get_pattern_uploader,
    get_repository_factory,
    get_retention_manager,
    get_store_provider,
)
from ..auth import get_current_user
from ..models import (
    BackupResponse,
    DriveConnectResponse,
    DriveStatusResponse,
    FolderCreateRequest,
    FolderResponse,
    MessageResponse,
    ObjectResponse,
    PatternBackupResponse,
    RetentionResponse,
    SyncLogResponse,
    UploadResponse,
)
from ...backup import coerce_keep_count
from ...export.documents import safe_filename
from ...exceptions import DriveNotConnectedError, ValidationError, YarnStashException
from ...storage import AuditedObjectStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drive", tags=["drive"])


async def _open_store(user_id: int) -> AuditedObjectStore:
    provider = get_store_provider()
    if not await provider.is_connected(user_id):
        raise DriveNotConnectedError()
    return await provider.for_user(user_id)


# ============================================================================
# Connection
# ============================================================================

@router.get("/status", response_model=DriveStatusResponse)
async def get_drive_status(user: dict = Depends(get_current_user)):
    """Connection state and storage quota of the caller's Drive."""
    provider = get_store_provider()
    backend = provider.config.backend.value
    if not await provider.is_connected(user["user_id"]):
        return DriveStatusResponse(connected=False, backend=backend)

    store = await provider.for_user(user["user_id"])
    try:
        quota = await store.get_quota()
    except YarnStashException as e:
        logger.warning(f"Quota lookup failed for user {user['user_id']}: {e.message}")
        return DriveStatusResponse(connected=True, backend=backend)
    return DriveStatusResponse(connected=True, backend=backend, quota=quota.to_dict())


@router.get("/connect", response_model=DriveConnectResponse)
async def connect_drive(user: dict = Depends(get_current_user)):
    """Start the Google consent flow."""
    auth_url, state = get_oauth_flow().generate_auth_url(user["user_id"])
    return DriveConnectResponse(authUrl=auth_url, state=state)


@router.get("/callback")
async def drive_callback(code: Optional[str] = Query(None), state: Optional[str] = Query(None)):
    """
    OAuth redirect target.

    The caller is identified by the state token issued by ``/connect``.
    Redirects back to the frontend settings page either way.
    """
    frontend_url = get_config().api.frontend_url
    oauth_flow = get_oauth_flow()

    oauth_state = oauth_flow.validate_state(state) if state else None
    if oauth_state is None:
        logger.warning("Drive callback with invalid or expired state")
        return RedirectResponse(f"{frontend_url}/settings?error=invalid_state")

    try:
        await oauth_flow.exchange_code(code or "", oauth_state)
        store = await get_store_provider().for_user(oauth_state.user_id)
        await store.ensure_app_folders()
    except YarnStashException as e:
        logger.error(f"Drive connection failed for user {oauth_state.user_id}: {e.to_log_string()}")
        return RedirectResponse(f"{frontend_url}/settings?error=google_drive_connection_failed")

    logger.info(f"Drive connected for user {oauth_state.user_id}")
    return RedirectResponse(f"{frontend_url}/settings?connected=google_drive")


@router.delete("/disconnect", response_model=MessageResponse)
async def disconnect_drive(user: dict = Depends(get_current_user)):
    await get_oauth_flow().disconnect(user["user_id"])
    return MessageResponse(message="Google Drive disconnected successfully")


# ============================================================================
# Backups
# ============================================================================

@router.post("/backup/full", response_model=BackupResponse)
async def create_full_backup(user: dict = Depends(get_current_user)):
    store = await _open_store(user["user_id"])
    assembler = await get_backup_assembler()
    result = await assembler.create_full_backup(user["user_id"], store)
    return BackupResponse(message="Backup created successfully", backup=result.to_dict())


@router.post("/backup/patterns", response_model=PatternBackupResponse)
async def backup_patterns(user: dict = Depends(get_current_user)):
    """Upload every pattern file not yet stored in Drive."""
    store = await _open_store(user["user_id"])
    uploader = await get_pattern_uploader()
    report = await uploader.upload_pending(user["user_id"], store)
    return PatternBackupResponse(message="Pattern backup completed", **report.to_dict())


@router.get("/backups", response_model=List[ObjectResponse])
async def list_backups(user: dict = Depends(get_current_user)):
    store = await _open_store(user["user_id"])
    backups = await get_retention_manager().list_backups(user["user_id"], store)
    return [b.to_dict() for b in backups]


@router.delete("/backups/cleanup", response_model=RetentionResponse)
async def cleanup_old_backups(
    keepCount: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
):
    """Keep the newest ``keepCount`` backups (default 10) and delete the rest."""
    keep_count = coerce_keep_count(keepCount)
    store = await _open_store(user["user_id"])
    result = await get_retention_manager().cleanup_old_backups(user["user_id"], store, keep_count)
    return RetentionResponse(
        message=f"Cleaned up {result.deleted} old backups",
        **result.to_dict(),
    )


@router.post("/restore/{backup_id}")
async def restore_from_backup(backup_id: str, user: dict = Depends(get_current_user)):
    await _open_store(user["user_id"])
    raise HTTPException(
        status_code=501,
        detail={"code": "NOT_IMPLEMENTED", "message": "Restore functionality not yet implemented"},
    )


# ============================================================================
# Files and folders
# ============================================================================

@router.post("/files", response_model=UploadResponse)
async def upload_file(
    file: UploadFile = File(...),
    folderId: Optional[str] = Form(None),
    user: dict = Depends(get_current_user),
):
    if not file.filename:
        raise ValidationError("No file provided", error_code="MISSING_FILE")
    store = await _open_store(user["user_id"])
    content = await file.read()
    result = await store.upload(
        content,
        file.filename,
        file.content_type or "application/octet-stream",
        folderId,
    )
    return result.to_dict()


@router.get("/files/{file_id}")
async def download_file(
    file_id: str,
    filename: str = Query("download"),
    user: dict = Depends(get_current_user),
):
    store = await _open_store(user["user_id"])
    content = await store.download(file_id)
    stem, extension = os.path.splitext(filename)
    download_name = safe_filename(stem) + re.sub(r"[^A-Za-z0-9.]", "", extension)
    return Response(
        content=content,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{download_name}"'},
    )


@router.delete("/files/{file_id}", response_model=MessageResponse)
async def delete_file(file_id: str, user: dict = Depends(get_current_user)):
    store = await _open_store(user["user_id"])
    await store.delete(file_id)
    return MessageResponse(message="File deleted successfully")


@router.get("/folders")
async def list_folders(user: dict = Depends(get_current_user)):
    """Resolve the application folder tree, creating missing folders."""
    store = await _open_store(user["user_id"])
    folders = await store.ensure_app_folders()
    root_name = get_config().drive.app_folder
    return [
        {"name": root_name if name == "root" else name, "id": folder_id}
        for name, folder_id in folders.items()
    ]


@router.post("/folders", response_model=FolderResponse)
async def create_folder(body: FolderCreateRequest, user: dict = Depends(get_current_user)):
    store = await _open_store(user["user_id"])
    folder_id = await store.create_folder(body.name, body.parentId)
    return FolderResponse(folderId=folder_id, name=body.name)


@router.get("/sync-log", response_model=SyncLogResponse)
async def get_sync_log(
    limit: int = Query(50, ge=1, le=500),
    user: dict = Depends(get_current_user),
):
    """Most recent sync log entries of the caller."""
    repo = await get_repository_factory().get_sync_log_repository()
    entries = await repo.find_by_user(user["user_id"], limit)
    return SyncLogResponse(entries=[e.to_dict() for e in entries], total=len(entries))
