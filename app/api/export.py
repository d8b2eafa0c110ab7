"""
Data management endpoints

Backup export (JSON and CSV), import, backup history and restore,
integrity validation, orphan cleanup, storage statistics and full wipe.
"""
import logging
from typing import Any, Dict, List
from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from app.database.schemas import (
    BackupEntry,
    CleanupResult,
    EntityKind,
    ExportFile,
    OperationResult,
    StorageStats,
    ValidationReport,
)
from app.services.data_manager import BACKUP_NOT_FOUND_MESSAGE, DataManager, EmptyExportError
from app.api.utils import get_data_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/data", tags=["data"])


def _download(export: ExportFile) -> Response:
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


def _raise_on_failure(result: OperationResult) -> OperationResult:
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return result


@router.get("/export")
async def export_backup(manager: DataManager = Depends(get_data_manager)):
    """
    Download a full JSON backup

    Also records the snapshot in backup history as a manual backup.
    """
    return _download(manager.export_to_json())


@router.get("/export/csv/{kind}")
async def export_csv(kind: EntityKind, manager: DataManager = Depends(get_data_manager)):
    """
    Download one collection as CSV (404 when the collection is empty)
    """
    try:
        export = manager.export_to_csv(kind)
    except EmptyExportError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _download(export)


@router.post("/import", response_model=OperationResult)
async def import_backup_file(file: UploadFile = File(...), manager: DataManager = Depends(get_data_manager)):
    """
    Replace all data with an uploaded JSON backup

    The current data is archived in backup history first.
    """
    try:
        text = (await file.read()).decode("utf-8")
    except UnicodeDecodeError as e:
        logger.warning(f"Could not decode upload {file.filename}: {e}")
        raise HTTPException(status_code=400, detail="Failed to read file")
    return _raise_on_failure(manager.import_from_json(text))


@router.post("/import/json", response_model=OperationResult)
async def import_backup_json(
    payload: Dict[str, Any] = Body(...),
    manager: DataManager = Depends(get_data_manager),
):
    """
    Replace all data with a backup sent as the request body
    """
    return _raise_on_failure(manager.import_data(payload))


@router.get("/backups", response_model=List[BackupEntry])
async def list_backups(manager: DataManager = Depends(get_data_manager)):
    """
    Backup history, most recent first
    """
    return manager.get_backup_history()


@router.post("/backups/{backup_id}/restore", response_model=OperationResult)
async def restore_backup(backup_id: str, manager: DataManager = Depends(get_data_manager)):
    result = manager.restore_from_backup(backup_id)
    if not result.success and result.message == BACKUP_NOT_FOUND_MESSAGE:
        raise HTTPException(status_code=404, detail=result.message)
    return _raise_on_failure(result)


@router.get("/validate", response_model=ValidationReport)
async def validate_data(manager: DataManager = Depends(get_data_manager)):
    return manager.validate_data()


@router.post("/cleanup", response_model=CleanupResult)
async def cleanup_orphans(manager: DataManager = Depends(get_data_manager)):
    """
    Remove appointments and treatments whose patient no longer exists
    """
    return manager.cleanup_orphaned_data()


@router.get("/stats", response_model=StorageStats)
async def storage_stats(manager: DataManager = Depends(get_data_manager)):
    return manager.get_storage_stats()


@router.delete("")
async def clear_all_data(manager: DataManager = Depends(get_data_manager)):
    """
    Delete all patients, appointments and treatments

    Backup history is kept, so a restore can undo this.
    """
    manager.clear_all_data()
    return {"message": "All data cleared"}
