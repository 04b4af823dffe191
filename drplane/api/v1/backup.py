"""
Backup API Endpoints

- POST /api/v1/backups - dump a table to the backup bucket and record metadata
"""
from fastapi import APIRouter, Depends, HTTPException, status

from drplane.api.dependencies import get_backup_service, require_operator
from drplane.core.exceptions import BackupError
from drplane.schemas.backup import BackupRequest, BackupResponse
from drplane.services.backup import BackupService

router = APIRouter(prefix="/backups", tags=["backups"])


@router.post("", response_model=BackupResponse, dependencies=[Depends(require_operator)])
async def create_backup(
    request: BackupRequest,
    service: BackupService = Depends(get_backup_service),
) -> BackupResponse:
    try:
        result = await service.run_backup(request.table_name, request.backup_type)
    except BackupError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return BackupResponse(**result)
