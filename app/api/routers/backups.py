"""
Game plan backup listing and restore endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.domain.game_plan import BackupRecord
from app.schemas.backups import BackupListResponse, BackupResponse, BackupRestoreResponse
from app.services.backup_service import BackupError, GamePlanBackupService, get_game_plan_backup_service
from db.session import get_db

router = APIRouter(tags=["game-plan-backups"])


@router.get("/game-plans/backups", response_model=BackupListResponse)
def list_game_plan_backups(
    service: GamePlanBackupService = Depends(get_game_plan_backup_service),
) -> BackupListResponse:
    return BackupListResponse(backups=[_to_response(record) for record in service.list_backups()])


@router.post("/game-plans/backups/{file_name}/restore", response_model=BackupRestoreResponse)
def restore_game_plan_backup(
    file_name: str,
    db: Session = Depends(get_db),
    service: GamePlanBackupService = Depends(get_game_plan_backup_service),
) -> BackupRestoreResponse:
    try:
        restored = service.restore_backup(db=db, file_name=file_name)
    except BackupError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return BackupRestoreResponse(file_name=file_name, restored=restored)


def _to_response(record: BackupRecord) -> BackupResponse:
    return BackupResponse(
        file_name=record.file_name,
        timestamp=record.timestamp,
        reason=record.reason,
        country_id=record.country_id,
        country_name=record.country_name,
        financial_cycle_id=record.financial_cycle_id,
        financial_cycle_name=record.financial_cycle_name,
        business_unit_id=record.business_unit_id,
        business_unit_name=record.business_unit_name,
        record_count=record.record_count,
    )
