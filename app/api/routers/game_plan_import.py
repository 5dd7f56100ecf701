"""
Async game plan import endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import GamePlanValidatorFactory, get_validator_factory
from app.api.routers.validation import to_validation_response
from app.schemas.game_plan_import import (
    GamePlanImportRequest,
    ImportProgressResponse,
    ImportRunAcceptedResponse,
    ImportRunListResponse,
    ImportRunStatusResponse,
)
from app.services.game_plan_import_service import ImportConfigurationError
from app.services.import_orchestrator_service import (
    FastAPIBackgroundTaskExecutor,
    ImportAlreadyRunningError,
    ImportOrchestratorService,
    get_import_orchestrator_service,
)
from db.models.import_run import ImportRun
from db.session import get_db

router = APIRouter(tags=["game-plan-import"])


@router.post(
    "/game-plans/imports",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ImportRunAcceptedResponse,
)
def trigger_game_plan_import(
    payload: GamePlanImportRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    factory: GamePlanValidatorFactory = Depends(get_validator_factory),
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
) -> ImportRunAcceptedResponse:
    try:
        partition = orchestrator.resolve_partition(
            db=db,
            country=payload.country,
            financial_cycle_id=payload.financial_cycle_id,
        )
    except ImportConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc

    if not payload.skip_validation:
        validator = factory.build(
            country=partition.country_name,
            financial_cycle_id=partition.financial_cycle_id,
        )
        issues = validator.validate_all(payload.records)
        if not validator.can_import(issues):
            report = to_validation_response(issues)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": "Critical validation issues must be resolved before importing.",
                    "summary": report.summary.model_dump(),
                    "issues": [issue.model_dump() for issue in report.issues],
                },
            )

    try:
        run = orchestrator.trigger_import(
            db=db,
            executor=FastAPIBackgroundTaskExecutor(background_tasks),
            records=payload.records,
            country=partition.country_id,
            financial_cycle_id=partition.financial_cycle_id,
            source=payload.source,
        )
    except ImportConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    except ImportAlreadyRunningError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.to_dict()) from exc

    return ImportRunAcceptedResponse(run_id=run.id, status=run.status, created_at=run.created_at)


@router.get("/game-plans/imports/{run_id}", response_model=ImportRunStatusResponse)
def get_game_plan_import(
    run_id: UUID,
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
) -> ImportRunStatusResponse:
    run = orchestrator.get_run(db=db, run_id=run_id)
    if run is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Import run not found: {run_id}",
        )
    return _to_status_response(run)


@router.get("/game-plans/imports", response_model=ImportRunListResponse)
def list_game_plan_imports(
    status_filter: str | None = Query(default=None, alias="status", description="Optional status filter"),
    country_id: int | None = Query(default=None, description="Optional country filter"),
    financial_cycle_id: int | None = Query(default=None, description="Optional financial cycle filter"),
    limit: int = Query(default=100, ge=1, le=500, description="Max runs returned"),
    db: Session = Depends(get_db),
    orchestrator: ImportOrchestratorService = Depends(get_import_orchestrator_service),
) -> ImportRunListResponse:
    runs = orchestrator.list_runs(
        db=db,
        limit=limit,
        status=status_filter,
        country_id=country_id,
        financial_cycle_id=financial_cycle_id,
    )
    return ImportRunListResponse(runs=[_to_status_response(run) for run in runs])


def _to_status_response(run: ImportRun) -> ImportRunStatusResponse:
    return ImportRunStatusResponse(
        run_id=run.id,
        status=run.status,
        country_id=run.country_id,
        financial_cycle_id=run.financial_cycle_id,
        source=run.source,
        record_count=run.record_count,
        progress=ImportProgressResponse(
            current=run.progress_current,
            total=run.progress_total,
            percentage=run.progress_percentage,
            stage=run.progress_stage,
        ),
        created_at=run.created_at,
        updated_at=run.updated_at,
        started_at=run.started_at,
        completed_at=run.completed_at,
        result_payload=run.result_payload,
        error_message=run.error_message,
    )
