"""
tests/test_import_orchestrator.py

Pytest tests for run tracking, partition locking and failure capture in the
import orchestrator.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from app.services.game_plan_import_service import GamePlanImportService, ImportConfigurationError
from app.services.import_orchestrator_service import (
    ImportAlreadyRunningError,
    ImportOrchestratorService,
    InlineTaskExecutor,
    PartitionLockRegistry,
    ThreadPoolTaskExecutor,
)
from db.models import ImportRun
from db.models.import_run import ImportRunStatus
from db.repositories.import_run_repository import ImportRunRepository

RowFactory = Callable[..., dict[str, Any]]

BRAZIL_CYCLE_ID = 7


@pytest.fixture()
def locks() -> PartitionLockRegistry:
    return PartitionLockRegistry()


@pytest.fixture()
def orchestrator(
    session_factory: sessionmaker[Session],
    import_service: GamePlanImportService,
    locks: PartitionLockRegistry,
) -> ImportOrchestratorService:
    return ImportOrchestratorService(
        session_factory=session_factory,
        import_service=import_service,
        lock_registry=locks,
    )


def _run_count(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(ImportRun)) or 0


# ---------------------------------------------------------------------------
# Successful runs
# ---------------------------------------------------------------------------


class TestTriggerImport:
    def test_inline_run_completes(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        locks: PartitionLockRegistry,
        make_row: RowFactory,
    ) -> None:
        run = orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
            source="q1-plan.csv",
        )

        db.expire_all()
        stored = orchestrator.get_run(db=db, run_id=run.id)
        assert stored.status == ImportRunStatus.IMPORTED
        assert stored.source == "q1-plan.csv"
        assert stored.record_count == 1
        assert stored.progress_percentage == 100
        assert stored.progress_stage == "Import complete"
        assert stored.started_at is not None
        assert stored.completed_at is not None
        assert stored.result_payload["successful"] == 1
        assert stored.result_payload["results"]["campaignCount"] == 1
        assert locks.is_locked((seeded["brazil"].id, BRAZIL_CYCLE_ID)) is False

    def test_thread_pool_run_completes(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        make_row: RowFactory,
    ) -> None:
        executor = ThreadPoolTaskExecutor(max_workers=1)
        run = orchestrator.trigger_import(
            db=db,
            executor=executor,
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )
        executor.shutdown(wait=True)

        db.expire_all()
        assert orchestrator.get_run(db=db, run_id=run.id).status == ImportRunStatus.IMPORTED

    def test_list_runs_filters_by_partition(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        make_row: RowFactory,
    ) -> None:
        orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )
        orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=[make_row(Country="Mexico")],
            country="Mexico",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        db.expire_all()
        assert len(orchestrator.list_runs(db=db)) == 2
        brazil_runs = orchestrator.list_runs(db=db, country_id=seeded["brazil"].id)
        assert [run.country_id for run in brazil_runs] == [seeded["brazil"].id]
        assert orchestrator.list_runs(db=db, status=ImportRunStatus.ERROR) == []


# ---------------------------------------------------------------------------
# Concurrency guard
# ---------------------------------------------------------------------------


class TestPartitionLocking:
    def test_held_lock_rejects_second_import(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        locks: PartitionLockRegistry,
        make_row: RowFactory,
    ) -> None:
        key = (seeded["brazil"].id, BRAZIL_CYCLE_ID)
        assert locks.acquire(key) is True

        with pytest.raises(ImportAlreadyRunningError) as excinfo:
            orchestrator.trigger_import(
                db=db,
                executor=InlineTaskExecutor(),
                records=[make_row()],
                country="Brazil",
                financial_cycle_id=BRAZIL_CYCLE_ID,
            )

        assert excinfo.value.country_id == seeded["brazil"].id
        assert _run_count(db) == 0
        assert locks.is_locked(key) is True

    def test_active_run_in_store_rejects_import(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        locks: PartitionLockRegistry,
        make_row: RowFactory,
    ) -> None:
        active = ImportRunRepository(db).create_run(
            country_id=seeded["brazil"].id,
            financial_cycle_id=BRAZIL_CYCLE_ID,
            record_count=3,
        )
        db.commit()

        with pytest.raises(ImportAlreadyRunningError) as excinfo:
            orchestrator.trigger_import(
                db=db,
                executor=InlineTaskExecutor(),
                records=[make_row()],
                country="Brazil",
                financial_cycle_id=BRAZIL_CYCLE_ID,
            )

        assert excinfo.value.run_id == active.id
        assert excinfo.value.to_dict()["run_id"] == str(active.id)
        assert locks.is_locked((seeded["brazil"].id, BRAZIL_CYCLE_ID)) is False

    def test_stale_active_run_is_expired_and_import_proceeds(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        make_row: RowFactory,
    ) -> None:
        stale = ImportRun(
            status=ImportRunStatus.RUNNING,
            country_id=seeded["brazil"].id,
            financial_cycle_id=BRAZIL_CYCLE_ID,
            record_count=3,
            updated_at=datetime.now(timezone.utc) - timedelta(hours=2),
        )
        db.add(stale)
        db.commit()

        run = orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        db.expire_all()
        expired = orchestrator.get_run(db=db, run_id=stale.id)
        assert expired.status == ImportRunStatus.ERROR
        assert "lease expired" in expired.error_message
        assert orchestrator.get_run(db=db, run_id=run.id).status == ImportRunStatus.IMPORTED

    def test_other_partition_is_not_blocked(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        locks: PartitionLockRegistry,
        make_row: RowFactory,
    ) -> None:
        locks.acquire((seeded["brazil"].id, BRAZIL_CYCLE_ID))

        run = orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=8,
        )

        db.expire_all()
        assert orchestrator.get_run(db=db, run_id=run.id).status == ImportRunStatus.IMPORTED

    def test_configuration_error_creates_no_run(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        make_row: RowFactory,
    ) -> None:
        with pytest.raises(ImportConfigurationError):
            orchestrator.trigger_import(
                db=db,
                executor=InlineTaskExecutor(),
                records=[make_row()],
                country="Atlantis",
                financial_cycle_id=BRAZIL_CYCLE_ID,
            )
        assert _run_count(db) == 0


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestFailedRuns:
    def test_structure_failure_marks_run_as_error(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        locks: PartitionLockRegistry,
        make_row: RowFactory,
    ) -> None:
        run = orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=[make_row(**{"Media Subtype": ""})],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        db.expire_all()
        stored = orchestrator.get_run(db=db, run_id=run.id)
        assert stored.status == ImportRunStatus.ERROR
        assert stored.error_message.startswith("ImportStructureError: ")
        payload = stored.result_payload
        assert payload["failed"] == 0
        assert payload["errors"][0]["index"] == -1
        assert payload["details"]["errors"][0]["column"] == "Media Subtype"
        assert locks.is_locked((seeded["brazil"].id, BRAZIL_CYCLE_ID)) is False

    def test_failed_partition_can_be_imported_again(
        self,
        db: Session,
        seeded: dict[str, Any],
        orchestrator: ImportOrchestratorService,
        make_row: RowFactory,
    ) -> None:
        orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=[make_row(**{"Media Subtype": ""})],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )
        run = orchestrator.trigger_import(
            db=db,
            executor=InlineTaskExecutor(),
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        db.expire_all()
        assert orchestrator.get_run(db=db, run_id=run.id).status == ImportRunStatus.IMPORTED
