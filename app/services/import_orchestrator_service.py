"""
Orchestrator service for background game plan import dispatch and run tracking.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Any, Mapping, Protocol, Sequence

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, sessionmaker

from app.domain.game_plan import ImportProgress, ImportResult, ImportRowError
from app.services.game_plan_import_service import (
    GamePlanImportService,
    ImportPartition,
    get_game_plan_import_service,
)
from db.models.import_run import ImportRun
from db.repositories.import_run_repository import ImportRunRepository

logger = logging.getLogger(__name__)

PartitionKey = tuple[int, int]


class ImportTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class InlineTaskExecutor:
    """
    Runs the task immediately in the calling thread.
    """

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        task(*args, **kwargs)


class ThreadPoolTaskExecutor:
    """
    Runs tasks on a shared worker pool; used by scripts outside FastAPI.
    """

    def __init__(self, max_workers: int = 2) -> None:
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="game-plan-import")

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._pool.submit(task, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


class ImportAlreadyRunningError(RuntimeError):
    """
    Raised when another import holds the same (country, financial cycle).
    """

    def __init__(
        self,
        *,
        country_id: int,
        financial_cycle_id: int,
        run_id: uuid.UUID | None = None,
    ) -> None:
        super().__init__(
            f"An import is already running for country_id={country_id} "
            f"financial_cycle_id={financial_cycle_id}."
        )
        self.country_id = country_id
        self.financial_cycle_id = financial_cycle_id
        self.run_id = run_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": str(self),
            "country_id": self.country_id,
            "financial_cycle_id": self.financial_cycle_id,
            "run_id": str(self.run_id) if self.run_id else None,
        }


class PartitionLockRegistry:
    """
    One non-reentrant lock per (country_id, financial_cycle_id).
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[PartitionKey, threading.Lock] = {}

    def _lock_for(self, key: PartitionKey) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def acquire(self, key: PartitionKey) -> bool:
        return self._lock_for(key).acquire(blocking=False)

    def release(self, key: PartitionKey) -> None:
        lock = self._lock_for(key)
        if lock.locked():
            lock.release()

    def is_locked(self, key: PartitionKey) -> bool:
        return self._lock_for(key).locked()


class ImportOrchestratorService:
    """
    Coordinates run creation, background execution, and status persistence.
    """

    def __init__(
        self,
        *,
        session_factory: sessionmaker[Session] | None = None,
        import_service: GamePlanImportService | None = None,
        lock_registry: PartitionLockRegistry | None = None,
        run_lease_seconds: int | None = None,
    ) -> None:
        if session_factory is None:
            from db.session import SessionLocal

            self._session_factory = SessionLocal
        else:
            self._session_factory = session_factory

        self._import_service = import_service or get_game_plan_import_service()
        self._locks = lock_registry or PartitionLockRegistry()
        if run_lease_seconds is None:
            run_lease_seconds = self._import_service.settings.run_lease_seconds
        self._run_lease_seconds = run_lease_seconds

    def resolve_partition(
        self,
        *,
        db: Session,
        country: str | int,
        financial_cycle_id: int | str,
    ) -> ImportPartition:
        return self._import_service.resolve_partition(
            db=db,
            country=country,
            financial_cycle_id=financial_cycle_id,
        )

    def trigger_import(
        self,
        *,
        db: Session,
        executor: ImportTaskExecutor,
        records: Sequence[Mapping[str, Any]],
        country: str | int,
        financial_cycle_id: int | str,
        source: str | None = None,
    ) -> ImportRun:
        partition = self._import_service.resolve_partition(
            db=db,
            country=country,
            financial_cycle_id=financial_cycle_id,
        )
        key = (partition.country_id, partition.financial_cycle_id)
        if not self._locks.acquire(key):
            raise ImportAlreadyRunningError(
                country_id=partition.country_id,
                financial_cycle_id=partition.financial_cycle_id,
            )

        repository = ImportRunRepository(db)
        try:
            for stale in repository.expire_stale_runs(
                country_id=partition.country_id,
                financial_cycle_id=partition.financial_cycle_id,
                lease_seconds=self._run_lease_seconds,
            ):
                logger.warning(
                    "Expired stale game plan import run id=%s last_update=%s",
                    stale.id,
                    stale.updated_at,
                )
            active = repository.find_active_run(
                country_id=partition.country_id,
                financial_cycle_id=partition.financial_cycle_id,
            )
            if active is not None:
                raise ImportAlreadyRunningError(
                    country_id=partition.country_id,
                    financial_cycle_id=partition.financial_cycle_id,
                    run_id=active.id,
                )
            run = repository.create_run(
                country_id=partition.country_id,
                financial_cycle_id=partition.financial_cycle_id,
                record_count=len(records),
                source=source,
            )
            db.commit()
        except Exception:
            db.rollback()
            self._locks.release(key)
            raise

        logger.info(
            "Queued game plan import run id=%s country=%r financial_cycle=%r records=%d",
            run.id,
            partition.country_name,
            partition.financial_cycle_name,
            len(records),
        )

        try:
            executor.submit(
                self._run_import_job,
                run.id,
                [dict(record) for record in records],
                partition.country_id,
                partition.financial_cycle_id,
                source,
            )
        except Exception:
            self._locks.release(key)
            repository.mark_error(run_id=run.id, error_message="Failed to schedule game plan import job.")
            db.commit()
            raise

        return run

    def get_run(self, *, db: Session, run_id: uuid.UUID) -> ImportRun | None:
        repository = ImportRunRepository(db)
        return repository.get_run(run_id)

    def list_runs(
        self,
        *,
        db: Session,
        limit: int = 100,
        status: str | None = None,
        country_id: int | None = None,
        financial_cycle_id: int | None = None,
    ) -> list[ImportRun]:
        repository = ImportRunRepository(db)
        return repository.list_runs(
            limit=limit,
            status=status,
            country_id=country_id,
            financial_cycle_id=financial_cycle_id,
        )

    def _run_import_job(
        self,
        run_id: uuid.UUID,
        records: list[dict[str, Any]],
        country_id: int,
        financial_cycle_id: int,
        source: str | None,
    ) -> None:
        try:
            with self._session_factory() as db:
                repository = ImportRunRepository(db)
                try:
                    running_run = repository.mark_running(run_id=run_id)
                    if running_run is None:
                        raise RuntimeError(f"Import run not found: {run_id}")
                    db.commit()

                    def on_progress(progress: ImportProgress) -> None:
                        repository.update_progress(
                            run_id=run_id,
                            current=progress.current,
                            total=progress.total,
                            percentage=progress.percentage,
                            stage=progress.stage,
                        )
                        db.commit()

                    result = self._import_service.run_import(
                        db=db,
                        records=records,
                        country=country_id,
                        financial_cycle_id=financial_cycle_id,
                        source=source,
                        progress_callback=on_progress,
                    )

                    completed_run = repository.mark_imported(run_id=run_id, result_payload=result.to_dict())
                    if completed_run is None:
                        raise RuntimeError(f"Import run not found: {run_id}")
                    db.commit()
                except Exception as exc:
                    self._mark_run_failed(db=db, run_id=run_id, exc=exc)
        finally:
            self._locks.release((country_id, financial_cycle_id))

    def _mark_run_failed(self, *, db: Session, run_id: uuid.UUID, exc: Exception) -> None:
        repository = ImportRunRepository(db)
        error_message = f"{type(exc).__name__}: {exc}"
        logger.exception("Game plan import run failed id=%s error=%s", run_id, error_message)

        ledger = ImportResult()
        ledger.record_failure(ImportRowError(index=-1, error=str(exc)))
        result_payload = ledger.to_dict()
        to_dict = getattr(exc, "to_dict", None)
        if callable(to_dict):
            result_payload["details"] = to_dict()

        try:
            db.rollback()
            failed_run = repository.mark_error(
                run_id=run_id,
                error_message=error_message[:2000],
                result_payload=result_payload,
            )
            if failed_run is None:
                logger.error("Unable to mark import run as failed because it was not found id=%s", run_id)
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to persist failed import run state id=%s", run_id)


@lru_cache(maxsize=1)
def get_import_orchestrator_service() -> ImportOrchestratorService:
    return ImportOrchestratorService()
