"""
Repository for game plan import run lifecycle, progress and status lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from db.models.import_run import ImportRun, ImportRunStatus


def _as_utc(value: datetime) -> datetime:
    # SQLite returns naive timestamps.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ImportRunRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create_run(
        self,
        *,
        country_id: int,
        financial_cycle_id: int,
        record_count: int,
        source: str | None = None,
    ) -> ImportRun:
        run = ImportRun(
            status=ImportRunStatus.IDLE,
            country_id=country_id,
            financial_cycle_id=financial_cycle_id,
            record_count=record_count,
            progress_total=record_count,
            progress_stage="Queued",
            source=source,
        )
        self._session.add(run)
        self._session.flush()
        self._session.refresh(run)
        return run

    def get_run(self, run_id: uuid.UUID) -> ImportRun | None:
        return self._session.get(ImportRun, run_id)

    def list_runs(
        self,
        *,
        limit: int = 100,
        status: str | None = None,
        country_id: int | None = None,
        financial_cycle_id: int | None = None,
    ) -> list[ImportRun]:
        stmt: Select[tuple[ImportRun]] = select(ImportRun)

        if status:
            stmt = stmt.where(ImportRun.status == status)
        if country_id is not None:
            stmt = stmt.where(ImportRun.country_id == country_id)
        if financial_cycle_id is not None:
            stmt = stmt.where(ImportRun.financial_cycle_id == financial_cycle_id)

        stmt = stmt.order_by(ImportRun.created_at.desc()).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def find_active_run(
        self,
        *,
        country_id: int,
        financial_cycle_id: int,
    ) -> ImportRun | None:
        """
        Return a queued or running run for the partition, if any.
        """

        stmt = (
            select(ImportRun)
            .where(ImportRun.country_id == country_id)
            .where(ImportRun.financial_cycle_id == financial_cycle_id)
            .where(ImportRun.status.in_((ImportRunStatus.IDLE, ImportRunStatus.RUNNING)))
            .order_by(ImportRun.created_at.desc())
        )
        return self._session.scalars(stmt).first()

    def expire_stale_runs(
        self,
        *,
        country_id: int,
        financial_cycle_id: int,
        lease_seconds: int,
        now: datetime | None = None,
    ) -> list[ImportRun]:
        """
        Mark queued or running runs not updated within the lease as errors.
        """

        cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=lease_seconds)
        stmt = (
            select(ImportRun)
            .where(ImportRun.country_id == country_id)
            .where(ImportRun.financial_cycle_id == financial_cycle_id)
            .where(ImportRun.status.in_((ImportRunStatus.IDLE, ImportRunStatus.RUNNING)))
        )
        expired: list[ImportRun] = []
        for run in self._session.scalars(stmt).all():
            if _as_utc(run.updated_at or run.created_at) >= cutoff:
                continue
            self.mark_error(
                run_id=run.id,
                error_message=f"Import run lease expired: no progress for more than {lease_seconds} seconds.",
            )
            expired.append(run)
        return expired

    def mark_running(self, *, run_id: uuid.UUID) -> ImportRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = ImportRunStatus.RUNNING
        run.started_at = datetime.now(timezone.utc)
        run.completed_at = None
        run.error_message = None
        run.progress_stage = "Starting import"
        return run

    def update_progress(
        self,
        *,
        run_id: uuid.UUID,
        current: int,
        total: int,
        percentage: int,
        stage: str,
    ) -> ImportRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.progress_current = current
        run.progress_total = total
        run.progress_percentage = percentage
        run.progress_stage = stage[:255]
        return run

    def mark_imported(
        self,
        *,
        run_id: uuid.UUID,
        result_payload: dict[str, Any],
    ) -> ImportRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = ImportRunStatus.IMPORTED
        run.completed_at = datetime.now(timezone.utc)
        run.result_payload = result_payload
        run.error_message = None
        run.progress_percentage = 100
        run.progress_stage = "Import complete"
        return run

    def mark_error(
        self,
        *,
        run_id: uuid.UUID,
        error_message: str,
        result_payload: dict[str, Any] | None = None,
    ) -> ImportRun | None:
        run = self.get_run(run_id)
        if run is None:
            return None
        run.status = ImportRunStatus.ERROR
        run.completed_at = datetime.now(timezone.utc)
        run.error_message = error_message
        run.progress_stage = "Import failed"
        if result_payload is not None:
            run.result_payload = result_payload
        return run
