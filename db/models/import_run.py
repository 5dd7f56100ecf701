"""
db/models/import_run.py

Game plan import run model: lifecycle status, live progress snapshot and the
final result ledger.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONDocument, TimestampMixin


class ImportRunStatus:
    IDLE = "idle"
    RUNNING = "running"
    IMPORTED = "imported"
    ERROR = "error"


class ImportRun(Base, TimestampMixin):
    __tablename__ = "import_runs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ImportRunStatus.IDLE,
        comment="idle, running, imported, error",
    )
    country_id: Mapped[int] = mapped_column(ForeignKey("countries.id"), nullable=False)
    financial_cycle_id: Mapped[int] = mapped_column(ForeignKey("financial_cycles.id"), nullable=False)
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    progress_current: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_stage: Mapped[str | None] = mapped_column(String(255), nullable=True)

    result_payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument,
        nullable=True,
        comment="Final result ledger, written once at completion or failure",
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_import_runs_status", "status"),
        Index("ix_import_runs_created_at", "created_at"),
        Index("ix_import_runs_partition_status", "country_id", "financial_cycle_id", "status"),
    )
