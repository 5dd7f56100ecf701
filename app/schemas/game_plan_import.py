"""
Schemas for game plan import trigger and run status endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class GamePlanImportRequest(BaseModel):
    records: list[dict[str, Any]] = Field(..., min_length=1)
    country: str = Field(..., min_length=1, description="Target country name or id")
    financial_cycle_id: int = Field(..., description="Target financial cycle id")
    source: str | None = Field(default=None, description="Free-text origin, e.g. the uploaded file name")
    skip_validation: bool = Field(default=False, description="Import even when critical issues exist")


class ImportRunAcceptedResponse(BaseModel):
    run_id: UUID
    status: str
    created_at: datetime


class ImportProgressResponse(BaseModel):
    current: int
    total: int
    percentage: int
    stage: str | None = None


class ImportRunStatusResponse(BaseModel):
    run_id: UUID
    status: str
    country_id: int
    financial_cycle_id: int
    source: str | None = None
    record_count: int
    progress: ImportProgressResponse
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    result_payload: dict[str, Any] | None = None
    error_message: str | None = None


class ImportRunListResponse(BaseModel):
    runs: list[ImportRunStatusResponse] = Field(default_factory=list)
