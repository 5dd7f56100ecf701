"""
Schemas for the game plan validation endpoint.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class GamePlanValidationRequest(BaseModel):
    records: list[dict[str, Any]] = Field(default_factory=list)
    country: str | None = Field(default=None, description="Selected country name or id")
    financial_cycle_id: int | None = Field(default=None, description="Selected financial cycle id")


class ValidationIssueResponse(BaseModel):
    row_index: int
    column_name: str
    severity: str
    message: str
    current_value: str | None = None


class ValidationSummaryResponse(BaseModel):
    total: int
    critical: int
    warning: int
    suggestion: int
    by_column: dict[str, int] = Field(default_factory=dict)
    unique_rows: int
    can_import: bool


class GamePlanValidationResponse(BaseModel):
    issues: list[ValidationIssueResponse] = Field(default_factory=list)
    summary: ValidationSummaryResponse
