"""
Schemas for game plan backup listing and restore endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class BackupResponse(BaseModel):
    file_name: str
    timestamp: str
    reason: str
    country_id: int
    country_name: str | None = None
    financial_cycle_id: int
    financial_cycle_name: str | None = None
    business_unit_id: int | None = None
    business_unit_name: str | None = None
    record_count: int


class BackupListResponse(BaseModel):
    backups: list[BackupResponse] = Field(default_factory=list)


class BackupRestoreResponse(BaseModel):
    file_name: str
    restored: int
