"""
app/domain/game_plan.py

Domain models for game plan validation and import runs.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any


class IssueSeverity:
    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class ImportErrorCategory:
    DATE_FORMAT = "Date Format"
    MISSING_IDS = "Missing IDs"
    OTHER = "Other"


@dataclass(frozen=True)
class ValidationIssue:
    """
    One rule violation for one row/column.
    """

    row_index: int
    column_name: str
    severity: str
    message: str
    current_value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "rowIndex": self.row_index,
            "columnName": self.column_name,
            "severity": self.severity,
            "message": self.message,
            "currentValue": self.current_value,
        }


@dataclass(frozen=True)
class ValidationSummary:
    """
    Issue counts derived from one validation pass.
    """

    total: int
    critical: int
    warning: int
    suggestion: int
    by_column: dict[str, int]
    unique_rows: int

    @property
    def can_import(self) -> bool:
        return self.critical == 0


@dataclass(frozen=True)
class ResolvedEntity:
    """
    Outcome of a lookup-or-create for one dimension value.
    """

    id: int
    name: str
    created: bool


@dataclass(frozen=True)
class ImportProgress:
    current: int
    total: int
    percentage: int
    stage: str


@dataclass(frozen=True)
class ImportRowError:
    """
    Per-row failure recorded in the result ledger.
    """

    index: int
    error: str
    category: str = ImportErrorCategory.OTHER
    campaign: str | None = None
    media_subtype: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"index": self.index, "error": self.error}
        if self.campaign is not None:
            payload["campaign"] = self.campaign
        if self.media_subtype is not None:
            payload["mediaSubtype"] = self.media_subtype
        return payload


@dataclass
class ImportResult:
    """
    Result ledger built incrementally during one import run.
    """

    processed: int = 0
    successful_rows: list[int] = field(default_factory=list)
    failed_rows: list[int] = field(default_factory=list)
    errors: list[ImportRowError] = field(default_factory=list)
    error_counts: Counter[str] = field(default_factory=Counter)
    fact_ids: set[int] = field(default_factory=set)
    created_counts: dict[str, int] = field(default_factory=dict)
    game_plans_created: int = 0
    game_plans_updated: int = 0
    deleted_count: int = 0
    backup_file: str | None = None
    max_error_entries: int = 500

    @property
    def successful(self) -> int:
        return len(self.successful_rows)

    @property
    def failed(self) -> int:
        return len(self.failed_rows)

    def record_success(self, index: int) -> None:
        self.successful_rows.append(index)

    def record_fact(self, fact_id: int, *, created: bool) -> None:
        if created:
            self.game_plans_created += 1
        else:
            self.game_plans_updated += 1
        self.fact_ids.add(fact_id)

    def record_failure(self, row_error: ImportRowError) -> None:
        self.error_counts[row_error.category] += 1
        if row_error.index >= 0 and row_error.index not in self.failed_rows:
            self.failed_rows.append(row_error.index)
        if len(self.errors) < self.max_error_entries:
            self.errors.append(row_error)

    def errors_by_type(self) -> dict[str, int]:
        """
        Failure count per category, including failures beyond the stored error cap.
        """

        return dict(self.error_counts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "successfulRows": list(self.successful_rows),
            "failedRows": list(self.failed_rows),
            "errors": [row_error.to_dict() for row_error in self.errors],
            "errorsByType": self.errors_by_type(),
            "results": {
                **{f"{dimension}Count": count for dimension, count in sorted(self.created_counts.items())},
                "gamePlansCreated": self.game_plans_created,
                "gamePlansUpdated": self.game_plans_updated,
                "factRecordCount": len(self.fact_ids),
                "deletedCount": self.deleted_count,
                "backupFile": self.backup_file,
            },
        }


@dataclass(frozen=True)
class BackupRecord:
    """
    Metadata for one game plan backup artifact.
    """

    file_name: str
    path: str
    timestamp: str
    reason: str
    country_id: int
    country_name: str | None
    financial_cycle_id: int
    financial_cycle_name: str | None
    record_count: int
    business_unit_id: int | None = None
    business_unit_name: str | None = None
