"""
app/domain package marker.
"""

from app.domain.game_plan import (
    BackupRecord,
    ImportErrorCategory,
    ImportProgress,
    ImportResult,
    ImportRowError,
    IssueSeverity,
    ResolvedEntity,
    ValidationIssue,
    ValidationSummary,
)
from app.domain.master_data import DEFAULT_CAMPAIGN_ARCHETYPES, MasterData

__all__ = [
    "BackupRecord",
    "DEFAULT_CAMPAIGN_ARCHETYPES",
    "ImportErrorCategory",
    "ImportProgress",
    "ImportResult",
    "ImportRowError",
    "IssueSeverity",
    "MasterData",
    "ResolvedEntity",
    "ValidationIssue",
    "ValidationSummary",
]
