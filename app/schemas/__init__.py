"""
app/schemas package marker.
"""

from app.schemas.backups import BackupListResponse, BackupResponse, BackupRestoreResponse
from app.schemas.game_plan_import import (
    GamePlanImportRequest,
    ImportProgressResponse,
    ImportRunAcceptedResponse,
    ImportRunListResponse,
    ImportRunStatusResponse,
)
from app.schemas.validation import (
    GamePlanValidationRequest,
    GamePlanValidationResponse,
    ValidationIssueResponse,
    ValidationSummaryResponse,
)

__all__ = [
    "BackupListResponse",
    "BackupResponse",
    "BackupRestoreResponse",
    "GamePlanImportRequest",
    "GamePlanValidationRequest",
    "GamePlanValidationResponse",
    "ImportProgressResponse",
    "ImportRunAcceptedResponse",
    "ImportRunListResponse",
    "ImportRunStatusResponse",
    "ValidationIssueResponse",
    "ValidationSummaryResponse",
]
