"""
Game plan validation endpoint.
"""

from __future__ import annotations

from typing import Sequence

from fastapi import APIRouter, Depends

from app.api.dependencies import GamePlanValidatorFactory, get_validator_factory
from app.domain.game_plan import ValidationIssue
from app.schemas.validation import (
    GamePlanValidationRequest,
    GamePlanValidationResponse,
    ValidationIssueResponse,
    ValidationSummaryResponse,
)
from app.validators.game_plan_validator import GamePlanValidator

router = APIRouter(tags=["game-plan-validation"])


@router.post("/game-plans/validate", response_model=GamePlanValidationResponse)
def validate_game_plans(
    payload: GamePlanValidationRequest,
    factory: GamePlanValidatorFactory = Depends(get_validator_factory),
) -> GamePlanValidationResponse:
    validator = factory.build(country=payload.country, financial_cycle_id=payload.financial_cycle_id)
    issues = validator.validate_all(payload.records)
    return to_validation_response(issues)


def to_validation_response(issues: Sequence[ValidationIssue]) -> GamePlanValidationResponse:
    summary = GamePlanValidator.get_validation_summary(issues)
    return GamePlanValidationResponse(
        issues=[
            ValidationIssueResponse(
                row_index=issue.row_index,
                column_name=issue.column_name,
                severity=issue.severity,
                message=issue.message,
                current_value=issue.current_value,
            )
            for issue in issues
        ],
        summary=ValidationSummaryResponse(
            total=summary.total,
            critical=summary.critical,
            warning=summary.warning,
            suggestion=summary.suggestion,
            by_column=summary.by_column,
            unique_rows=summary.unique_rows,
            can_import=summary.can_import,
        ),
    )
