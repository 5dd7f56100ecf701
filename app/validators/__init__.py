"""
app/validators package marker.
"""

from app.validators.game_plan_validator import (
    DEFAULT_PM_TYPE_COMBINATIONS,
    GamePlanValidator,
    ValidationRule,
)
from app.validators.structure_validator import (
    ImportStructureError,
    StructureErrorDetail,
    StructureValidator,
    is_empty_record,
)

__all__ = [
    "DEFAULT_PM_TYPE_COMBINATIONS",
    "GamePlanValidator",
    "ImportStructureError",
    "StructureErrorDetail",
    "StructureValidator",
    "ValidationRule",
    "is_empty_record",
]
