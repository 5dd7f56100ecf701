"""
app/repositories package marker.
"""

from app.repositories.dimension_repository import DimensionRepository
from app.repositories.game_plan_repository import GamePlanRepository
from app.repositories.master_data_repository import MasterDataRepository

__all__ = [
    "DimensionRepository",
    "GamePlanRepository",
    "MasterDataRepository",
]
