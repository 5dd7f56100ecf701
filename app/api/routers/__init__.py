"""
app/api/routers package marker.
"""

from app.api.routers.backups import router as backups_router
from app.api.routers.game_plan_import import router as game_plan_import_router
from app.api.routers.validation import router as validation_router

__all__ = [
    "backups_router",
    "game_plan_import_router",
    "validation_router",
]
