"""
app/services package marker.
"""

from app.services.backup_service import (
    BackupError,
    GamePlanBackupService,
    get_game_plan_backup_service,
)
from app.services.entity_resolver import (
    EntityResolutionError,
    EntityResolver,
    ProcessedEntityCache,
)
from app.services.game_plan_import_service import (
    GamePlanImportService,
    ImportConfigurationError,
    get_game_plan_import_service,
)
from app.services.import_orchestrator_service import (
    ImportAlreadyRunningError,
    ImportOrchestratorService,
    get_import_orchestrator_service,
)

__all__ = [
    "BackupError",
    "EntityResolutionError",
    "EntityResolver",
    "GamePlanBackupService",
    "GamePlanImportService",
    "ImportAlreadyRunningError",
    "ImportConfigurationError",
    "ImportOrchestratorService",
    "ProcessedEntityCache",
    "get_game_plan_backup_service",
    "get_game_plan_import_service",
    "get_import_orchestrator_service",
]
