"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.domain.master_data import DEFAULT_CAMPAIGN_ARCHETYPES
from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list; blank entries are dropped.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class GamePlanImportSettings:
    """
    Runtime settings for game plan imports.
    """

    backup_dir: str = "backups/game-plans"
    progress_interval: int = 5
    max_error_entries: int = 500
    default_region: str = "Unassigned"
    default_media_type: str = "Other"
    import_source: str = "csv_import"
    log_row_errors: bool = True
    run_lease_seconds: int = 3600


@dataclass(frozen=True)
class ValidationSettings:
    """
    Runtime settings for game plan business validation.
    """

    auto_create_mode: bool = True
    campaign_archetypes: tuple[str, ...] = DEFAULT_CAMPAIGN_ARCHETYPES


@lru_cache(maxsize=1)
def get_game_plan_import_settings() -> GamePlanImportSettings:
    """
    Return cached game plan import settings from environment variables.
    """

    return GamePlanImportSettings(
        backup_dir=_get_str_env("GAMEPLAN_BACKUP_DIR", "backups/game-plans"),
        progress_interval=max(1, _get_int_env("GAMEPLAN_PROGRESS_INTERVAL", 5)),
        max_error_entries=max(1, _get_int_env("GAMEPLAN_MAX_ERROR_ENTRIES", 500)),
        default_region=_get_str_env("GAMEPLAN_DEFAULT_REGION", "Unassigned"),
        default_media_type=_get_str_env("GAMEPLAN_DEFAULT_MEDIA_TYPE", "Other"),
        import_source=_get_str_env("GAMEPLAN_IMPORT_SOURCE", "csv_import"),
        log_row_errors=_get_bool_env("GAMEPLAN_LOG_ROW_ERRORS", True),
        run_lease_seconds=max(1, _get_int_env("GAMEPLAN_RUN_LEASE_SECONDS", 3600)),
    )


@lru_cache(maxsize=1)
def get_validation_settings() -> ValidationSettings:
    """
    Return cached validation settings from environment variables.
    """

    return ValidationSettings(
        auto_create_mode=_get_bool_env("GAMEPLAN_AUTO_CREATE_MODE", True),
        campaign_archetypes=_get_list_env("GAMEPLAN_CAMPAIGN_ARCHETYPES", DEFAULT_CAMPAIGN_ARCHETYPES),
    )
