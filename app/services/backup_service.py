"""
app/services/backup_service.py

JSON backup artifacts of a game plan partition, written before the import
deletes the partition, plus listing and restore.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_game_plan_import_settings
from app.domain.game_plan import BackupRecord
from app.repositories.game_plan_repository import GamePlanRepository
from db.models.financial_cycle import FinancialCycle
from db.models.geography import Country
from db.models.taxonomy import BusinessUnit

logger = logging.getLogger(__name__)

BACKUP_FILE_PREFIX = "game-plans-backup"
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BackupError(RuntimeError):
    """
    Raised when a backup cannot be written, read or restored.
    """


def _safe_segment(value: str) -> str:
    return _UNSAFE_NAME_CHARS.sub("-", value.strip().replace(" ", "-")).strip("-") or "unknown"


class GamePlanBackupService:
    """
    Writes and restores partition backups under one directory.
    """

    def __init__(self, *, backup_dir: str | Path) -> None:
        self._backup_dir = Path(backup_dir)

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    def create_backup(
        self,
        *,
        db: Session,
        country_id: int,
        financial_cycle_id: int,
        reason: str,
        business_unit_id: int | None = None,
    ) -> BackupRecord | None:
        """
        Snapshot the partition to a JSON file; None when it holds no rows.
        """

        repository = GamePlanRepository(db)
        plans = repository.list_partition(
            country_id=country_id,
            financial_cycle_id=financial_cycle_id,
            business_unit_id=business_unit_id,
        )
        if not plans:
            logger.info(
                "No game plans to back up country_id=%s financial_cycle_id=%s",
                country_id,
                financial_cycle_id,
            )
            return None

        country = db.get(Country, country_id)
        cycle = db.get(FinancialCycle, financial_cycle_id)
        business_unit = db.get(BusinessUnit, business_unit_id) if business_unit_id is not None else None
        country_name = country.name if country is not None else None
        cycle_name = cycle.name if cycle is not None else None
        business_unit_name = business_unit.name if business_unit is not None else None

        now = datetime.now(timezone.utc)
        segments = [BACKUP_FILE_PREFIX, _safe_segment(country_name or str(country_id))]
        segments.append(_safe_segment(cycle_name or str(financial_cycle_id)))
        if business_unit_name:
            segments.append(_safe_segment(business_unit_name))
        segments.append(now.strftime("%Y-%m-%dT%H-%M-%S-%fZ"))
        file_name = "-".join(segments) + ".json"

        document = {
            "timestamp": now.isoformat(),
            "reason": reason,
            "countryId": country_id,
            "countryName": country_name,
            "financialCycleId": financial_cycle_id,
            "financialCycleName": cycle_name,
            "businessUnitId": business_unit_id,
            "businessUnitName": business_unit_name,
            "recordCount": len(plans),
            "backupFile": file_name,
            "gamePlans": [repository.to_dict(plan) for plan in plans],
        }

        target = self._backup_dir / file_name
        tmp_path = target.with_suffix(".json.tmp")
        try:
            self._backup_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, default=str)
            tmp_path.replace(target)
        except OSError as exc:
            raise BackupError(f"Failed to write game plan backup {file_name}: {exc}") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass

        logger.info("Wrote game plan backup %s with %d records", file_name, len(plans))
        return self._record_from_document(document, target)

    def list_backups(self) -> list[BackupRecord]:
        """
        Return metadata for every backup in the directory, newest first.
        """

        if not self._backup_dir.exists():
            return []

        records: list[BackupRecord] = []
        for path in self._backup_dir.glob(f"{BACKUP_FILE_PREFIX}-*.json"):
            try:
                document = self._read_document(path)
            except BackupError:
                logger.warning("Skipping unreadable backup file %s", path.name)
                continue
            records.append(self._record_from_document(document, path))

        records.sort(key=lambda record: record.timestamp, reverse=True)
        return records

    def restore_backup(self, *, db: Session, file_name: str) -> int:
        """
        Replace the backed-up partition with the artifact's game plans.
        """

        path = self._resolve_path(file_name)
        document = self._read_document(path)
        country_id = document.get("countryId")
        financial_cycle_id = document.get("financialCycleId")
        if country_id is None or financial_cycle_id is None:
            raise BackupError(f"Backup {file_name} does not name its partition.")

        rows = [
            {key: value for key, value in plan.items() if key != "id"}
            for plan in document.get("gamePlans") or []
        ]
        repository = GamePlanRepository(db)
        try:
            deleted = repository.delete_partition(
                country_id=country_id,
                financial_cycle_id=financial_cycle_id,
            )
            restored = repository.bulk_insert(rows)
            db.commit()
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            db.rollback()
            raise BackupError(f"Failed to restore backup {file_name}: {exc}") from exc

        logger.info(
            "Restored backup %s: deleted=%d restored=%d country_id=%s financial_cycle_id=%s",
            file_name,
            deleted,
            restored,
            country_id,
            financial_cycle_id,
        )
        return restored

    def _resolve_path(self, file_name: str) -> Path:
        root = self._backup_dir.resolve()
        candidate = (self._backup_dir / file_name).resolve()
        if candidate.parent != root or not candidate.name.endswith(".json"):
            raise BackupError(f"Invalid backup file name: {file_name}")
        if not candidate.exists():
            raise BackupError(f"Backup file not found: {file_name}")
        return candidate

    @staticmethod
    def _read_document(path: Path) -> dict[str, Any]:
        try:
            with path.open("r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise BackupError(f"Failed to read backup {path.name}: {exc}") from exc
        if not isinstance(document, dict):
            raise BackupError(f"Backup {path.name} is not a JSON object.")
        return document

    @staticmethod
    def _record_from_document(document: dict[str, Any], path: Path) -> BackupRecord:
        return BackupRecord(
            file_name=path.name,
            path=str(path),
            timestamp=str(document.get("timestamp") or ""),
            reason=str(document.get("reason") or ""),
            country_id=int(document.get("countryId") or 0),
            country_name=document.get("countryName"),
            financial_cycle_id=int(document.get("financialCycleId") or 0),
            financial_cycle_name=document.get("financialCycleName"),
            record_count=int(document.get("recordCount") or 0),
            business_unit_id=document.get("businessUnitId"),
            business_unit_name=document.get("businessUnitName"),
        )


@lru_cache(maxsize=1)
def get_game_plan_backup_service() -> GamePlanBackupService:
    return GamePlanBackupService(backup_dir=get_game_plan_import_settings().backup_dir)
