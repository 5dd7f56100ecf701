"""
tests/test_backup_service.py

Pytest tests for partition backup artifacts: writing, listing and restore.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.repositories.game_plan_repository import GamePlanRepository
from app.services.backup_service import BackupError, GamePlanBackupService
from db.models import Campaign

BRAZIL_CYCLE_ID = 7


@pytest.fixture()
def partition(db: Session, seeded: dict[str, Any]) -> dict[str, int]:
    campaign = db.scalars(select(Campaign).where(Campaign.name == "Winter Glow")).one()
    repository = GamePlanRepository(db)
    for month, budget in ((3, 100.0), (4, 250.5)):
        repository.add(
            {
                "campaign_id": campaign.id,
                "media_sub_type_id": seeded["paid_tv"].id,
                "burst": 1,
                "start_date": date(2025, month, 1),
                "end_date": date(2025, month, 21),
                "total_budget": budget,
                "total_r1_plus": 0.4,
                "weeks_live": 2.86,
                "country_id": seeded["brazil"].id,
                "financial_cycle_id": BRAZIL_CYCLE_ID,
            }
        )
    db.commit()
    return {"country_id": seeded["brazil"].id, "financial_cycle_id": BRAZIL_CYCLE_ID}


def _write(directory: Path, name: str, document: Any) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / name).write_text(json.dumps(document), encoding="utf-8")


# ---------------------------------------------------------------------------
# create_backup
# ---------------------------------------------------------------------------


class TestCreateBackup:
    def test_empty_partition_writes_nothing(
        self, db: Session, seeded: dict[str, Any], backup_service: GamePlanBackupService
    ) -> None:
        record = backup_service.create_backup(
            db=db,
            country_id=seeded["brazil"].id,
            financial_cycle_id=BRAZIL_CYCLE_ID,
            reason="test",
        )
        assert record is None
        assert backup_service.list_backups() == []

    def test_backup_captures_partition(
        self, db: Session, partition: dict[str, int], backup_service: GamePlanBackupService
    ) -> None:
        record = backup_service.create_backup(db=db, reason="Before import", **partition)

        assert record is not None
        assert record.record_count == 2
        assert record.country_name == "Brazil"
        assert record.financial_cycle_name == "ABP 2025"
        assert record.file_name.startswith("game-plans-backup-Brazil-ABP-2025-")
        assert record.file_name.endswith(".json")

        document = json.loads(Path(record.path).read_text(encoding="utf-8"))
        assert document["reason"] == "Before import"
        assert document["countryId"] == partition["country_id"]
        assert document["financialCycleId"] == BRAZIL_CYCLE_ID
        assert [plan["start_date"] for plan in document["gamePlans"]] == ["2025-03-01", "2025-04-01"]
        assert not list(backup_service.backup_dir.glob("*.tmp"))


# ---------------------------------------------------------------------------
# list_backups
# ---------------------------------------------------------------------------


class TestListBackups:
    def test_newest_first_and_unreadable_skipped(self, backup_service: GamePlanBackupService) -> None:
        directory = backup_service.backup_dir
        _write(
            directory,
            "game-plans-backup-Brazil-ABP-2025-older.json",
            {"timestamp": "2025-01-01T10:00:00+00:00", "countryId": 1, "financialCycleId": 7, "recordCount": 4},
        )
        _write(
            directory,
            "game-plans-backup-Brazil-ABP-2025-newer.json",
            {"timestamp": "2025-02-01T10:00:00+00:00", "countryId": 1, "financialCycleId": 7, "recordCount": 6},
        )
        (directory / "game-plans-backup-broken.json").write_text("{not json", encoding="utf-8")
        _write(directory, "unrelated.json", {"timestamp": "2030-01-01"})

        records = backup_service.list_backups()

        assert [record.record_count for record in records] == [6, 4]
        assert records[0].file_name == "game-plans-backup-Brazil-ABP-2025-newer.json"


# ---------------------------------------------------------------------------
# restore_backup
# ---------------------------------------------------------------------------


class TestRestoreBackup:
    def test_restore_replaces_partition(
        self, db: Session, partition: dict[str, int], backup_service: GamePlanBackupService
    ) -> None:
        record = backup_service.create_backup(db=db, reason="Before import", **partition)
        repository = GamePlanRepository(db)
        repository.delete_partition(**partition)
        db.commit()
        assert repository.count_partition(**partition) == 0

        restored = backup_service.restore_backup(db=db, file_name=record.file_name)

        assert restored == 2
        plans = repository.list_partition(**partition)
        assert sorted(plan.total_budget for plan in plans) == [100.0, 250.5]
        assert {plan.start_date for plan in plans} == {date(2025, 3, 1), date(2025, 4, 1)}

    def test_restore_does_not_duplicate_existing_rows(
        self, db: Session, partition: dict[str, int], backup_service: GamePlanBackupService
    ) -> None:
        record = backup_service.create_backup(db=db, reason="snapshot", **partition)

        backup_service.restore_backup(db=db, file_name=record.file_name)

        assert GamePlanRepository(db).count_partition(**partition) == 2

    @pytest.mark.parametrize("file_name", ["../escape.json", "nested/dir.json", "notes.txt", "missing.json"])
    def test_invalid_file_names_are_rejected(
        self, db: Session, backup_service: GamePlanBackupService, file_name: str
    ) -> None:
        backup_service.backup_dir.mkdir(parents=True, exist_ok=True)
        (backup_service.backup_dir / "notes.txt").write_text("x", encoding="utf-8")

        with pytest.raises(BackupError):
            backup_service.restore_backup(db=db, file_name=file_name)

    def test_backup_without_partition_is_rejected(self, db: Session, backup_service: GamePlanBackupService) -> None:
        _write(backup_service.backup_dir, "game-plans-backup-anonymous.json", {"gamePlans": []})

        with pytest.raises(BackupError, match="does not name its partition"):
            backup_service.restore_backup(db=db, file_name="game-plans-backup-anonymous.json")
