"""
tests/test_game_plan_import_service.py

Pytest tests for the replace-partition game plan import against an in-memory
SQLite store.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import replace
from datetime import date
from typing import Any

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import GamePlanImportSettings
from app.domain.game_plan import ImportErrorCategory, ImportProgress
from app.repositories.game_plan_repository import GamePlanRepository
from app.services.backup_service import GamePlanBackupService
from app.services.game_plan_import_service import (
    GamePlanImportService,
    ImportConfigurationError,
    ProgressTracker,
)
from app.validators.structure_validator import ImportStructureError
from db.models import Campaign, GamePlan
from db.models.taxonomy import CampaignStatus

RowFactory = Callable[..., dict[str, Any]]

BRAZIL_CYCLE_ID = 7


def _plans(db: Session, *, country_id: int, financial_cycle_id: int) -> list[GamePlan]:
    return GamePlanRepository(db).list_partition(country_id=country_id, financial_cycle_id=financial_cycle_id)


def _seed_plan(db: Session, seeded: dict[str, Any], *, country_id: int, financial_cycle_id: int, budget: float) -> None:
    campaign = db.scalars(select(Campaign).where(Campaign.name == "Winter Glow")).one()
    GamePlanRepository(db).add(
        {
            "campaign_id": campaign.id,
            "media_sub_type_id": seeded["paid_tv"].id,
            "burst": 1,
            "start_date": date(2025, 3, 1),
            "end_date": date(2025, 3, 28),
            "total_budget": budget,
            "country_id": country_id,
            "financial_cycle_id": financial_cycle_id,
            "range_id": seeded["skincare"].id,
        }
    )
    db.commit()


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestImport:
    def test_single_row_creates_campaign_and_fact(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        result = import_service.run_import(
            db=db,
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert result.processed == 1
        assert result.successful == 1
        assert result.failed == 0
        assert result.game_plans_created == 1
        assert result.created_counts["campaign"] == 1
        assert result.created_counts["mediaSubtype"] == 0
        assert result.backup_file is None

        plans = _plans(db, country_id=seeded["brazil"].id, financial_cycle_id=BRAZIL_CYCLE_ID)
        assert len(plans) == 1
        plan = plans[0]
        assert plan.weeks_live == pytest.approx(2.0)
        assert plan.total_budget == pytest.approx(1000.0)
        assert plan.total_r1_plus == pytest.approx(0.45)
        assert plan.total_r3_plus == pytest.approx(0.20)
        assert plan.year == 2025
        assert plan.range_id == seeded["skincare"].id
        assert plan.media_sub_type_id == seeded["paid_tv"].id
        assert plan.category_id == seeded["face_care"].id

        campaign = db.get(Campaign, plan.campaign_id)
        assert campaign.name == "Summer Push"
        assert campaign.status == CampaignStatus.PENDING_REVIEW

    def test_distinct_natural_keys_create_one_row_each(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        records = [
            make_row(),
            make_row(Campaign="Winter Glow"),
            make_row(**{"Initial Date": "2025-02-01", "End Date": "2025-02-28"}),
        ]

        result = import_service.run_import(
            db=db,
            records=records,
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert result.successful == 3
        assert result.successful_rows == [0, 1, 2]
        assert result.created_counts["campaign"] == 1
        assert len(_plans(db, country_id=seeded["brazil"].id, financial_cycle_id=BRAZIL_CYCLE_ID)) == 3

    def test_repeated_natural_key_updates_in_place(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        result = import_service.run_import(
            db=db,
            records=[
                make_row(),
                make_row(**{"Total Budget": "1800"}),
                make_row(**{"Total Budget": "2500"}),
            ],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert result.game_plans_created == 1
        assert result.game_plans_updated == 2
        assert result.to_dict()["results"]["factRecordCount"] == 1
        plans = _plans(db, country_id=seeded["brazil"].id, financial_cycle_id=BRAZIL_CYCLE_ID)
        assert [plan.total_budget for plan in plans] == [pytest.approx(2500.0)]

    def test_country_may_be_given_by_id(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        result = import_service.run_import(
            db=db,
            records=[make_row()],
            country=seeded["brazil"].id,
            financial_cycle_id=str(BRAZIL_CYCLE_ID),
        )
        assert result.successful == 1

    def test_empty_rows_are_not_counted(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        blank = {key: "" for key in make_row()}
        result = import_service.run_import(
            db=db,
            records=[make_row(), blank],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert result.processed == 1
        assert result.successful_rows == [0]
        assert result.failed_rows == []


# ---------------------------------------------------------------------------
# Row-level failures
# ---------------------------------------------------------------------------


class TestRowFailures:
    def test_unparseable_date_fails_only_that_row(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        records = [
            make_row(),
            make_row(Campaign="Winter Glow"),
            make_row(Campaign="Autumn Reset"),
            make_row(**{"Initial Date": "someday"}),
            make_row(Campaign="Spring Bloom"),
        ]

        result = import_service.run_import(
            db=db,
            records=records,
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert result.failed == 1
        assert result.failed_rows == [3]
        assert result.successful_rows == [0, 1, 2, 4]
        assert result.errors[0].category == ImportErrorCategory.DATE_FORMAT
        assert result.errors[0].campaign == "Summer Push"
        assert result.to_dict()["errorsByType"] == {"Date Format": 1}

    def test_unknown_range_fails_with_missing_ids(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        result = import_service.run_import(
            db=db,
            records=[make_row(Range="BodyCare"), make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert result.failed_rows == [0]
        assert result.successful_rows == [1]
        assert result.errors[0].category == ImportErrorCategory.MISSING_IDS
        assert "campaign" in result.errors[0].error

    def test_error_counts_include_entries_beyond_the_cap(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_settings: GamePlanImportSettings,
        backup_service: GamePlanBackupService,
        make_row: RowFactory,
    ) -> None:
        service = GamePlanImportService(
            settings=replace(import_settings, max_error_entries=2),
            backup_service=backup_service,
        )

        result = service.run_import(
            db=db,
            records=[make_row(**{"Initial Date": "someday"}) for _ in range(5)],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        payload = result.to_dict()
        assert payload["failed"] == 5
        assert len(payload["errors"]) == 2
        assert payload["errorsByType"] == {ImportErrorCategory.DATE_FORMAT: 5}

    def test_error_payload_is_camel_case(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        result = import_service.run_import(
            db=db,
            records=[make_row(**{"End Date": "not a date"})],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        payload = result.to_dict()
        assert payload["failedRows"] == [0]
        assert payload["errors"][0]["index"] == 0
        assert payload["errors"][0]["mediaSubtype"] == "Paid TV"
        assert payload["results"]["gamePlansCreated"] == 0


# ---------------------------------------------------------------------------
# Partition replacement
# ---------------------------------------------------------------------------


class TestPartition:
    def test_existing_partition_is_backed_up_then_replaced(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        backup_service: GamePlanBackupService,
        make_row: RowFactory,
    ) -> None:
        brazil_id = seeded["brazil"].id
        _seed_plan(db, seeded, country_id=brazil_id, financial_cycle_id=BRAZIL_CYCLE_ID, budget=10.0)
        _seed_plan(db, seeded, country_id=brazil_id, financial_cycle_id=BRAZIL_CYCLE_ID, budget=20.0)

        result = import_service.run_import(
            db=db,
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert result.deleted_count == 2
        assert result.backup_file is not None
        with (backup_service.backup_dir / result.backup_file).open(encoding="utf-8") as handle:
            document = json.load(handle)
        assert document["recordCount"] == 2
        assert sorted(plan["total_budget"] for plan in document["gamePlans"]) == [10.0, 20.0]

        plans = _plans(db, country_id=brazil_id, financial_cycle_id=BRAZIL_CYCLE_ID)
        assert [plan.total_budget for plan in plans] == [pytest.approx(1000.0)]

    def test_other_partitions_are_untouched(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        brazil_id = seeded["brazil"].id
        mexico_id = seeded["mexico"].id
        _seed_plan(db, seeded, country_id=brazil_id, financial_cycle_id=BRAZIL_CYCLE_ID, budget=10.0)
        _seed_plan(db, seeded, country_id=mexico_id, financial_cycle_id=BRAZIL_CYCLE_ID, budget=30.0)
        _seed_plan(db, seeded, country_id=brazil_id, financial_cycle_id=8, budget=40.0)

        import_service.run_import(
            db=db,
            records=[make_row()],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert len(_plans(db, country_id=mexico_id, financial_cycle_id=BRAZIL_CYCLE_ID)) == 1
        assert len(_plans(db, country_id=brazil_id, financial_cycle_id=8)) == 1
        assert db.scalar(select(func.count()).select_from(GamePlan)) == 3

    def test_row_naming_another_country_lands_in_selected_partition(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        import_service.run_import(
            db=db,
            records=[make_row(Country="Mexico")],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
        )

        assert len(_plans(db, country_id=seeded["brazil"].id, financial_cycle_id=BRAZIL_CYCLE_ID)) == 1
        assert _plans(db, country_id=seeded["mexico"].id, financial_cycle_id=BRAZIL_CYCLE_ID) == []

    def test_structure_failure_aborts_before_delete(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        backup_service: GamePlanBackupService,
        make_row: RowFactory,
    ) -> None:
        brazil_id = seeded["brazil"].id
        _seed_plan(db, seeded, country_id=brazil_id, financial_cycle_id=BRAZIL_CYCLE_ID, budget=10.0)

        with pytest.raises(ImportStructureError) as excinfo:
            import_service.run_import(
                db=db,
                records=[make_row(), make_row(**{"Media Subtype": ""})],
                country="Brazil",
                financial_cycle_id=BRAZIL_CYCLE_ID,
            )

        assert excinfo.value.errors[0].row_index == 1
        assert len(_plans(db, country_id=brazil_id, financial_cycle_id=BRAZIL_CYCLE_ID)) == 1
        assert backup_service.list_backups() == []


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestConfiguration:
    @pytest.mark.parametrize(
        ("country", "cycle", "field"),
        [
            (None, BRAZIL_CYCLE_ID, "country"),
            ("  ", BRAZIL_CYCLE_ID, "country"),
            ("Atlantis", BRAZIL_CYCLE_ID, "country"),
            ("Brazil", None, "financial_cycle_id"),
            ("Brazil", "ABP 2025", "financial_cycle_id"),
            ("Brazil", 99, "financial_cycle_id"),
        ],
    )
    def test_missing_or_unknown_partition(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
        country: Any,
        cycle: Any,
        field: str,
    ) -> None:
        with pytest.raises(ImportConfigurationError) as excinfo:
            import_service.run_import(db=db, records=[make_row()], country=country, financial_cycle_id=cycle)

        assert excinfo.value.field == field
        assert db.scalar(select(func.count()).select_from(Campaign)) == 1


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


class TestProgress:
    def test_progress_is_monotonic_and_completes(
        self,
        db: Session,
        seeded: dict[str, Any],
        import_service: GamePlanImportService,
        make_row: RowFactory,
    ) -> None:
        snapshots: list[ImportProgress] = []
        _seed_plan(db, seeded, country_id=seeded["brazil"].id, financial_cycle_id=BRAZIL_CYCLE_ID, budget=10.0)

        import_service.run_import(
            db=db,
            records=[make_row(), make_row(Campaign="Winter Glow"), make_row(Campaign="Autumn Reset")],
            country="Brazil",
            financial_cycle_id=BRAZIL_CYCLE_ID,
            progress_callback=snapshots.append,
        )

        percentages = [snapshot.percentage for snapshot in snapshots]
        assert percentages == sorted(percentages)
        assert percentages[-1] == 100
        assert snapshots[-1].stage == "Import complete"
        assert any(snapshot.stage.startswith("Backing up") for snapshot in snapshots)
        assert any(snapshot.stage == "Importing game plans (3/3)" for snapshot in snapshots)

    def test_tracker_never_goes_backwards(self) -> None:
        snapshots: list[ImportProgress] = []
        tracker = ProgressTracker(snapshots.append, interval=1)

        tracker.phase("first", 40)
        tracker.phase("second", 10)
        tracker.phase("third", 150)

        assert [snapshot.percentage for snapshot in snapshots] == [40, 40, 100]

    def test_tracker_reports_every_interval_and_last_row(self) -> None:
        snapshots: list[ImportProgress] = []
        tracker = ProgressTracker(snapshots.append, interval=5)

        for position in range(1, 13):
            tracker.row(position=position, total=12, start=50, span=50, stage="Importing")

        assert [snapshot.current for snapshot in snapshots] == [5, 10, 12]
        assert snapshots[-1].percentage == 100
