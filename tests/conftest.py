"""
tests/conftest.py

Shared fixtures: an in-memory SQLite store with the full ORM schema, seeded
master data, and import services wired to a temporary backup directory.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401 registers every table on Base.metadata
from app.config import GamePlanImportSettings
from app.services.backup_service import GamePlanBackupService
from app.services.game_plan_import_service import GamePlanImportService
from db.base import Base
from db.models import (
    Campaign,
    CampaignArchetype,
    Category,
    CategoryRange,
    Country,
    FinancialCycle,
    MediaSubType,
    MediaType,
    PMType,
    Range,
    Region,
    SubRegion,
)

BRAZIL_CYCLE_ID = 7


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def seeded(db: Session) -> dict[str, Any]:
    """Master data for Brazil / cycle 7 with one configured range."""
    latam = Region(name="LATAM")
    db.add(latam)
    db.flush()
    south_america = SubRegion(name="South America", region_id=latam.id)
    db.add(south_america)
    db.flush()
    brazil = Country(name="Brazil", region_id=latam.id, sub_region_id=south_america.id)
    mexico = Country(name="Mexico", region_id=latam.id)
    cycle = FinancialCycle(id=BRAZIL_CYCLE_ID, name="ABP 2025")
    other_cycle = FinancialCycle(id=8, name="ABP 2026")
    skincare = Range(name="SkinCare")
    haircare = Range(name="HairCare")
    face_care = Category(name="Face Care")
    tv = MediaType(name="TV")
    digital = MediaType(name="Digital")
    db.add_all([brazil, mexico, cycle, other_cycle, skincare, haircare, face_care, tv, digital])
    db.flush()
    db.add(CategoryRange(category_id=face_care.id, range_id=skincare.id))
    paid_tv = MediaSubType(name="Paid TV", media_type_id=tv.id)
    search = MediaSubType(name="Paid Search", media_type_id=digital.id)
    db.add_all(
        [
            paid_tv,
            search,
            PMType(name="Non PM"),
            PMType(name="GR Only"),
            PMType(name="PM & FF"),
            CampaignArchetype(name="Innovation"),
            Campaign(name="Winter Glow", range_id=skincare.id, status="active"),
        ]
    )
    db.commit()
    return {
        "region": latam,
        "brazil": brazil,
        "mexico": mexico,
        "cycle": cycle,
        "other_cycle": other_cycle,
        "skincare": skincare,
        "face_care": face_care,
        "paid_tv": paid_tv,
    }


@pytest.fixture()
def import_settings(tmp_path: Path) -> GamePlanImportSettings:
    return GamePlanImportSettings(
        backup_dir=str(tmp_path / "backups"),
        progress_interval=1,
        log_row_errors=False,
    )


@pytest.fixture()
def backup_service(import_settings: GamePlanImportSettings) -> GamePlanBackupService:
    return GamePlanBackupService(backup_dir=import_settings.backup_dir)


@pytest.fixture()
def import_service(
    import_settings: GamePlanImportSettings,
    backup_service: GamePlanBackupService,
) -> GamePlanImportService:
    return GamePlanImportService(settings=import_settings, backup_service=backup_service)


def _make_row(**overrides: Any) -> dict[str, Any]:
    """A valid Paid TV game plan row for Brazil, ABP 2025."""
    row: dict[str, Any] = {
        "Campaign": "Summer Push",
        "Range": "SkinCare",
        "Category": "Face Care",
        "Media": "TV",
        "Media Subtype": "Paid TV",
        "PM Type": "Non PM",
        "Campaign Archetype": "Innovation",
        "Burst": "1",
        "Initial Date": "2025-01-01",
        "End Date": "2025-01-15",
        "Total Budget": "1000",
        "Total TRPs": "150",
        "Total R1+ (%)": "45%",
        "Total R3+ (%)": "20",
        "Country": "Brazil",
    }
    row.update(overrides)
    return row


@pytest.fixture()
def make_row() -> Callable[..., dict[str, Any]]:
    return _make_row
