"""
app/api/dependencies.py

Shared FastAPI dependencies for game plan endpoints.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import ValidationSettings, get_validation_settings
from app.repositories.dimension_repository import DimensionRepository
from app.repositories.master_data_repository import MasterDataRepository
from app.validators.game_plan_validator import GamePlanValidator
from db.models.geography import Country
from db.session import get_db


class GamePlanValidatorFactory:
    """
    Builds a validator over a fresh master data snapshot per request.
    """

    def __init__(self, *, db: Session, settings: ValidationSettings) -> None:
        self._repository = MasterDataRepository(db)
        self._dimensions = DimensionRepository(db)
        self._settings = settings

    def build(
        self,
        *,
        country: str | int | None = None,
        financial_cycle_id: int | None = None,
    ) -> GamePlanValidator:
        master_data = self._repository.build_snapshot(
            selected_country=self._country_name(country),
            financial_cycle_id=financial_cycle_id,
            auto_create_mode=self._settings.auto_create_mode,
            campaign_archetypes=self._settings.campaign_archetypes,
        )
        return GamePlanValidator(master_data)

    def _country_name(self, country: str | int | None) -> str | None:
        # Rows name their country, so a selection given by id is compared by name.
        if country is None:
            return None
        text = str(country).strip()
        if text.isdigit():
            row = self._dimensions.get(Country, int(text))
            if row is not None:
                return row.name
        return text or None


def get_validator_factory(
    db: Session = Depends(get_db),
    settings: ValidationSettings = Depends(get_validation_settings),
) -> GamePlanValidatorFactory:
    return GamePlanValidatorFactory(db=db, settings=settings)
