"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.financial_cycle import FinancialCycle
from db.models.game_plan import GamePlan
from db.models.geography import Country, Region, SubRegion
from db.models.import_run import ImportRun
from db.models.media import MediaSubType, MediaType, PMType
from db.models.taxonomy import (
    BusinessUnit,
    Campaign,
    CampaignArchetype,
    Category,
    CategoryRange,
    Range,
)

__all__ = [
    "BusinessUnit",
    "Campaign",
    "CampaignArchetype",
    "Category",
    "CategoryRange",
    "Country",
    "FinancialCycle",
    "GamePlan",
    "ImportRun",
    "MediaSubType",
    "MediaType",
    "PMType",
    "Range",
    "Region",
    "SubRegion",
]
