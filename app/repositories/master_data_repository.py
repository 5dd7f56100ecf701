"""
app/repositories/master_data_repository.py

Builds the validation master data snapshot from the dimension tables.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Sequence

from sqlalchemy.orm import Session

from app.domain.master_data import DEFAULT_CAMPAIGN_ARCHETYPES, MasterData
from app.repositories.dimension_repository import DimensionRepository
from db.models.financial_cycle import FinancialCycle
from db.models.geography import Country, SubRegion
from db.models.media import MediaSubType, MediaType, PMType
from db.models.taxonomy import (
    BusinessUnit,
    Campaign,
    CampaignArchetype,
    Category,
    Range,
)


class MasterDataRepository:
    """
    Read-only snapshot builder over the dimension tables.
    """

    def __init__(self, session: Session) -> None:
        self._dimensions = DimensionRepository(session)

    def build_snapshot(
        self,
        *,
        selected_country: str | None = None,
        financial_cycle_id: int | None = None,
        auto_create_mode: bool = True,
        campaign_archetypes: Sequence[str] = DEFAULT_CAMPAIGN_ARCHETYPES,
    ) -> MasterData:
        dims = self._dimensions

        ranges = dims.list_all(Range)
        range_names = {row.id: row.name for row in ranges}
        categories = dims.list_all(Category)
        category_names = {row.id: row.name for row in categories}
        campaigns = dims.list_all(Campaign)

        category_to_ranges: dict[str, list[str]] = defaultdict(list)
        for link in dims.list_category_ranges():
            category = category_names.get(link.category_id)
            range_name = range_names.get(link.range_id)
            if category and range_name:
                category_to_ranges[category].append(range_name)

        range_to_campaigns: dict[str, list[str]] = defaultdict(list)
        for campaign in campaigns:
            range_name = range_names.get(campaign.range_id) if campaign.range_id else None
            if range_name:
                range_to_campaigns[range_name].append(campaign.name)

        media_types = dims.list_all(MediaType)
        media_type_names = {row.id: row.name for row in media_types}
        media_to_subtypes: dict[str, list[str]] = defaultdict(list)
        for subtype in dims.list_all(MediaSubType):
            media_name = media_type_names.get(subtype.media_type_id)
            if media_name:
                media_to_subtypes[media_name].append(subtype.name)

        sub_regions = dims.list_all(SubRegion)
        sub_region_names = {row.id: row.name for row in sub_regions}

        archetypes = list(campaign_archetypes)
        known = {name.casefold() for name in archetypes}
        for row in dims.list_all(CampaignArchetype):
            if row.name.casefold() not in known:
                archetypes.append(row.name)

        cycle_name = None
        if financial_cycle_id is not None:
            cycle = dims.get(FinancialCycle, financial_cycle_id)
            cycle_name = cycle.name if cycle is not None else None

        return MasterData(
            categories=tuple(category_names.values()),
            ranges=tuple(range_names.values()),
            campaigns={
                campaign.name: range_names.get(campaign.range_id) if campaign.range_id else None
                for campaign in campaigns
            },
            media_types=tuple(media_type_names.values()),
            media_to_subtypes={name: tuple(values) for name, values in media_to_subtypes.items()},
            category_to_ranges={name: tuple(values) for name, values in category_to_ranges.items()},
            range_to_campaigns={name: tuple(values) for name, values in range_to_campaigns.items()},
            countries={
                country.name: sub_region_names.get(country.sub_region_id) if country.sub_region_id else None
                for country in dims.list_all(Country)
            },
            sub_regions=tuple(sub_region_names.values()),
            pm_types=tuple(row.name for row in dims.list_all(PMType)),
            campaign_archetypes=tuple(archetypes),
            business_units=tuple(row.name for row in dims.list_all(BusinessUnit)),
            selected_country=selected_country,
            cycle_name=cycle_name,
            auto_create_mode=auto_create_mode,
        )
