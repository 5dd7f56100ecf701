"""
app/domain/master_data.py

Reference snapshot used by the game plan validator.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

DEFAULT_CAMPAIGN_ARCHETYPES: tuple[str, ...] = (
    "Innovation",
    "Base Business (Maintenance)",
    "Range Extension",
)

_YEAR_PATTERN = re.compile(r"(\d{4})")


@dataclass(frozen=True)
class MasterData:
    """
    Valid dimension values and their relationships.

    Empty collections mean "unknown": rules depending on them are skipped
    rather than reporting every value as invalid.
    """

    categories: tuple[str, ...] = ()
    ranges: tuple[str, ...] = ()
    campaigns: dict[str, str | None] = field(default_factory=dict)
    media_types: tuple[str, ...] = ()
    media_to_subtypes: dict[str, tuple[str, ...]] = field(default_factory=dict)
    category_to_ranges: dict[str, tuple[str, ...]] = field(default_factory=dict)
    range_to_campaigns: dict[str, tuple[str, ...]] = field(default_factory=dict)
    countries: dict[str, str | None] = field(default_factory=dict)
    sub_regions: tuple[str, ...] = ()
    pm_types: tuple[str, ...] = ()
    campaign_archetypes: tuple[str, ...] = DEFAULT_CAMPAIGN_ARCHETYPES
    business_units: tuple[str, ...] = ()
    selected_country: str | None = None
    cycle_name: str | None = None
    auto_create_mode: bool = True

    @property
    def abp_year(self) -> int | None:
        if not self.cycle_name:
            return None
        match = _YEAR_PATTERN.search(self.cycle_name)
        return int(match.group(1)) if match else None
