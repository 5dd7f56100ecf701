"""
app/mappers/field_resolver.py

Synonym-based column resolution for raw game plan records.

Source spreadsheets spell the same business field several ways
("Initial Date", "Start Date", "StartDate"). Every component reads record
values through this module instead of indexing the record directly.
"""

from __future__ import annotations

from typing import Any, Mapping

MONTH_FIELDS: tuple[str, ...] = (
    "jan",
    "feb",
    "mar",
    "apr",
    "may",
    "jun",
    "jul",
    "aug",
    "sep",
    "oct",
    "nov",
    "dec",
)

_MONTH_NAMES: dict[str, str] = {
    "jan": "January",
    "feb": "February",
    "mar": "March",
    "apr": "April",
    "may": "May",
    "jun": "June",
    "jul": "July",
    "aug": "August",
    "sep": "September",
    "oct": "October",
    "nov": "November",
    "dec": "December",
}

# The first synonym of each entry is the canonical header used in diagnostics.
FIELD_SYNONYMS: dict[str, tuple[str, ...]] = {
    "category": ("Category", "Product Category", "CATEGORY"),
    "range": ("Range", "Range Name", "RANGE"),
    "campaign": ("Campaign", "Campaign Name", "CAMPAIGN"),
    "playbook_id": ("Playbook ID", "PlaybookID", "Playbook Id", "PLAYBOOKID", "Playbook_ID"),
    "campaign_archetype": ("Campaign Archetype", "CampaignArchetype", "Archetype"),
    "burst": ("Burst", "BURST"),
    "media": ("Media", "Media Type", "MediaType", "MEDIA"),
    "media_subtype": (
        "Media Subtype",
        "Media Sub Type",
        "Media SubType",
        "MediaSubtype",
        "Media_Subtype",
    ),
    "pm_type": ("PM Type", "PMType", "PM_Type"),
    "start_date": ("Initial Date", "Start Date", "StartDate", "Start_Date"),
    "end_date": ("End Date", "EndDate", "End_Date"),
    "year": ("Year", "YEAR"),
    "total_weeks": ("Total Weeks", "TotalWeeks", "Total_Weeks"),
    "total_budget": ("Total Budget", "Budget", "TotalBudget", "BUDGET"),
    "total_woa": ("Total WOA", "TotalWOA", "TOTAL_WOA", "Total_WOA", "Weeks On Air"),
    "total_woff": (
        "Total WOFF",
        "TotalWOFF",
        "Total_WOFF",
        "Weeks Off Air",
        "WeeksOffAir",
        "Weeks_Off_Air",
        "W Off Air",
    ),
    "total_trps": ("Total TRPs", "TotalTRPs", "TRPs", "TRPS"),
    "r1_plus": ("Total R1+ (%)", "Total R1+", "R1+ (%)", "R1+", "Reach 1+"),
    "r3_plus": ("Total R3+ (%)", "Total R3+", "R3+ (%)", "R3+", "Reach 3+"),
    "ns_vs_wm": ("NS vs WM", "NSvsWM", "NS_vs_WM"),
    "country": ("Country", "COUNTRY", "Country Name"),
    "region": (
        "Region",
        "REGION",
        "RegionName",
        "Region Name",
        "region_name",
        "Global Region",
    ),
    "sub_region": ("Sub Region", "Sub-Region", "SubRegion", "SUBREGION", "Sub_Region"),
    "business_unit": ("Business Unit", "BusinessUnit", "BU", "BUSINESSUNIT"),
    "financial_cycle": (
        "Financial Cycle",
        "FinancialCycle",
        "Last Update",
        "LastUpdate",
        "Cycle",
        "Period",
        "Financial Period",
        "Fiscal Period",
        "Fiscal Cycle",
    ),
}

for _month in MONTH_FIELDS:
    _title = _month.capitalize()
    FIELD_SYNONYMS[_month] = (_title, f"{_title} Budget", _MONTH_NAMES[_month], f"{_title}Budget")


def normalize_header(header: str) -> str:
    """
    Normalize a column name for tolerant matching.
    """

    return "".join(ch for ch in str(header).strip().lower() if ch.isalnum() or ch in "+%")


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def resolve_field(record: Mapping[str, Any], *names: str) -> Any:
    """
    Return the value of the first candidate column holding a value.

    Exact header matches win over normalized matches, and candidates are
    tried in the order given. Blank strings count as absent.
    """

    for name in names:
        if name in record and _has_value(record[name]):
            return record[name]

    normalized_record: dict[str, Any] = {}
    for key, value in record.items():
        normalized_record.setdefault(normalize_header(key), value)

    for name in names:
        value = normalized_record.get(normalize_header(name))
        if _has_value(value):
            return value
    return None


def resolve_logical(record: Mapping[str, Any], field: str) -> Any:
    """
    Resolve a logical field (a FIELD_SYNONYMS key) from a raw record.
    """

    return resolve_field(record, *FIELD_SYNONYMS[field])


def resolve_text(record: Mapping[str, Any], field: str) -> str | None:
    """
    Resolve a logical field as stripped text, or None when absent.
    """

    value = resolve_logical(record, field)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def column_present(record: Mapping[str, Any], field: str) -> bool:
    """
    Return True when any synonym header of the field exists in the record,
    regardless of whether it holds a value.
    """

    synonyms = FIELD_SYNONYMS[field]
    if any(name in record for name in synonyms):
        return True
    normalized_keys = {normalize_header(key) for key in record}
    return any(normalize_header(name) in normalized_keys for name in synonyms)


def display_name(field: str) -> str:
    """
    Canonical header for a logical field.
    """

    return FIELD_SYNONYMS[field][0]
