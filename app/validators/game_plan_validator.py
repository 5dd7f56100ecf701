"""
app/validators/game_plan_validator.py

Business rule validation for raw game plan records.

The validator is stateless between calls: every ``validate_all`` is a fresh
full pass over the current record set, so it is safe to re-run after each
single-cell edit in a review screen.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Mapping, Sequence

from app.domain.game_plan import IssueSeverity, ValidationIssue, ValidationSummary
from app.domain.master_data import MasterData
from app.mappers.field_resolver import (
    MONTH_FIELDS,
    column_present,
    display_name,
    resolve_logical,
    resolve_text,
)
from app.mappers.value_parsers import parse_date, parse_int, parse_numeric, stringify_value
from app.validators.structure_validator import is_empty_record

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = (
    "category",
    "range",
    "campaign",
    "campaign_archetype",
    "burst",
    "media",
    "media_subtype",
    "start_date",
    "end_date",
    "total_budget",
)

RECOMMENDED_FIELDS: tuple[str, ...] = (
    "playbook_id",
    "total_weeks",
    "total_woa",
    "total_woff",
)

TV_SUBTYPE_MARKERS: tuple[str, ...] = ("open tv", "paid tv")

R1_PLUS_SUBTYPE_MARKERS: tuple[str, ...] = (
    "pm & ff",
    "influencer amplification",
    "influencers amplification",
    "other digital",
    "open tv",
    "paid tv",
)

_DIGITAL_PM_TYPES: tuple[str, ...] = (
    "GR Only",
    "PM Advanced",
    "Full Funnel Basic",
    "Full Funnel Advanced",
    "PM & FF",
)
_TRADITIONAL_PM_TYPES: tuple[str, ...] = ("Non PM", "GR Only")

# Ordered: the first subtype marker contained in the row's subtype wins.
DEFAULT_PM_TYPE_COMBINATIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("pm & ff", _DIGITAL_PM_TYPES),
    ("influencers amplification", _DIGITAL_PM_TYPES),
    ("influencers amp.", _DIGITAL_PM_TYPES),
    ("influencers organic", ("Non PM",)),
    ("influencers org.", ("Non PM",)),
    ("influencers", _DIGITAL_PM_TYPES + ("Non PM",)),
    ("other digital", _DIGITAL_PM_TYPES + ("Non PM",)),
    ("paid search", _DIGITAL_PM_TYPES),
    ("search", _DIGITAL_PM_TYPES),
    ("open tv", _TRADITIONAL_PM_TYPES),
    ("paid tv", _TRADITIONAL_PM_TYPES),
    ("ooh", _TRADITIONAL_PM_TYPES),
    ("out of home", _TRADITIONAL_PM_TYPES),
    ("radio", _TRADITIONAL_PM_TYPES),
    ("others", _TRADITIONAL_PM_TYPES),
)

MIN_PLAN_YEAR = 2000
MAX_PLAN_YEAR = 2100
AMOUNT_TOLERANCE = 0.01

RuleCheck = Callable[["RowContext"], "str | bool | None"]


def _fold(value: str | None) -> str:
    return (value or "").strip().casefold()


@dataclass(frozen=True)
class ValidationRule:
    """
    One declarative business rule.

    ``check`` returns None/True when the row passes, False to report the
    rule's default message, or a string to report a specific message.
    Rules with ``skip_blank`` are not evaluated when the field has no value.
    """

    field: str
    rule_type: str
    severity: str
    message: str
    check: RuleCheck
    skip_blank: bool = True


class RowContext:
    """
    Read-only view of one record with memoized parsed values.
    """

    def __init__(
        self,
        *,
        record: Mapping[str, Any],
        row_index: int,
        duplicate_counts: Mapping[tuple[str, ...], int],
    ) -> None:
        self.record = record
        self.row_index = row_index
        self._duplicate_counts = duplicate_counts
        self._dates: dict[str, date | None] = {}

    def value(self, field: str) -> Any:
        return resolve_logical(self.record, field)

    def text(self, field: str) -> str | None:
        return resolve_text(self.record, field)

    def number(self, field: str) -> float | None:
        return parse_numeric(self.value(field))

    def date(self, field: str) -> date | None:
        if field not in self._dates:
            self._dates[field] = parse_date(self.value(field))
        return self._dates[field]

    def duplicate_count(self) -> int:
        return self._duplicate_counts.get(duplicate_key(self.record), 0)


def duplicate_key(record: Mapping[str, Any]) -> tuple[str, ...]:
    """
    Case-insensitive natural key of a row within one batch.

    Every row lands in the selected country and financial cycle, so only
    campaign, media subtype and flight dates tell placements apart.
    """

    start = parse_date(resolve_logical(record, "start_date"))
    end = parse_date(resolve_logical(record, "end_date"))
    return (
        _fold(resolve_text(record, "campaign")),
        _fold(resolve_text(record, "media_subtype")),
        start.isoformat() if start else "",
        end.isoformat() if end else "",
    )


class GamePlanValidator:
    """
    Applies the ordered game plan rule catalogue to raw records.
    """

    def __init__(
        self,
        master_data: MasterData | None = None,
        *,
        pm_type_combinations: Sequence[tuple[str, Sequence[str]]] = DEFAULT_PM_TYPE_COMBINATIONS,
    ) -> None:
        self._master = master_data or MasterData()
        self._pm_type_combinations = tuple(
            (marker.casefold(), tuple(allowed)) for marker, allowed in pm_type_combinations
        )

        self._categories = {_fold(name) for name in self._master.categories}
        self._ranges = {_fold(name) for name in self._master.ranges}
        self._campaign_ranges = {_fold(name): range_name for name, range_name in self._master.campaigns.items()}
        self._range_campaigns = {
            _fold(range_name): {_fold(campaign) for campaign in campaigns}
            for range_name, campaigns in self._master.range_to_campaigns.items()
        }
        self._media_types = {_fold(name) for name in self._master.media_types}
        self._media_to_subtypes = {
            _fold(media): {_fold(subtype) for subtype in subtypes}
            for media, subtypes in self._master.media_to_subtypes.items()
        }
        self._category_to_ranges = {
            _fold(category): {_fold(range_name) for range_name in ranges}
            for category, ranges in self._master.category_to_ranges.items()
        }
        self._countries = {_fold(name): sub_region for name, sub_region in self._master.countries.items()}
        self._sub_regions = {_fold(name) for name in self._master.sub_regions}
        self._pm_types = {_fold(name) for name in self._master.pm_types}
        self._archetypes = {_fold(name) for name in self._master.campaign_archetypes}
        self._business_units = {_fold(name) for name in self._master.business_units}

        self._rules = self._build_rules()

    @property
    def rules(self) -> tuple[ValidationRule, ...]:
        return self._rules

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate_all(self, records: Sequence[Mapping[str, Any]]) -> list[ValidationIssue]:
        """
        Validate every record independently; rows keep their 0-based index.
        """

        duplicate_counts = self._count_duplicate_keys(records)
        issues: list[ValidationIssue] = []
        for row_index, record in enumerate(records):
            issues.extend(self._validate_row(record, row_index, duplicate_counts))

        logger.debug("Validated %d records, %d issues", len(records), len(issues))
        return issues

    def validate_record(
        self,
        record: Mapping[str, Any],
        row_index: int,
        records: Sequence[Mapping[str, Any]] | None = None,
    ) -> list[ValidationIssue]:
        """
        Validate a single record, using ``records`` for batch-level rules.
        """

        duplicate_counts = self._count_duplicate_keys(records if records is not None else [record])
        return self._validate_row(record, row_index, duplicate_counts)

    @staticmethod
    def get_validation_summary(issues: Sequence[ValidationIssue]) -> ValidationSummary:
        severities = Counter(issue.severity for issue in issues)
        by_column = Counter(issue.column_name for issue in issues)
        return ValidationSummary(
            total=len(issues),
            critical=severities.get(IssueSeverity.CRITICAL, 0),
            warning=severities.get(IssueSeverity.WARNING, 0),
            suggestion=severities.get(IssueSeverity.SUGGESTION, 0),
            by_column=dict(by_column),
            unique_rows=len({issue.row_index for issue in issues}),
        )

    @staticmethod
    def can_import(issues: Sequence[ValidationIssue]) -> bool:
        return not any(issue.severity == IssueSeverity.CRITICAL for issue in issues)

    # ------------------------------------------------------------------
    # Row evaluation
    # ------------------------------------------------------------------

    def _validate_row(
        self,
        record: Mapping[str, Any],
        row_index: int,
        duplicate_counts: Mapping[tuple[str, ...], int],
    ) -> list[ValidationIssue]:
        if is_empty_record(record):
            return []

        row = RowContext(record=record, row_index=row_index, duplicate_counts=duplicate_counts)
        issues: list[ValidationIssue] = []

        for rule in self._rules:
            column = display_name(rule.field)
            value = row.value(rule.field)
            if rule.skip_blank and value is None:
                continue

            try:
                outcome = rule.check(row)
            except Exception as exc:  # noqa: BLE001 - a broken rule must not hide the rest
                logger.warning("Rule on %s raised at row %d: %s", column, row_index, exc)
                issues.append(
                    ValidationIssue(
                        row_index=row_index,
                        column_name=column,
                        severity=IssueSeverity.CRITICAL,
                        message=f"Validation error: {exc}",
                        current_value=stringify_value(value),
                    )
                )
                continue

            if outcome is None or outcome is True:
                continue
            issues.append(
                ValidationIssue(
                    row_index=row_index,
                    column_name=column,
                    severity=rule.severity,
                    message=outcome if isinstance(outcome, str) else rule.message,
                    current_value=stringify_value(value),
                )
            )

        return issues

    def _count_duplicate_keys(
        self,
        records: Sequence[Mapping[str, Any]],
    ) -> dict[tuple[str, ...], int]:
        counts: Counter[tuple[str, ...]] = Counter()
        for record in records:
            if is_empty_record(record) or resolve_text(record, "campaign") is None:
                continue
            counts[duplicate_key(record)] += 1
        return dict(counts)

    # ------------------------------------------------------------------
    # Rule catalogue
    # ------------------------------------------------------------------

    def _build_rules(self) -> tuple[ValidationRule, ...]:
        auto_create = self._master.auto_create_mode
        relationship_severity = IssueSeverity.WARNING if auto_create else IssueSeverity.CRITICAL
        unknown_campaign_severity = IssueSeverity.SUGGESTION if auto_create else IssueSeverity.CRITICAL

        rules: list[ValidationRule] = []

        for field in REQUIRED_FIELDS:
            rules.append(
                ValidationRule(
                    field=field,
                    rule_type="required",
                    severity=IssueSeverity.CRITICAL,
                    message=f"{display_name(field)} is required",
                    check=self._required_check(field),
                    skip_blank=False,
                )
            )
        for field in RECOMMENDED_FIELDS:
            rules.append(
                ValidationRule(
                    field=field,
                    rule_type="required",
                    severity=IssueSeverity.WARNING,
                    message=f"{display_name(field)} should be provided",
                    check=self._required_check(field),
                    skip_blank=False,
                )
            )

        rules.extend(
            [
                ValidationRule(
                    field="start_date",
                    rule_type="format",
                    severity=IssueSeverity.CRITICAL,
                    message="Initial Date has an unsupported date format (use YYYY-MM-DD or DD-Mon-YY)",
                    check=lambda row: row.date("start_date") is not None,
                ),
                ValidationRule(
                    field="end_date",
                    rule_type="format",
                    severity=IssueSeverity.CRITICAL,
                    message="End Date has an unsupported date format (use YYYY-MM-DD or DD-Mon-YY)",
                    check=lambda row: row.date("end_date") is not None,
                ),
                ValidationRule(
                    field="end_date",
                    rule_type="consistency",
                    severity=IssueSeverity.CRITICAL,
                    message="End Date must not be before Initial Date",
                    check=self._check_date_order,
                ),
                ValidationRule(
                    field="end_date",
                    rule_type="consistency",
                    severity=IssueSeverity.CRITICAL,
                    message="Initial Date and End Date must be in the same year",
                    check=self._check_same_year,
                ),
                ValidationRule(
                    field="start_date",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Initial Date year must match the financial cycle year",
                    check=self._abp_year_check("start_date"),
                ),
                ValidationRule(
                    field="end_date",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="End Date year must match the financial cycle year",
                    check=self._abp_year_check("end_date"),
                ),
                ValidationRule(
                    field="year",
                    rule_type="format",
                    severity=IssueSeverity.CRITICAL,
                    message=f"Year must be a whole number between {MIN_PLAN_YEAR} and {MAX_PLAN_YEAR}",
                    check=self._check_year_range,
                ),
                ValidationRule(
                    field="year",
                    rule_type="consistency",
                    severity=IssueSeverity.WARNING,
                    message="Year does not match the Initial Date year",
                    check=self._check_year_matches_dates,
                ),
                ValidationRule(
                    field="total_budget",
                    rule_type="format",
                    severity=IssueSeverity.CRITICAL,
                    message="Total Budget must be a valid number greater than zero",
                    check=lambda row: (row.number("total_budget") or 0) > 0,
                ),
                ValidationRule(
                    field="total_budget",
                    rule_type="consistency",
                    severity=IssueSeverity.CRITICAL,
                    message="Total Budget should equal the sum of monthly budgets (Jan-Dec)",
                    check=self._check_monthly_distribution,
                ),
            ]
        )

        for month in MONTH_FIELDS:
            rules.append(
                ValidationRule(
                    field=month,
                    rule_type="format",
                    severity=IssueSeverity.CRITICAL,
                    message=f"{display_name(month)} budget must be a non-negative number",
                    check=self._non_negative_check(month),
                )
            )

        rules.extend(
            [
                ValidationRule(
                    field="total_woff",
                    rule_type="consistency",
                    severity=IssueSeverity.CRITICAL,
                    message="Total WOFF should equal Total Weeks minus Total WOA",
                    check=self._check_weeks_off_air,
                ),
                ValidationRule(
                    field="burst",
                    rule_type="format",
                    severity=IssueSeverity.CRITICAL,
                    message="Burst must be a whole number of at least 1",
                    check=lambda row: (parse_int(row.value("burst")) or 0) >= 1,
                ),
                ValidationRule(
                    field="category",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Category does not exist in master data",
                    check=self._known_check(self._categories, "category"),
                ),
                ValidationRule(
                    field="range",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Range does not exist; ranges must be configured before import",
                    check=self._known_check(self._ranges, "range"),
                ),
                ValidationRule(
                    field="range",
                    rule_type="relationship",
                    severity=relationship_severity,
                    message="Range is not linked to the selected Category",
                    check=self._check_range_in_category,
                ),
                ValidationRule(
                    field="campaign",
                    rule_type="relationship",
                    severity=unknown_campaign_severity,
                    message="Campaign does not exist yet and will be created during import",
                    check=self._check_campaign_known,
                ),
                ValidationRule(
                    field="campaign",
                    rule_type="relationship",
                    severity=IssueSeverity.WARNING,
                    message="Campaign exists but is linked to a different range",
                    check=self._check_campaign_range,
                ),
                ValidationRule(
                    field="campaign",
                    rule_type="uniqueness",
                    severity=IssueSeverity.WARNING,
                    message="Duplicate row: the same campaign, media subtype and dates appear more "
                    "than once; later rows overwrite earlier ones",
                    check=lambda row: row.duplicate_count() <= 1,
                ),
                ValidationRule(
                    field="media",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Media is not a valid media type",
                    check=self._known_check(self._media_types, "media"),
                ),
                ValidationRule(
                    field="media_subtype",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Media Subtype is not valid for the selected Media",
                    check=self._check_subtype_for_media,
                ),
                ValidationRule(
                    field="pm_type",
                    rule_type="relationship",
                    severity=IssueSeverity.WARNING,
                    message="PM Type does not exist in master data",
                    check=self._known_check(self._pm_types, "pm_type"),
                ),
                ValidationRule(
                    field="pm_type",
                    rule_type="relationship",
                    severity=IssueSeverity.WARNING,
                    message="Invalid PM Type for the selected Media Subtype",
                    check=self._check_pm_type_combination,
                ),
                ValidationRule(
                    field="campaign_archetype",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Campaign Archetype must be one of: " + ", ".join(self._master.campaign_archetypes),
                    check=self._known_check(self._archetypes, "campaign_archetype"),
                ),
                ValidationRule(
                    field="total_trps",
                    rule_type="requirement",
                    severity=IssueSeverity.CRITICAL,
                    message="Total TRPs is required for TV campaigns and must be a positive number",
                    check=self._check_tv_trps,
                    skip_blank=False,
                ),
                ValidationRule(
                    field="total_trps",
                    rule_type="requirement",
                    severity=IssueSeverity.WARNING,
                    message="Total TRPs should only be used for TV media subtypes",
                    check=self._check_trps_only_on_tv,
                ),
                ValidationRule(
                    field="r1_plus",
                    rule_type="requirement",
                    severity=IssueSeverity.CRITICAL,
                    message="Total R1+ (%) is required for this Media Subtype",
                    check=self._reach_required_check("r1_plus", R1_PLUS_SUBTYPE_MARKERS),
                    skip_blank=False,
                ),
                ValidationRule(
                    field="r3_plus",
                    rule_type="requirement",
                    severity=IssueSeverity.CRITICAL,
                    message="Total R3+ (%) is required for TV campaigns",
                    check=self._reach_required_check("r3_plus", TV_SUBTYPE_MARKERS),
                    skip_blank=False,
                ),
                ValidationRule(
                    field="r1_plus",
                    rule_type="format",
                    severity=IssueSeverity.CRITICAL,
                    message="Total R1+ (%) must be a valid percentage (0-100%)",
                    check=self._percentage_check("r1_plus"),
                ),
                ValidationRule(
                    field="r3_plus",
                    rule_type="format",
                    severity=IssueSeverity.CRITICAL,
                    message="Total R3+ (%) must be a valid percentage (0-100%)",
                    check=self._percentage_check("r3_plus"),
                ),
                ValidationRule(
                    field="country",
                    rule_type="relationship",
                    severity=IssueSeverity.WARNING,
                    message="Country is empty and will be set to the selected country",
                    check=self._check_country_present,
                    skip_blank=False,
                ),
                ValidationRule(
                    field="country",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Country does not match the selected country",
                    check=self._check_country_matches_selection,
                ),
                ValidationRule(
                    field="country",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Country does not exist in master data",
                    check=self._known_check(set(self._countries), "country"),
                ),
                ValidationRule(
                    field="sub_region",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Sub Region does not exist in master data",
                    check=self._known_check(self._sub_regions, "sub_region"),
                ),
                ValidationRule(
                    field="sub_region",
                    rule_type="relationship",
                    severity=IssueSeverity.CRITICAL,
                    message="Sub Region does not match the country",
                    check=self._check_sub_region_for_country,
                ),
                ValidationRule(
                    field="business_unit",
                    rule_type="relationship",
                    severity=IssueSeverity.SUGGESTION,
                    message="Business Unit does not exist yet and will be created during import",
                    check=self._known_check(self._business_units, "business_unit"),
                ),
            ]
        )

        for field in ("campaign", "range", "category", "media_subtype"):
            rules.append(
                ValidationRule(
                    field=field,
                    rule_type="cosmetic",
                    severity=IssueSeverity.SUGGESTION,
                    message=f"{display_name(field)} has leading or trailing spaces that will be trimmed",
                    check=self._whitespace_check(field),
                )
            )

        return tuple(rules)

    # ------------------------------------------------------------------
    # Rule implementations
    # ------------------------------------------------------------------

    @staticmethod
    def _required_check(field: str) -> RuleCheck:
        def check(row: RowContext) -> str | bool:
            if not column_present(row.record, field):
                return f"Missing required column '{display_name(field)}'"
            return row.value(field) is not None

        return check

    @staticmethod
    def _known_check(known: set[str], field: str) -> RuleCheck:
        def check(row: RowContext) -> str | bool:
            if not known:
                return True
            value = row.text(field)
            if _fold(value) in known:
                return True
            return False

        return check

    @staticmethod
    def _non_negative_check(field: str) -> RuleCheck:
        def check(row: RowContext) -> bool:
            amount = row.number(field)
            return amount is not None and amount >= 0

        return check

    @staticmethod
    def _whitespace_check(field: str) -> RuleCheck:
        def check(row: RowContext) -> bool:
            value = row.value(field)
            return not isinstance(value, str) or value == value.strip()

        return check

    @staticmethod
    def _check_date_order(row: RowContext) -> bool:
        start = row.date("start_date")
        end = row.date("end_date")
        if start is None or end is None:
            return True
        return end >= start

    @staticmethod
    def _check_same_year(row: RowContext) -> bool:
        start = row.date("start_date")
        end = row.date("end_date")
        if start is None or end is None:
            return True
        return start.year == end.year

    def _abp_year_check(self, field: str) -> RuleCheck:
        abp_year = self._master.abp_year

        def check(row: RowContext) -> str | bool:
            parsed = row.date(field)
            if abp_year is None or parsed is None:
                return True
            if parsed.year == abp_year:
                return True
            return (
                f"{display_name(field)} year {parsed.year} does not match the "
                f"financial cycle year {abp_year}"
            )

        return check

    @staticmethod
    def _check_year_range(row: RowContext) -> bool:
        year = parse_int(row.value("year"))
        return year is not None and MIN_PLAN_YEAR <= year <= MAX_PLAN_YEAR

    @staticmethod
    def _check_year_matches_dates(row: RowContext) -> bool:
        year = parse_int(row.value("year"))
        start = row.date("start_date")
        if year is None or start is None:
            return True
        return year == start.year

    @staticmethod
    def _check_monthly_distribution(row: RowContext) -> str | bool:
        total = row.number("total_budget")
        if total is None or total <= 0:
            return True
        if not any(column_present(row.record, month) for month in MONTH_FIELDS):
            return True

        months = [row.number(month) or 0.0 for month in MONTH_FIELDS]
        month_sum = sum(months)
        if abs(month_sum - total) < AMOUNT_TOLERANCE:
            return True

        non_zero = [amount for amount in months if amount != 0]
        if len(non_zero) == 1 and abs(non_zero[0] - total) < AMOUNT_TOLERANCE:
            return True
        return f"Total Budget {total:g} does not equal the sum of monthly budgets {month_sum:g}"

    @staticmethod
    def _check_weeks_off_air(row: RowContext) -> str | bool:
        woff = row.number("total_woff")
        weeks = row.number("total_weeks")
        woa = row.number("total_woa")
        if woff is None or weeks is None or woa is None:
            return True
        expected = weeks - woa
        if abs(woff - expected) < AMOUNT_TOLERANCE:
            return True
        return f"Total WOFF should be {expected:g} (Total Weeks {weeks:g} - Total WOA {woa:g})"

    def _check_range_in_category(self, row: RowContext) -> bool:
        category = _fold(row.text("category"))
        ranges = self._category_to_ranges.get(category)
        if not category or not ranges:
            return True
        return _fold(row.text("range")) in ranges

    def _check_campaign_known(self, row: RowContext) -> bool:
        if not self._campaign_ranges:
            return True
        return _fold(row.text("campaign")) in self._campaign_ranges

    def _check_campaign_range(self, row: RowContext) -> str | bool:
        campaign = row.text("campaign")
        expected_range = row.text("range")
        linked_range = self._campaign_ranges.get(_fold(campaign))
        if not expected_range or not linked_range:
            return True
        if _fold(campaign) in self._range_campaigns.get(_fold(expected_range), ()):
            return True
        if _fold(linked_range) == _fold(expected_range):
            return True
        return (
            f"Campaign '{campaign}' exists but is linked to range '{linked_range}', "
            f"not '{expected_range}'"
        )

    def _check_subtype_for_media(self, row: RowContext) -> bool:
        media = _fold(row.text("media"))
        subtypes = self._media_to_subtypes.get(media)
        if not media or not subtypes:
            return True
        return _fold(row.text("media_subtype")) in subtypes

    def _check_pm_type_combination(self, row: RowContext) -> str | bool:
        pm_type = row.text("pm_type")
        subtype = _fold(row.text("media_subtype"))
        if not pm_type or not subtype:
            return True
        for marker, allowed in self._pm_type_combinations:
            if marker in subtype:
                if _fold(pm_type) in {_fold(name) for name in allowed}:
                    return True
                return (
                    f"PM Type '{pm_type}' is not valid for Media Subtype "
                    f"'{row.text('media_subtype')}'. Allowed PM Types: {', '.join(allowed)}"
                )
        return True

    @staticmethod
    def _is_tv(row: RowContext) -> bool:
        subtype = _fold(row.text("media_subtype"))
        return any(marker in subtype for marker in TV_SUBTYPE_MARKERS)

    def _check_tv_trps(self, row: RowContext) -> str | bool:
        if not self._is_tv(row):
            return True
        trps = row.number("total_trps")
        if trps is None:
            return (
                f"Total TRPs is required for TV campaign with Media Subtype "
                f"'{row.text('media_subtype')}'"
            )
        return trps > 0

    def _check_trps_only_on_tv(self, row: RowContext) -> bool:
        if self._is_tv(row):
            return True
        trps = row.number("total_trps")
        return trps is None or trps == 0

    @staticmethod
    def _reach_required_check(field: str, markers: tuple[str, ...]) -> RuleCheck:
        def check(row: RowContext) -> bool:
            subtype = _fold(row.text("media_subtype"))
            if not any(marker in subtype for marker in markers):
                return True
            return row.value(field) is not None

        return check

    @staticmethod
    def _percentage_check(field: str) -> RuleCheck:
        def check(row: RowContext) -> bool:
            raw = row.value(field)
            amount = parse_numeric(str(raw).replace("%", ""))
            if amount is None or not 0 <= amount <= 100:
                return False
            fraction = parse_numeric(raw, is_reach_value=True)
            return fraction is not None and 0 <= fraction <= 1

        return check

    def _check_country_present(self, row: RowContext) -> bool:
        if not self._master.selected_country:
            return True
        return row.text("country") is not None

    def _check_country_matches_selection(self, row: RowContext) -> str | bool:
        selected = self._master.selected_country
        country = row.text("country")
        if not selected or country is None:
            return True
        if _fold(country) == _fold(selected):
            return True
        return f"Country '{country}' does not match the selected country '{selected}'"

    def _check_sub_region_for_country(self, row: RowContext) -> str | bool:
        country = row.text("country") or self._master.selected_country
        expected = self._countries.get(_fold(country))
        sub_region = row.text("sub_region")
        if not expected or sub_region is None:
            return True
        if _fold(expected) == _fold(sub_region):
            return True
        return f"Sub Region '{sub_region}' does not match '{expected}' expected for {country}"
