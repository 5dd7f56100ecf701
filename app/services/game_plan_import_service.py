"""
app/services/game_plan_import_service.py

Replace-partition import of game plan records.

Phases, in order:

    1. configuration + structure checks (nothing destructive yet)
    2. backup of the existing (country, financial cycle) partition
    3. delete of that partition
    4. range lookup + category linking, then campaign resolution
    5. per-row dimension materialization            (progress 0-50%)
    6. date validation
    7. per-row natural-key upsert of fact rows       (progress 50-100%)

Row-level failures are recorded in the ImportResult ledger and never abort
the batch. Configuration, structure and backup failures abort the run
before any row is touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Mapping, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import GamePlanImportSettings, get_game_plan_import_settings
from app.domain.game_plan import (
    ImportErrorCategory,
    ImportProgress,
    ImportResult,
    ImportRowError,
    ResolvedEntity,
)
from app.mappers.field_resolver import MONTH_FIELDS, resolve_logical, resolve_text
from app.mappers.value_parsers import parse_date, parse_int, parse_numeric, weeks_between
from app.repositories.dimension_repository import DimensionRepository
from app.repositories.game_plan_repository import GamePlanRepository
from app.services.backup_service import GamePlanBackupService, get_game_plan_backup_service
from app.services.entity_resolver import EntityResolutionError, EntityResolver
from app.validators.structure_validator import StructureValidator, is_empty_record
from db.models.financial_cycle import FinancialCycle
from db.models.game_plan import MONTH_BUDGET_COLUMNS
from db.models.geography import Country

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ImportProgress], None]
T = TypeVar("T")

# Dimension key in ImportResult.created_counts for each resolver dimension.
CREATED_COUNT_KEYS: dict[str, str] = {
    "campaign": "campaign",
    "category": "category",
    "media_subtype": "mediaSubtype",
    "media_type": "mediaType",
    "pm_type": "pmType",
    "campaign_archetype": "campaignArchetype",
    "business_unit": "businessUnit",
    "region": "region",
    "sub_region": "subRegion",
    "country": "country",
}


class ImportConfigurationError(ValueError):
    """
    Raised when the import target partition is missing or unknown.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {"message": str(self), "field": self.field}


@dataclass(frozen=True)
class ImportPartition:
    country_id: int
    country_name: str
    financial_cycle_id: int
    financial_cycle_name: str


@dataclass
class RowDimensions:
    """
    Resolved foreign keys for one record.
    """

    campaign_id: int | None = None
    media_sub_type_id: int | None = None
    pm_type_id: int | None = None
    campaign_archetype_id: int | None = None
    region_id: int | None = None
    sub_region_id: int | None = None
    business_unit_id: int | None = None
    category_id: int | None = None
    range_id: int | None = None


class ProgressTracker:
    """
    Emits ImportProgress snapshots whose percentage never decreases.
    """

    def __init__(self, callback: ProgressCallback | None, *, interval: int = 5) -> None:
        self._callback = callback
        self._interval = max(1, interval)
        self._percentage = 0
        self.last: ImportProgress | None = None

    def report(self, *, current: int, total: int, percentage: int, stage: str) -> None:
        self._percentage = max(self._percentage, min(100, max(0, int(percentage))))
        self.last = ImportProgress(current=current, total=total, percentage=self._percentage, stage=stage)
        if self._callback is not None:
            self._callback(self.last)

    def phase(self, stage: str, percentage: int, *, total: int = 0) -> None:
        current = self.last.current if self.last is not None else 0
        self.report(current=current, total=total, percentage=percentage, stage=stage)

    def row(self, *, position: int, total: int, start: int, span: int, stage: str) -> None:
        """
        Report row ``position`` (1-based) of a scan mapped onto [start, start + span].
        """

        if position % self._interval != 0 and position != total:
            return
        fraction = position / total if total else 1.0
        self.report(
            current=position,
            total=total,
            percentage=start + int(fraction * span),
            stage=f"{stage} ({position}/{total})",
        )


def _fold(value: str | None) -> str:
    return (value or "").strip().casefold()


class GamePlanImportService:
    """
    Runs one replace-partition import of raw game plan records.
    """

    def __init__(
        self,
        *,
        settings: GamePlanImportSettings,
        backup_service: GamePlanBackupService,
        structure_validator: StructureValidator | None = None,
    ) -> None:
        self._settings = settings
        self._backup_service = backup_service
        self._structure_validator = structure_validator or StructureValidator()

    @property
    def settings(self) -> GamePlanImportSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Partition
    # ------------------------------------------------------------------

    def resolve_partition(
        self,
        *,
        db: Session,
        country: str | int | None,
        financial_cycle_id: int | str | None,
    ) -> ImportPartition:
        """
        Resolve the target partition; the country may be a name or an id.
        """

        if country is None or not str(country).strip():
            raise ImportConfigurationError("A country must be selected before importing.", field="country")
        if financial_cycle_id is None or not str(financial_cycle_id).strip():
            raise ImportConfigurationError(
                "A financial cycle must be selected before importing.",
                field="financial_cycle_id",
            )

        dimensions = DimensionRepository(db)
        country_text = str(country).strip()
        country_row = None
        if country_text.isdigit():
            country_row = dimensions.get(Country, int(country_text))
        if country_row is None:
            country_row = dimensions.find_by_name(Country, country_text)
        if country_row is None:
            raise ImportConfigurationError(f"Unknown country: {country_text}", field="country")

        try:
            cycle_id = int(str(financial_cycle_id).strip())
        except ValueError as exc:
            raise ImportConfigurationError(
                f"Financial cycle id must be an integer: {financial_cycle_id}",
                field="financial_cycle_id",
            ) from exc
        cycle_row = dimensions.get(FinancialCycle, cycle_id)
        if cycle_row is None:
            raise ImportConfigurationError(f"Unknown financial cycle id: {cycle_id}", field="financial_cycle_id")

        return ImportPartition(
            country_id=country_row.id,
            country_name=country_row.name,
            financial_cycle_id=cycle_row.id,
            financial_cycle_name=cycle_row.name,
        )

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def run_import(
        self,
        *,
        db: Session,
        records: Sequence[Mapping[str, Any]],
        country: str | int | None,
        financial_cycle_id: int | str | None,
        source: str | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> ImportResult:
        tracker = ProgressTracker(progress_callback, interval=self._settings.progress_interval)
        source = source or self._settings.import_source

        tracker.phase("Validating structure", 0, total=len(records))
        partition = self.resolve_partition(db=db, country=country, financial_cycle_id=financial_cycle_id)
        self._structure_validator.validate(records)

        rows = [(index, record) for index, record in enumerate(records) if not is_empty_record(record)]
        result = ImportResult(processed=len(rows), max_error_entries=self._settings.max_error_entries)
        logger.info(
            "Starting game plan import country=%r financial_cycle=%r rows=%d source=%s",
            partition.country_name,
            partition.financial_cycle_name,
            len(rows),
            source,
        )

        repository = GamePlanRepository(db)
        self._backup_and_clear(db=db, repository=repository, partition=partition, result=result, tracker=tracker)

        resolver = EntityResolver(
            db,
            default_region=self._settings.default_region,
            default_media_type=self._settings.default_media_type,
            source=source,
        )

        tracker.phase("Resolving ranges and categories", 1)
        range_ids = self._resolve_ranges(db, resolver, rows)
        tracker.phase("Resolving campaigns", 2)
        campaign_ids = self._resolve_campaigns(db, resolver, rows, range_ids, source)

        materialized: dict[int, RowDimensions] = {}
        for position, (index, record) in enumerate(rows, start=1):
            materialized[index] = self._materialize_row(db, resolver, record, range_ids, campaign_ids)
            tracker.row(position=position, total=len(rows), start=0, span=50, stage="Resolving dimensions")

        tracker.phase("Validating dates", 50)
        parsed_dates: dict[int, tuple[date | None, date | None]] = {
            index: (
                parse_date(resolve_logical(record, "start_date")),
                parse_date(resolve_logical(record, "end_date")),
            )
            for index, record in rows
        }

        for position, (index, record) in enumerate(rows, start=1):
            self._upsert_row(
                db=db,
                repository=repository,
                partition=partition,
                index=index,
                record=record,
                dimensions=materialized[index],
                dates=parsed_dates[index],
                result=result,
            )
            tracker.row(position=position, total=len(rows), start=50, span=50, stage="Importing game plans")

        for dimension, key in CREATED_COUNT_KEYS.items():
            result.created_counts[key] = resolver.created_count(dimension)

        tracker.phase("Import complete", 100, total=len(rows))
        logger.info(
            "Finished game plan import country=%r financial_cycle=%r successful=%d failed=%d "
            "created=%d updated=%d auto_created=%s",
            partition.country_name,
            partition.financial_cycle_name,
            result.successful,
            result.failed,
            result.game_plans_created,
            result.game_plans_updated,
            resolver.auto_created_summary(),
        )
        return result

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _backup_and_clear(
        self,
        *,
        db: Session,
        repository: GamePlanRepository,
        partition: ImportPartition,
        result: ImportResult,
        tracker: ProgressTracker,
    ) -> None:
        existing = repository.count_partition(
            country_id=partition.country_id,
            financial_cycle_id=partition.financial_cycle_id,
        )
        if existing == 0:
            logger.info("Partition is empty; skipping backup and delete")
            return

        tracker.phase("Backing up existing game plans", 0)
        backup = self._backup_service.create_backup(
            db=db,
            country_id=partition.country_id,
            financial_cycle_id=partition.financial_cycle_id,
            reason=f"Before import into {partition.country_name} / {partition.financial_cycle_name}",
        )
        result.backup_file = backup.file_name if backup is not None else None

        tracker.phase("Deleting existing game plans", 0)
        result.deleted_count = repository.delete_partition(
            country_id=partition.country_id,
            financial_cycle_id=partition.financial_cycle_id,
        )
        db.commit()
        logger.info("Deleted %d existing game plans after backup %s", result.deleted_count, result.backup_file)

    def _resolve_ranges(
        self,
        db: Session,
        resolver: EntityResolver,
        rows: Sequence[tuple[int, Mapping[str, Any]]],
    ) -> dict[str, int]:
        pairs: dict[tuple[str, str], tuple[str, str | None]] = {}
        for _, record in rows:
            range_name = resolve_text(record, "range")
            if range_name is None:
                continue
            category_name = resolve_text(record, "category")
            pairs.setdefault((_fold(range_name), _fold(category_name)), (range_name, category_name))

        range_ids: dict[str, int] = {}
        for range_name, category_name in pairs.values():
            entity = self._safely(db, resolver, resolver.lookup_range, range_name)
            if entity is None:
                logger.warning("Range %r does not exist; its rows will fail", range_name)
                continue
            range_ids[_fold(range_name)] = entity.id
            if category_name is None:
                continue
            category = self._safely(db, resolver, resolver.resolve_or_create, "category", category_name)
            if category is not None:
                self._safely(db, resolver, resolver.link_category_range, category.id, entity.id)
        return range_ids

    def _resolve_campaigns(
        self,
        db: Session,
        resolver: EntityResolver,
        rows: Sequence[tuple[int, Mapping[str, Any]]],
        range_ids: Mapping[str, int],
        source: str,
    ) -> dict[tuple[str, str], int]:
        campaign_ids: dict[tuple[str, str], int] = {}
        for _, record in rows:
            campaign_name = resolve_text(record, "campaign")
            range_key = _fold(resolve_text(record, "range"))
            key = (_fold(campaign_name), range_key)
            if campaign_name is None or key in campaign_ids or range_key not in range_ids:
                continue
            entity = self._safely(db, resolver, resolver.resolve_campaign, campaign_name, range_ids[range_key], source)
            if entity is not None:
                campaign_ids[key] = entity.id
        return campaign_ids

    def _materialize_row(
        self,
        db: Session,
        resolver: EntityResolver,
        record: Mapping[str, Any],
        range_ids: Mapping[str, int],
        campaign_ids: Mapping[tuple[str, str], int],
    ) -> RowDimensions:
        dims = RowDimensions()
        range_key = _fold(resolve_text(record, "range"))
        dims.range_id = range_ids.get(range_key)
        dims.campaign_id = campaign_ids.get((_fold(resolve_text(record, "campaign")), range_key))

        region = resolve_text(record, "region")
        if region:
            dims.region_id = self._entity_id(db, resolver, resolver.resolve_or_create, "region", region)

        sub_region = resolve_text(record, "sub_region")
        if sub_region:
            dims.sub_region_id = self._entity_id(
                db, resolver, resolver.resolve_or_create, "sub_region", sub_region, region_id=dims.region_id
            )

        business_unit = resolve_text(record, "business_unit")
        if business_unit:
            dims.business_unit_id = self._entity_id(
                db, resolver, resolver.resolve_or_create, "business_unit", business_unit
            )

        category = resolve_text(record, "category")
        if category:
            dims.category_id = self._entity_id(
                db, resolver, resolver.resolve_or_create, "category", category, business_unit_id=dims.business_unit_id
            )

        media_subtype = resolve_text(record, "media_subtype")
        if media_subtype:
            dims.media_sub_type_id = self._entity_id(
                db, resolver, resolver.resolve_media_subtype, media_subtype, resolve_text(record, "media")
            )

        pm_type = resolve_text(record, "pm_type")
        if pm_type:
            dims.pm_type_id = self._entity_id(db, resolver, resolver.resolve_or_create, "pm_type", pm_type)

        archetype = resolve_text(record, "campaign_archetype")
        if archetype:
            dims.campaign_archetype_id = self._entity_id(
                db, resolver, resolver.resolve_or_create, "campaign_archetype", archetype
            )
        return dims

    def _upsert_row(
        self,
        *,
        db: Session,
        repository: GamePlanRepository,
        partition: ImportPartition,
        index: int,
        record: Mapping[str, Any],
        dimensions: RowDimensions,
        dates: tuple[date | None, date | None],
        result: ImportResult,
    ) -> None:
        campaign = resolve_text(record, "campaign")
        media_subtype = resolve_text(record, "media_subtype")

        if dimensions.campaign_id is None or dimensions.media_sub_type_id is None:
            missing = []
            if dimensions.campaign_id is None:
                missing.append("campaign")
            if dimensions.media_sub_type_id is None:
                missing.append("media subtype")
            self._fail_row(
                result,
                ImportRowError(
                    index=index,
                    error=f"Missing required IDs: {', '.join(missing)} could not be resolved",
                    category=ImportErrorCategory.MISSING_IDS,
                    campaign=campaign,
                    media_subtype=media_subtype,
                ),
            )
            return

        start_date, end_date = dates
        if start_date is None or end_date is None:
            self._fail_row(
                result,
                ImportRowError(
                    index=index,
                    error=(
                        "Invalid date format: "
                        f"start={resolve_logical(record, 'start_date')!r} end={resolve_logical(record, 'end_date')!r}"
                    ),
                    category=ImportErrorCategory.DATE_FORMAT,
                    campaign=campaign,
                    media_subtype=media_subtype,
                ),
            )
            return

        try:
            values = self._build_values(record, dimensions, partition, start_date, end_date)
            existing = repository.find_by_natural_key(
                campaign_id=dimensions.campaign_id,
                media_sub_type_id=dimensions.media_sub_type_id,
                start_date=start_date,
                end_date=end_date,
                country_id=partition.country_id,
                financial_cycle_id=partition.financial_cycle_id,
            )
            if existing is not None:
                plan = repository.update(existing, values)
            else:
                plan = repository.add(values)
            db.commit()
        except Exception as exc:
            db.rollback()
            self._fail_row(
                result,
                ImportRowError(
                    index=index,
                    error=f"{type(exc).__name__}: {exc}",
                    category=ImportErrorCategory.OTHER,
                    campaign=campaign,
                    media_subtype=media_subtype,
                ),
            )
            return

        result.record_fact(plan.id, created=existing is None)
        result.record_success(index)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _build_values(
        record: Mapping[str, Any],
        dims: RowDimensions,
        partition: ImportPartition,
        start_date: date,
        end_date: date,
    ) -> dict[str, Any]:
        values: dict[str, Any] = {
            "campaign_id": dims.campaign_id,
            "media_sub_type_id": dims.media_sub_type_id,
            "pm_type_id": dims.pm_type_id,
            "campaign_archetype_id": dims.campaign_archetype_id,
            "burst": parse_int(resolve_logical(record, "burst")) or 1,
            "start_date": start_date,
            "end_date": end_date,
            "year": parse_int(resolve_logical(record, "year")) or start_date.year,
            "total_budget": parse_numeric(resolve_logical(record, "total_budget")) or 0.0,
            "total_trps": parse_numeric(resolve_logical(record, "total_trps")),
            "total_r1_plus": parse_numeric(resolve_logical(record, "r1_plus"), is_reach_value=True),
            "total_r3_plus": parse_numeric(resolve_logical(record, "r3_plus"), is_reach_value=True),
            "ns_vs_wm": resolve_text(record, "ns_vs_wm"),
            "total_weeks": parse_numeric(resolve_logical(record, "total_weeks")),
            "total_woa": parse_numeric(resolve_logical(record, "total_woa")),
            "total_woff": parse_numeric(resolve_logical(record, "total_woff")),
            "weeks_live": weeks_between(start_date, end_date),
            "playbook_id": resolve_text(record, "playbook_id"),
            "country_id": partition.country_id,
            "financial_cycle_id": partition.financial_cycle_id,
            "region_id": dims.region_id,
            "sub_region_id": dims.sub_region_id,
            "business_unit_id": dims.business_unit_id,
            "range_id": dims.range_id,
            "category_id": dims.category_id,
        }
        for month, column in zip(MONTH_FIELDS, MONTH_BUDGET_COLUMNS):
            values[column] = parse_numeric(resolve_logical(record, month))
        return values

    def _fail_row(self, result: ImportResult, row_error: ImportRowError) -> None:
        result.record_failure(row_error)
        if self._settings.log_row_errors:
            logger.warning("Row %d failed [%s]: %s", row_error.index, row_error.category, row_error.error)

    @staticmethod
    def _safely(db: Session, resolver: EntityResolver, func: Callable[..., T], *args: Any, **kwargs: Any) -> T | None:
        """
        Run one resolver call in its own transaction; failures yield None.
        """

        try:
            outcome = func(*args, **kwargs)
            db.commit()
        except (EntityResolutionError, SQLAlchemyError) as exc:
            db.rollback()
            resolver.discard_pending()
            logger.warning("Entity resolution failed: %s", exc)
            return None
        resolver.checkpoint()
        return outcome

    def _entity_id(
        self,
        db: Session,
        resolver: EntityResolver,
        func: Callable[..., ResolvedEntity],
        *args: Any,
        **kwargs: Any,
    ) -> int | None:
        entity = self._safely(db, resolver, func, *args, **kwargs)
        return entity.id if entity is not None else None


def get_game_plan_import_service() -> GamePlanImportService:
    return GamePlanImportService(
        settings=get_game_plan_import_settings(),
        backup_service=get_game_plan_backup_service(),
    )
