"""
app/services/entity_resolver.py

Find-or-create resolution of dimension entities by display name.

One resolver belongs to exactly one import run. Every lookup goes through
its ProcessedEntityCache first, so a given (dimension, name) is created at
most once per run regardless of how many rows mention it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.game_plan import ResolvedEntity
from app.repositories.dimension_repository import DimensionRepository
from db.models.financial_cycle import FinancialCycle
from db.models.geography import Country, Region, SubRegion
from db.models.media import MediaSubType, MediaType, PMType
from db.models.taxonomy import BusinessUnit, CampaignArchetype, Category, Range

logger = logging.getLogger(__name__)

AUTO_CREATED_BY = "import_auto"

DIMENSION_MODELS: dict[str, type] = {
    "region": Region,
    "sub_region": SubRegion,
    "country": Country,
    "business_unit": BusinessUnit,
    "category": Category,
    "range": Range,
    "media_type": MediaType,
    "media_subtype": MediaSubType,
    "pm_type": PMType,
    "campaign_archetype": CampaignArchetype,
    "financial_cycle": FinancialCycle,
}

# Never created by an import; they must be configured beforehand.
LOOKUP_ONLY_DIMENSIONS = frozenset({"range", "financial_cycle"})


class EntityResolutionError(RuntimeError):
    """
    Raised when the store fails while resolving or creating an entity.
    """

    def __init__(self, *, dimension: str, name: str, message: str) -> None:
        super().__init__(message)
        self.dimension = dimension
        self.name = name

    def to_dict(self) -> dict[str, Any]:
        return {"dimension": self.dimension, "name": self.name, "message": str(self)}


def _fold(name: str) -> str:
    return name.strip().casefold()


@dataclass
class ProcessedEntityCache:
    """
    Per-run map of (dimension, case-folded name) to resolved entity.
    """

    _entries: dict[tuple[str, str], ResolvedEntity] = field(default_factory=dict)
    _misses: set[tuple[str, str]] = field(default_factory=set)

    def get(self, dimension: str, name: str) -> ResolvedEntity | None:
        return self._entries.get((dimension, _fold(name)))

    def put(self, dimension: str, name: str, entity: ResolvedEntity) -> None:
        key = (dimension, _fold(name))
        self._entries[key] = entity
        self._misses.discard(key)

    def is_known_miss(self, dimension: str, name: str) -> bool:
        return (dimension, _fold(name)) in self._misses

    def put_miss(self, dimension: str, name: str) -> None:
        self._misses.add((dimension, _fold(name)))

    def evict(self, dimension: str, name: str) -> None:
        self._entries.pop((dimension, _fold(name)), None)

    def __len__(self) -> int:
        return len(self._entries)


class EntityResolver:
    """
    Resolves dimension names to ids, creating missing entities on demand.
    """

    def __init__(
        self,
        session: Session,
        *,
        default_region: str = "Unassigned",
        default_media_type: str = "Other",
        source: str = "csv_import",
        cache: ProcessedEntityCache | None = None,
    ) -> None:
        self._session = session
        self._repository = DimensionRepository(session)
        self._default_region = default_region
        self._default_media_type = default_media_type
        self._source = source
        self._cache = cache or ProcessedEntityCache()
        self._created: dict[str, list[str]] = {}
        self._linked_pairs: set[tuple[int, int]] = set()
        # Entities created since the last checkpoint; evicted if the session rolls back.
        self._pending: list[tuple[str, str, str]] = []

    @property
    def cache(self) -> ProcessedEntityCache:
        return self._cache

    # ------------------------------------------------------------------
    # Generic find-or-create
    # ------------------------------------------------------------------

    def resolve_or_create(self, dimension: str, name: str, **context: Any) -> ResolvedEntity:
        """
        Return the id for ``name`` in ``dimension``, creating the row if absent.

        ``context`` carries extra column values used only on creation.
        """

        if dimension == "country":
            return self.resolve_country(name, **context)
        if dimension == "media_subtype":
            return self.resolve_media_subtype(name, context.get("media_type_name"))
        if dimension in LOOKUP_ONLY_DIMENSIONS:
            raise EntityResolutionError(
                dimension=dimension,
                name=name,
                message=f"{dimension} entities are never created during import: {name!r}",
            )

        cached = self._cache.get(dimension, name)
        if cached is not None:
            return ResolvedEntity(id=cached.id, name=cached.name, created=False)

        model = DIMENSION_MODELS[dimension]
        try:
            existing = self._repository.find_by_name(model, name)
            if existing is not None:
                return self._remember(dimension, name, existing, created=False)
            row = self._repository.create(model, name=name, **context)
        except SQLAlchemyError as exc:
            raise EntityResolutionError(
                dimension=dimension,
                name=name,
                message=f"Failed to resolve {dimension} {name!r}: {exc}",
            ) from exc

        logger.info("Auto-created %s %r id=%s", dimension, row.name, row.id)
        return self._remember(dimension, name, row, created=True)

    # ------------------------------------------------------------------
    # Dimension-specific operations
    # ------------------------------------------------------------------

    def lookup_range(self, name: str) -> ResolvedEntity | None:
        """
        Look up a range without ever creating it; misses are cached too.
        """

        return self._lookup("range", name)

    def lookup_financial_cycle(self, name: str) -> ResolvedEntity | None:
        return self._lookup("financial_cycle", name)

    def resolve_campaign(
        self,
        name: str,
        range_id: int | None,
        source: str | None = None,
    ) -> ResolvedEntity:
        """
        Resolve a campaign, auto-creating it as pending review when unknown.

        An existing campaign without a range is linked to ``range_id``.
        """

        cached = self._cache.get("campaign", name)
        if cached is not None:
            return ResolvedEntity(id=cached.id, name=cached.name, created=False)

        try:
            existing = self._repository.find_campaign(name, range_id=range_id)
            if existing is not None:
                if existing.range_id is None and range_id is not None:
                    existing.range_id = range_id
                    self._session.flush()
                    logger.info("Linked campaign %r id=%s to range id=%s", existing.name, existing.id, range_id)
                return self._remember("campaign", name, existing, created=False)

            created_at = datetime.now(timezone.utc).isoformat()
            row = self._repository.create_campaign(
                name=name,
                range_id=range_id,
                created_by=AUTO_CREATED_BY,
                notes=f"Auto-created during import from {source or self._source} on {created_at}",
            )
        except SQLAlchemyError as exc:
            raise EntityResolutionError(
                dimension="campaign",
                name=name,
                message=f"Failed to resolve campaign {name!r}: {exc}",
            ) from exc

        logger.info("Auto-created campaign %r id=%s range_id=%s", row.name, row.id, range_id)
        return self._remember("campaign", name, row, created=True)

    def link_category_range(self, category_id: int, range_id: int) -> bool:
        """
        Ensure a category/range link exists; True when a link was added.
        """

        pair = (category_id, range_id)
        if pair in self._linked_pairs:
            return False
        try:
            added = self._repository.link_category_range(category_id=category_id, range_id=range_id)
        except SQLAlchemyError as exc:
            raise EntityResolutionError(
                dimension="category_range",
                name=f"{category_id}:{range_id}",
                message=f"Failed to link category {category_id} to range {range_id}: {exc}",
            ) from exc
        self._linked_pairs.add(pair)
        return added

    def resolve_media_subtype(self, name: str, media_type_name: str | None = None) -> ResolvedEntity:
        """
        Resolve a media subtype; a new one is attached to the row's media
        type, or the default media type when the row names none.
        """

        cached = self._cache.get("media_subtype", name)
        if cached is not None:
            return ResolvedEntity(id=cached.id, name=cached.name, created=False)

        try:
            existing = self._repository.find_by_name(MediaSubType, name)
            if existing is not None:
                return self._remember("media_subtype", name, existing, created=False)
        except SQLAlchemyError as exc:
            raise EntityResolutionError(
                dimension="media_subtype",
                name=name,
                message=f"Failed to resolve media subtype {name!r}: {exc}",
            ) from exc

        media_type = self.resolve_or_create("media_type", media_type_name or self._default_media_type)
        try:
            row = self._repository.create(MediaSubType, name=name, media_type_id=media_type.id)
        except SQLAlchemyError as exc:
            raise EntityResolutionError(
                dimension="media_subtype",
                name=name,
                message=f"Failed to create media subtype {name!r}: {exc}",
            ) from exc

        logger.info("Auto-created media_subtype %r id=%s media_type=%r", row.name, row.id, media_type.name)
        return self._remember("media_subtype", name, row, created=True)

    def resolve_country(self, name: str, sub_region_id: int | None = None) -> ResolvedEntity:
        """
        Resolve a country; a new one is attached to the default region.
        """

        cached = self._cache.get("country", name)
        if cached is not None:
            return ResolvedEntity(id=cached.id, name=cached.name, created=False)

        try:
            existing = self._repository.find_by_name(Country, name)
            if existing is not None:
                return self._remember("country", name, existing, created=False)
        except SQLAlchemyError as exc:
            raise EntityResolutionError(
                dimension="country",
                name=name,
                message=f"Failed to resolve country {name!r}: {exc}",
            ) from exc

        region = self.resolve_or_create("region", self._default_region)
        try:
            row = self._repository.create(
                Country,
                name=name,
                region_id=region.id,
                sub_region_id=sub_region_id,
            )
        except SQLAlchemyError as exc:
            raise EntityResolutionError(
                dimension="country",
                name=name,
                message=f"Failed to create country {name!r}: {exc}",
            ) from exc

        logger.info("Auto-created country %r id=%s region=%r", row.name, row.id, region.name)
        return self._remember("country", name, row, created=True)

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def auto_created_summary(self) -> dict[str, dict[str, Any]]:
        return {
            dimension: {"count": len(names), "names": list(names)}
            for dimension, names in self._created.items()
            if names
        }

    def created_count(self, dimension: str) -> int:
        return len(self._created.get(dimension, ()))

    def checkpoint(self) -> None:
        """
        Mark every entity created so far as committed.
        """

        self._pending.clear()

    def discard_pending(self) -> None:
        """
        Forget entities created since the last checkpoint after a rollback.
        """

        for dimension, name, stored_name in self._pending:
            self._cache.evict(dimension, name)
            self._cache.evict(dimension, stored_name)
            names = self._created.get(dimension, [])
            if stored_name in names:
                names.remove(stored_name)
        self._pending.clear()
        self._linked_pairs.clear()

    def _lookup(self, dimension: str, name: str) -> ResolvedEntity | None:
        cached = self._cache.get(dimension, name)
        if cached is not None:
            return cached
        if self._cache.is_known_miss(dimension, name):
            return None

        try:
            existing = self._repository.find_by_name(DIMENSION_MODELS[dimension], name)
        except SQLAlchemyError as exc:
            raise EntityResolutionError(
                dimension=dimension,
                name=name,
                message=f"Failed to look up {dimension} {name!r}: {exc}",
            ) from exc

        if existing is None:
            self._cache.put_miss(dimension, name)
            return None
        return self._remember(dimension, name, existing, created=False)

    def _remember(self, dimension: str, name: str, row: Any, *, created: bool) -> ResolvedEntity:
        entity = ResolvedEntity(id=row.id, name=row.name, created=created)
        self._cache.put(dimension, name, entity)
        if row.name != name.strip():
            self._cache.put(dimension, row.name, entity)
        if created:
            self._created.setdefault(dimension, []).append(row.name)
            self._pending.append((dimension, name, row.name))
        return entity
