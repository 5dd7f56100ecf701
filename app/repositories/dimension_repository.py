"""
app/repositories/dimension_repository.py

Lookup and creation helpers for named dimension tables.

Name matching is case-insensitive and performed in application code so the
stored casing is preserved and dialect collation does not matter.
"""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.taxonomy import Campaign, CampaignStatus, CategoryRange

DimensionT = TypeVar("DimensionT")


def _fold(name: str) -> str:
    return name.strip().casefold()


def _pick_by_name(rows: list[Any], name: str) -> Any | None:
    """
    Return the row whose name matches case-insensitively, preferring an
    exact-case match when several rows differ only in casing.
    """

    wanted = name.strip()
    matches = [row for row in rows if _fold(row.name) == _fold(wanted)]
    if not matches:
        return None
    for row in matches:
        if row.name == wanted:
            return row
    return min(matches, key=lambda row: row.id)


class DimensionRepository:
    """
    Repository for name-keyed dimension rows.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self, model: type[DimensionT]) -> list[DimensionT]:
        stmt = select(model).order_by(model.id)  # type: ignore[attr-defined]
        return list(self._session.scalars(stmt).all())

    def get(self, model: type[DimensionT], entity_id: int) -> DimensionT | None:
        return self._session.get(model, entity_id)

    def find_by_name(self, model: type[DimensionT], name: str) -> DimensionT | None:
        return _pick_by_name(self.list_all(model), name)

    def create(self, model: type[DimensionT], *, name: str, **fields: Any) -> DimensionT:
        """
        Insert one dimension row and flush to obtain its id.
        """

        row = model(name=name.strip(), **fields)
        self._session.add(row)
        self._session.flush()
        return row

    def find_campaign(self, name: str, *, range_id: int | None = None) -> Campaign | None:
        """
        Resolve a campaign by name, preferring one already linked to ``range_id``.
        """

        campaigns = self.list_all(Campaign)
        if range_id is not None:
            linked = _pick_by_name([c for c in campaigns if c.range_id == range_id], name)
            if linked is not None:
                return linked
        return _pick_by_name(campaigns, name)

    def create_campaign(
        self,
        *,
        name: str,
        range_id: int | None,
        created_by: str,
        notes: str | None = None,
        status: str = CampaignStatus.PENDING_REVIEW,
    ) -> Campaign:
        return self.create(
            Campaign,
            name=name,
            range_id=range_id,
            status=status,
            created_by=created_by,
            notes=notes,
        )

    def link_category_range(self, *, category_id: int, range_id: int) -> bool:
        """
        Ensure the category/range association exists; True when it was added.
        """

        existing = self._session.get(CategoryRange, (category_id, range_id))
        if existing is not None:
            return False
        self._session.add(CategoryRange(category_id=category_id, range_id=range_id))
        self._session.flush()
        return True

    def list_category_ranges(self) -> list[CategoryRange]:
        return list(self._session.scalars(select(CategoryRange)).all())
