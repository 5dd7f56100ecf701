"""
app/repositories/game_plan_repository.py

Persistence helpers for game plan fact rows scoped by partition
(country, financial cycle).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from db.models.game_plan import GamePlan

GAME_PLAN_COLUMNS: tuple[str, ...] = tuple(
    column.name
    for column in GamePlan.__table__.columns
    if column.name not in {"id", "created_at", "updated_at"}
)


class GamePlanRepository:
    """
    Repository for partition-scoped game plan reads and writes.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def count_partition(self, *, country_id: int, financial_cycle_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(GamePlan)
            .where(GamePlan.country_id == country_id)
            .where(GamePlan.financial_cycle_id == financial_cycle_id)
        )
        return int(self._session.scalar(stmt) or 0)

    def list_partition(
        self,
        *,
        country_id: int,
        financial_cycle_id: int,
        business_unit_id: int | None = None,
    ) -> list[GamePlan]:
        stmt = (
            select(GamePlan)
            .where(GamePlan.country_id == country_id)
            .where(GamePlan.financial_cycle_id == financial_cycle_id)
        )
        if business_unit_id is not None:
            stmt = stmt.where(GamePlan.business_unit_id == business_unit_id)
        stmt = stmt.order_by(GamePlan.id)
        return list(self._session.scalars(stmt).all())

    def delete_partition(self, *, country_id: int, financial_cycle_id: int) -> int:
        """
        Delete every game plan of the partition; returns the deleted count.
        """

        stmt = (
            delete(GamePlan)
            .where(GamePlan.country_id == country_id)
            .where(GamePlan.financial_cycle_id == financial_cycle_id)
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)

    def find_by_natural_key(
        self,
        *,
        campaign_id: int,
        media_sub_type_id: int,
        start_date: date,
        end_date: date,
        country_id: int,
        financial_cycle_id: int,
    ) -> GamePlan | None:
        stmt = (
            select(GamePlan)
            .where(GamePlan.campaign_id == campaign_id)
            .where(GamePlan.media_sub_type_id == media_sub_type_id)
            .where(GamePlan.start_date == start_date)
            .where(GamePlan.end_date == end_date)
            .where(GamePlan.country_id == country_id)
            .where(GamePlan.financial_cycle_id == financial_cycle_id)
            .order_by(GamePlan.id)
            .limit(1)
        )
        return self._session.scalars(stmt).first()

    def add(self, values: dict[str, Any]) -> GamePlan:
        plan = GamePlan(**values)
        self._session.add(plan)
        self._session.flush()
        return plan

    @staticmethod
    def update(plan: GamePlan, values: dict[str, Any]) -> GamePlan:
        for key, value in values.items():
            setattr(plan, key, value)
        return plan

    def bulk_insert(self, rows: Iterable[dict[str, Any]]) -> int:
        """
        Insert fact rows restored from a backup; unknown keys are ignored.
        """

        count = 0
        for row in rows:
            values = {key: row.get(key) for key in GAME_PLAN_COLUMNS if key in row}
            for key in ("start_date", "end_date"):
                if isinstance(values.get(key), str):
                    values[key] = date.fromisoformat(values[key])
            self._session.add(GamePlan(**values))
            count += 1
        self._session.flush()
        return count

    @staticmethod
    def to_dict(plan: GamePlan) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": plan.id}
        for key in GAME_PLAN_COLUMNS:
            value = getattr(plan, key)
            payload[key] = value.isoformat() if isinstance(value, date) else value
        return payload
