"""
db/models/game_plan.py

Game plan fact table: one scheduled media placement per row.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

MONTH_BUDGET_COLUMNS: tuple[str, ...] = (
    "jan_budget",
    "feb_budget",
    "mar_budget",
    "apr_budget",
    "may_budget",
    "jun_budget",
    "jul_budget",
    "aug_budget",
    "sep_budget",
    "oct_budget",
    "nov_budget",
    "dec_budget",
)


class GamePlan(Base, TimestampMixin):
    __tablename__ = "game_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    campaign_id: Mapped[int] = mapped_column(ForeignKey("campaigns.id"), nullable=False)
    media_sub_type_id: Mapped[int] = mapped_column(ForeignKey("media_sub_types.id"), nullable=False)
    pm_type_id: Mapped[int | None] = mapped_column(ForeignKey("pm_types.id"), nullable=True)
    campaign_archetype_id: Mapped[int | None] = mapped_column(
        ForeignKey("campaign_archetypes.id"),
        nullable=True,
    )

    burst: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    total_budget: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    jan_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    feb_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    mar_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    apr_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    may_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    jun_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    jul_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    aug_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    sep_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    oct_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    nov_budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    dec_budget: Mapped[float | None] = mapped_column(Float, nullable=True)

    total_trps: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_r1_plus: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        comment="Reach 1+ as a fraction in [0, 1]",
    )
    total_r3_plus: Mapped[float | None] = mapped_column(
        Float,
        nullable=True,
        comment="Reach 3+ as a fraction in [0, 1]",
    )
    ns_vs_wm: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_weeks: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_woa: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_woff: Mapped[float | None] = mapped_column(Float, nullable=True)
    weeks_live: Mapped[float | None] = mapped_column(Float, nullable=True)
    playbook_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    country_id: Mapped[int] = mapped_column(ForeignKey("countries.id"), nullable=False)
    financial_cycle_id: Mapped[int] = mapped_column(ForeignKey("financial_cycles.id"), nullable=False)
    region_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True)
    sub_region_id: Mapped[int | None] = mapped_column(ForeignKey("sub_regions.id"), nullable=True)
    business_unit_id: Mapped[int | None] = mapped_column(ForeignKey("business_units.id"), nullable=True)
    range_id: Mapped[int | None] = mapped_column(ForeignKey("ranges.id"), nullable=True)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True)

    __table_args__ = (
        Index("ix_game_plans_partition", "country_id", "financial_cycle_id"),
        Index(
            "ix_game_plans_natural_key",
            "campaign_id",
            "media_sub_type_id",
            "start_date",
            "end_date",
            "country_id",
            "financial_cycle_id",
        ),
        Index("ix_game_plans_business_unit_id", "business_unit_id"),
    )
