"""
db/models/taxonomy.py

Product and campaign taxonomy: business units, categories, ranges,
campaigns and campaign archetypes.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, NamedDimensionMixin, TimestampMixin


class CampaignStatus:
    ACTIVE = "active"
    PENDING_REVIEW = "pending_review"
    ARCHIVED = "archived"


class BusinessUnit(Base, NamedDimensionMixin):
    __tablename__ = "business_units"


class Category(Base, NamedDimensionMixin):
    __tablename__ = "categories"

    business_unit_id: Mapped[int | None] = mapped_column(
        ForeignKey("business_units.id", ondelete="SET NULL"),
        nullable=True,
    )


class Range(Base, NamedDimensionMixin):
    __tablename__ = "ranges"


class CategoryRange(Base, TimestampMixin):
    __tablename__ = "category_ranges"

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    )
    range_id: Mapped[int] = mapped_column(
        ForeignKey("ranges.id", ondelete="CASCADE"),
        primary_key=True,
    )


class Campaign(Base, TimestampMixin):
    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    range_id: Mapped[int | None] = mapped_column(
        ForeignKey("ranges.id", ondelete="SET NULL"),
        nullable=True,
    )
    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=CampaignStatus.ACTIVE,
        comment="active, pending_review, archived",
    )
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_campaigns_name", "name"),
        Index("ix_campaigns_range_id", "range_id"),
        Index("ix_campaigns_status", "status"),
    )


class CampaignArchetype(Base, NamedDimensionMixin):
    __tablename__ = "campaign_archetypes"
