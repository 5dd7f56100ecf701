"""
db/models/geography.py

Region, sub-region and country dimensions.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, NamedDimensionMixin


class Region(Base, NamedDimensionMixin):
    __tablename__ = "regions"


class SubRegion(Base, NamedDimensionMixin):
    __tablename__ = "sub_regions"

    region_id: Mapped[int | None] = mapped_column(
        ForeignKey("regions.id", ondelete="SET NULL"),
        nullable=True,
    )


class Country(Base, NamedDimensionMixin):
    __tablename__ = "countries"

    region_id: Mapped[int] = mapped_column(
        ForeignKey("regions.id"),
        nullable=False,
        comment="New countries are attached to the configured default region",
    )
    sub_region_id: Mapped[int | None] = mapped_column(
        ForeignKey("sub_regions.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_countries_region_id", "region_id"),
    )
