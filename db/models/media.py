"""
db/models/media.py

Media type, media subtype and PM type dimensions.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, NamedDimensionMixin


class MediaType(Base, NamedDimensionMixin):
    __tablename__ = "media_types"


class MediaSubType(Base, NamedDimensionMixin):
    __tablename__ = "media_sub_types"

    media_type_id: Mapped[int] = mapped_column(
        ForeignKey("media_types.id"),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_media_sub_types_media_type_id", "media_type_id"),
    )


class PMType(Base, NamedDimensionMixin):
    __tablename__ = "pm_types"
