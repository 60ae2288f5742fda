"""Stall model: the persisted canonical entity."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Float, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stall_sync.models.base import Base
from stall_sync.models.enums import StallStatus

if TYPE_CHECKING:
    from stall_sync.models.location import StallLocation


class Stall(Base):
    """One real-world food stall reconciled across all sources.

    Rows are never deleted. A stall missing from the latest source set is
    flipped to CLOSED so its history stays recoverable, and reopened in
    place if its source key reappears.
    """

    __tablename__ = "stalls"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    source_stall_key: Mapped[str] = mapped_column(String(512), unique=True)
    slug: Mapped[str] = mapped_column(String(128), unique=True)

    name: Mapped[str] = mapped_column(String(255))
    cuisine: Mapped[str] = mapped_column(String(128))
    cuisine_label: Mapped[str] = mapped_column(String(128))
    country: Mapped[str] = mapped_column(String(8))

    primary_address: Mapped[str] = mapped_column(Text)
    primary_lat: Mapped[float | None] = mapped_column(Float)
    primary_lng: Mapped[float | None] = mapped_column(Float)

    episode_number: Mapped[float | None] = mapped_column(Float)
    dish_name: Mapped[str] = mapped_column(String(255), default="")
    price: Mapped[float] = mapped_column(Float, default=0.0)
    rating_original: Mapped[float | None] = mapped_column(Float)
    rating_moderated: Mapped[float | None] = mapped_column(Float)
    opening_times: Mapped[str] = mapped_column(Text, default="")
    time_categories: Mapped[list[str]] = mapped_column(default=list)
    hits: Mapped[list[str]] = mapped_column(default=list)
    misses: Mapped[list[str]] = mapped_column(default=list)

    media_title: Mapped[str] = mapped_column(Text, default="")
    media_url: Mapped[str | None] = mapped_column(String(255))
    media_id: Mapped[str | None] = mapped_column(String(32))
    maps_name: Mapped[str] = mapped_column(String(255), default="")
    awards: Mapped[list[str]] = mapped_column(default=list)

    status: Mapped[StallStatus] = mapped_column(default=StallStatus.ACTIVE, index=True)
    rank_score: Mapped[int] = mapped_column(Integer, default=0)

    # Debugging provenance, not part of change detection
    source_rows_hash: Mapped[str | None] = mapped_column(String(64))
    source_media_hash: Mapped[str | None] = mapped_column(String(64))

    payload_hash: Mapped[str] = mapped_column(String(64))
    """Hash of externally visible fields; equal hash means no write."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    last_synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    # Relationships
    locations: Mapped[list[StallLocation]] = relationship(
        back_populates="stall", order_by="StallLocation.address"
    )

    __table_args__ = (
        Index("ix_stalls_cuisine", "cuisine"),
        Index("ix_stalls_country", "country"),
    )
