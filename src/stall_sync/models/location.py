"""Stall location model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stall_sync.models.base import Base

if TYPE_CHECKING:
    from stall_sync.models.stall import Stall


class StallLocation(Base):
    """A physical address where a stall trades.

    Locations that a run does not reconfirm are soft-removed
    (is_active=False) rather than deleted.
    """

    __tablename__ = "stall_locations"

    id: Mapped[str] = mapped_column(String(40), primary_key=True)
    stall_id: Mapped[str] = mapped_column(ForeignKey("stalls.id", ondelete="CASCADE"), index=True)
    address: Mapped[str] = mapped_column(Text)
    lat: Mapped[float | None] = mapped_column(Float)
    lng: Mapped[float | None] = mapped_column(Float)
    media_url: Mapped[str | None] = mapped_column(String(255))
    maps_query: Mapped[str] = mapped_column(Text, default="")
    is_primary: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    stall: Mapped[Stall] = relationship(back_populates="locations")

    __table_args__ = (
        UniqueConstraint("stall_id", "address", name="uq_stall_locations_stall_address"),
        Index("ix_stall_locations_primary", "stall_id", "is_primary", "is_active"),
    )
