"""Canonical, per-run immutable representation of a reconciled stall."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from stall_sync.models.enums import StallStatus, TimeCategory


@dataclass(frozen=True)
class CanonicalLocation:
    id: str
    address: str
    lat: float | None = None
    lng: float | None = None
    media_url: str | None = None
    maps_query: str = ""
    is_primary: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class CanonicalStall:
    """The single reconciled record for one real-world stall.

    Built once per run and never mutated; later stages (slug resolution)
    derive adjusted copies with dataclasses.replace.
    """

    id: str
    source_key: str
    slug: str
    name: str
    cuisine: str
    cuisine_label: str
    country: str
    primary_address: str
    primary_lat: float | None
    primary_lng: float | None
    episode_number: float | None
    dish_name: str
    price: float
    rating_original: float | None
    rating_moderated: float | None
    opening_times: str
    time_categories: tuple[TimeCategory, ...]
    hits: tuple[str, ...]
    misses: tuple[str, ...]
    media_title: str
    media_url: str | None
    media_id: str | None
    maps_name: str
    awards: tuple[str, ...]
    rank_score: int
    source_rows_hash: str | None
    source_media_hash: str | None
    last_synced_at: datetime
    locations: tuple[CanonicalLocation, ...] = field(default_factory=tuple)
    status: StallStatus = StallStatus.ACTIVE

    @property
    def primary_location(self) -> CanonicalLocation:
        return next(location for location in self.locations if location.is_primary)
