"""Pydantic schemas for records handed over by ingestion collaborators.

Feed fetching and raw parsing happen upstream; these models are the typed
contract the reconciliation pipeline consumes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from stall_sync.utils.identity import make_source_key, normalize_display_text


def _coerce_to_string(v: Any) -> str:
    """Coerce blank-able cell values to stripped strings."""
    if v is None:
        return ""
    return str(v).strip()


def _coerce_optional_number(v: Any) -> Any:
    """Spreadsheet cells arrive as "" for missing numbers."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


Text = Annotated[str, BeforeValidator(_coerce_to_string)]
OptionalNumber = Annotated[float | None, BeforeValidator(_coerce_optional_number)]


class SourceRecord(BaseModel):
    """One raw row from one feed.

    `source_row_key` is the stable per-row identity assigned by the feed
    parser; it only feeds the provenance hash, never the stall identity.
    """

    source_row_key: str = Field(min_length=1)
    name: Text
    address: Text = ""
    cuisine: Text
    cuisine_label: Text = ""
    country: Text = "SG"
    episode_number: OptionalNumber = None
    dish_name: Text = ""
    price: OptionalNumber = None
    rating_original: OptionalNumber = None
    rating_moderated: OptionalNumber = None
    opening_times: Text = ""
    media_ref: Text = ""
    """Explicit media id or url, when the feed carries one."""

    media_title: Text = ""
    awards: list[str] = Field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]

    # Only the curated static dataset fills these in
    hits: list[str] = Field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    misses: list[str] = Field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    lat: OptionalNumber = None
    lng: OptionalNumber = None

    @property
    def source_key(self) -> str:
        return make_source_key(self.name, self.country, self.cuisine)

    @property
    def display_address(self) -> str:
        return normalize_display_text(self.address)


class MediaRecord(BaseModel):
    """An entry from the external video catalog."""

    media_id: str = Field(min_length=1)
    url: str
    title: Text = ""
    published_at: datetime | None = None
