"""Pure text utilities for identity and opening-hours handling."""

from stall_sync.utils.identity import (
    build_media_url,
    derive_slug,
    make_location_id,
    make_source_key,
    make_stable_hash,
    make_stall_id,
    normalize_comparable_text,
    normalize_display_text,
    normalize_identity_text,
    normalize_media_id,
    slugify,
)
from stall_sync.utils.time_categories import parse_time_categories

__all__ = [
    "build_media_url",
    "derive_slug",
    "make_location_id",
    "make_source_key",
    "make_stable_hash",
    "make_stall_id",
    "normalize_comparable_text",
    "normalize_display_text",
    "normalize_identity_text",
    "normalize_media_id",
    "parse_time_categories",
    "slugify",
]
