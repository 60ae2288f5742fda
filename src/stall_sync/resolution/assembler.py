"""Canonical assembly: representative + group + media match -> CanonicalStall."""

from __future__ import annotations

import logging
from datetime import datetime

from stall_sync.models.enums import MatchStage
from stall_sync.resolution.canonical import CanonicalLocation, CanonicalStall
from stall_sync.resolution.grouping import RecordGroup, group_records
from stall_sync.resolution.media_matching import (
    NO_MATCH,
    MatchThresholds,
    MediaMatch,
    associate_media,
)
from stall_sync.sources.schemas import MediaRecord, SourceRecord
from stall_sync.utils.identity import (
    derive_slug,
    make_location_id,
    make_stable_hash,
    make_stall_id,
    normalize_display_text,
)
from stall_sync.utils.time_categories import parse_time_categories

logger = logging.getLogger(__name__)

# Rank boost when a heuristic stage found the media reference
HEURISTIC_MATCH_BOOST = 2


def _build_locations(
    group: RecordGroup, stall_id: str, name: str, stall_media_url: str | None
) -> tuple[CanonicalLocation, ...]:
    preferred = group.representative.display_address.lower()
    primary_address = next(
        (c.address for c in group.locations if c.address.lower() == preferred),
        group.locations[0].address,
    )

    return tuple(
        CanonicalLocation(
            id=make_location_id(stall_id, candidate.address),
            address=candidate.address,
            lat=candidate.lat,
            lng=candidate.lng,
            media_url=candidate.media_url or stall_media_url,
            maps_query=f"{name} {candidate.address}",
            is_primary=candidate.address == primary_address,
            is_active=True,
        )
        for candidate in group.locations
    )


def assemble_stall(
    group: RecordGroup,
    match: MediaMatch = NO_MATCH,
    *,
    synced_at: datetime,
) -> CanonicalStall:
    """Build the canonical stall for one group.

    Scalars are read from the representative only; the location set and
    awards/evidence lists come from the whole group.
    """
    best = group.representative
    stall_id = make_stall_id(group.source_key)
    name = normalize_display_text(best.name)

    locations = _build_locations(group, stall_id, name, match.media_url)
    primary = next(location for location in locations if location.is_primary)

    rank_score = group.representative_score
    if match.is_heuristic:
        rank_score += HEURISTIC_MATCH_BOOST

    rows_hash = make_stable_hash("|".join(sorted(r.source_row_key for r in group.records)))
    # An explicit reference carries the title of the row it was taken from
    if match.stage is MatchStage.EXPLICIT:
        media_title = normalize_display_text(match.title)
    else:
        media_title = normalize_display_text(best.media_title or match.title)

    stall = CanonicalStall(
        id=stall_id,
        source_key=group.source_key,
        slug=derive_slug(name, group.source_key),
        name=name,
        cuisine=best.cuisine,
        cuisine_label=normalize_display_text(best.cuisine_label),
        country=normalize_display_text(best.country).upper(),
        primary_address=primary.address,
        primary_lat=primary.lat,
        primary_lng=primary.lng,
        episode_number=best.episode_number,
        dish_name=normalize_display_text(best.dish_name),
        price=best.price if best.price is not None else 0.0,
        rating_original=best.rating_original,
        rating_moderated=best.rating_moderated,
        opening_times=normalize_display_text(best.opening_times),
        time_categories=tuple(parse_time_categories(best.opening_times)),
        hits=tuple(group.hits),
        misses=tuple(group.misses),
        media_title=media_title,
        media_url=match.media_url,
        media_id=match.media_id,
        maps_name=name,
        awards=tuple(group.awards),
        rank_score=rank_score,
        source_rows_hash=rows_hash,
        source_media_hash=match.media_id,
        last_synced_at=synced_at,
        locations=locations,
    )

    if match.stage is not MatchStage.NONE:
        logger.debug("Stall %s media via %s: %s", stall.source_key, match.stage.value, match.media_id)
    return stall


def build_canonical_stalls(
    records: list[SourceRecord],
    catalog: list[MediaRecord],
    *,
    synced_at: datetime,
    thresholds: MatchThresholds | None = None,
) -> list[CanonicalStall]:
    """Run grouping, association and assembly over one batch of rows."""
    thresholds = thresholds or MatchThresholds.from_settings()
    stalls = [
        assemble_stall(group, associate_media(group, catalog, thresholds), synced_at=synced_at)
        for group in group_records(records)
    ]
    logger.info("Assembled %d canonical stalls from %d rows", len(stalls), len(records))
    return stalls
