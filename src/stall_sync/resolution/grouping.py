"""Record grouping and representative selection.

Raw rows are grouped by source key. Each group becomes one candidate
stall whose scalar fields (price, ratings, opening hours, ...) come only
from the single most complete row, the representative. Blending scalars
across rows could pair one row's price with another row's dish, so only
multi-valued fields are unioned across the group: addresses, awards and
hit/miss evidence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import reduce

from stall_sync.sources.schemas import SourceRecord
from stall_sync.utils.identity import build_media_url

logger = logging.getLogger(__name__)


def info_score(record: SourceRecord) -> int:
    """Information-completeness score of a single row."""
    score = 0
    if record.opening_times.strip():
        score += 1
    if record.dish_name.strip():
        score += 1
    if build_media_url(record.media_ref):
        score += 2
    if record.hits:
        score += 1
    if record.misses:
        score += 1
    if record.awards:
        score += 1
    if record.rating_moderated is not None:
        score += 1
    if record.rating_original is not None:
        score += 1
    return score


@dataclass
class LocationCandidate:
    """A distinct address contributed by some row of the group."""

    address: str
    media_url: str | None = None
    lat: float | None = None
    lng: float | None = None


@dataclass
class RecordGroup:
    """All rows sharing one source key, plus the merged multi-valued fields."""

    source_key: str
    records: list[SourceRecord]
    representative: SourceRecord
    representative_score: int
    locations: list[LocationCandidate] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    awards: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    hits: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    misses: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]


def select_representative(records: list[SourceRecord]) -> tuple[SourceRecord, int]:
    """Fold the group down to its highest-scoring row.

    Only a strictly higher score replaces the current pick, so ties go to
    the first-seen row.
    """
    if not records:
        raise ValueError("cannot select a representative from an empty group")

    def keep_best(
        best: tuple[SourceRecord, int], record: SourceRecord
    ) -> tuple[SourceRecord, int]:
        score = info_score(record)
        return (record, score) if score > best[1] else best

    first = records[0]
    return reduce(keep_best, records[1:], (first, info_score(first)))


def _union_locations(records: list[SourceRecord]) -> list[LocationCandidate]:
    by_address: dict[str, LocationCandidate] = {}
    for record in records:
        address = record.display_address
        if not address:
            continue
        key = address.lower()
        if key in by_address:
            continue
        by_address[key] = LocationCandidate(
            address=address,
            media_url=build_media_url(record.media_ref),
            lat=record.lat,
            lng=record.lng,
        )
    return list(by_address.values())


def _union_sorted(values: list[list[str]]) -> list[str]:
    merged = {item.strip() for items in values for item in items if item.strip()}
    return sorted(merged)


def build_group(source_key: str, records: list[SourceRecord]) -> RecordGroup | None:
    """Build a RecordGroup, or None when no row carries a usable address."""
    locations = _union_locations(records)
    if not locations:
        logger.debug("Dropping group %s: no usable address in %d rows", source_key, len(records))
        return None

    representative, score = select_representative(records)
    return RecordGroup(
        source_key=source_key,
        records=records,
        representative=representative,
        representative_score=score,
        locations=locations,
        awards=_union_sorted([record.awards for record in records]),
        hits=_union_sorted([record.hits for record in records]),
        misses=_union_sorted([record.misses for record in records]),
    )


def group_records(records: list[SourceRecord]) -> list[RecordGroup]:
    """Group rows by source key, keeping first-seen order of keys and rows."""
    by_key: dict[str, list[SourceRecord]] = {}
    for record in records:
        by_key.setdefault(record.source_key, []).append(record)

    groups: list[RecordGroup] = []
    for source_key, members in by_key.items():
        group = build_group(source_key, members)
        if group is not None:
            groups.append(group)

    logger.debug("Grouped %d rows into %d candidate stalls", len(records), len(groups))
    return groups
