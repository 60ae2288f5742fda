"""Change detection, slug resolution and the closure guardrail.

Everything in this module is pure. The engine feeds it the persisted
active index and the freshly assembled stalls, and acts on the result.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from stall_sync.resolution.canonical import CanonicalStall
from stall_sync.utils.identity import make_stable_hash

logger = logging.getLogger(__name__)

SLUG_SUFFIX_LENGTH = 6
MAX_SLUG_ATTEMPTS = 100


def payload_document(stall: CanonicalStall) -> dict[str, Any]:
    """The externally visible fields that decide whether a stall changed.

    rank_score, the provenance hashes, slug and last_synced_at are left
    out: a new sync timestamp or a ranking tweak is not a content change.
    """
    return {
        "name": stall.name,
        "cuisine": stall.cuisine,
        "cuisine_label": stall.cuisine_label,
        "country": stall.country,
        "primary_address": stall.primary_address,
        "primary_lat": stall.primary_lat,
        "primary_lng": stall.primary_lng,
        "episode_number": stall.episode_number,
        "dish_name": stall.dish_name,
        "price": stall.price,
        "rating_original": stall.rating_original,
        "rating_moderated": stall.rating_moderated,
        "opening_times": stall.opening_times,
        "time_categories": [category.value for category in stall.time_categories],
        "hits": list(stall.hits),
        "misses": list(stall.misses),
        "media_title": stall.media_title,
        "media_url": stall.media_url,
        "media_id": stall.media_id,
        "maps_name": stall.maps_name,
        "awards": list(stall.awards),
        "status": stall.status.value,
        "locations": [
            {
                "address": location.address,
                "lat": location.lat,
                "lng": location.lng,
                "media_url": location.media_url,
                "is_primary": location.is_primary,
            }
            for location in stall.locations
        ],
    }


def payload_hash(stall: CanonicalStall) -> str:
    document = json.dumps(payload_document(stall), sort_keys=True, separators=(",", ":"))
    return make_stable_hash(document)


@dataclass(frozen=True)
class ActiveIndexEntry:
    """Projection of one persisted active stall."""

    source_key: str
    payload_hash: str
    slug: str


@dataclass
class ChangeSet:
    """Classification of the assembled set against the active index."""

    new: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    updated: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    unchanged: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    closed: list[str] = field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    hashes: dict[str, str] = field(default_factory=dict)  # pyright: ignore[reportUnknownVariableType]

    @property
    def to_write(self) -> set[str]:
        return {*self.new, *self.updated}


def classify_changes(
    active_index: dict[str, ActiveIndexEntry],
    stalls: list[CanonicalStall],
) -> ChangeSet:
    """Split keys into new / updated / unchanged / closed.

    Closed keys are active in the store but absent from this batch. A key
    that exists only as a closed row is not in the active index, so its
    reappearance counts as new.
    """
    changes = ChangeSet()
    seen: set[str] = set()

    for stall in stalls:
        digest = payload_hash(stall)
        changes.hashes[stall.source_key] = digest
        seen.add(stall.source_key)

        entry = active_index.get(stall.source_key)
        if entry is None:
            changes.new.append(stall.source_key)
        elif entry.payload_hash != digest:
            changes.updated.append(stall.source_key)
        else:
            changes.unchanged.append(stall.source_key)

    changes.closed = sorted(key for key in active_index if key not in seen)
    logger.debug(
        "Changes: new=%d updated=%d unchanged=%d closed=%d",
        len(changes.new),
        len(changes.updated),
        len(changes.unchanged),
        len(changes.closed),
    )
    return changes


def _suffixed_slug(base: str, source_key: str, attempt: int) -> str:
    suffix = make_stable_hash(f"{source_key}|{attempt}")[:SLUG_SUFFIX_LENGTH]
    return f"{base}-{suffix}"


def resolve_slugs(
    stalls: list[CanonicalStall],
    persisted_slugs: dict[str, str],
) -> tuple[list[CanonicalStall], list[str]]:
    """Make slugs unique across the store and the batch.

    Keys already persisted keep their stored slug. The remaining keys are
    resolved in source-key order so the outcome does not depend on row
    order; a colliding slug gets a hash suffix derived from the key and
    the attempt number.

    Returns:
        The stalls with final slugs (input order) and one warning per
        adjusted slug.
    """
    taken = set(persisted_slugs.values())
    final: dict[str, str] = {}
    warnings: list[str] = []

    for stall in stalls:
        if stall.source_key in persisted_slugs:
            final[stall.source_key] = persisted_slugs[stall.source_key]

    for stall in sorted(stalls, key=lambda s: s.source_key):
        if stall.source_key in final:
            continue
        slug = stall.slug
        attempt = 0
        while slug in taken:
            attempt += 1
            if attempt > MAX_SLUG_ATTEMPTS:
                raise RuntimeError(f"could not find a free slug for {stall.source_key}")
            slug = _suffixed_slug(stall.slug, stall.source_key, attempt)
        if slug != stall.slug:
            warnings.append(f"slug collision: {stall.slug} -> {slug} ({stall.source_key})")
        taken.add(slug)
        final[stall.source_key] = slug

    resolved = [
        stall if final[stall.source_key] == stall.slug else replace(stall, slug=final[stall.source_key])
        for stall in stalls
    ]
    return resolved, warnings


def closure_ratio(closed_count: int, previous_active_count: int) -> float:
    if previous_active_count <= 0:
        return 0.0
    return closed_count / previous_active_count


@dataclass(frozen=True)
class GuardrailDecision:
    ratio: float
    max_ratio: float
    tripped: bool

    @property
    def message(self) -> str:
        return f"closure ratio {self.ratio:.2f} exceeds max {self.max_ratio:.2f}"


def evaluate_guardrail(
    *,
    closed_count: int,
    previous_active_count: int,
    max_ratio: float,
    force_apply: bool,
) -> GuardrailDecision:
    """Decide whether the closures look like an upstream outage.

    Trips only when there was something to lose, the ratio is strictly
    above the maximum, and the operator did not force the apply.
    """
    ratio = closure_ratio(closed_count, previous_active_count)
    tripped = previous_active_count > 0 and ratio > max_ratio and not force_apply
    return GuardrailDecision(ratio=ratio, max_ratio=max_ratio, tripped=tripped)
