"""Cross-source media association.

Attaches a video-catalog reference to a candidate stall in strict
priority order:

1. Explicit reference: any row carrying a syntactically valid media id or
   url wins outright and the heuristics below never run.
2. Reference-text matching: free-text hints from the rows (titles, plus
   non-empty media fields that are not valid ids) are scored against every
   catalog title.
3. Name fallback: significant words of the stall name are scored against
   every catalog title, and the winner must clearly beat the runner-up.

Precision over recall: when nothing clears its threshold the media fields
stay empty. A wrong reference on a stall page is worse than none, so an
ambiguous outcome is a normal "no match", not an error.

Known limitation: GENERIC_NAME_TERMS is tuned for English-language
Singapore hawker naming and will under-filter elsewhere.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from stall_sync.config import Settings, settings
from stall_sync.models.enums import MatchStage
from stall_sync.resolution.grouping import RecordGroup
from stall_sync.sources.schemas import MediaRecord
from stall_sync.utils.identity import (
    build_media_url,
    normalize_comparable_text,
    normalize_identity_text,
    normalize_media_id,
)

logger = logging.getLogger(__name__)

# Words too common in stall names to identify a video on their own
GENERIC_NAME_TERMS = frozenset(
    {
        "the", "and", "with", "for", "road", "street", "singapore", "restaurant",
        "stall", "bak", "kut", "teh", "mee", "noodle", "noodles", "kway", "teow",
        "char", "hokkien", "laksa", "prawn", "wanton", "wonton",
    }
)

HINT_WORD_MIN_LENGTH = 3
NAME_TOKEN_MIN_LENGTH = 4

_EPISODE_RE = re.compile(r"\b(?:episode|ep)\.?\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_WORD_RE = re.compile(r"[a-z0-9]+")


@dataclass(frozen=True)
class MatchThresholds:
    """Tunable scoring weights and acceptance thresholds."""

    exact_match_score: int = 10
    containment_score: int = 5
    episode_bonus: int = 3
    hint_min_score: int = 4
    restricted_keyword: str = "members"
    name_min_score: int = 2
    name_min_margin: int = 1

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> MatchThresholds:
        config = config or settings
        return cls(
            exact_match_score=config.media_exact_match_score,
            containment_score=config.media_containment_score,
            episode_bonus=config.media_episode_bonus,
            hint_min_score=config.media_hint_min_score,
            restricted_keyword=config.media_restricted_keyword,
            name_min_score=config.media_name_min_score,
            name_min_margin=config.media_name_min_margin,
        )


@dataclass(frozen=True)
class MediaMatch:
    """Outcome of association for one candidate stall."""

    stage: MatchStage
    media_id: str | None = None
    media_url: str | None = None
    title: str = ""
    score: int = 0

    @property
    def is_heuristic(self) -> bool:
        """True when the reference came from scoring rather than the rows."""
        return self.stage in (MatchStage.HINT, MatchStage.NAME)


NO_MATCH = MediaMatch(stage=MatchStage.NONE)


@dataclass(frozen=True)
class _CatalogEntry:
    media_id: str
    title: str


def _words(text: str) -> set[str]:
    return set(_WORD_RE.findall(normalize_identity_text(text)))


def _significant_words(text: str) -> set[str]:
    return {word for word in _words(text) if len(word) >= HINT_WORD_MIN_LENGTH}


def _format_episode(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _episode_tokens(text: str) -> set[str]:
    return {_format_episode(float(number)) for number in _EPISODE_RE.findall(text)}


def _usable_catalog(catalog: list[MediaRecord]) -> list[_CatalogEntry]:
    entries: list[_CatalogEntry] = []
    for record in catalog:
        media_id = normalize_media_id(record.media_id) or normalize_media_id(record.url)
        if media_id is None or not record.title.strip():
            continue
        entries.append(_CatalogEntry(media_id=media_id, title=record.title))
    return entries


def collect_hints(group: RecordGroup) -> list[str]:
    """Free-text references harvested from every row, deduplicated in order."""
    hints: list[str] = []
    seen: set[str] = set()
    for record in group.records:
        for value in (record.media_title, record.media_ref):
            text = value.strip()
            if not text or normalize_media_id(text) is not None:
                continue
            # Placeholders such as "-" or "x" would be contained in any title
            if not _significant_words(text):
                continue
            key = normalize_comparable_text(text)
            if key not in seen:
                seen.add(key)
                hints.append(text)
    return hints


def score_hint(
    hint: str,
    title: str,
    *,
    episodes: set[str],
    thresholds: MatchThresholds,
) -> int | None:
    """Score one hint against one catalog title.

    Returns None when the title is disqualified: the hint carries the
    restricted keyword and the title does not.
    """
    hint_text = normalize_comparable_text(hint)
    title_text = normalize_comparable_text(title)
    if not hint_text or not title_text:
        return 0

    keyword = thresholds.restricted_keyword.strip().lower()
    if keyword and keyword in hint_text and keyword not in title_text:
        return None

    score = 0
    if hint_text == title_text:
        score += thresholds.exact_match_score
    elif hint_text in title_text and _significant_words(hint):
        score += thresholds.containment_score
    elif title_text in hint_text and _significant_words(title):
        score += thresholds.containment_score

    if (_episode_tokens(hint) | episodes) & _episode_tokens(title):
        score += thresholds.episode_bonus

    score += len(_significant_words(hint) & _words(title))
    return score


def match_by_hints(
    hints: list[str],
    catalog: list[MediaRecord],
    *,
    episodes: set[str] | None = None,
    thresholds: MatchThresholds,
) -> MediaMatch:
    """Best hint/title pair, accepted only above the absolute floor."""
    entries = _usable_catalog(catalog)
    best: _CatalogEntry | None = None
    best_score = -1
    for hint in hints:
        for entry in entries:
            score = score_hint(hint, entry.title, episodes=episodes or set(), thresholds=thresholds)
            if score is not None and score > best_score:
                best, best_score = entry, score

    if best is None or best_score < thresholds.hint_min_score:
        return NO_MATCH
    return MediaMatch(
        stage=MatchStage.HINT,
        media_id=best.media_id,
        media_url=build_media_url(best.media_id),
        title=best.title,
        score=best_score,
    )


def significant_name_tokens(name: str) -> list[str]:
    """Distinct identifying words of a stall name, in first-seen order."""
    tokens: list[str] = []
    for token in normalize_identity_text(name).split("-"):
        if len(token) < NAME_TOKEN_MIN_LENGTH or token in GENERIC_NAME_TERMS or token in tokens:
            continue
        tokens.append(token)
    return tokens


def match_by_name(name: str, catalog: list[MediaRecord], *, thresholds: MatchThresholds) -> MediaMatch:
    """Name-token fallback; withheld unless the winner leads by the margin."""
    tokens = significant_name_tokens(name)
    if not tokens:
        return NO_MATCH

    ranked = sorted(
        ((sum(1 for token in tokens if token in _words(entry.title)), index, entry)
         for index, entry in enumerate(_usable_catalog(catalog))),
        key=lambda item: (-item[0], item[1]),
    )
    if not ranked:
        return NO_MATCH

    top_score, _, top_entry = ranked[0]
    runner_up = ranked[1][0] if len(ranked) > 1 else 0
    if top_score < thresholds.name_min_score or top_score - runner_up < thresholds.name_min_margin:
        logger.debug(
            "Name match withheld for %r: top=%d runner_up=%d", name, top_score, runner_up
        )
        return NO_MATCH

    return MediaMatch(
        stage=MatchStage.NAME,
        media_id=top_entry.media_id,
        media_url=build_media_url(top_entry.media_id),
        title=top_entry.title,
        score=top_score,
    )


def _explicit_reference(group: RecordGroup, catalog: list[MediaRecord]) -> MediaMatch | None:
    titles = {entry.media_id: entry.title for entry in _usable_catalog(catalog)}
    ordered = [group.representative, *(r for r in group.records if r is not group.representative)]
    for record in ordered:
        media_id = normalize_media_id(record.media_ref)
        if media_id is None:
            continue
        return MediaMatch(
            stage=MatchStage.EXPLICIT,
            media_id=media_id,
            media_url=build_media_url(media_id),
            title=record.media_title or titles.get(media_id, ""),
        )
    return None


def associate_media(
    group: RecordGroup,
    catalog: list[MediaRecord],
    thresholds: MatchThresholds | None = None,
) -> MediaMatch:
    """Resolve the media reference for one candidate stall."""
    thresholds = thresholds or MatchThresholds.from_settings()

    explicit = _explicit_reference(group, catalog)
    if explicit is not None:
        return explicit

    episodes = {
        _format_episode(record.episode_number)
        for record in group.records
        if record.episode_number is not None
    }
    hints = collect_hints(group)
    if hints:
        match = match_by_hints(hints, catalog, episodes=episodes, thresholds=thresholds)
        if match.stage is not MatchStage.NONE:
            return match

    return match_by_name(group.representative.name, catalog, thresholds=thresholds)
