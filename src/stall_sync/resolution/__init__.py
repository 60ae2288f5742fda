"""Reconciliation of raw rows into canonical stalls."""

from stall_sync.resolution.assembler import assemble_stall, build_canonical_stalls
from stall_sync.resolution.canonical import CanonicalLocation, CanonicalStall
from stall_sync.resolution.grouping import (
    LocationCandidate,
    RecordGroup,
    group_records,
    info_score,
    select_representative,
)
from stall_sync.resolution.media_matching import (
    NO_MATCH,
    MatchThresholds,
    MediaMatch,
    associate_media,
)

__all__ = [
    "NO_MATCH",
    "CanonicalLocation",
    "CanonicalStall",
    "LocationCandidate",
    "MatchThresholds",
    "MediaMatch",
    "RecordGroup",
    "assemble_stall",
    "associate_media",
    "build_canonical_stalls",
    "group_records",
    "info_score",
    "select_representative",
]
