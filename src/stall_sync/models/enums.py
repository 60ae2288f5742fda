"""Enumerations for the Stall Sync data model."""

from enum import Enum


class StallStatus(str, Enum):
    """Lifecycle status of a canonical stall."""

    ACTIVE = "active"
    CLOSED = "closed"  # Absent from the latest source set; kept for history


class SyncMode(str, Enum):
    """How a sync run treats the store."""

    DRY_RUN = "dry-run"  # Compute and report only
    APPLY = "apply"  # Commit changes past the guardrail


class SyncStatus(str, Enum):
    """Final outcome of a sync run."""

    SUCCESS = "success"
    GUARDED = "guarded"  # Guardrail refused to write
    FAILED = "failed"


class TimeCategory(str, Enum):
    """Coarse meal-time buckets derived from opening hours text."""

    EARLY_MORNING = "early-morning"
    LUNCH = "lunch"
    DINNER = "dinner"
    LATE_NIGHT = "late-night"
    ALL_DAY = "all-day"


class MatchStage(str, Enum):
    """Which association stage attached a media reference."""

    EXPLICIT = "explicit"  # Record carried a valid id/url
    HINT = "hint"  # Reference-text matching
    NAME = "name"  # Stall-name fallback
    NONE = "none"  # No confident match
