"""Database models for Stall Sync."""

from stall_sync.models.base import Base
from stall_sync.models.enums import (
    MatchStage,
    StallStatus,
    SyncMode,
    SyncStatus,
    TimeCategory,
)
from stall_sync.models.location import StallLocation
from stall_sync.models.stall import Stall
from stall_sync.models.sync_run import SyncRun

__all__ = [
    "Base",
    "MatchStage",
    "Stall",
    "StallLocation",
    "StallStatus",
    "SyncMode",
    "SyncRun",
    "SyncStatus",
    "TimeCategory",
]
