"""Change detection, guarded apply and run orchestration."""

from stall_sync.sync.diff import (
    ActiveIndexEntry,
    ChangeSet,
    classify_changes,
    closure_ratio,
    evaluate_guardrail,
    payload_hash,
    resolve_slugs,
)
from stall_sync.sync.engine import StallSyncEngine
from stall_sync.sync.repository import PersistenceError, StallRepository
from stall_sync.sync.summary import ApplyStats, ChangeStats, SourceStats, SyncSummary

__all__ = [
    "ActiveIndexEntry",
    "ApplyStats",
    "ChangeSet",
    "ChangeStats",
    "PersistenceError",
    "SourceStats",
    "StallRepository",
    "StallSyncEngine",
    "SyncSummary",
    "classify_changes",
    "closure_ratio",
    "evaluate_guardrail",
    "payload_hash",
    "resolve_slugs",
]
