"""Run summary returned by every sync invocation and stored on the audit row."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from stall_sync.models.enums import SyncMode, SyncStatus


class SourceStats(BaseModel):
    records: int = 0
    catalog: int = 0
    canonical: int = 0
    used_static_seed: bool = False


class ChangeStats(BaseModel):
    existing_active_count: int = 0
    new: int = 0
    updated: int = 0
    closed: int = 0
    unchanged: int = 0
    closure_ratio: float = 0.0
    max_closure_ratio: float = 0.0


class ApplyStats(BaseModel):
    upserted_stalls: int = 0
    upserted_locations: int = 0
    closed_stalls: int = 0


class SyncSummary(BaseModel):
    """Outcome of one run. Status is always set; the run never raises."""

    run_id: str
    trigger_source: str
    mode: SyncMode
    status: SyncStatus = SyncStatus.FAILED
    started_at: datetime
    finished_at: datetime | None = None
    source_stats: SourceStats = Field(default_factory=SourceStats)
    change_stats: ChangeStats = Field(default_factory=ChangeStats)
    apply_stats: ApplyStats = Field(default_factory=ApplyStats)
    warnings: list[str] = Field(default_factory=list)  # pyright: ignore[reportUnknownVariableType]
    error: str | None = None
