"""Sync run audit model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from stall_sync.models.base import Base
from stall_sync.models.enums import SyncMode, SyncStatus


class SyncRun(Base):
    """Append-only audit record of one sync invocation.

    Written for every run regardless of outcome, including guarded and
    failed runs. `summary` holds the full serialized SyncSummary.
    """

    __tablename__ = "stall_sync_runs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    trigger_source: Mapped[str] = mapped_column(String(255))
    mode: Mapped[SyncMode] = mapped_column()
    status: Mapped[SyncStatus] = mapped_column(index=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    summary: Mapped[dict[str, Any]] = mapped_column(default=dict)
    error_text: Mapped[str | None] = mapped_column(Text)
