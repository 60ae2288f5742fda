"""Run-summary notifications.

Delivery transports live outside this project; anything implementing
SyncNotifier can be handed to the engine. A failed delivery is recorded
as a warning on the summary and never changes the run status.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from stall_sync.models.enums import SyncStatus

if TYPE_CHECKING:
    from stall_sync.sync.summary import SyncSummary

MESSAGE_TITLE = "Stall Sync"


class SyncNotifier(Protocol):
    async def send(self, message: str, summary: SyncSummary) -> None: ...


def format_summary_message(summary: SyncSummary) -> str:
    """Plain-text, one fact per line, suitable for chat alerts."""
    changes = summary.change_stats
    lines = [
        MESSAGE_TITLE,
        f"Run: {summary.run_id}",
        f"Status: {summary.status.value}",
        f"Mode: {summary.mode.value}",
        f"Trigger: {summary.trigger_source}",
        f"Source records: {summary.source_stats.records}",
        f"Catalog entries: {summary.source_stats.catalog}",
        f"Canonical stalls: {summary.source_stats.canonical}",
        f"Changes: +{changes.new} / ~{changes.updated} / -{changes.closed}",
        f"Applied stalls: {summary.apply_stats.upserted_stalls}",
        f"Applied locations: {summary.apply_stats.upserted_locations}",
        f"Closed stalls: {summary.apply_stats.closed_stalls}",
    ]
    if summary.error:
        lines.append(f"Error: {summary.error}")
    if summary.warnings:
        lines.append(f"Warnings: {' | '.join(summary.warnings)}")
    return "\n".join(lines)


class LogNotifier:
    """Writes the alert to the application log."""

    def __init__(self, logger_name: str = "stall_sync.alerts") -> None:
        self._logger = logging.getLogger(logger_name)

    async def send(self, message: str, summary: SyncSummary) -> None:
        level = logging.INFO if summary.status is SyncStatus.SUCCESS else logging.WARNING
        self._logger.log(level, message)
