"""Default wiring of the sync engine for the CLI, the API and scheduled runs."""

from __future__ import annotations

import logging

from stall_sync.config import Settings, settings
from stall_sync.db import async_session_factory
from stall_sync.models.enums import SyncStatus
from stall_sync.sources.cache import CachedMediaCatalog, ExpiringCache
from stall_sync.sources.files import JsonMediaCatalogFile, JsonRecordFile
from stall_sync.sources.schemas import MediaRecord
from stall_sync.sync.engine import StallSyncEngine
from stall_sync.sync.summary import SyncSummary

logger = logging.getLogger(__name__)


def build_default_engine(
    config: Settings | None = None,
    *,
    records_path: str | None = None,
    catalog_path: str | None = None,
    catalog_cache: ExpiringCache[list[MediaRecord]] | None = None,
) -> StallSyncEngine:
    """Engine backed by the configured database and JSON source files.

    Long-lived callers (the API) pass their own `catalog_cache` so repeated
    triggers reuse a recent catalog.
    """
    config = config or settings
    if catalog_cache is None:
        catalog_cache = ExpiringCache(config.media_catalog_cache_ttl_seconds)
    catalog = CachedMediaCatalog(
        JsonMediaCatalogFile(catalog_path or config.media_catalog_path),
        catalog_cache,
    )
    return StallSyncEngine(
        async_session_factory,
        JsonRecordFile(records_path or config.source_records_path),
        catalog,
        config=config,
    )


async def run_scheduled_sync(cron: str, engine: StallSyncEngine | None = None) -> SyncSummary:
    """Entry point for a cron trigger; non-success outcomes are logged as errors."""
    engine = engine or build_default_engine()
    summary = await engine.run(f"scheduled:{cron}")
    if summary.status is not SyncStatus.SUCCESS:
        logger.error(
            "Scheduled stall sync %s finished with status %s: %s",
            summary.run_id,
            summary.status.value,
            summary.error or "; ".join(summary.warnings),
        )
    return summary
