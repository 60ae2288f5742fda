"""Sync run orchestration.

One run:

1. Fetch source rows and the media catalog (a failing provider degrades
   the input, it does not fail the run)
2. Assemble canonical stalls, falling back to the static seed when the
   live sources yield nothing
3. Read the active index and classify new / updated / unchanged / closed
4. Resolve slug collisions
5. Evaluate the closure guardrail
6. In apply mode, commit every write in a single transaction
7. Append the audit row and send the notification

Dry-run stops after step 5 and reports what apply would do.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stall_sync.config import Settings, clamp_closure_ratio, settings
from stall_sync.models.enums import SyncMode, SyncStatus
from stall_sync.notify import LogNotifier, SyncNotifier, format_summary_message
from stall_sync.resolution.assembler import build_canonical_stalls
from stall_sync.resolution.canonical import CanonicalStall
from stall_sync.resolution.media_matching import MatchThresholds
from stall_sync.sources.base import MediaCatalogProvider, SourceFetchError, SourceRecordProvider
from stall_sync.sources.schemas import MediaRecord, SourceRecord
from stall_sync.sources.static_seed import static_seed_records
from stall_sync.sync.diff import (
    ChangeSet,
    classify_changes,
    evaluate_guardrail,
    resolve_slugs,
)
from stall_sync.sync.repository import StallRepository
from stall_sync.sync.summary import ApplyStats, SyncSummary
from stall_sync.utils.identity import make_stable_hash

logger = logging.getLogger(__name__)

AlertMode = Literal["all", "failed"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def build_run_id(started_at: datetime) -> str:
    return f"stall-sync-{make_stable_hash(f'{started_at.isoformat()}|{uuid4().hex}')[:16]}"


class StallSyncEngine:
    """Reconciles the live sources into the stall catalog.

    `run()` never raises. Every outcome, including crashes inside the
    pipeline, is reported through the returned SyncSummary status.

    Usage:
        engine = StallSyncEngine(async_session_factory, records, catalog)
        summary = await engine.run("scheduled:0 */6 * * *")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        record_provider: SourceRecordProvider,
        media_provider: MediaCatalogProvider,
        *,
        config: Settings | None = None,
        mode: SyncMode | None = None,
        force_apply: bool | None = None,
        max_closure_ratio: float | None = None,
        alert_mode: AlertMode | None = None,
        thresholds: MatchThresholds | None = None,
        notifier: SyncNotifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        config = config or settings
        self._session_factory = session_factory
        self._record_provider = record_provider
        self._media_provider = media_provider
        self._mode = mode or config.stall_sync_mode
        self._force_apply = config.stall_sync_force_apply if force_apply is None else force_apply
        self._max_closure_ratio = clamp_closure_ratio(
            config.stall_sync_max_closure_ratio if max_closure_ratio is None else max_closure_ratio
        )
        self._alert_mode: AlertMode = alert_mode or config.stall_sync_alert_mode
        self._thresholds = thresholds or MatchThresholds.from_settings(config)
        self._notifier = notifier if notifier is not None else LogNotifier()
        self._clock = clock

    async def run(
        self,
        trigger_source: str = "manual",
        *,
        mode: SyncMode | None = None,
        force_apply: bool | None = None,
    ) -> SyncSummary:
        """Execute one sync run and return its summary."""
        mode = mode or self._mode
        force_apply = self._force_apply if force_apply is None else force_apply
        started_at = self._clock()

        summary = SyncSummary(
            run_id=build_run_id(started_at),
            trigger_source=trigger_source,
            mode=mode,
            started_at=started_at,
        )
        summary.change_stats.max_closure_ratio = self._max_closure_ratio
        logger.info(
            "Stall sync %s started (mode=%s, trigger=%s, force=%s)",
            summary.run_id,
            mode.value,
            trigger_source,
            force_apply,
        )

        try:
            await self._execute(summary, force_apply=force_apply)
        except Exception as e:
            logger.exception("Stall sync %s failed", summary.run_id)
            summary.status = SyncStatus.FAILED
            summary.error = str(e) or type(e).__name__

        summary.finished_at = self._clock()
        await self._record_run(summary)
        await self._notify(summary)

        logger.info(
            "Stall sync %s finished: %s (+%d ~%d -%d)",
            summary.run_id,
            summary.status.value,
            summary.change_stats.new,
            summary.change_stats.updated,
            summary.change_stats.closed,
        )
        return summary

    async def _execute(self, summary: SyncSummary, *, force_apply: bool) -> None:
        records, catalog = await self._fetch_sources(summary)
        stalls = self._assemble(records, catalog, summary)

        async with self._session_factory() as session:
            repo = StallRepository(session)
            active_index = await repo.load_active_index()
            persisted_slugs = await repo.load_slug_index()

        changes = classify_changes(active_index, stalls)
        stalls, slug_warnings = resolve_slugs(stalls, persisted_slugs)
        summary.warnings.extend(slug_warnings)

        stats = summary.change_stats
        stats.existing_active_count = len(active_index)
        stats.new = len(changes.new)
        stats.updated = len(changes.updated)
        stats.unchanged = len(changes.unchanged)
        stats.closed = len(changes.closed)

        guard = evaluate_guardrail(
            closed_count=len(changes.closed),
            previous_active_count=len(active_index),
            max_ratio=self._max_closure_ratio,
            force_apply=force_apply,
        )
        stats.closure_ratio = guard.ratio

        if summary.mode is SyncMode.DRY_RUN:
            if guard.tripped:
                summary.warnings.append(f"Apply mode would be guarded: {guard.message}.")
            summary.status = SyncStatus.SUCCESS
            return

        if guard.tripped:
            logger.warning("Stall sync %s guarded: %s", summary.run_id, guard.message)
            summary.warnings.append(f"Guardrail prevented apply: {guard.message}.")
            summary.status = SyncStatus.GUARDED
            return

        summary.apply_stats = await self._apply(stalls, changes)
        summary.status = SyncStatus.SUCCESS

    async def _fetch_sources(
        self, summary: SyncSummary
    ) -> tuple[list[SourceRecord], list[MediaRecord]]:
        records: list[SourceRecord] = []
        catalog: list[MediaRecord] = []

        try:
            records = await self._record_provider.fetch_records()
        except SourceFetchError as e:
            logger.warning("Record source unavailable: %s", e)
            summary.warnings.append(f"Source fetch failed: {e}")

        try:
            catalog = await self._media_provider.fetch_catalog()
        except SourceFetchError as e:
            logger.warning("Media catalog unavailable: %s", e)
            summary.warnings.append(f"Source fetch failed: {e}")

        summary.source_stats.records = len(records)
        summary.source_stats.catalog = len(catalog)
        return records, catalog

    def _assemble(
        self,
        records: list[SourceRecord],
        catalog: list[MediaRecord],
        summary: SyncSummary,
    ) -> list[CanonicalStall]:
        stalls = build_canonical_stalls(
            records, catalog, synced_at=summary.started_at, thresholds=self._thresholds
        )
        if not stalls:
            logger.warning("Live sources produced no canonical stalls; using static seed")
            stalls = build_canonical_stalls(
                static_seed_records(),
                catalog,
                synced_at=summary.started_at,
                thresholds=self._thresholds,
            )
            summary.source_stats.used_static_seed = True
            summary.warnings.append(
                "Live sources produced zero canonical stalls; static seed was used."
            )
        summary.source_stats.canonical = len(stalls)
        return stalls

    async def _apply(self, stalls: list[CanonicalStall], changes: ChangeSet) -> ApplyStats:
        to_write = changes.to_write
        stats = ApplyStats()

        async with self._session_factory() as session, session.begin():
            repo = StallRepository(session)
            for stall in stalls:
                if stall.source_key not in to_write:
                    continue
                stats.upserted_locations += await repo.upsert_stall(
                    stall, changes.hashes[stall.source_key]
                )
                stats.upserted_stalls += 1
            stats.closed_stalls = await repo.close_stalls(changes.closed)

        return stats

    async def _record_run(self, summary: SyncSummary) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await StallRepository(session).insert_sync_run(summary)
        except Exception as e:
            logger.warning("Failed to persist sync run %s: %s", summary.run_id, e)
            summary.warnings.append("Failed to persist sync run record.")

    async def _notify(self, summary: SyncSummary) -> None:
        if summary.status is SyncStatus.SUCCESS and self._alert_mode == "failed":
            return
        try:
            await self._notifier.send(format_summary_message(summary), summary)
        except Exception as e:
            logger.warning("Failed to deliver alert for sync run %s: %s", summary.run_id, e)
            summary.warnings.append("Failed to deliver sync alert.")
