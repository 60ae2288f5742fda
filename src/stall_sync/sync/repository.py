"""Store access for stalls, their locations and the sync audit log."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from stall_sync.models.enums import StallStatus
from stall_sync.models.location import StallLocation
from stall_sync.models.stall import Stall
from stall_sync.models.sync_run import SyncRun
from stall_sync.resolution.canonical import CanonicalStall
from stall_sync.sync.diff import ActiveIndexEntry
from stall_sync.sync.summary import SyncSummary

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """A read or write against the store failed."""


class StallRepository:
    """Queries and writes used by the sync engine.

    The repository never commits. Callers own the transaction so that a
    whole apply either lands or rolls back together.

    Usage:
        async with session_factory() as session, session.begin():
            repo = StallRepository(session)
            await repo.upsert_stall(stall, payload_hash)
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load_active_index(self) -> dict[str, ActiveIndexEntry]:
        """Source key -> (payload hash, slug) for every active stall."""
        stmt = select(Stall.source_stall_key, Stall.payload_hash, Stall.slug).where(
            Stall.status == StallStatus.ACTIVE
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to read active index: {e}") from e
        return {
            key: ActiveIndexEntry(source_key=key, payload_hash=digest, slug=slug)
            for key, digest, slug in result.all()
        }

    async def load_slug_index(self) -> dict[str, str]:
        """Source key -> slug for every persisted stall, closed ones included."""
        try:
            result = await self._session.execute(select(Stall.source_stall_key, Stall.slug))
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to read slug index: {e}") from e
        return {key: slug for key, slug in result.all()}

    async def upsert_stall(self, stall: CanonicalStall, payload_hash: str) -> int:
        """Insert or update one stall and its locations.

        Existing locations that this stall no longer lists are kept but
        marked inactive.

        Returns:
            Number of locations written.
        """
        try:
            row = await self._session.get(Stall, stall.id)
            if row is None:
                row = Stall(id=stall.id)
                self._session.add(row)

            row.source_stall_key = stall.source_key
            row.slug = stall.slug
            row.name = stall.name
            row.cuisine = stall.cuisine
            row.cuisine_label = stall.cuisine_label
            row.country = stall.country
            row.primary_address = stall.primary_address
            row.primary_lat = stall.primary_lat
            row.primary_lng = stall.primary_lng
            row.episode_number = stall.episode_number
            row.dish_name = stall.dish_name
            row.price = stall.price
            row.rating_original = stall.rating_original
            row.rating_moderated = stall.rating_moderated
            row.opening_times = stall.opening_times
            row.time_categories = [category.value for category in stall.time_categories]
            row.hits = list(stall.hits)
            row.misses = list(stall.misses)
            row.media_title = stall.media_title
            row.media_url = stall.media_url
            row.media_id = stall.media_id
            row.maps_name = stall.maps_name
            row.awards = list(stall.awards)
            row.status = stall.status
            row.rank_score = stall.rank_score
            row.source_rows_hash = stall.source_rows_hash
            row.source_media_hash = stall.source_media_hash
            row.payload_hash = payload_hash
            row.last_synced_at = stall.last_synced_at
            await self._session.flush()

            return await self._upsert_locations(stall)
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to write stall {stall.source_key}: {e}") from e

    async def _upsert_locations(self, stall: CanonicalStall) -> int:
        result = await self._session.execute(
            select(StallLocation).where(StallLocation.stall_id == stall.id)
        )
        existing = {location.id: location for location in result.scalars().all()}
        confirmed = {location.id for location in stall.locations}

        for location_id, row in existing.items():
            if location_id not in confirmed:
                row.is_active = False
                row.is_primary = False

        for location in stall.locations:
            row = existing.get(location.id)
            if row is None:
                row = StallLocation(id=location.id, stall_id=stall.id)
                self._session.add(row)
            row.address = location.address
            row.lat = location.lat
            row.lng = location.lng
            row.media_url = location.media_url
            row.maps_query = location.maps_query
            row.is_primary = location.is_primary
            row.is_active = location.is_active

        await self._session.flush()
        return len(stall.locations)

    async def close_stalls(self, source_keys: Sequence[str]) -> int:
        """Flip the given stalls to CLOSED and deactivate their locations."""
        if not source_keys:
            return 0
        try:
            result = await self._session.execute(
                update(Stall)
                .where(Stall.source_stall_key.in_(source_keys))
                .where(Stall.status == StallStatus.ACTIVE)
                .values(status=StallStatus.CLOSED)
            )
            stall_ids = select(Stall.id).where(Stall.source_stall_key.in_(source_keys))
            await self._session.execute(
                update(StallLocation)
                .where(StallLocation.stall_id.in_(stall_ids))
                .values(is_active=False, is_primary=False)
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"failed to close stalls: {e}") from e
        return result.rowcount  # type: ignore[return-value]

    async def insert_sync_run(self, summary: SyncSummary) -> SyncRun:
        run = SyncRun(
            id=summary.run_id,
            trigger_source=summary.trigger_source,
            mode=summary.mode,
            status=summary.status,
            started_at=summary.started_at,
            finished_at=summary.finished_at,
            summary=summary.model_dump(mode="json"),
            error_text=summary.error,
        )
        self._session.add(run)
        await self._session.flush()
        return run

    async def list_sync_runs(self, *, limit: int = 20) -> list[SyncRun]:
        stmt = select(SyncRun).order_by(SyncRun.started_at.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_stall_by_slug(self, slug: str) -> Stall | None:
        stmt = select(Stall).options(selectinload(Stall.locations)).where(Stall.slug == slug)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()
