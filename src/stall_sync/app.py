"""FastAPI application for Stall Sync."""

import hmac
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stall_sync import __version__
from stall_sync.config import Settings, settings
from stall_sync.db import dispose_db, get_session, init_db
from stall_sync.models import SyncMode
from stall_sync.sources.cache import ExpiringCache
from stall_sync.sync.engine import StallSyncEngine
from stall_sync.sync.repository import StallRepository
from stall_sync.sync.runner import build_default_engine
from stall_sync.sync.summary import SyncSummary


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    await init_db()
    app.state.catalog_cache = ExpiringCache(settings.media_catalog_cache_ttl_seconds)
    yield
    await dispose_db()


app = FastAPI(
    title="Stall Sync",
    description="Reconciles food-stall sources into one canonical catalog",
    version=__version__,
    lifespan=lifespan,
)


def get_settings() -> Settings:
    return settings


def get_engine(request: Request) -> StallSyncEngine:
    return build_default_engine(catalog_cache=getattr(request.app.state, "catalog_cache", None))


def require_sync_token(
    config: Annotated[Settings, Depends(get_settings)],
    x_sync_token: Annotated[str | None, Header()] = None,
) -> None:
    """Reject the request unless it carries the configured admin token.

    No configured token leaves the trigger open.
    """
    expected = config.sync_admin_token
    if not expected:
        return
    if x_sync_token is None or not hmac.compare_digest(x_sync_token, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": __version__}


@app.post("/sync/stalls", dependencies=[Depends(require_sync_token)])
async def trigger_sync(
    engine: Annotated[StallSyncEngine, Depends(get_engine)],
    mode: SyncMode | None = None,
    force: bool = False,
) -> SyncSummary:
    """Run one sync pass. The response is the run summary whatever its status."""
    return await engine.run("api", mode=mode, force_apply=force or None)


@app.get("/sync/runs/latest", dependencies=[Depends(require_sync_token)])
async def latest_run(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> dict[str, Any]:
    """Most recent audit row, with its stored summary."""
    runs = await StallRepository(session).list_sync_runs(limit=1)
    if not runs:
        raise HTTPException(status_code=404, detail="No sync runs recorded")
    run = runs[0]
    return {
        "id": run.id,
        "trigger_source": run.trigger_source,
        "mode": run.mode.value,
        "status": run.status.value,
        "started_at": run.started_at.isoformat(),
        "finished_at": run.finished_at.isoformat() if run.finished_at else None,
        "error_text": run.error_text,
        "summary": run.summary,
    }
