"""Tests for the typer CLI."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from conftest import SYNC_TIME
from typer.testing import CliRunner

from stall_sync import cli
from stall_sync.models import StallStatus, SyncMode, SyncStatus
from stall_sync.sync.summary import SyncSummary

runner = CliRunner()


class _Engine:
    def __init__(self, status: SyncStatus) -> None:
        self.status = status
        self.calls: list[tuple] = []

    async def run(self, trigger_source, *, mode=None, force_apply=None) -> SyncSummary:
        self.calls.append((trigger_source, mode, force_apply))
        return SyncSummary(
            run_id="stall-sync-cli",
            trigger_source=trigger_source,
            mode=mode or SyncMode.DRY_RUN,
            status=self.status,
            started_at=SYNC_TIME,
            finished_at=SYNC_TIME,
            warnings=["Live sources produced zero canonical stalls; static seed was used."],
        )


@pytest.fixture
def patch_engine(monkeypatch: pytest.MonkeyPatch):
    def _patch(status: SyncStatus) -> _Engine:
        engine = _Engine(status)
        monkeypatch.setattr(cli, "init_db", AsyncMock())
        monkeypatch.setattr(cli, "build_default_engine", lambda **_: engine)
        return engine

    return _patch


def test_sync_success(patch_engine) -> None:
    engine = patch_engine(SyncStatus.SUCCESS)
    result = runner.invoke(cli.app, ["sync", "--mode", "apply", "--force", "--trigger", "manual"])

    assert result.exit_code == 0, result.output
    assert "success" in result.output
    assert "static seed" in result.output
    assert engine.calls == [("manual", SyncMode.APPLY, True)]


def test_sync_guarded_exits_nonzero(patch_engine) -> None:
    engine = patch_engine(SyncStatus.GUARDED)
    result = runner.invoke(cli.app, ["sync"])

    assert result.exit_code == 1
    assert "guarded" in result.output
    assert engine.calls == [("cli", None, None)]


class _Repository:
    def __init__(self, session) -> None:
        pass

    async def list_sync_runs(self, *, limit: int = 20):
        return _Repository.runs[:limit]

    async def get_stall_by_slug(self, slug: str):
        return _Repository.stalls.get(slug)

    runs: list = []
    stalls: dict = {}


class _Session:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> None:
        return None


@pytest.fixture
def patch_store(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cli, "init_db", AsyncMock())
    monkeypatch.setattr(cli, "async_session_factory", _Session)
    monkeypatch.setattr(cli, "StallRepository", _Repository)
    monkeypatch.setattr(_Repository, "runs", [])
    monkeypatch.setattr(_Repository, "stalls", {})
    return _Repository


def test_runs_empty(patch_store) -> None:
    result = runner.invoke(cli.app, ["runs"])

    assert result.exit_code == 0, result.output
    assert "No sync runs recorded" in result.output


def test_runs_lists_change_counts(patch_store) -> None:
    patch_store.runs = [
        SimpleNamespace(
            id="run-1",
            started_at=SYNC_TIME,
            trigger_source="cli",
            mode=SyncMode.APPLY,
            status=SyncStatus.GUARDED,
            summary={"change_stats": {"new": 2, "updated": 1, "closed": 7}},
        )
    ]
    result = runner.invoke(cli.app, ["runs", "--limit", "5"])

    assert result.exit_code == 0, result.output
    assert "run-1" in result.output
    assert "+2 ~1 -7" in result.output


def test_show_stall_missing(patch_store) -> None:
    result = runner.invoke(cli.app, ["show-stall", "nope"])

    assert result.exit_code == 1
    assert "Stall not found: nope" in result.output


def test_show_stall_prints_locations(patch_store) -> None:
    patch_store.stalls = {
        "hill-street": SimpleNamespace(
            id="stall_abc",
            name="Hill Street Fried Kway Teow",
            status=StallStatus.ACTIVE,
            cuisine="char-kway-teow",
            cuisine_label="Char Kway Teow",
            dish_name="Kway Teow",
            price=5.0,
            opening_times="11am - 7pm",
            time_categories=["lunch", "dinner"],
            rank_score=4,
            media_url=None,
            media_title="",
            awards=[],
            last_synced_at=SYNC_TIME,
            locations=[
                SimpleNamespace(address="16 Bedok South Rd", is_primary=True, is_active=True)
            ],
        )
    }
    result = runner.invoke(cli.app, ["show-stall", "hill-street"])

    assert result.exit_code == 0, result.output
    assert "Hill Street Fried Kway Teow" in result.output
    assert "16 Bedok South Rd" in result.output
    assert "Video" not in result.output
