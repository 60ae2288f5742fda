"""Shared pytest fixtures for Stall Sync tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stall_sync.models import Base
from stall_sync.sources.base import SourceFetchError
from stall_sync.sources.schemas import MediaRecord, SourceRecord

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


# In-memory SQLite shared across connections for the lifetime of one test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

SYNC_TIME = datetime(2025, 3, 1, 6, 0, tzinfo=UTC)


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a test database engine with all tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# Type aliases for factory fixtures
MakeRecord = Callable[..., SourceRecord]
MakeMedia = Callable[..., MediaRecord]


@pytest.fixture
def make_record() -> MakeRecord:
    """Factory fixture for creating SourceRecord instances."""
    counter = {"n": 0}

    def _make(
        *,
        name: str = "Tian Tian Chicken Rice",
        address: str = "1 Kadayanallur St, #01-10, Singapore 069184",
        cuisine: str = "chicken-rice",
        country: str = "SG",
        source_row_key: str | None = None,
        **fields: Any,
    ) -> SourceRecord:
        counter["n"] += 1
        return SourceRecord(
            source_row_key=source_row_key or f"row-{counter['n']}",
            name=name,
            address=address,
            cuisine=cuisine,
            country=country,
            **fields,
        )

    return _make


@pytest.fixture
def make_media() -> MakeMedia:
    """Factory fixture for creating MediaRecord instances."""

    def _make(media_id: str, title: str) -> MediaRecord:
        return MediaRecord(
            media_id=media_id,
            url=f"https://www.youtube.com/watch?v={media_id}",
            title=title,
        )

    return _make


class StaticRecords:
    """Record provider returning a fixed, replaceable list."""

    name = "static-records"

    def __init__(self, records: list[SourceRecord] | None = None, *, fail: bool = False) -> None:
        self.records = records or []
        self.fail = fail

    async def fetch_records(self) -> list[SourceRecord]:
        if self.fail:
            raise SourceFetchError(self.name, "upstream returned HTTP 503")
        return list(self.records)


class StaticCatalog:
    """Media catalog provider returning a fixed list."""

    name = "static-catalog"

    def __init__(self, catalog: list[MediaRecord] | None = None, *, fail: bool = False) -> None:
        self.catalog = catalog or []
        self.fail = fail

    async def fetch_catalog(self) -> list[MediaRecord]:
        if self.fail:
            raise SourceFetchError(self.name, "quota exceeded")
        return list(self.catalog)


class RecordingNotifier:
    """Notifier that keeps every message, optionally failing on send."""

    def __init__(self, *, fail: bool = False) -> None:
        self.messages: list[str] = []
        self.fail = fail

    async def send(self, message: str, summary: Any) -> None:
        if self.fail:
            raise ConnectionError("alert transport unreachable")
        self.messages.append(message)
