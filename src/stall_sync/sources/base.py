"""Collaborator protocols for the live sources."""

from __future__ import annotations

from typing import Protocol

from stall_sync.sources.schemas import MediaRecord, SourceRecord


class SourceFetchError(Exception):
    """An upstream feed was unreachable or malformed.

    Non-fatal to a sync run: the run logs a warning and continues with a
    degraded input set.
    """

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source


class SourceRecordProvider(Protocol):
    """Yields the spreadsheet-style stall rows."""

    name: str

    async def fetch_records(self) -> list[SourceRecord]: ...


class MediaCatalogProvider(Protocol):
    """Yields the video catalog used for media association."""

    name: str

    async def fetch_catalog(self) -> list[MediaRecord]: ...
