"""File-backed providers for pre-fetched feed exports.

Upstream fetchers drop their parsed output as JSON arrays; these providers
validate it into typed records. Any read or validation problem surfaces as
SourceFetchError so the sync run can degrade instead of crash.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TypeVar

from pydantic import TypeAdapter, ValidationError

from stall_sync.sources.base import SourceFetchError
from stall_sync.sources.schemas import MediaRecord, SourceRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _load_json_list(path: Path, adapter: TypeAdapter[list[T]], source: str) -> list[T]:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise SourceFetchError(source, f"cannot read {path}: {exc}") from exc

    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        raise SourceFetchError(
            source, f"invalid payload in {path} ({exc.error_count()} errors)"
        ) from exc


class JsonRecordFile:
    """Source records from a JSON array file."""

    name = "records"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._adapter = TypeAdapter(list[SourceRecord])

    async def fetch_records(self) -> list[SourceRecord]:
        records = await asyncio.to_thread(_load_json_list, self._path, self._adapter, self.name)
        logger.info("Loaded %d source records from %s", len(records), self._path)
        return records


class JsonMediaCatalogFile:
    """Media catalog entries from a JSON array file."""

    name = "media-catalog"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._adapter = TypeAdapter(list[MediaRecord])

    async def fetch_catalog(self) -> list[MediaRecord]:
        catalog = await asyncio.to_thread(_load_json_list, self._path, self._adapter, self.name)
        logger.info("Loaded %d media catalog entries from %s", len(catalog), self._path)
        return catalog
