"""Typed collaborators that feed the reconciliation pipeline."""

from stall_sync.sources.base import MediaCatalogProvider, SourceFetchError, SourceRecordProvider
from stall_sync.sources.cache import CachedMediaCatalog, ExpiringCache
from stall_sync.sources.files import JsonMediaCatalogFile, JsonRecordFile
from stall_sync.sources.schemas import MediaRecord, SourceRecord
from stall_sync.sources.static_seed import static_seed_records

__all__ = [
    "CachedMediaCatalog",
    "ExpiringCache",
    "JsonMediaCatalogFile",
    "JsonRecordFile",
    "MediaCatalogProvider",
    "MediaRecord",
    "SourceFetchError",
    "SourceRecord",
    "SourceRecordProvider",
    "static_seed_records",
]
