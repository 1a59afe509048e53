"""Dataset facade: delegates to a RecordStore backend and memoizes typed loads.

Analytics tools call :func:`load_dataset` and :func:`load_directory` on every
invocation.  Parsed records are cached per store revision, so repeated reports
over unchanged uploads skip re-parsing.
"""

from __future__ import annotations

import threading

from dealer_mcp.analytics.filters import DealerDirectory
from dealer_mcp.config import get_settings
from dealer_mcp.constants import (
    DETAIL_SALESPEOPLE,
    MASTER_DEALERS,
    PROSPECT_ACQUISITION,
    SALES_OVERVIEW,
)
from dealer_mcp.data.store import RecordStore, SqliteRecordStore
from dealer_mcp.records import Dataset

_store: RecordStore | None = None
_cache_lock = threading.Lock()
_dataset_cache: dict[int, tuple[int, Dataset]] = {}
_directory_cache: dict[int, tuple[int, DealerDirectory]] = {}


def get_store() -> RecordStore:
    """Return the active RecordStore singleton, creating it if needed."""
    global _store  # noqa: PLW0603
    if _store is None:
        _store = SqliteRecordStore(get_settings().db_path)
    return _store


def set_store(store: RecordStore | None) -> None:
    """Inject a store instance (tests, alternate backends)."""
    global _store  # noqa: PLW0603
    _store = store
    clear_cache()


def clear_cache() -> None:
    with _cache_lock:
        _dataset_cache.clear()
        _directory_cache.clear()


def load_dataset(store: RecordStore | None = None) -> Dataset:
    """Typed records for the three base kinds, memoized by store revision."""
    store = store or get_store()
    revision = store.revision()
    with _cache_lock:
        cached = _dataset_cache.get(id(store))
    if cached is not None and cached[0] == revision:
        return cached[1]
    dataset = Dataset.from_rows(
        sales=store.fetch(SALES_OVERVIEW),
        details=store.fetch(DETAIL_SALESPEOPLE),
        prospects=store.fetch(PROSPECT_ACQUISITION),
    )
    with _cache_lock:
        _dataset_cache[id(store)] = (revision, dataset)
    return dataset


def load_directory(store: RecordStore | None = None) -> DealerDirectory:
    store = store or get_store()
    revision = store.revision()
    with _cache_lock:
        cached = _directory_cache.get(id(store))
    if cached is not None and cached[0] == revision:
        return cached[1]
    directory = DealerDirectory.from_records(store.fetch(MASTER_DEALERS))
    with _cache_lock:
        _directory_cache[id(store)] = (revision, directory)
    return directory
