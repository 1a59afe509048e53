"""Shared test fixtures: isolated in-memory store and pinned settings."""

from __future__ import annotations

from datetime import date

import pytest

from dealer_mcp.config import DashboardSettings, set_settings
from dealer_mcp.data.repository import set_store
from dealer_mcp.data.store import SqliteRecordStore

REFERENCE = date(2024, 3, 15)


@pytest.fixture(autouse=True)
def _inject_test_store():
    """Give every test a fresh, isolated, empty in-memory record store."""
    store = SqliteRecordStore(":memory:")
    set_store(store)
    yield store
    set_store(None)
    store.close()


@pytest.fixture(autouse=True)
def _inject_test_settings():
    """Pin settings so tests never read the developer's environment or .env."""
    set_settings(DashboardSettings(db_path=":memory:"))
    yield
    set_settings(None)


@pytest.fixture()
def store(_inject_test_store: SqliteRecordStore) -> SqliteRecordStore:
    return _inject_test_store


@pytest.fixture()
def reference() -> date:
    return REFERENCE
