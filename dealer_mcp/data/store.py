"""RecordStore protocol and SQLite implementation for uploaded spreadsheet rows."""

from __future__ import annotations

import json
import math
import numbers
import sqlite3
import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import date, datetime, timezone
from typing import Any, Protocol, runtime_checkable

from dealer_mcp.constants import RECORD_KINDS

BATCH_SIZE = 2500

ProgressCallback = Callable[[int, int], None]


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, numbers.Integral):
        return int(value)
    if isinstance(value, numbers.Real):
        number = float(value)
        return number if math.isfinite(number) else 0
    return str(value)


def serialize_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """JSON-safe copy of a raw row: dates as ISO strings, NaN/inf as 0."""
    return {str(key): _json_value(value) for key, value in row.items()}


def _check_kind(kind: str) -> None:
    if kind not in RECORD_KINDS:
        raise ValueError(f"Unknown record kind {kind!r}; expected one of {', '.join(RECORD_KINDS)}")


# ── Protocol ────────────────────────────────────────────────────────


@runtime_checkable
class RecordStore(Protocol):
    """Minimal interface for raw record persistence."""

    def replace(
        self,
        kind: str,
        rows: Iterable[Mapping[str, Any]],
        *,
        progress: ProgressCallback | None = None,
    ) -> int: ...
    def fetch(self, kind: str) -> list[dict[str, Any]]: ...
    def count(self, kind: str | None = None) -> int: ...
    def revision(self) -> int: ...
    def get_stats(self) -> dict[str, Any]: ...


# ── SQLite implementation ───────────────────────────────────────────


class SqliteRecordStore:
    """SQLite-backed store holding one JSON payload per uploaded row.

    Uploading a kind replaces all of that kind's rows; uploads never stack.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._revision = 0
        with self._lock:
            if db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA synchronous=NORMAL")
            self._create_schema()

    def _create_schema(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS records (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                kind        TEXT NOT NULL,
                position    INTEGER NOT NULL,
                payload     TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_records_kind_position
                ON records(kind, position);

            CREATE TABLE IF NOT EXISTS uploads (
                kind        TEXT PRIMARY KEY,
                row_count   INTEGER NOT NULL,
                replaced_at TEXT NOT NULL
            );
        """)

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ── Public API ─────────────────────────────────────────────────

    def replace(
        self,
        kind: str,
        rows: Iterable[Mapping[str, Any]],
        *,
        progress: ProgressCallback | None = None,
    ) -> int:
        """Delete ``kind``'s rows, then insert ``rows`` in batches.

        ``progress(written, total)`` is called after each batch.
        """
        _check_kind(kind)
        payloads = [json.dumps(serialize_row(row), ensure_ascii=False) for row in rows]
        total = len(payloads)
        with self._lock:
            with self._conn:
                self._conn.execute("DELETE FROM records WHERE kind = ?", (kind,))
                for start in range(0, total, BATCH_SIZE):
                    batch = payloads[start:start + BATCH_SIZE]
                    self._conn.executemany(
                        "INSERT INTO records (kind, position, payload) VALUES (?, ?, ?)",
                        [(kind, start + offset, payload) for offset, payload in enumerate(batch)],
                    )
                    if progress is not None:
                        progress(start + len(batch), total)
                self._conn.execute(
                    """INSERT INTO uploads (kind, row_count, replaced_at) VALUES (?, ?, ?)
                       ON CONFLICT(kind) DO UPDATE SET
                           row_count = excluded.row_count,
                           replaced_at = excluded.replaced_at""",
                    (kind, total, self._now()),
                )
            self._revision += 1
        return total

    def fetch(self, kind: str) -> list[dict[str, Any]]:
        _check_kind(kind)
        with self._lock:
            rows = self._conn.execute(
                "SELECT payload FROM records WHERE kind = ? ORDER BY position",
                (kind,),
            ).fetchall()
        return [json.loads(row["payload"]) for row in rows]

    def count(self, kind: str | None = None) -> int:
        with self._lock:
            if kind is None:
                return self._conn.execute("SELECT COUNT(*) FROM records").fetchone()[0]
            _check_kind(kind)
            return self._conn.execute(
                "SELECT COUNT(*) FROM records WHERE kind = ?", (kind,)
            ).fetchone()[0]

    def revision(self) -> int:
        """Monotonic counter bumped on every replace; used to memoize loads."""
        with self._lock:
            return self._revision

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            counts = {
                row["kind"]: row["n"]
                for row in self._conn.execute(
                    "SELECT kind, COUNT(*) AS n FROM records GROUP BY kind"
                ).fetchall()
            }
            uploads = {
                row["kind"]: row["replaced_at"]
                for row in self._conn.execute("SELECT kind, replaced_at FROM uploads").fetchall()
            }
        return {
            "total_records": sum(counts.values()),
            "by_kind": {kind: counts.get(kind, 0) for kind in RECORD_KINDS},
            "last_replaced_at": {kind: uploads.get(kind) for kind in RECORD_KINDS},
            "revision": self._revision,
        }
