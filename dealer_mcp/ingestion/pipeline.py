"""Spreadsheet ingestion pipeline: read, detect, validate and replace.

Uploads are whole-file replacements per record kind.  Rows are validated
leniently: unknown columns pass through, numeric columns must hold something
numeric (thousands separators allowed) and date columns are normalized, with
unparseable dates becoming blank rather than rejecting the row.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from dealer_mcp.clients.supabase import SupabaseClient
from dealer_mcp.constants import (
    DETAIL_SALESPEOPLE,
    MASTER_DEALERS,
    PROSPECT_ACQUISITION,
    RECORD_KINDS,
    SALES_OVERVIEW,
)
from dealer_mcp.data.repository import get_store
from dealer_mcp.data.store import RecordStore
from dealer_mcp.normalization import has_value, parse_number, to_date

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = (".xlsx", ".xlsm")
CSV_SUFFIXES = (".csv",)

# Lower-cased headers that identify each export.
FILE_SIGNATURES: dict[str, tuple[str, ...]] = {
    SALES_OVERVIEW: ("no mesin", "tgl mohon", "dp aktual"),
    DETAIL_SALESPEOPLE: ("no prospect", "nama salesman", "harga ofr"),
    PROSPECT_ACQUISITION: ("prospectnumber", "source prospect", "followupdate"),
}

NUMERIC_COLUMNS: dict[str, tuple[str, ...]] = {
    SALES_OVERVIEW: ("DP Aktual", "Tenor3", "Cicilan"),
    DETAIL_SALESPEOPLE: (
        "DP",
        "Tenor",
        "Angsuran",
        "Harga OFR",
        "Diskon Total",
        "Net Sales",
        "Beban Dealer",
        "Beban MD",
        "Beban AHM",
        "Beban Fincoy",
    ),
    PROSPECT_ACQUISITION: (),
    MASTER_DEALERS: (),
}

DATE_COLUMNS: dict[str, tuple[str, ...]] = {
    SALES_OVERVIEW: ("Tgl Mohon", "Tanggal SSU"),
    DETAIL_SALESPEOPLE: (
        "Tanggal Prospect",
        "Tanggal SPK",
        "Tanggal Billing",
        "Tgl BSTK",
        "Tanggal BSTK",
    ),
    PROSPECT_ACQUISITION: ("RegistrationDate", "FollowUpDate"),
    MASTER_DEALERS: (),
}


class IngestionError(ValueError):
    """Raised when an uploaded file cannot be read or classified."""


@dataclass
class IngestSummary:
    """Validation outcome for one uploaded file."""

    kind: str
    total: int = 0
    valid: int = 0
    errors: int = 0
    rows: list[dict[str, Any]] = field(default_factory=list)
    first_error: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "total": self.total,
            "valid": self.valid,
            "errors": self.errors,
            "first_error": self.first_error,
        }


# ── Reading ─────────────────────────────────────────────────────────


def _frame_to_rows(frame: pd.DataFrame) -> list[dict[str, Any]]:
    frame = frame.rename(columns=lambda col: str(col).strip())
    frame = frame.dropna(how="all")
    frame = frame.astype(object).where(frame.notna(), None)
    return frame.to_dict(orient="records")


def read_spreadsheet(path: str | Path, *, sheet_name: str | int = 0) -> list[dict[str, Any]]:
    """Read the first sheet of an Excel workbook, or a CSV file, into flat rows."""
    source = Path(path)
    if not source.is_file():
        raise IngestionError(f"File not found: {source}")
    suffix = source.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        frame = pd.read_excel(source, sheet_name=sheet_name, engine="openpyxl")
    elif suffix in CSV_SUFFIXES:
        frame = pd.read_csv(source)
    else:
        raise IngestionError(
            f"Unsupported file type {suffix or '(none)'}; expected .xlsx, .xlsm or .csv"
        )
    rows = _frame_to_rows(frame)
    logger.info("Read %d rows from %s", len(rows), source.name)
    return rows


def detect_file_type(headers: Iterable[str]) -> str | None:
    """Classify an export by its header signature; ``None`` when unrecognized."""
    normalized = {str(h).strip().lower() for h in headers}
    for kind, signature in FILE_SIGNATURES.items():
        if all(column in normalized for column in signature):
            return kind
    return None


# ── Validation ──────────────────────────────────────────────────────


def _validate_row(kind: str, row: Mapping[str, Any]) -> tuple[dict[str, Any] | None, str]:
    if not isinstance(row, Mapping) or not any(has_value(v) for v in row.values()):
        return None, "row is empty"
    clean = dict(row)
    for column in NUMERIC_COLUMNS[kind]:
        value = clean.get(column)
        if not has_value(value):
            continue
        number = parse_number(value)
        if number is None:
            return None, f"column {column!r} is not numeric: {value!r}"
        clean[column] = number
    for column in DATE_COLUMNS[kind]:
        if column in clean:
            clean[column] = to_date(clean[column])
    return clean, ""


def validate_rows(kind: str, rows: Iterable[Mapping[str, Any]]) -> IngestSummary:
    if kind not in RECORD_KINDS:
        raise IngestionError(f"Unknown record kind {kind!r}")
    summary = IngestSummary(kind=kind)
    for index, row in enumerate(rows):
        summary.total += 1
        clean, error = _validate_row(kind, row)
        if clean is None:
            if summary.errors == 0:
                summary.first_error = f"row {index}: {error}"
                logger.warning("Row %d validation error (%s): %s", index, kind, error)
            summary.errors += 1
            continue
        summary.valid += 1
        summary.rows.append(clean)
    return summary


# ── Import ──────────────────────────────────────────────────────────


def import_rows(
    rows: list[dict[str, Any]],
    *,
    kind: str | None = None,
    store: RecordStore | None = None,
    progress: Callable[[int, int], None] | None = None,
) -> IngestSummary:
    """Validate ``rows`` and replace the store's records of that kind."""
    if not rows:
        raise IngestionError("No rows to import.")
    kind = kind or detect_file_type(rows[0].keys())
    if kind is None:
        raise IngestionError(
            "Could not detect file type. Ensure headers match one of the supported export layouts."
        )
    summary = validate_rows(kind, rows)
    logger.info(
        "Validated %s upload: %d total, %d valid, %d errors",
        kind,
        summary.total,
        summary.valid,
        summary.errors,
    )
    if summary.valid == 0:
        return summary
    (store or get_store()).replace(kind, summary.rows, progress=progress)
    return summary


def import_spreadsheet(
    path: str | Path,
    *,
    kind: str | None = None,
    store: RecordStore | None = None,
    progress: Callable[[int, int], None] | None = None,
) -> IngestSummary:
    """Read, detect, validate and persist one uploaded export."""
    return import_rows(read_spreadsheet(path), kind=kind, store=store, progress=progress)


async def push_to_remote(
    client: SupabaseClient,
    summary: IngestSummary,
    *,
    progress: Callable[[int, int], None] | None = None,
) -> int:
    """Replace the remote table of ``summary.kind`` with its validated rows."""
    if summary.valid == 0:
        return 0
    uploaded = await client.replace_table(summary.kind, summary.rows, progress=progress)
    logger.info("Pushed %d %s rows to remote", uploaded, summary.kind)
    return uploaded


async def sync_from_remote(
    client: SupabaseClient,
    *,
    store: RecordStore | None = None,
    kinds: Iterable[str] = RECORD_KINDS,
    max_rows: int | None = None,
) -> dict[str, int]:
    """Pull each remote table into the local store, replacing local rows.

    Every table is fetched before any local kind is replaced, so a failed
    fetch leaves the store untouched.
    """
    kinds = tuple(kinds)
    for kind in kinds:
        if kind not in RECORD_KINDS:
            raise IngestionError(f"Unknown record kind {kind!r}")
    store = store or get_store()
    fetched = {kind: await client.fetch_table(kind, max_rows=max_rows) for kind in kinds}
    synced: dict[str, int] = {}
    for kind, rows in fetched.items():
        synced[kind] = store.replace(kind, rows)
        logger.info("Synced %d %s rows from remote", synced[kind], kind)
    return synced
