"""Shared canonical normalization functions for spreadsheet values.

Single source of truth: imported by ``records`` (typed record construction),
``ingestion.pipeline`` (upload validation) and ``data.store`` (payload
serialization).  Every function here is total: bad input becomes ``0``,
``""`` or ``None``, never an exception.
"""

from __future__ import annotations

import math
import numbers
import re
from datetime import date, datetime, timedelta
from typing import Any

EXCEL_EPOCH = date(1899, 12, 30)

_DOT_GROUPED = re.compile(r"-?\d{1,3}(?:\.\d{3})+")

_TEXT_DATE_FORMATS = (
    "%d/%m/%Y",
    "%m/%d/%Y",
)
_FALLBACK_DATE_FORMATS = (
    "%d-%m-%Y",
    "%Y/%m/%d",
    "%d %b %Y",
    "%d %B %Y",
)


def clean_numeric_string(raw: str) -> str:
    """Keep only digits, ``'.'``, and ``'-'``."""
    return "".join(c for c in raw if c.isdigit() or c in {".", "-"})


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def parse_number(value: Any) -> float | None:
    """Parse a numeric cell; ``None`` when the cell is not a number.

    Commas are thousands separators.  Text that still fails after stripping a
    currency marker (``"Rp 150.000"``, ``"1.500.000"``) is read with dots as
    thousands separators when its digits are grouped in threes.
    """
    if value is None or isinstance(value, bool):
        return None
    if _is_number(value):
        result = float(value)
        return result if math.isfinite(result) else None
    if not isinstance(value, str):
        return None
    stripped = value.strip().replace(",", "")
    if not stripped:
        return None
    try:
        result = float(stripped)
    except ValueError:
        cleaned = clean_numeric_string(stripped)
        if _DOT_GROUPED.fullmatch(cleaned):
            cleaned = cleaned.replace(".", "")
        try:
            result = float(cleaned)
        except ValueError:
            return None
    return result if math.isfinite(result) else None


def to_number(value: Any) -> float:
    """Best-effort numeric parsing.  Returns ``0.0`` for unparseable input."""
    result = parse_number(value)
    return 0.0 if result is None else result


def has_value(value: Any) -> bool:
    """True when a raw cell holds something other than blank/NaN."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, float) and math.isnan(value):
        return False
    return True


def _from_excel_serial(serial: float) -> date | None:
    if not math.isfinite(serial):
        return None
    try:
        return EXCEL_EPOCH + timedelta(days=math.floor(serial))
    except OverflowError:
        return None


def _parse_text_date(text: str) -> date | None:
    for fmt in _TEXT_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def to_date(value: Any) -> date | None:
    """Normalize a raw cell into a calendar date, or ``None``.

    Accepts native dates/datetimes, Excel serial day counts (numbers or
    numeric strings), and text in ``dd/mm/yyyy``, ``mm/dd/yyyy`` or ISO form.
    Day-first wins whenever both readings are valid.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        try:
            return value.date()
        except ValueError:
            return None
    if isinstance(value, date):
        return value
    if _is_number(value):
        return _from_excel_serial(float(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return _from_excel_serial(float(text))
        except ValueError:
            pass
        return _parse_text_date(text)
    return None


def to_text(value: Any) -> str:
    """Stripped string form of a raw cell; ``""`` for missing values."""
    if not has_value(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def iso_or_none(value: Any) -> str | None:
    parsed = to_date(value)
    return parsed.isoformat() if parsed else None
