"""Generic group/accumulate/rank primitives shared by every report.

All helpers preserve first-encounter order of keys (``dict`` insertion order)
and sort stably, so output is deterministic for a given input ordering.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from dealer_mcp.constants import UNKNOWN

T = TypeVar("T")


def bucket_key(value: Any, fallback: str = UNKNOWN) -> str:
    """Grouping key for a raw field value; blank becomes ``fallback``."""
    if value is None:
        return fallback
    text = str(value).strip()
    return text or fallback


def group_by(records: Iterable[T], key_fn: Callable[[T], Any]) -> dict[str, list[T]]:
    groups: dict[str, list[T]] = {}
    for record in records or ():
        groups.setdefault(bucket_key(key_fn(record)), []).append(record)
    return groups


def group_count(records: Iterable[T], key_fn: Callable[[T], Any]) -> list[dict[str, Any]]:
    """Tally records per key as ``[{"key", "count"}]`` in encounter order."""
    counts: dict[str, int] = {}
    for record in records or ():
        key = bucket_key(key_fn(record))
        counts[key] = counts.get(key, 0) + 1
    return [{"key": key, "count": count} for key, count in counts.items()]


def group_sum(
    records: Iterable[T],
    key_fn: Callable[[T], Any],
    value_fn: Callable[[T], float],
) -> list[dict[str, Any]]:
    """Accumulate ``value_fn`` per key as ``[{"key", "sum"}]`` in encounter order."""
    sums: dict[str, float] = {}
    for record in records or ():
        key = bucket_key(key_fn(record))
        sums[key] = sums.get(key, 0.0) + float(value_fn(record))
    return [{"key": key, "sum": total} for key, total in sums.items()]


def rank_descending(
    items: Iterable[T],
    metric_fn: Callable[[T], float],
    limit: int | None = None,
) -> list[T]:
    """Stable descending sort; ties keep encounter order."""
    ranked = sorted(items or (), key=metric_fn, reverse=True)
    if limit is not None:
        return ranked[: max(limit, 0)]
    return ranked


def counts_as_series(
    records: Iterable[T],
    key_fn: Callable[[T], Any],
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """``[{"name", "value"}]`` chart series ranked by count."""
    ranked = rank_descending(group_count(records, key_fn), lambda row: row["count"], limit)
    return [{"name": row["key"], "value": row["count"]} for row in ranked]


def safe_ratio(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    return numerator / denominator


def pct(numerator: float, denominator: float) -> float:
    return safe_ratio(numerator, denominator) * 100


def round2(value: float) -> float:
    return round(value, 2)
