"""Prospect funnel metrics: conversion, velocity, prospect ratio and aging."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

from dealer_mcp.analytics.classification import (
    aging_bucket,
    is_converted,
    prospect_ratio_band,
)
from dealer_mcp.analytics.grouping import bucket_key, counts_as_series, pct, rank_descending
from dealer_mcp.config import DEFAULT_VOCABULARY, StatusVocabulary
from dealer_mcp.constants import MIN_LEADS_FOR_LEADERBOARD
from dealer_mcp.records import ProspectRecord, as_detail_sales, as_prospects

SOURCE_LIMIT = 10
LEADERBOARD_LIMIT = 10
AGING_BUCKETS = ("Hot", "Warm", "Cold")


def _format_rate(value: float) -> str:
    return f"{value:.1f}"


def _conversion_table(
    rows: list[ProspectRecord],
    key_fn,
    vocabulary: StatusVocabulary,
) -> list[dict[str, Any]]:
    table: dict[str, dict[str, Any]] = {}
    for record in rows:
        key = bucket_key(key_fn(record))
        entry = table.setdefault(key, {"name": key, "total": 0, "converted": 0})
        entry["total"] += 1
        if is_converted(record.status, vocabulary):
            entry["converted"] += 1
    for entry in table.values():
        entry["conversion_rate"] = round(pct(entry["converted"], entry["total"]), 1)
    return list(table.values())


def prospect_ratio(total_prospects: int, completed_sales: int) -> dict[str, Any]:
    """Prospects per completed sale, formatted ``"N.N:1"`` and color-banded."""
    if completed_sales <= 0:
        return {"value": None, "label": "N/A", "band": prospect_ratio_band(None)}
    value = total_prospects / completed_sales
    return {
        "value": round(value, 1),
        "label": f"{value:.1f}:1",
        "band": prospect_ratio_band(value),
    }


def build_prospect_funnel(
    prospects: Iterable[Any] | None,
    detail_sales: Iterable[Any] | None = None,
    *,
    reference: date,
    vocabulary: StatusVocabulary = DEFAULT_VOCABULARY,
) -> dict[str, Any]:
    """Funnel health for a prospect set.

    ``detail_sales`` supplies the completed-sales count for the prospect ratio.
    Aging is measured from ``reference``; prospects without a registration date
    are left out of the aging buckets only.
    """
    rows = as_prospects(prospects)
    completed = len(as_detail_sales(detail_sales))
    total = len(rows)

    converted = 0
    velocity_days: list[int] = []
    aging = {bucket: 0 for bucket in AGING_BUCKETS}
    for record in rows:
        if is_converted(record.status, vocabulary):
            converted += 1
            if record.registration_date and record.follow_up_date:
                velocity_days.append(abs((record.follow_up_date - record.registration_date).days))
        elif record.registration_date is not None:
            age = (reference - record.registration_date).days
            aging[aging_bucket(age)] += 1

    rate = pct(converted, total)
    velocity = sum(velocity_days) / len(velocity_days) if velocity_days else 0.0

    sources = rank_descending(
        _conversion_table(rows, lambda r: r.source, vocabulary),
        lambda row: row["total"],
        SOURCE_LIMIT,
    )
    leaderboard = rank_descending(
        [
            row
            for row in _conversion_table(rows, lambda r: r.salesman, vocabulary)
            if row["total"] >= MIN_LEADS_FOR_LEADERBOARD
        ],
        lambda row: row["conversion_rate"],
        LEADERBOARD_LIMIT,
    )

    return {
        "total_prospects": total,
        "converted_prospects": converted,
        "conversion_rate": _format_rate(rate),
        "conversion_rate_value": rate,
        "active_follow_ups": total - converted,
        "velocity_days": round(velocity, 1),
        "velocity_sample": len(velocity_days),
        "prospect_ratio": prospect_ratio(total, completed),
        "completed_sales": completed,
        "pipeline_aging": [{"name": bucket, "value": aging[bucket]} for bucket in AGING_BUCKETS],
        "by_source": [
            {
                "name": row["name"],
                "value": row["total"],
                "converted": row["converted"],
                "conversion_rate": row["conversion_rate"],
            }
            for row in sources
        ],
        "by_status": counts_as_series(rows, lambda r: r.status),
        "salesperson_leaderboard": leaderboard,
    }
