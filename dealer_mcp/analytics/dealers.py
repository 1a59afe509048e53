"""Dealer performance metrics over unit-sale applications."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from dealer_mcp.analytics.grouping import counts_as_series
from dealer_mcp.records import as_sales_overview, dealer_label

TOP_LIMIT = 10


def build_dealer_performance(records: Iterable[Any] | None) -> dict[str, Any]:
    rows = as_sales_overview(records)
    dealers = counts_as_series(rows, dealer_label)
    return {
        "total_dealers": len(dealers),
        "top_dealer": dealers[0]["name"] if dealers else "N/A",
        "sales_by_dealer": dealers[:TOP_LIMIT],
        "sales_by_area": counts_as_series(rows, lambda r: r.area),
        "sales_by_group": counts_as_series(rows, lambda r: r.dealer_group, TOP_LIMIT),
    }
