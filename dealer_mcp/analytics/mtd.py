"""Month-to-date report: current vs comparable last month over detail sales."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

from dealer_mcp.analytics.grouping import bucket_key, pct, rank_descending
from dealer_mcp.analytics.timewindow import (
    CURRENT,
    LAST,
    linear_pace,
    mtd_window,
    pacing_series,
    percent_change,
)
from dealer_mcp.constants import MILLION
from dealer_mcp.records import (
    DetailSalesRecord,
    as_detail_sales,
    effective_net_sales,
    transaction_date,
)

MTD_TABLE_LIMIT = 50
VIEWS = ("dealer", "salesman")


def _view_key(record: DetailSalesRecord, view: str) -> str:
    if view == "dealer":
        return bucket_key(record.dealer_name or record.dealer_code)
    return bucket_key(record.salesman)


def _totals() -> dict[str, float]:
    return {"net_sales": 0.0, "discount": 0.0, "gross": 0.0, "units": 0}


def build_mtd_report(
    records: Iterable[Any] | None,
    *,
    reference: date,
    view: str = "dealer",
) -> dict[str, Any]:
    """Totals, changes, cumulative pace chart and per-entity table for the MTD window.

    Transactions are dated by billing date, falling back to SPK date.
    """
    if view not in VIEWS:
        raise ValueError(f"view must be one of {', '.join(VIEWS)}")
    rows = as_detail_sales(records)
    window = mtd_window(reference)

    current = _totals()
    last = _totals()
    table: dict[str, dict[str, Any]] = {}
    for record in rows:
        bucket = window.bucket(transaction_date(record))
        if bucket is None:
            continue
        net = effective_net_sales(record)
        totals = current if bucket == CURRENT else last
        totals["net_sales"] += net
        totals["discount"] += record.total_discount
        totals["gross"] += record.list_price
        totals["units"] += 1

        name = _view_key(record, view)
        entry = table.setdefault(
            name, {"name": name, "curr_net": 0.0, "curr_disc": 0.0, "curr_gross": 0.0, "last_net": 0.0}
        )
        if bucket == CURRENT:
            entry["curr_net"] += net
            entry["curr_disc"] += record.total_discount
            entry["curr_gross"] += record.list_price
        elif bucket == LAST:
            entry["last_net"] += net

    performance = [
        {
            "name": entry["name"],
            "current_net_sales": entry["curr_net"],
            "last_net_sales": entry["last_net"],
            "change_pct": percent_change(entry["curr_net"], entry["last_net"]),
            "avg_discount_pct": pct(entry["curr_disc"], entry["curr_gross"]),
        }
        for entry in table.values()
        if entry["curr_net"] > 0 or entry["last_net"] > 0
    ]

    return {
        "view": view,
        "window": {
            "current_start": window.current_start.isoformat(),
            "reference": window.reference.isoformat(),
            "last_start": window.last_start.isoformat(),
            "cutoff_day": window.cutoff_day,
            "days_elapsed": window.days_elapsed,
            "days_in_month": window.days_in_current_month,
        },
        "metrics": {
            "current_net_sales": current["net_sales"],
            "current_discount": current["discount"],
            "current_gross": current["gross"],
            "current_units": current["units"],
            "avg_discount_pct": pct(current["discount"], current["gross"]),
            "last_net_sales": last["net_sales"],
            "last_discount": last["discount"],
            "last_gross": last["gross"],
            "last_units": last["units"],
            "last_avg_discount_pct": pct(last["discount"], last["gross"]),
            "net_sales_change": percent_change(current["net_sales"], last["net_sales"]),
            "discount_change": percent_change(current["discount"], last["discount"]),
            "units_change": percent_change(current["units"], last["units"]),
            "projected_net_sales": linear_pace(current["net_sales"], window),
            "projected_units": round(linear_pace(current["units"], window), 1),
        },
        "pace_chart": pacing_series(
            rows,
            transaction_date,
            effective_net_sales,
            reference,
            scale=MILLION,
            ndigits=0,
        ),
        "table": rank_descending(
            performance, lambda row: row["current_net_sales"], MTD_TABLE_LIMIT
        ),
    }
