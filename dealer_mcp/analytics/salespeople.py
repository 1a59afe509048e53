"""Salesperson performance: leaderboard, burden heat table, MTD comparison,
finance deal quality and the per-salesperson profile drill-down.

MTD views in this module bucket transactions by billing date.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from typing import Any

from dealer_mcp.analytics.classification import efficiency_label, is_credit
from dealer_mcp.analytics.grouping import (
    bucket_key,
    counts_as_series,
    group_count,
    group_sum,
    pct,
    rank_descending,
    safe_ratio,
)
from dealer_mcp.analytics.timewindow import (
    CURRENT,
    LAST,
    add_months,
    linear_pace,
    month_start,
    mtd_window,
    percent_change,
    trailing_month_index,
    trailing_month_labels,
)
from dealer_mcp.config import DEFAULT_VOCABULARY, StatusVocabulary
from dealer_mcp.constants import UNKNOWN
from dealer_mcp.records import (
    DetailSalesRecord,
    as_detail_sales,
    billing_date,
    dealer_burden,
    effective_net_sales,
)

LEADERBOARD_LIMIT = 10
SPARK_MONTHS = 3
PROFILE_TREND_MONTHS = 4
PROFILE_RECENT_LIMIT = 5
MOTOR_MIX_LIMIT = 4
FINANCE_MIX_LIMIT = 3

HEAT_GROUPINGS: dict[str, Callable[[DetailSalesRecord], str]] = {
    "salesman": lambda r: r.salesman,
    "dealer": lambda r: r.dealer_name,
}

MTD_DIMENSIONS: dict[str, Callable[[DetailSalesRecord], str]] = {
    "dealer": lambda r: r.dealer_name,
    "salesman": lambda r: r.salesman,
    "motor": lambda r: r.motor_type,
    "finance": lambda r: r.finance_company,
}


def _signed_pct(value: float) -> str:
    return f"{'+' if value > 0 else ''}{value:.1f}%"


def _mix(
    rows: list[DetailSalesRecord], key_fn: Callable[[DetailSalesRecord], str], limit: int
) -> list[dict[str, Any]]:
    ranked = rank_descending(group_count(rows, key_fn), lambda row: row["count"], limit)
    return [{"name": row["key"], "count": row["count"]} for row in ranked]


def build_salesperson_leaderboard(
    records: Iterable[Any] | None,
    *,
    vocabulary: StatusVocabulary = DEFAULT_VOCABULARY,
) -> dict[str, Any]:
    rows = as_detail_sales(records)
    total_net = 0.0
    people: dict[str, dict[str, Any]] = {}
    cash = credit = 0
    for record in rows:
        net = effective_net_sales(record)
        total_net += net
        name = bucket_key(record.salesman)
        entry = people.setdefault(
            name, {"name": name, "dealer": record.dealer_name or UNKNOWN, "count": 0, "revenue": 0.0}
        )
        entry["count"] += 1
        entry["revenue"] += net
        if is_credit(record.purchase_method, vocabulary):
            credit += 1
        else:
            cash += 1

    top = rank_descending(people.values(), lambda row: row["count"], LEADERBOARD_LIMIT)
    return {
        "total_sales": len(rows),
        "total_net_sales": total_net,
        "sales_by_method": counts_as_series(rows, lambda r: r.purchase_method),
        "cash_vs_credit": [
            {"name": "Cash", "value": cash},
            {"name": "Credit", "value": credit},
        ],
        "top_salespeople": top,
        "top_performer": top[0]["name"] if top else "N/A",
    }


def build_burden_heat_table(
    records: Iterable[Any] | None,
    *,
    group_by: str = "salesman",
) -> dict[str, Any]:
    """Average dealer burden per unit for each salesman (or dealer) vs the team."""
    if group_by not in HEAT_GROUPINGS:
        raise ValueError(f"group_by must be one of {', '.join(HEAT_GROUPINGS)}")
    key_fn = HEAT_GROUPINGS[group_by]
    rows = as_detail_sales(records)

    units = {row["key"]: row["count"] for row in group_count(rows, key_fn)}
    team_avg = safe_ratio(sum(dealer_burden(r) for r in rows), len(rows))
    table = []
    for row in group_sum(rows, key_fn, dealer_burden):
        name, total = row["key"], row["sum"]
        avg = safe_ratio(total, units[name])
        vs_team = pct(avg - team_avg, team_avg)
        table.append(
            {
                "name": name,
                "units": units[name],
                "total_burden": total,
                "avg_burden": avg,
                "vs_team": _signed_pct(vs_team),
                "vs_team_pct": vs_team,
                "efficiency": efficiency_label(avg),
            }
        )
    return {
        "group_by": group_by,
        "team_avg": team_avg,
        "rows": rank_descending(table, lambda row: row["avg_burden"]),
    }


def build_mtd_comparison(
    records: Iterable[Any] | None,
    *,
    reference: date,
    dimension: str = "dealer",
) -> dict[str, Any]:
    """Per-dimension MTD vs comparable last month, with sparklines and pace."""
    if dimension not in MTD_DIMENSIONS:
        raise ValueError(f"dimension must be one of {', '.join(MTD_DIMENSIONS)}")
    key_fn = MTD_DIMENSIONS[dimension]
    window = mtd_window(reference)

    groups: dict[str, dict[str, Any]] = {}
    for record in as_detail_sales(records):
        name = bucket_key(key_fn(record))
        stat = groups.setdefault(
            name,
            {
                "name": name,
                "mtd_units": 0,
                "last_units": 0,
                "mtd_sales": 0.0,
                "mtd_burden_total": 0.0,
                "spark": [0] * SPARK_MONTHS,
            },
        )
        when = billing_date(record)
        bucket = window.bucket(when)
        if bucket == CURRENT:
            stat["mtd_units"] += 1
            stat["mtd_sales"] += effective_net_sales(record)
            stat["mtd_burden_total"] += dealer_burden(record)
        elif bucket == LAST:
            stat["last_units"] += 1
        index = trailing_month_index(when, reference, SPARK_MONTHS)
        if index is not None:
            stat["spark"][index] += 1

    table = []
    spark_max = 1
    for stat in groups.values():
        avg = safe_ratio(stat["mtd_burden_total"], stat["mtd_units"])
        spark_max = max(spark_max, *stat["spark"])
        table.append(
            {
                **stat,
                "delta_units_pct": percent_change(stat["mtd_units"], stat["last_units"]),
                "avg_burden": avg,
                "efficiency": efficiency_label(avg),
                "projected_units": round(linear_pace(stat["mtd_units"], window), 1),
                "projected_sales": linear_pace(stat["mtd_sales"], window),
            }
        )

    return {
        "dimension": dimension,
        "spark_labels": trailing_month_labels(reference, SPARK_MONTHS, "%b"),
        "spark_max": spark_max,
        "rows": rank_descending(table, lambda row: row["mtd_units"]),
    }


def build_finance_deal_quality(
    records: Iterable[Any] | None,
    *,
    reference: date,
    vocabulary: StatusVocabulary = DEFAULT_VOCABULARY,
) -> dict[str, Any]:
    """Credit-deal share and terms per finance company, MTD vs last month."""
    window = mtd_window(reference)
    groups: dict[str, dict[str, Any]] = {}
    total_mtd = total_last = 0
    for record in as_detail_sales(records):
        if not is_credit(record.purchase_method, vocabulary):
            continue
        name = bucket_key(record.finance_company)
        stat = groups.setdefault(
            name,
            {"name": name, "mtd_count": 0, "last_count": 0, "dp": 0.0, "tenor": 0.0, "installment": 0.0},
        )
        bucket = window.bucket(billing_date(record))
        if bucket == CURRENT:
            stat["mtd_count"] += 1
            stat["dp"] += record.down_payment
            stat["tenor"] += record.tenor
            stat["installment"] += record.installment
            total_mtd += 1
        elif bucket == LAST:
            stat["last_count"] += 1
            total_last += 1

    table = []
    for stat in groups.values():
        mtd_share = pct(stat["mtd_count"], total_mtd)
        last_share = pct(stat["last_count"], total_last)
        table.append(
            {
                "name": stat["name"],
                "mtd_count": stat["mtd_count"],
                "last_count": stat["last_count"],
                "mtd_share": mtd_share,
                "last_share": last_share,
                "share_delta": mtd_share - last_share,
                "avg_dp": safe_ratio(stat["dp"], stat["mtd_count"]),
                "avg_tenor": safe_ratio(stat["tenor"], stat["mtd_count"]),
                "avg_installment": safe_ratio(stat["installment"], stat["mtd_count"]),
            }
        )
    return {
        "total_mtd": total_mtd,
        "total_last": total_last,
        "rows": rank_descending(table, lambda row: row["mtd_count"]),
    }


def build_salesperson_profile(
    records: Iterable[Any] | None,
    name: str,
    *,
    reference: date,
) -> dict[str, Any] | None:
    """Drill-down for one salesperson; ``None`` when they have no transactions."""
    rows = [r for r in as_detail_sales(records) if r.salesman == name]
    if not rows:
        return None

    window = mtd_window(reference)
    trend_labels = trailing_month_labels(reference, PROFILE_TREND_MONTHS, "%b")
    trend = [0] * PROFILE_TREND_MONTHS
    mtd_units = 0
    mtd_net = mtd_burden = 0.0
    total_dp = total_tenor = 0.0
    tenor_rows = 0
    recent: list[tuple[date, dict[str, Any]]] = []

    for record in rows:
        total_dp += record.down_payment
        if record.tenor > 0:
            total_tenor += record.tenor
            tenor_rows += 1
        motor = bucket_key(record.motor_type)

        when = billing_date(record)
        if when is None:
            continue
        if window.bucket(when) == CURRENT:
            mtd_units += 1
            mtd_net += effective_net_sales(record)
            mtd_burden += dealer_burden(record)
        index = trailing_month_index(when, reference, PROFILE_TREND_MONTHS)
        if index is not None:
            trend[index] += 1
        recent.append(
            (
                when,
                {
                    "date": when.isoformat(),
                    "motor": motor,
                    "dp": record.down_payment,
                    "net_sales": effective_net_sales(record),
                    "delivery": record.delivery_status or UNKNOWN,
                },
            )
        )

    avg_burden = safe_ratio(mtd_burden, mtd_units)
    recent.sort(key=lambda item: item[0], reverse=True)
    first = rows[0]
    return {
        "name": name,
        "dealer": first.dealer_name or "Unknown Dealer",
        "status": first.salesman_status or "Active",
        "mtd_units": mtd_units,
        "mtd_net_sales": mtd_net,
        "avg_burden": avg_burden,
        "efficiency": efficiency_label(avg_burden),
        "avg_dp": total_dp / len(rows),
        "avg_tenor": safe_ratio(total_tenor, tenor_rows),
        "motor_mix": _mix(rows, lambda r: r.motor_type, MOTOR_MIX_LIMIT),
        "finance_mix": _mix(rows, lambda r: r.finance_company or "Cash", FINANCE_MIX_LIMIT),
        "monthly_trend": [
            {"month": label, "count": count} for label, count in zip(trend_labels, trend)
        ],
        "trend_max": max(1, *trend),
        "recent": [entry for _, entry in recent[:PROFILE_RECENT_LIMIT]],
        "trend_start": add_months(month_start(reference), 1 - PROFILE_TREND_MONTHS).isoformat(),
    }
