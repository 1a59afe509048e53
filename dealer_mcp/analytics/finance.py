"""Finance and discount-risk metrics over detail sales transactions."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from dealer_mcp.analytics.classification import is_high_risk
from dealer_mcp.analytics.grouping import bucket_key, pct, rank_descending, round2
from dealer_mcp.constants import (
    BURDEN_COMPOSITION_LIMIT,
    FINANCE_IMPACT_LIMIT,
    MILLION,
    MIN_SALESMAN_VOLUME,
    RISK_LIST_LIMIT,
    SALESMAN_BEHAVIOR_LIMIT,
)
from dealer_mcp.records import DetailSalesRecord, as_detail_sales, transaction_date

CASH_FINANCE_LABEL = "CASH / None"


def _empty_metrics() -> dict[str, Any]:
    return {
        "gross_revenue": 0.0,
        "total_discount": 0.0,
        "avg_discount_pct": 0.0,
        "net_sales": 0.0,
        "dealer_subsidy": 0.0,
        "main_dealer_subsidy": 0.0,
        "brand_subsidy": 0.0,
        "finance_subsidy": 0.0,
        "external_subsidy": 0.0,
        "dealer_share_pct": 0.0,
        "avg_discount_per_unit": 0.0,
        "high_risk_count": 0,
        "dealer_subsidized_count": 0,
        "finance_contribution_pct": 0.0,
        "overall_intensity": 0.0,
        "total_transactions": 0,
    }


def _risk_row(record: DetailSalesRecord) -> dict[str, Any]:
    when = transaction_date(record)
    return {
        "dealer": record.dealer_name or record.dealer_code or "-",
        "salesman": record.salesman or "-",
        "motor": bucket_key(record.motor_type),
        "discount_pct": record.total_discount / record.list_price * 100,
        "dealer_subsidy": record.burden_dealer or 0.0,
        "finance_subsidy": record.burden_finance,
        "date": when.strftime("%d %b %Y") if when else "-",
    }


def build_finance_metrics(records: Iterable[Any] | None) -> dict[str, Any]:
    """Aggregate discount, subsidy split and risk views across all transactions.

    Burden components are summed as exported (a missing ``Beban Dealer`` counts
    as zero here); ``net_sales`` likewise sums the exported column only.
    """
    rows = as_detail_sales(records)
    metrics = _empty_metrics()
    if not rows:
        return {
            "metrics": metrics,
            "burden_composition": [],
            "discount_trend": [],
            "behavior_by_salesman": [],
            "finance_impact": [],
            "risk_transactions": [],
        }

    gross = discount = net = 0.0
    b_dealer = b_md = b_brand = b_fincoy = 0.0
    high_risk = subsidized = 0

    motors: dict[str, dict[str, Any]] = {}
    months: dict[str, dict[str, Any]] = {}
    salesmen: dict[str, dict[str, float]] = {}
    fincoys: dict[str, dict[str, float]] = {}
    risk: list[dict[str, Any]] = []

    for record in rows:
        dealer_part = record.burden_dealer or 0.0
        gross += record.list_price
        discount += record.total_discount
        net += record.net_sales or 0.0
        b_dealer += dealer_part
        b_md += record.burden_main_dealer
        b_brand += record.burden_brand
        b_fincoy += record.burden_finance
        if dealer_part > 0:
            subsidized += 1

        motor = bucket_key(record.motor_type)
        composition = motors.setdefault(
            motor, {"name": motor, "dealer": 0.0, "md": 0.0, "ahm": 0.0, "fincoy": 0.0, "count": 0}
        )
        composition["dealer"] += dealer_part
        composition["md"] += record.burden_main_dealer
        composition["ahm"] += record.burden_brand
        composition["fincoy"] += record.burden_finance
        composition["count"] += 1

        when = transaction_date(record)
        if when is not None:
            key = when.strftime("%Y-%m")
            bucket = months.setdefault(
                key, {"period": when.strftime("%b %Y"), "discount": 0.0, "list_price": 0.0}
            )
            bucket["discount"] += record.total_discount
            bucket["list_price"] += record.list_price

        salesman = salesmen.setdefault(
            bucket_key(record.salesman), {"discount": 0.0, "list_price": 0.0, "count": 0}
        )
        salesman["discount"] += record.total_discount
        salesman["list_price"] += record.list_price
        salesman["count"] += 1

        fincoy = fincoys.setdefault(
            record.finance_company or CASH_FINANCE_LABEL,
            {"discount": 0.0, "list_price": 0.0, "subsidy": 0.0, "count": 0},
        )
        fincoy["discount"] += record.total_discount
        fincoy["list_price"] += record.list_price
        fincoy["subsidy"] += record.burden_finance
        fincoy["count"] += 1

        if is_high_risk(record.total_discount, record.list_price):
            high_risk += 1
            risk.append(_risk_row(record))

    total = len(rows)
    metrics.update(
        {
            "gross_revenue": gross,
            "total_discount": discount,
            "avg_discount_pct": pct(discount, gross),
            "net_sales": net,
            "dealer_subsidy": b_dealer,
            "main_dealer_subsidy": b_md,
            "brand_subsidy": b_brand,
            "finance_subsidy": b_fincoy,
            "external_subsidy": b_md + b_brand + b_fincoy,
            "dealer_share_pct": pct(b_dealer, discount),
            "avg_discount_per_unit": discount / total,
            "high_risk_count": high_risk,
            "dealer_subsidized_count": subsidized,
            "finance_contribution_pct": pct(b_fincoy, discount),
            "overall_intensity": pct(discount, gross),
            "total_transactions": total,
        }
    )

    trend = [
        {
            "period": months[key]["period"],
            "discount_value": round(months[key]["discount"] / MILLION),
            "rate": round2(pct(months[key]["discount"], months[key]["list_price"])),
        }
        for key in sorted(months)
    ]

    behaviors = [
        {
            "name": name,
            "avg_rate": round2(pct(stat["discount"], stat["list_price"])),
            "volume": stat["count"],
        }
        for name, stat in salesmen.items()
        if stat["count"] >= MIN_SALESMAN_VOLUME
    ]

    impact = [
        {
            "name": name,
            "avg_rate": round2(pct(stat["discount"], stat["list_price"])),
            "finance_subsidy": round(stat["subsidy"] / MILLION),
            "deals": stat["count"],
        }
        for name, stat in rank_descending(
            fincoys.items(), lambda item: item[1]["count"], FINANCE_IMPACT_LIMIT
        )
    ]

    return {
        "metrics": metrics,
        "burden_composition": rank_descending(
            motors.values(), lambda row: row["count"], BURDEN_COMPOSITION_LIMIT
        ),
        "discount_trend": trend,
        "behavior_by_salesman": rank_descending(
            behaviors, lambda row: row["avg_rate"], SALESMAN_BEHAVIOR_LIMIT
        ),
        "finance_impact": impact,
        "risk_transactions": rank_descending(
            risk, lambda row: row["discount_pct"], RISK_LIST_LIMIT
        ),
    }
