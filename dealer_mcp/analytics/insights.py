"""Smart insights: a small rule set over the three base record sets."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from dealer_mcp.analytics.classification import is_converted
from dealer_mcp.analytics.grouping import group_count, pct, rank_descending
from dealer_mcp.config import DEFAULT_VOCABULARY, StatusVocabulary
from dealer_mcp.constants import DISCOUNT_WARNING_PCT, HEALTHY_CONVERSION_PCT
from dealer_mcp.records import (
    as_detail_sales,
    as_prospects,
    as_sales_overview,
    effective_net_sales,
)

POSITIVE = "positive"
WARNING = "warning"

SYSTEM_READY = {
    "type": POSITIVE,
    "title": "System Ready",
    "description": "Upload data files in the Data Hub to automatically generate smart insights.",
}


def _top_dealer(sales: Iterable[Any] | None) -> dict[str, str] | None:
    named = [r for r in as_sales_overview(sales) if r.dealer_name]
    counts = group_count(named, lambda r: r.dealer_name)
    ranked = rank_descending(counts, lambda row: row["count"], 1)
    if not ranked:
        return None
    name, volume = ranked[0]["key"], ranked[0]["count"]
    return {
        "type": POSITIVE,
        "title": "Top Performing Dealership",
        "description": (
            f"{name} is leading your region with {volume} total volume sales. "
            "Consider scaling their local marketing strategies to other branches."
        ),
    }


def _conversion(prospects: Iterable[Any] | None, vocabulary: StatusVocabulary) -> dict[str, str] | None:
    rows = as_prospects(prospects)
    if not rows:
        return None
    converted = sum(1 for r in rows if is_converted(r.status, vocabulary))
    rate = pct(converted, len(rows))
    healthy = rate > HEALTHY_CONVERSION_PCT
    advice = (
        "Healthy funnel momentum detected across branches."
        if healthy
        else "This is below the optimal threshold. Review salesman follow-up speeds."
    )
    return {
        "type": POSITIVE if healthy else WARNING,
        "title": "Funnel Conversion Rate",
        "description": f"Your aggregated prospect conversion rate sits at {rate:.1f}%. {advice}",
    }


def _discount_burn(details: Iterable[Any] | None) -> dict[str, str] | None:
    """Total discount over gross revenue, taken as net sales plus list price."""
    rows = as_detail_sales(details)
    gross = sum(effective_net_sales(r) + r.list_price for r in rows)
    if gross <= 0:
        return None
    rate = pct(sum(r.total_discount for r in rows), gross)
    if rate <= DISCOUNT_WARNING_PCT:
        return None
    return {
        "type": WARNING,
        "title": "High Discount Burn Rate",
        "description": (
            f"Discount penetration represents {rate:.1f}% of gross revenues. "
            "Optimize your pricing bands to protect dealer margins."
        ),
    }


def build_smart_insights(
    sales: Iterable[Any] | None,
    details: Iterable[Any] | None,
    prospects: Iterable[Any] | None,
    *,
    vocabulary: StatusVocabulary = DEFAULT_VOCABULARY,
) -> list[dict[str, str]]:
    insights = [
        entry
        for entry in (
            _top_dealer(sales),
            _conversion(prospects, vocabulary),
            _discount_burn(details),
        )
        if entry is not None
    ]
    return insights or [dict(SYSTEM_READY)]
