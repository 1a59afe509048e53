"""Sales overview metrics over unit-sale applications."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from dealer_mcp.analytics.grouping import counts_as_series
from dealer_mcp.records import as_sales_overview, sales_date

TOP_LIMIT = 10


def build_sales_overview(records: Iterable[Any] | None) -> dict[str, Any]:
    rows = as_sales_overview(records)
    daily: dict[str, int] = {}
    monthly: dict[str, dict[str, Any]] = {}
    providers: set[str] = set()
    total_dp = 0.0
    for record in rows:
        total_dp += record.down_payment
        if record.finance_company:
            providers.add(record.finance_company)
        when = sales_date(record)
        if when is None:
            continue
        daily[when.isoformat()] = daily.get(when.isoformat(), 0) + 1
        month = monthly.setdefault(
            when.strftime("%Y-%m"), {"period": when.strftime("%b %Y"), "sales": 0}
        )
        month["sales"] += 1

    return {
        "total_units": len(rows),
        "total_down_payment": total_dp,
        "avg_down_payment": total_dp / len(rows) if rows else 0.0,
        "active_finance_providers": len(providers),
        "sales_by_finance_company": counts_as_series(rows, lambda r: r.finance_company, TOP_LIMIT),
        "sales_by_type": counts_as_series(rows, lambda r: r.motor_type, TOP_LIMIT),
        "sales_by_date": [{"date": day, "sales": daily[day]} for day in sorted(daily)],
        "monthly_trend": [monthly[key] for key in sorted(monthly)],
    }
