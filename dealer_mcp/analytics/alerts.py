"""Rule-based smart alerts over detail sales transactions."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

from dealer_mcp.analytics.classification import efficiency_label, is_bpkb_done, is_delivered
from dealer_mcp.analytics.grouping import bucket_key, group_by, pct, rank_descending, safe_ratio
from dealer_mcp.analytics.timewindow import CURRENT, LAST, mtd_window, percent_change
from dealer_mcp.config import DEFAULT_VOCABULARY, StatusVocabulary
from dealer_mcp.constants import (
    BPKB_BACKLOG_DAYS,
    MAX_OVERDISCOUNTERS_PER_DEALER,
    MIN_GROWTH_PCT,
    MIN_GROWTH_UNITS,
    OVER_DISCOUNT,
    OVERDUE_DELIVERY_DAYS,
)
from dealer_mcp.records import as_detail_sales, billing_date, dealer_burden

CRITICAL = "critical"
POSITIVE = "positive"
WARNING = "warning"
INFO = "info"


def _rupiah(value: float) -> str:
    return f"Rp {value:,.0f}"


def build_smart_alerts(
    records: Iterable[Any] | None,
    *,
    reference: date,
    vocabulary: StatusVocabulary = DEFAULT_VOCABULARY,
) -> dict[str, Any]:
    """Scan transactions for over-discounting, a star performer, fulfilment
    backlogs and the fastest-growing motor type.

    The team average burden spans every transaction; salesman and motor
    statistics are taken over the MTD window ending at ``reference``.
    """
    rows = as_detail_sales(records)
    window = mtd_window(reference)

    team_total = 0.0
    salesmen: dict[str, dict[str, Any]] = {}
    motors: dict[str, dict[str, int]] = {}
    overdue = backlog = 0

    for record in rows:
        burden = dealer_burden(record)
        team_total += burden
        billed = billing_date(record)
        motor = bucket_key(record.motor_type)

        bucket = window.bucket(billed)
        if bucket == CURRENT:
            stat = salesmen.setdefault(
                bucket_key(record.salesman),
                {"units": 0, "burden": 0.0, "dealer": bucket_key(record.dealer_name)},
            )
            stat["units"] += 1
            stat["burden"] += burden
            motors.setdefault(motor, {"mtd": 0, "last": 0})["mtd"] += 1
        elif bucket == LAST:
            motors.setdefault(motor, {"mtd": 0, "last": 0})["last"] += 1

        if billed is not None and not is_delivered(record.delivery_status, vocabulary):
            if (reference - billed).days > OVERDUE_DELIVERY_DAYS:
                overdue += 1
        if record.handover_date is not None and not is_bpkb_done(record.bpkb_status, vocabulary):
            if (reference - record.handover_date).days > BPKB_BACKLOG_DAYS:
                backlog += 1

    team_avg = safe_ratio(team_total, len(rows))
    alerts: list[dict[str, str]] = []

    over: list[dict[str, Any]] = []
    star: dict[str, Any] | None = None
    for name, stat in salesmen.items():
        avg = safe_ratio(stat["burden"], stat["units"])
        entry = {"name": name, "dealer": stat["dealer"], "units": stat["units"], "avg_burden": avg}
        if efficiency_label(avg) == OVER_DISCOUNT:
            over.append(entry)
        if avg < team_avg and (star is None or stat["units"] > star["units"]):
            star = entry

    critical_count = 0
    for dealer, entries in group_by(over, lambda e: e["dealer"]).items():
        for entry in rank_descending(
            entries, lambda e: e["avg_burden"], MAX_OVERDISCOUNTERS_PER_DEALER
        ):
            above = pct(entry["avg_burden"] - team_avg, team_avg)
            alerts.append(
                {
                    "type": CRITICAL,
                    "text": (
                        f"[{dealer}] {entry['name']} · avg {_rupiah(entry['avg_burden'])}/unit: "
                        f"{above:.1f}% above team avg · {entry['units']} units"
                    ),
                }
            )
            critical_count += 1

    if star is not None:
        below = pct(team_avg - star["avg_burden"], team_avg)
        alerts.append(
            {
                "type": POSITIVE,
                "text": (
                    f"{star['name']} · {star['units']} units · "
                    f"{_rupiah(star['avg_burden'])}/unit: {below:.1f}% below team avg"
                ),
            }
        )

    if overdue:
        alerts.append(
            {
                "type": WARNING,
                "text": f"{overdue} units not delivered after > {OVERDUE_DELIVERY_DAYS} days",
            }
        )
    if backlog:
        alerts.append(
            {
                "type": WARNING,
                "text": f"{backlog} units with BPKB pending after > {BPKB_BACKLOG_DAYS} days",
            }
        )

    best_motor: str | None = None
    best_growth = 0.0
    for name, stat in motors.items():
        if stat["last"] > 0 and stat["mtd"] > MIN_GROWTH_UNITS:
            growth = percent_change(stat["mtd"], stat["last"])
            if growth > MIN_GROWTH_PCT and growth > best_growth:
                best_growth = growth
                best_motor = name
    if best_motor is not None:
        alerts.append({"type": INFO, "text": f"{best_motor} grew +{best_growth:.1f}% MTD"})

    return {
        "alerts": alerts,
        "team_avg_burden": team_avg,
        "critical_count": critical_count,
        "star_performer": star["name"] if star else None,
        "overdue_delivery_count": overdue,
        "bpkb_backlog_count": backlog,
        "top_growth_motor": best_motor,
        "top_growth_pct": best_growth,
    }
