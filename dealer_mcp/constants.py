"""Shared constants used across multiple analytics modules.

Single source of truth for thresholds, sentinels and record-kind names.
"""

from __future__ import annotations

UNKNOWN = "Unknown"

# Record kinds, also the remote table names.
SALES_OVERVIEW = "sales_overview"
DETAIL_SALESPEOPLE = "detail_salespeople"
PROSPECT_ACQUISITION = "prospect_acquisition"
MASTER_DEALERS = "master_dealers"

RECORD_KINDS: tuple[str, ...] = (
    SALES_OVERVIEW,
    DETAIL_SALESPEOPLE,
    PROSPECT_ACQUISITION,
    MASTER_DEALERS,
)

# Discount risk: a transaction is high risk when discount / list price exceeds this.
HIGH_RISK_DISCOUNT_RATE = 0.12

# Dealer burden (Rp per unit) efficiency bands.
EFFICIENT_BURDEN_LIMIT = 300_000
WATCH_BURDEN_LIMIT = 500_000

EFFICIENT = "Efficient"
WATCH = "Watch"
OVER_DISCOUNT = "Over-discount"

# Prospect funnel.
HEALTHY_CONVERSION_PCT = 20.0
MIN_LEADS_FOR_LEADERBOARD = 5
HOT_PROSPECT_DAYS = 7
WARM_PROSPECT_DAYS = 30

# Finance report noise filter and list sizes.
MIN_SALESMAN_VOLUME = 3
RISK_LIST_LIMIT = 20
BURDEN_COMPOSITION_LIMIT = 10
SALESMAN_BEHAVIOR_LIMIT = 15
FINANCE_IMPACT_LIMIT = 8

# Smart alerts.
OVERDUE_DELIVERY_DAYS = 7
BPKB_BACKLOG_DAYS = 30
MAX_OVERDISCOUNTERS_PER_DEALER = 3
MIN_GROWTH_UNITS = 5
MIN_GROWTH_PCT = 20.0

# Smart insights.
DISCOUNT_WARNING_PCT = 10.0

MILLION = 1_000_000
