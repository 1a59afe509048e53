"""Pure aggregation engines over typed dealer records."""

from dealer_mcp.analytics.alerts import build_smart_alerts
from dealer_mcp.analytics.dealers import build_dealer_performance
from dealer_mcp.analytics.demographics import build_demographics
from dealer_mcp.analytics.filters import (
    DATE_PRESETS,
    DealerDirectory,
    FilterSelection,
    apply_global_filters,
    filter_options,
)
from dealer_mcp.analytics.finance import build_finance_metrics
from dealer_mcp.analytics.insights import build_smart_insights
from dealer_mcp.analytics.mtd import build_mtd_report
from dealer_mcp.analytics.overview import build_sales_overview
from dealer_mcp.analytics.prospects import build_prospect_funnel
from dealer_mcp.analytics.salespeople import (
    build_burden_heat_table,
    build_finance_deal_quality,
    build_mtd_comparison,
    build_salesperson_leaderboard,
    build_salesperson_profile,
)

__all__ = [
    "DATE_PRESETS",
    "DealerDirectory",
    "FilterSelection",
    "apply_global_filters",
    "build_burden_heat_table",
    "build_dealer_performance",
    "build_demographics",
    "build_finance_deal_quality",
    "build_finance_metrics",
    "build_mtd_comparison",
    "build_mtd_report",
    "build_prospect_funnel",
    "build_sales_overview",
    "build_salesperson_leaderboard",
    "build_salesperson_profile",
    "build_smart_alerts",
    "build_smart_insights",
    "filter_options",
]
