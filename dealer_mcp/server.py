"""DealerDash MCP server: FastMCP entry point for dealership sales analytics."""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from dealer_mcp.clients.supabase import SupabaseClientError
from dealer_mcp.config import load_env_file
from dealer_mcp.data.repository import get_store
from dealer_mcp.tools.ingestion import (
    get_store_stats_impl,
    import_spreadsheet_impl,
    sync_remote_records_impl,
)
from dealer_mcp.tools.reports import (
    get_burden_heat_table_impl,
    get_dealer_performance_impl,
    get_demographics_impl,
    get_filter_options_impl,
    get_finance_deal_quality_impl,
    get_finance_metrics_impl,
    get_mtd_comparison_impl,
    get_mtd_report_impl,
    get_prospect_funnel_impl,
    get_sales_overview_impl,
    get_salesperson_leaderboard_impl,
    get_salesperson_profile_impl,
    get_smart_alerts_impl,
    get_smart_insights_impl,
)
from dealer_mcp.tools.responses import log_and_return_tool_error as _log_and_return_tool_error

# Load .env from project root (no extra dependency)
load_env_file()

mcp = FastMCP("DealerDash")
logger = logging.getLogger(__name__)


def _filters(date_preset: str, group: str, region: str, reference_date: str) -> dict[str, str]:
    return {
        "date_preset": date_preset,
        "group": group,
        "region": region,
        "reference_date": reference_date,
    }


def _trouble(what: str) -> str:
    return f"I am having trouble {what} right now. Please try again in a moment."


# ── Resources ───────────────────────────────────────────────────────


@mcp.resource("dealerdash://store/stats")
def store_stats_resource() -> dict[str, Any]:
    """Record counts per uploaded kind and the last replacement time."""
    return get_store().get_stats()


@mcp.prompt()
def dashboard_briefing_prompt() -> str:
    """Prompt-friendly briefing on the loaded data and the common filters."""
    return (
        "DealerDash report tools accept date_preset (All Time, Last 30 Days, "
        "This Month, Last Quarter, Year to Date), group, region and an optional "
        "reference_date (YYYY-MM-DD). Current store contents:\n\n"
        f"{json.dumps(get_store().get_stats(), indent=2)}"
    )


# ── Overview tabs ───────────────────────────────────────────────────


@mcp.tool()
def get_sales_overview(
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Units, down payments, finance-company and motor-type mix, daily and monthly trend."""
    try:
        return get_sales_overview_impl(**_filters(date_preset, group, region, reference_date))
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_sales_overview",
            exc=exc,
            user_message=_trouble("building the sales overview"),
        )


@mcp.tool()
def get_dealer_performance(
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Sales by dealer, area and dealer group with the top dealer."""
    try:
        return get_dealer_performance_impl(**_filters(date_preset, group, region, reference_date))
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_dealer_performance",
            exc=exc,
            user_message=_trouble("ranking dealers"),
        )


@mcp.tool()
def get_demographics(
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Customer gender split, occupations and customer types."""
    try:
        return get_demographics_impl(**_filters(date_preset, group, region, reference_date))
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_demographics",
            exc=exc,
            user_message=_trouble("summarizing customer demographics"),
        )


@mcp.tool()
def get_finance_metrics(
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Discount and subsidy metrics, burden composition, discount trend and risk deals."""
    try:
        return get_finance_metrics_impl(**_filters(date_preset, group, region, reference_date))
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_finance_metrics",
            exc=exc,
            user_message=_trouble("computing finance metrics"),
        )


@mcp.tool()
def get_prospect_funnel(
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Prospect conversion, velocity, pipeline aging, sources and prospect ratio."""
    try:
        return get_prospect_funnel_impl(**_filters(date_preset, group, region, reference_date))
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_prospect_funnel",
            exc=exc,
            user_message=_trouble("building the prospect funnel"),
        )


# ── Salesperson views ───────────────────────────────────────────────


@mcp.tool()
def get_salesperson_leaderboard(
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Top salespeople by units with net sales, payment method and cash vs credit."""
    try:
        return get_salesperson_leaderboard_impl(
            **_filters(date_preset, group, region, reference_date)
        )
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_salesperson_leaderboard",
            exc=exc,
            user_message=_trouble("ranking salespeople"),
        )


@mcp.tool()
def get_burden_heat_table(
    group_by: str = "salesman",
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Dealer burden per unit against the team average, by salesman or dealer."""
    try:
        return get_burden_heat_table_impl(
            group_by=group_by,
            **_filters(date_preset, group, region, reference_date),
        )
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_burden_heat_table",
            exc=exc,
            user_message=_trouble("building the burden heat table"),
        )


@mcp.tool()
def get_mtd_comparison(
    dimension: str = "dealer",
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Month-to-date vs last month by dealer, salesman, motor or finance company.

    Rows carry a three-month sparkline and linear month-end projections.
    """
    try:
        return get_mtd_comparison_impl(
            dimension=dimension,
            **_filters(date_preset, group, region, reference_date),
        )
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_mtd_comparison",
            exc=exc,
            user_message=_trouble("comparing month-to-date sales"),
        )


@mcp.tool()
def get_finance_deal_quality(
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Credit-deal share per finance company this month vs last, with DP, tenor and installment."""
    try:
        return get_finance_deal_quality_impl(
            **_filters(date_preset, group, region, reference_date)
        )
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_finance_deal_quality",
            exc=exc,
            user_message=_trouble("assessing finance deal quality"),
        )


@mcp.tool()
def get_salesperson_profile(
    name: str,
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """One salesperson's month-to-date figures, product and finance mix and recent deals."""
    try:
        return get_salesperson_profile_impl(
            name=name,
            **_filters(date_preset, group, region, reference_date),
        )
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_salesperson_profile",
            exc=exc,
            user_message=_trouble("loading that salesperson profile"),
        )


# ── Month-to-date, alerts, insights ─────────────────────────────────


@mcp.tool()
def get_mtd_report(
    view: str = "dealer",
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Net sales and discount month-to-date vs the same days last month, with daily pacing."""
    try:
        return get_mtd_report_impl(
            view=view,
            **_filters(date_preset, group, region, reference_date),
        )
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_mtd_report",
            exc=exc,
            user_message=_trouble("building the month-to-date report"),
        )


@mcp.tool()
def get_smart_alerts(
    limit: int = 0,
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Burden, star-performer, delivery, BPKB and motor-growth alerts.

    limit=0 returns every alert.
    """
    try:
        return get_smart_alerts_impl(
            limit=limit,
            **_filters(date_preset, group, region, reference_date),
        )
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_smart_alerts",
            exc=exc,
            user_message=_trouble("checking alerts"),
        )


@mcp.tool()
def get_smart_insights(
    date_preset: str = "All Time",
    group: str = "All",
    region: str = "All",
    reference_date: str = "",
) -> str:
    """Short rule-based insight cards across sales, details and prospects."""
    try:
        return get_smart_insights_impl(**_filters(date_preset, group, region, reference_date))
    except ValueError as exc:
        return str(exc)
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_smart_insights",
            exc=exc,
            user_message=_trouble("generating insights"),
        )


@mcp.tool()
def get_filter_options() -> str:
    """Available date presets, dealer groups and regions."""
    try:
        return get_filter_options_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_filter_options",
            exc=exc,
            user_message=_trouble("loading filter options"),
        )


# ── Data management ─────────────────────────────────────────────────


@mcp.tool()
async def import_spreadsheet(file_path: str, kind: str = "", push_remote: bool = False) -> str:
    """Import an .xlsx, .xlsm or .csv export, replacing stored records of that kind.

    The kind is detected from the headers unless given; master_dealers must
    be passed explicitly. push_remote=True also replaces the Supabase table.
    """
    try:
        return await import_spreadsheet_impl(
            file_path=file_path, kind=kind, push_remote=push_remote
        )
    except ValueError as exc:
        return str(exc)
    except SupabaseClientError as exc:
        logger.warning("Remote push failed (%s): %s", exc.code, exc)
        return f"Imported locally, but the remote push failed ({exc.code}): {exc}"
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="import_spreadsheet",
            exc=exc,
            user_message=_trouble("importing that file"),
        )


@mcp.tool()
async def sync_remote_records(kinds: str = "", max_rows: int = 0) -> str:
    """Pull record tables from Supabase into the local store.

    kinds is a comma-separated list (default: every kind); max_rows=0 means no cap.
    """
    try:
        return await sync_remote_records_impl(kinds=kinds, max_rows=max_rows)
    except ValueError as exc:
        return str(exc)
    except SupabaseClientError as exc:
        logger.warning("Remote sync failed (%s): %s", exc.code, exc)
        return f"Remote sync failed ({exc.code}): {exc}"
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="sync_remote_records",
            exc=exc,
            user_message=_trouble("syncing remote records"),
        )


@mcp.tool()
def get_store_stats() -> str:
    """Stored record counts per kind, last upload time and store revision."""
    try:
        return get_store_stats_impl()
    except Exception as exc:
        return _log_and_return_tool_error(
            tool_name="get_store_stats",
            exc=exc,
            user_message=_trouble("reading store statistics"),
        )


if __name__ == "__main__":
    mcp.run()
