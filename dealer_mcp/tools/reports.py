"""Report tool implementations: load, resolve the reference date, filter, aggregate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from dealer_mcp.analytics import (
    DATE_PRESETS,
    FilterSelection,
    apply_global_filters,
    build_burden_heat_table,
    build_dealer_performance,
    build_demographics,
    build_finance_deal_quality,
    build_finance_metrics,
    build_mtd_comparison,
    build_mtd_report,
    build_prospect_funnel,
    build_sales_overview,
    build_salesperson_leaderboard,
    build_salesperson_profile,
    build_smart_alerts,
    build_smart_insights,
    filter_options,
)
from dealer_mcp.analytics.filters import ALL, ALL_TIME
from dealer_mcp.analytics.timewindow import resolve_reference_date
from dealer_mcp.config import DashboardSettings, get_settings
from dealer_mcp.data.repository import load_dataset, load_directory
from dealer_mcp.records import Dataset
from dealer_mcp.tools.responses import build_response


@dataclass(frozen=True)
class ReportContext:
    """Filtered records plus the resolved reference date for one tool call."""

    dataset: Dataset
    reference: date
    selection: FilterSelection
    settings: DashboardSettings


def parse_reference_date(value: str) -> date | None:
    """Parse an explicit ``YYYY-MM-DD`` override; blank means "use the policy"."""
    value = (value or "").strip()
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(
            f"reference_date must be an ISO date (YYYY-MM-DD), got {value!r}."
        ) from None


def prepare_context(
    *,
    date_preset: str = ALL_TIME,
    group: str = ALL,
    region: str = ALL,
    reference_date: str = "",
) -> ReportContext:
    """Load the current uploads and apply the global filters.

    The reference date is resolved from the unfiltered records so that
    narrowing the filters never moves "today".
    """
    date_preset = (date_preset or ALL_TIME).strip()
    if date_preset not in DATE_PRESETS:
        raise ValueError(
            f"Unknown date_preset {date_preset!r}. "
            f"Expected one of: {', '.join(DATE_PRESETS)}."
        )
    settings = get_settings()
    dataset = load_dataset()
    reference = parse_reference_date(reference_date) or resolve_reference_date(
        settings.reference_policy, dataset.dates()
    )
    selection = FilterSelection(
        date_preset=date_preset,
        group=(group or ALL).strip(),
        region=(region or ALL).strip(),
    )
    filtered = apply_global_filters(dataset, selection, reference, load_directory())
    return ReportContext(
        dataset=filtered,
        reference=reference,
        selection=selection,
        settings=settings,
    )


def _render(tool_name: str, ctx: ReportContext, data: object) -> str:
    return build_response(
        tool_name,
        data,
        reference=ctx.reference,
        filters=ctx.selection.as_dict(),
    )


# ── Overview tabs ───────────────────────────────────────────────────


def get_sales_overview_impl(**filters: str) -> str:
    ctx = prepare_context(**filters)
    return _render("get_sales_overview", ctx, build_sales_overview(ctx.dataset.sales))


def get_dealer_performance_impl(**filters: str) -> str:
    ctx = prepare_context(**filters)
    return _render("get_dealer_performance", ctx, build_dealer_performance(ctx.dataset.sales))


def get_demographics_impl(**filters: str) -> str:
    ctx = prepare_context(**filters)
    data = build_demographics(ctx.dataset.sales, vocabulary=ctx.settings.vocabulary)
    return _render("get_demographics", ctx, data)


def get_finance_metrics_impl(**filters: str) -> str:
    ctx = prepare_context(**filters)
    return _render("get_finance_metrics", ctx, build_finance_metrics(ctx.dataset.details))


def get_prospect_funnel_impl(**filters: str) -> str:
    ctx = prepare_context(**filters)
    data = build_prospect_funnel(
        ctx.dataset.prospects,
        ctx.dataset.details,
        reference=ctx.reference,
        vocabulary=ctx.settings.vocabulary,
    )
    return _render("get_prospect_funnel", ctx, data)


# ── Salesperson views ───────────────────────────────────────────────


def get_salesperson_leaderboard_impl(**filters: str) -> str:
    ctx = prepare_context(**filters)
    data = build_salesperson_leaderboard(ctx.dataset.details, vocabulary=ctx.settings.vocabulary)
    return _render("get_salesperson_leaderboard", ctx, data)


def get_burden_heat_table_impl(*, group_by: str = "salesman", **filters: str) -> str:
    ctx = prepare_context(**filters)
    data = build_burden_heat_table(ctx.dataset.details, group_by=group_by.strip().lower())
    return _render("get_burden_heat_table", ctx, data)


def get_mtd_comparison_impl(*, dimension: str = "dealer", **filters: str) -> str:
    ctx = prepare_context(**filters)
    data = build_mtd_comparison(
        ctx.dataset.details,
        reference=ctx.reference,
        dimension=dimension.strip().lower(),
    )
    return _render("get_mtd_comparison", ctx, data)


def get_finance_deal_quality_impl(**filters: str) -> str:
    ctx = prepare_context(**filters)
    data = build_finance_deal_quality(
        ctx.dataset.details,
        reference=ctx.reference,
        vocabulary=ctx.settings.vocabulary,
    )
    return _render("get_finance_deal_quality", ctx, data)


def get_salesperson_profile_impl(*, name: str, **filters: str) -> str:
    name = (name or "").strip()
    if not name:
        return "Salesperson name is required."
    ctx = prepare_context(**filters)
    data = build_salesperson_profile(ctx.dataset.details, name, reference=ctx.reference)
    if data is None:
        return f"No sales found for salesperson '{name}'."
    return _render("get_salesperson_profile", ctx, data)


# ── Month-to-date, alerts, insights ─────────────────────────────────


def get_mtd_report_impl(*, view: str = "dealer", **filters: str) -> str:
    ctx = prepare_context(**filters)
    data = build_mtd_report(ctx.dataset.details, reference=ctx.reference, view=view.strip().lower())
    return _render("get_mtd_report", ctx, data)


def get_smart_alerts_impl(*, limit: int = 0, **filters: str) -> str:
    if limit < 0:
        return "Limit must be 0 (all alerts) or greater."
    ctx = prepare_context(**filters)
    data = build_smart_alerts(
        ctx.dataset.details,
        reference=ctx.reference,
        vocabulary=ctx.settings.vocabulary,
    )
    if limit:
        data["alerts"] = data["alerts"][:limit]
    return _render("get_smart_alerts", ctx, data)


def get_smart_insights_impl(**filters: str) -> str:
    ctx = prepare_context(**filters)
    data = build_smart_insights(
        ctx.dataset.sales,
        ctx.dataset.details,
        ctx.dataset.prospects,
        vocabulary=ctx.settings.vocabulary,
    )
    return _render("get_smart_insights", ctx, {"insights": data})


def get_filter_options_impl() -> str:
    """Filter choices come from every upload, never from a filtered view."""
    return build_response("get_filter_options", filter_options(load_dataset(), load_directory()))
