"""Tests for finance and discount-risk metrics."""

from __future__ import annotations

import pytest
from factories import detail_row

from dealer_mcp.analytics.finance import CASH_FINANCE_LABEL, build_finance_metrics


def _d1(discount: int, **overrides):
    return detail_row(
        **{
            "Nama Dealer": "D1",
            "Harga OFR": 1_000_000,
            "Diskon Total": discount,
            "Net Sales": 1_000_000 - discount,
            **overrides,
        }
    )


class TestFinanceMetrics:
    def test_three_deal_dealer(self):
        result = build_finance_metrics([_d1(100_000), _d1(150_000), _d1(80_000)])
        metrics = result["metrics"]

        assert metrics["total_discount"] == 330_000
        assert metrics["avg_discount_pct"] == pytest.approx(11.0)
        assert metrics["total_transactions"] == 3
        assert metrics["avg_discount_per_unit"] == pytest.approx(110_000)
        # Only the 15% deal is strictly above the 12% line.
        assert metrics["high_risk_count"] == 1
        assert [row["discount_pct"] for row in result["risk_transactions"]] == [
            pytest.approx(15.0)
        ]

    def test_nothing_flagged_at_or_below_threshold(self):
        result = build_finance_metrics([_d1(100_000), _d1(120_000), _d1(80_000)])
        assert result["metrics"]["high_risk_count"] == 0
        assert result["risk_transactions"] == []

    def test_subsidy_split(self):
        result = build_finance_metrics([detail_row(), detail_row(**{"Beban Dealer": 0})])
        metrics = result["metrics"]
        assert metrics["dealer_subsidy"] == 200_000
        assert metrics["main_dealer_subsidy"] == 600_000
        assert metrics["external_subsidy"] == 600_000 + 600_000 + 400_000
        assert metrics["dealer_subsidized_count"] == 1
        assert metrics["dealer_share_pct"] == pytest.approx(10.0)
        assert metrics["finance_contribution_pct"] == pytest.approx(20.0)

    def test_missing_burden_and_net_count_as_zero(self):
        row = detail_row()
        del row["Beban Dealer"]
        del row["Net Sales"]
        metrics = build_finance_metrics([row])["metrics"]
        assert metrics["dealer_subsidy"] == 0
        assert metrics["net_sales"] == 0

    def test_discount_trend_sorted_by_month(self):
        rows = [
            detail_row(**{"Tanggal Billing": "2024-03-02", "Diskon Total": 2_000_000}),
            detail_row(**{"Tanggal Billing": "2024-01-15", "Diskon Total": 3_000_000}),
            detail_row(**{"Tanggal Billing": None, "Tanggal SPK": None}),
        ]
        trend = build_finance_metrics(rows)["discount_trend"]
        assert [point["period"] for point in trend] == ["Jan 2024", "Mar 2024"]
        assert trend[0] == {"period": "Jan 2024", "discount_value": 3, "rate": 15.0}

    def test_salesman_behavior_needs_three_deals(self):
        rows = [detail_row(**{"Nama Salesman": "Ani"}) for _ in range(3)]
        rows.append(detail_row(**{"Nama Salesman": "Budi"}))
        behaviors = build_finance_metrics(rows)["behavior_by_salesman"]
        assert behaviors == [{"name": "Ani", "avg_rate": 5.0, "volume": 3}]

    def test_cash_deals_grouped_in_finance_impact(self):
        rows = [
            detail_row(**{"Nama Fincoy/Perusahaan MOP": ""}),
            detail_row(),
            detail_row(),
        ]
        impact = build_finance_metrics(rows)["finance_impact"]
        assert [row["name"] for row in impact] == ["FIF", CASH_FINANCE_LABEL]
        assert impact[0]["deals"] == 2

    def test_burden_composition_by_motor(self):
        rows = [detail_row(), detail_row(**{"Tipe Motor": ""})]
        composition = build_finance_metrics(rows)["burden_composition"]
        assert {row["name"] for row in composition} == {"BeAT", "Unknown"}
        assert composition[0]["dealer"] == 200_000

    def test_empty_input(self):
        result = build_finance_metrics([])
        assert result["metrics"]["total_transactions"] == 0
        assert result["metrics"]["avg_discount_pct"] == 0.0
        assert result["risk_transactions"] == []
        assert result["discount_trend"] == []
