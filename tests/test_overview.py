"""Tests for the sales overview, dealer performance and demographics engines."""

from __future__ import annotations

from factories import sales_row

from dealer_mcp.analytics.dealers import build_dealer_performance
from dealer_mcp.analytics.demographics import build_demographics
from dealer_mcp.analytics.overview import build_sales_overview


class TestSalesOverview:
    def test_totals_and_mix(self):
        rows = [
            sales_row(),
            sales_row(**{"Fincoy": "Adira", "DP Aktual": 2_500_000}),
            sales_row(**{"Fincoy": "", "Tgl Mohon": "2024-02-10"}),
        ]
        result = build_sales_overview(rows)
        assert result["total_units"] == 3
        assert result["total_down_payment"] == 5_500_000
        assert result["avg_down_payment"] == 5_500_000 / 3
        assert result["active_finance_providers"] == 2
        assert {"name": "Unknown", "value": 1} in result["sales_by_finance_company"]
        assert result["sales_by_type"] == [{"name": "BeAT", "value": 3}]

    def test_daily_and_monthly_trend_are_chronological(self):
        rows = [
            sales_row(**{"Tgl Mohon": "2024-03-10"}),
            sales_row(**{"Tgl Mohon": None, "Tanggal SSU": "2024-02-01"}),
            sales_row(**{"Tgl Mohon": "2024-03-10"}),
            sales_row(**{"Tgl Mohon": "garbage"}),
        ]
        result = build_sales_overview(rows)
        assert result["sales_by_date"] == [
            {"date": "2024-02-01", "sales": 1},
            {"date": "2024-03-10", "sales": 2},
        ]
        assert result["monthly_trend"] == [
            {"period": "Feb 2024", "sales": 1},
            {"period": "Mar 2024", "sales": 2},
        ]
        assert result["total_units"] == 4

    def test_empty(self):
        result = build_sales_overview(None)
        assert result["total_units"] == 0
        assert result["avg_down_payment"] == 0.0
        assert result["sales_by_date"] == []


class TestDealerPerformance:
    def test_top_dealer_and_unknown_bucket(self):
        rows = [
            sales_row(),
            sales_row(),
            sales_row(**{"Dealer/SO": "", "Kode Dealer": ""}),
            sales_row(**{"Dealer/SO": "Dealer Dua", "Grup Dealer": ""}),
        ]
        result = build_dealer_performance(rows)
        assert result["total_dealers"] == 3
        assert result["top_dealer"] == "Dealer Satu"
        assert {"name": "Unknown", "value": 1} in result["sales_by_dealer"]
        assert {"name": "Unknown", "value": 1} in result["sales_by_group"]

    def test_empty(self):
        result = build_dealer_performance([])
        assert result["top_dealer"] == "N/A"
        assert result["sales_by_dealer"] == []


class TestDemographics:
    def test_gender_split(self):
        rows = [
            sales_row(),
            sales_row(**{"Gender5": "Wanita"}),
            sales_row(**{"Gender5": "Laki-laki"}),
            sales_row(**{"Gender5": ""}),
        ]
        result = build_demographics(rows)
        assert result["male_count"] == 2
        assert result["female_count"] == 1
        assert result["male_percentage"] == 67
        assert result["total_customers"] == 4
        assert result["top_occupation"] == "Karyawan Swasta"

    def test_empty(self):
        result = build_demographics([])
        assert result["male_percentage"] == 0
        assert result["top_occupation"] == "N/A"
