"""Tests for salesperson leaderboard, heat table, MTD comparison, deal quality and profile."""

from __future__ import annotations

import pytest
from factories import detail_row

from dealer_mcp.analytics.salespeople import (
    build_burden_heat_table,
    build_finance_deal_quality,
    build_mtd_comparison,
    build_salesperson_leaderboard,
    build_salesperson_profile,
)


def _sale(salesman: str, billed: str, **overrides):
    return detail_row(**{"Nama Salesman": salesman, "Tanggal Billing": billed, **overrides})


class TestLeaderboard:
    def test_ranks_by_units(self):
        rows = [_sale("Ani", "2024-03-01"), _sale("Budi", "2024-03-02"), _sale("Budi", "2024-03-03")]
        result = build_salesperson_leaderboard(rows)
        assert result["total_sales"] == 3
        assert result["top_performer"] == "Budi"
        assert result["top_salespeople"][0] == {
            "name": "Budi",
            "dealer": "Dealer Satu",
            "count": 2,
            "revenue": 38_000_000,
        }

    def test_net_sales_fallback_and_cash_split(self):
        row = _sale("Ani", "2024-03-01", **{"Metode Pembelian": "Cash"})
        del row["Net Sales"]
        result = build_salesperson_leaderboard([row, _sale("Ani", "2024-03-02")])
        assert result["total_net_sales"] == 19_000_000 + 19_000_000
        assert result["cash_vs_credit"] == [
            {"name": "Cash", "value": 1},
            {"name": "Credit", "value": 1},
        ]

    def test_empty(self):
        result = build_salesperson_leaderboard([])
        assert result["top_performer"] == "N/A"
        assert result["top_salespeople"] == []


class TestBurdenHeatTable:
    def test_vs_team_and_efficiency(self):
        rows = [
            _sale("Ani", "2024-03-01", **{"Beban Dealer": 200_000}),
            _sale("Budi", "2024-03-01", **{"Beban Dealer": 600_000}),
        ]
        table = build_burden_heat_table(rows)
        assert table["team_avg"] == 400_000
        budi, ani = table["rows"]
        assert budi["name"] == "Budi"
        assert budi["vs_team"] == "+50.0%"
        assert budi["efficiency"] == "Over-discount"
        assert ani["vs_team"] == "-50.0%"
        assert ani["efficiency"] == "Efficient"

    def test_missing_burden_falls_back_to_discount(self):
        row = _sale("Ani", "2024-03-01", **{"Diskon Total": 350_000})
        del row["Beban Dealer"]
        table = build_burden_heat_table([row])
        assert table["rows"][0]["avg_burden"] == 350_000
        assert table["rows"][0]["efficiency"] == "Watch"

    def test_group_by_dealer(self):
        table = build_burden_heat_table([_sale("Ani", "2024-03-01")], group_by="dealer")
        assert table["rows"][0]["name"] == "Dealer Satu"

    def test_rejects_unknown_grouping(self):
        with pytest.raises(ValueError, match="group_by"):
            build_burden_heat_table([], group_by="region")


class TestMTDComparison:
    def test_units_sparkline_and_projection(self, reference):
        rows = [
            _sale("Ani", "2024-03-05"),
            _sale("Ani", "2024-03-14"),
            _sale("Ani", "2024-02-10"),
            _sale("Ani", "2024-02-20"),
            _sale("Ani", "2024-01-03"),
        ]
        result = build_mtd_comparison(rows, reference=reference, dimension="salesman")
        row = result["rows"][0]
        assert row["mtd_units"] == 2
        assert row["last_units"] == 1
        assert row["delta_units_pct"] == pytest.approx(100.0)
        assert row["spark"] == [1, 2, 2]
        assert result["spark_labels"] == ["Jan", "Feb", "Mar"]
        assert result["spark_max"] == 2
        assert row["projected_units"] == pytest.approx(round(2 / 15 * 31, 1))

    def test_rejects_unknown_dimension(self, reference):
        with pytest.raises(ValueError, match="dimension"):
            build_mtd_comparison([], reference=reference, dimension="colour")

    def test_empty(self, reference):
        result = build_mtd_comparison([], reference=reference)
        assert result["rows"] == []
        assert result["spark_max"] == 1


class TestFinanceDealQuality:
    def test_credit_share_by_company(self, reference):
        rows = [
            _sale("Ani", "2024-03-02", **{"DP": 3_000_000}),
            _sale("Ani", "2024-03-03", **{"Nama Fincoy/Perusahaan MOP": "Adira", "DP": 1_000_000}),
            _sale("Ani", "2024-02-02"),
            _sale("Ani", "2024-03-04", **{"Metode Pembelian": "Cash"}),
        ]
        result = build_finance_deal_quality(rows, reference=reference)
        assert result["total_mtd"] == 2
        assert result["total_last"] == 1
        fif = next(row for row in result["rows"] if row["name"] == "FIF")
        assert fif["mtd_share"] == pytest.approx(50.0)
        assert fif["last_share"] == pytest.approx(100.0)
        assert fif["share_delta"] == pytest.approx(-50.0)
        assert fif["avg_dp"] == 3_000_000
        assert fif["avg_tenor"] == 24


class TestSalespersonProfile:
    def test_unknown_salesperson(self, reference):
        assert build_salesperson_profile([_sale("Ani", "2024-03-01")], "Zed", reference=reference) is None

    def test_profile(self, reference):
        rows = [
            _sale("Ani", "2024-03-01", **{"Tipe Motor": "Vario"}),
            _sale("Ani", "2024-03-12"),
            _sale("Ani", "2024-02-12", **{"Nama Fincoy/Perusahaan MOP": "", "Tenor": 0}),
            _sale("Budi", "2024-03-12"),
        ]
        profile = build_salesperson_profile(rows, "Ani", reference=reference)
        assert profile["mtd_units"] == 2
        assert profile["mtd_net_sales"] == 38_000_000
        assert profile["avg_tenor"] == 24
        assert profile["finance_mix"] == [{"name": "FIF", "count": 2}, {"name": "Cash", "count": 1}]
        assert [entry["date"] for entry in profile["recent"]] == [
            "2024-03-12",
            "2024-03-01",
            "2024-02-12",
        ]
        assert [point["month"] for point in profile["monthly_trend"]] == ["Dec", "Jan", "Feb", "Mar"]
        assert [point["count"] for point in profile["monthly_trend"]] == [0, 0, 1, 2]
        assert profile["trend_start"] == "2023-12-01"

    def test_motor_mix_ranks_counts_and_buckets_blanks(self, reference):
        motors = ["Vario", "", "BeAT", "", "Vario", "PCX", "Scoopy"]
        rows = [_sale("Ani", "2024-03-01", **{"Tipe Motor": motor}) for motor in motors]
        profile = build_salesperson_profile(rows, "Ani", reference=reference)
        assert profile["motor_mix"] == [
            {"name": "Vario", "count": 2},
            {"name": "Unknown", "count": 2},
            {"name": "BeAT", "count": 1},
            {"name": "PCX", "count": 1},
        ]
