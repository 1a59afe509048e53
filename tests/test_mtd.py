"""Tests for the month-to-date report."""

from __future__ import annotations

from datetime import date

import pytest
from factories import detail_row

from dealer_mcp.analytics.mtd import build_mtd_report


def _deal(billed, net=10_000_000, **overrides):
    return detail_row(
        **{
            "Tanggal Billing": billed,
            "Net Sales": net,
            "Harga OFR": 11_000_000,
            "Diskon Total": 1_000_000,
            **overrides,
        }
    )


class TestMTDReport:
    def test_metrics_compare_same_elapsed_days(self, reference):
        rows = [
            _deal("2024-03-01"),
            _deal("2024-03-15"),
            _deal("2024-02-14"),
            _deal("2024-02-20"),
            _deal("2024-03-16"),
        ]
        metrics = build_mtd_report(rows, reference=reference)["metrics"]
        assert metrics["current_units"] == 2
        assert metrics["current_net_sales"] == 20_000_000
        assert metrics["last_units"] == 1
        assert metrics["net_sales_change"] == pytest.approx(100.0)
        assert metrics["avg_discount_pct"] == pytest.approx(1 / 11 * 100)
        assert metrics["projected_net_sales"] == pytest.approx(20_000_000 / 15 * 31)

    def test_spk_date_used_when_unbilled(self, reference):
        rows = [_deal(None, **{"Tanggal SPK": "2024-03-02"})]
        assert build_mtd_report(rows, reference=reference)["metrics"]["current_units"] == 1

    def test_pace_chart_in_millions(self, reference):
        rows = [_deal("2024-03-01"), _deal("2024-03-03", net=4_600_000), _deal("2024-02-01")]
        chart = build_mtd_report(rows, reference=reference)["pace_chart"]
        assert len(chart) == 29
        assert chart[0] == {"day": 1, "current": 10, "last": 10}
        assert chart[2]["current"] == 15
        assert chart[15]["current"] is None

    def test_table_by_view(self, reference):
        rows = [
            _deal("2024-03-01", **{"Nama Salesman": "Ani"}),
            _deal("2024-03-02", **{"Nama Salesman": "Budi"}),
            _deal("2024-03-02", **{"Nama Salesman": "Budi"}),
            _deal("2024-02-02", **{"Nama Salesman": "Cici"}),
            _deal("2024-01-02", **{"Nama Salesman": "Dedi"}),
        ]
        table = build_mtd_report(rows, reference=reference, view="salesman")["table"]
        assert [row["name"] for row in table] == ["Budi", "Ani", "Cici"]
        assert table[2]["change_pct"] == pytest.approx(-100.0)
        assert table[0]["change_pct"] == 0.0

    def test_window_summary(self):
        report = build_mtd_report([], reference=date(2024, 3, 31))
        assert report["window"]["cutoff_day"] == 29
        assert report["window"]["last_start"] == "2024-02-01"
        assert report["metrics"]["current_units"] == 0
        assert report["table"] == []

    def test_rejects_unknown_view(self, reference):
        with pytest.raises(ValueError, match="view"):
            build_mtd_report([], reference=reference, view="motor")
