"""Tests for status predicates and threshold classification."""

from __future__ import annotations

import pytest

from dealer_mcp.analytics.classification import (
    aging_bucket,
    efficiency_label,
    gender_side,
    is_bpkb_done,
    is_converted,
    is_credit,
    is_delivered,
    is_high_risk,
    prospect_ratio_band,
)
from dealer_mcp.config import StatusVocabulary


class TestStatusPredicates:
    @pytest.mark.parametrize("status", ["SPK Deal", "deal", "Sudah SPK", "DEAL - CASH"])
    def test_converted(self, status):
        assert is_converted(status)

    @pytest.mark.parametrize("status", ["Follow Up", "", "Lost"])
    def test_not_converted(self, status):
        assert not is_converted(status)

    def test_delivery_and_bpkb(self):
        assert is_delivered("Sudah Terkirim")
        assert not is_delivered("Belum Kirim")
        assert is_bpkb_done("SUDAH JADI")
        assert not is_bpkb_done("Proses")

    def test_credit(self):
        assert is_credit("Kredit")
        assert not is_credit("Cash")

    def test_custom_vocabulary(self):
        vocabulary = StatusVocabulary(converted=("closed",))
        assert is_converted("Closed Won", vocabulary)
        assert not is_converted("SPK", vocabulary)

    def test_gender_side_is_exact(self):
        assert gender_side("Pria") == "male"
        assert gender_side("WANITA") == "female"
        assert gender_side("Priak") is None


class TestThresholds:
    def test_risk_boundary_is_strict(self):
        assert not is_high_risk(120_000, 1_000_000)
        assert is_high_risk(120_100, 1_000_000)

    def test_risk_ignores_zero_price(self):
        assert not is_high_risk(1_000, 0)

    @pytest.mark.parametrize(
        ("avg_burden", "label"),
        [
            (299_999, "Efficient"),
            (300_000, "Watch"),
            (500_000, "Watch"),
            (500_001, "Over-discount"),
        ],
    )
    def test_efficiency_bands(self, avg_burden, label):
        assert efficiency_label(avg_burden) == label

    @pytest.mark.parametrize(
        ("ratio", "band"),
        [(None, "gray"), (3.0, "red"), (3.5, "orange"), (5.0, "yellow"), (5.1, "green")],
    )
    def test_prospect_ratio_band(self, ratio, band):
        assert prospect_ratio_band(ratio) == band

    @pytest.mark.parametrize(("days", "bucket"), [(0, "Hot"), (6, "Hot"), (7, "Warm"), (30, "Warm"), (31, "Cold")])
    def test_aging_bucket(self, days, bucket):
        assert aging_bucket(days) == bucket
