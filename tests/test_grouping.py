"""Tests for the shared group/rank primitives."""

from __future__ import annotations

from dealer_mcp.analytics.grouping import (
    bucket_key,
    counts_as_series,
    group_by,
    group_count,
    group_sum,
    pct,
    rank_descending,
    safe_ratio,
)


class TestGrouping:
    def test_blank_key_is_unknown(self):
        assert bucket_key("") == "Unknown"
        assert bucket_key(None) == "Unknown"
        assert bucket_key("  D1 ") == "D1"

    def test_group_count_keeps_unknown(self):
        rows = [{"dealer": "D1"}, {"dealer": ""}, {"dealer": "D1"}]
        assert group_count(rows, lambda r: r["dealer"]) == [
            {"key": "D1", "count": 2},
            {"key": "Unknown", "count": 1},
        ]

    def test_group_sum(self):
        rows = [("a", 1.5), ("b", 2.0), ("a", 0.5)]
        assert group_sum(rows, lambda r: r[0], lambda r: r[1]) == [
            {"key": "a", "sum": 2.0},
            {"key": "b", "sum": 2.0},
        ]

    def test_group_by_preserves_encounter_order(self):
        groups = group_by(["b1", "a1", "b2"], lambda s: s[0])
        assert list(groups) == ["b", "a"]
        assert groups["b"] == ["b1", "b2"]


class TestRanking:
    def test_ties_keep_encounter_order(self):
        items = [("x", 1), ("y", 3), ("z", 1), ("w", 3)]
        assert rank_descending(items, lambda i: i[1]) == [("y", 3), ("w", 3), ("x", 1), ("z", 1)]

    def test_limit(self):
        assert rank_descending([3, 1, 2], lambda v: v, 2) == [3, 2]
        assert rank_descending([3, 1, 2], lambda v: v, 0) == []

    def test_counts_as_series(self):
        series = counts_as_series(["a", "b", "b"], lambda v: v)
        assert series == [{"name": "b", "value": 2}, {"name": "a", "value": 1}]

    def test_empty_input(self):
        assert counts_as_series([], lambda v: v) == []
        assert rank_descending(None, lambda v: v) == []


class TestRatios:
    def test_zero_denominator(self):
        assert safe_ratio(5, 0) == 0.0
        assert pct(1, 0) == 0.0

    def test_pct(self):
        assert pct(1, 4) == 25.0
