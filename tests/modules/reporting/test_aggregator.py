"""Tests for the shared aggregation functions."""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.modules.reporting.aggregator import (
    count_by,
    count_by_status,
    group_by,
    group_by_month,
    join_lookup,
    month_key,
    parse_datetime,
    percentage_of,
    ratio,
    resolve,
    sort_by_date,
    sorted_months,
    sum_by,
    within_days,
)


class TestParseDatetime:
    def test_formats(self):
        assert parse_datetime("2024-01-15") == datetime(2024, 1, 15)
        assert parse_datetime("2024-01-15T10:30:00Z") == datetime(
            2024, 1, 15, 10, 30, tzinfo=timezone.utc
        )
        assert parse_datetime(date(2024, 1, 15)) == datetime(2024, 1, 15)

    def test_unparseable(self):
        assert parse_datetime(None) is None
        assert parse_datetime("") is None
        assert parse_datetime("yesterday") is None
        assert parse_datetime(1705312200) is None


class TestMonthGrouping:
    def test_month_key_zero_padded(self):
        assert month_key("2024-03-09T00:00:00Z") == "2024-03"
        assert month_key("2024-12-31T23:59:59+05:00") == "2024-12"
        assert month_key(None) is None

    def test_every_record_in_exactly_one_bucket(self):
        records = [
            {"id": 1, "d": "2024-01-31T23:00:00Z"},
            {"id": 2, "d": "2024-02-01"},
            {"id": 3, "d": "bad"},
            {"id": 4},
        ]
        groups = group_by_month(records, "d")
        assert {k: [r["id"] for r in v] for k, v in groups.items()} == {
            "2024-01": [1],
            "2024-02": [2],
            "undated": [3, 4],
        }
        assert sum(len(v) for v in groups.values()) == len(records)

    def test_empty(self):
        assert group_by_month([], "d") == {}

    def test_sorted_months(self):
        groups = {"2024-10": [], "undated": [], "2023-12": [], "2024-02": []}
        assert sorted_months(groups) == ["2023-12", "2024-02", "2024-10", "undated"]
        assert sorted_months(groups, descending=True) == [
            "2024-10", "2024-02", "2023-12", "undated",
        ]


class TestSums:
    def test_sum_by_mixed_values(self):
        records = [{"rate": "10.50"}, {"rate": 4}, {"rate": None}, {}]
        assert sum_by(records, "rate") == Decimal("14.50")

    def test_sum_by_empty(self):
        assert sum_by([], "rate") == Decimal("0")

    def test_sum_by_logs_unparseable(self, caplog):
        with caplog.at_level(logging.WARNING):
            total = sum_by([{"id": 7, "rate": "abc"}, {"id": 8, "rate": "1"}], "rate")
        assert total == Decimal("1")
        assert "id=7" in caplog.text

    def test_sum_is_order_independent(self):
        records = [{"v": "0.10"}, {"v": "0.20"}, {"v": "0.30"}]
        assert sum_by(records, "v") == sum_by(list(reversed(records)), "v") == Decimal("0.60")


class TestCounts:
    def test_count_by_drops_missing_keys(self):
        records = [{"k": "a"}, {"k": "a"}, {"k": None}, {"k": ""}, {"k": "b"}]
        assert count_by(records, lambda r: r.get("k")) == {"a": 2, "b": 1}

    def test_count_by_status_known(self):
        records = [{"status": "attended"}, {"status": "odd"}, {"status": None}, {}]
        assert count_by_status(records) == {"attended": 1, "odd": 1}
        assert count_by_status(records, known=("attended", "cancelled")) == {"attended": 1}

    def test_count_by_status_other_field(self):
        records = [{"state": "active"}, {"state": "active"}]
        assert count_by_status(records, status_field="state") == {"active": 2}

    def test_group_by_default(self):
        records = [{"t": "x"}, {"t": None}, {"t": ["unhashable"]}]
        groups = group_by(records, "t")
        assert list(groups) == ["x", "Unknown"]
        assert len(groups["Unknown"]) == 2

    def test_group_by_keeps_bool_apart_from_ids(self):
        records = [{"package": 1}, {"package": True}, {"package": 1.0}]
        groups = group_by(records, "package", default=None)
        assert groups[1] == [{"package": 1}]
        assert len(groups[None]) == 2


class TestRatios:
    @pytest.mark.parametrize(
        "part, whole, expected",
        [(2, 3, 66.666), (0, 5, 0.0), (3, 0, 0.0), (Decimal("1"), Decimal("4"), 25.0)],
    )
    def test_percentage_of(self, part, whole, expected):
        assert percentage_of(part, whole) == pytest.approx(expected, abs=0.001)

    def test_percentage_in_range(self):
        for part in range(0, 11):
            assert 0 <= percentage_of(part, 10) <= 100

    def test_ratio(self):
        assert ratio(3, 2) == 1.5
        assert ratio(3, 0) == "N/A"
        assert ratio(0, 0) == "N/A"


class TestLookups:
    def test_resolve_never_raises(self):
        lookup = {1: "Piano"}
        assert resolve(lookup, 1) == "Piano"
        assert resolve(lookup, 2) == "Unknown"
        assert resolve(lookup, None) == "Unknown"
        assert resolve(lookup, ["x"]) == "Unknown"
        assert resolve(lookup, 2, None) is None

    def test_join_lookup(self):
        records = [{"id": 1, "instrument": 1}, {"id": 2, "instrument": 9}]
        joined = join_lookup(records, "instrument", {1: "Piano"}, as_field="instrument_name")
        assert [r["instrument_name"] for r in joined] == ["Piano", "Unknown"]
        assert "instrument_name" not in records[0]

    def test_join_lookup_default_field(self):
        joined = join_lookup([{"teacher": "t1"}], "teacher", {"t1": "Anna"})
        assert joined[0]["teacher_resolved"] == "Anna"

    @pytest.mark.parametrize("key", [True, 1.0, "1", Decimal("1"), (1,)])
    def test_wrong_type_key_is_unknown(self, key):
        """Keys equal to an integer id but of another type do not resolve."""
        assert resolve({1: "Piano"}, key) == "Unknown"
        joined = join_lookup([{"instrument": key}], "instrument", {1: "Piano"}, as_field="n")
        assert joined[0]["n"] == "Unknown"

    def test_false_does_not_match_zero(self):
        assert resolve({0: "Zero"}, False) == "Unknown"
        assert resolve({0: "Zero"}, 0) == "Zero"


class TestDates:
    def test_sort_by_date(self):
        records = [
            {"id": 1, "d": "2024-01-02T00:00:00Z"},
            {"id": 2, "d": None},
            {"id": 3, "d": "2024-01-03"},
            {"id": 4, "d": "2024-01-01T12:00:00+02:00"},
        ]
        assert [r["id"] for r in sort_by_date(records, "d")] == [3, 1, 4, 2]
        assert [r["id"] for r in sort_by_date(records, "d", descending=False)] == [4, 1, 3, 2]

    def test_within_days(self):
        now = datetime(2024, 3, 31, tzinfo=timezone.utc)
        records = [
            {"id": 1, "d": "2024-03-30T10:00:00Z"},
            {"id": 2, "d": "2024-03-01T00:00:00Z"},
            {"id": 3, "d": "2024-02-15"},
            {"id": 4, "d": None},
        ]
        assert [r["id"] for r in within_days(records, "d", 30, now=now)] == [1, 2]
