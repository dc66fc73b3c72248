"""
数据整形单元测试
"""
import copy

import pytest

from app.services.data_shaping import shape_rows, to_epoch_ms

RECORDS = [
    {"category": "X", "value": 1, "date": "2024-01-01", "region": "North"},
    {"category": "Y", "value": 2, "date": "2024-01-01", "region": "South"},
    {"category": "X", "value": 3, "date": "2024-01-02", "region": "North"},
    {"category": "X", "value": 4, "date": "2024-01-01", "region": "East"},
]


class TestPieShaping:
    def test_groups_by_category_in_first_seen_order(self):
        assert shape_rows("pie", RECORDS) == [
            {"name": "X", "value": 8},
            {"name": "Y", "value": 2},
        ]

    def test_sums_values_per_category(self):
        records = [
            {"category": "A", "value": 10},
            {"category": "A", "value": 5},
            {"category": "B", "value": 3},
        ]
        assert shape_rows("pie", records) == [{"name": "A", "value": 15}, {"name": "B", "value": 3}]


class TestDatePivot:
    def test_one_row_per_date_with_category_columns(self):
        assert shape_rows("bar", RECORDS[:2]) == [{"date": "2024-01-01", "X": 1, "Y": 2}]

    def test_sums_values_per_date_and_category(self):
        assert shape_rows("line", RECORDS) == [
            {"date": "2024-01-01", "X": 5, "Y": 2},
            {"date": "2024-01-02", "X": 3},
        ]

    @pytest.mark.parametrize("widget_type", ["groupedBar", "stackedBar", "dualAxis"])
    def test_other_cartesian_types_share_the_pivot(self, widget_type):
        assert shape_rows(widget_type, RECORDS[:2]) == [{"date": "2024-01-01", "X": 1, "Y": 2}]


class TestScatterShaping:
    def test_dates_become_epoch_milliseconds(self):
        shaped = shape_rows("scatter", RECORDS[:1])
        assert shaped == [{"x": 1704067200000, "y": 1, "category": "X", "region": "North"}]

    def test_unparsable_date_gives_none(self):
        assert to_epoch_ms("not a date") is None
        assert to_epoch_ms(None) is None


class TestPassthrough:
    @pytest.mark.parametrize("widget_type", ["table", "kpi", "text", "radar"])
    def test_records_are_returned_unchanged(self, widget_type):
        assert shape_rows(widget_type, RECORDS) == RECORDS

    def test_input_is_not_mutated(self):
        snapshot = copy.deepcopy(RECORDS)
        for widget_type in ("pie", "bar", "scatter", "table"):
            shape_rows(widget_type, RECORDS)
        assert RECORDS == snapshot

    def test_passthrough_returns_copies(self):
        shaped = shape_rows("table", RECORDS)
        shaped[0]["value"] = 100
        assert RECORDS[0]["value"] == 1
