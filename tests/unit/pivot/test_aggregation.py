import json
import logging

import pytest

from datapivot.config.pivot import PivotConfig
from datapivot.domain.key import EMPTY_KEY, CompositeKey
from datapivot.pivot.aggregation import (
    AggregationMode,
    InvalidAggregationMode,
    InvalidValueError,
    UnsupportedAggregationMode,
    reduce_values,
)
from datapivot.pivot.engine import PivotAccumulator, aggregate, build_pivot


def _key(*parts: str) -> CompositeKey:
    return CompositeKey(tuple(parts))


def test_median_of_even_and_odd_lists():
    assert reduce_values([4, 1, 3, 2], "median") == 2.5
    assert reduce_values([3, 1, 2], "median") == 2


def test_median_sorts_numerically():
    assert reduce_values([10, 9, 100], "median") == 10


def test_count_unique_compares_by_value():
    assert reduce_values([1, 1, 2, 3, 3, 3], "countUnique") == 3
    assert reduce_values(["a", "b", "a"], AggregationMode.COUNT_UNIQUE) == 2


def test_sum_count_average():
    values = [2, 4, 9]
    assert reduce_values(values, "sum") == 15
    assert reduce_values(values, "count") == 3
    assert reduce_values(values, "average") == 5


def test_unknown_mode_is_an_error_not_a_sum():
    with pytest.raises(UnsupportedAggregationMode, match="max"):
        reduce_values([1, 2], "max")
    assert InvalidAggregationMode is UnsupportedAggregationMode


def test_aggregate_rejects_unknown_mode_up_front(sales_records):
    with pytest.raises(UnsupportedAggregationMode):
        aggregate(sales_records, ["region"], ["prod"], "qty", "mean")


def test_end_to_end_sum(sales_records):
    result = aggregate(sales_records, ["region"], ["prod"], "qty", "sum")

    assert [k.label for k in result.row_headers] == ["E", "W"]
    assert [g.label for g in result.column_groups] == ["A", "B"]
    matrix = result.matrix
    assert matrix.value(_key("E"), _key("A")) == 10
    assert matrix.value(_key("E"), _key("B")) == 5
    assert matrix.value(_key("W"), _key("A")) == 7
    assert (_key("W"), _key("B")) not in matrix
    assert matrix.value(_key("W"), _key("B")) == 0


def test_column_groups_keep_their_records(sales_records):
    result = aggregate(sales_records, ["region"], ["prod"], "qty")
    group_a = result.column_groups[0]
    assert [rec["region"] for rec in group_a.records] == ["E", "W"]


def test_count_mode_totals_record_count():
    records = [
        {"r": r, "c": c, "v": i}
        for i, (r, c) in enumerate(
            [("x", "1"), ("y", "2"), ("x", "1"), ("z", "1"), ("y", "1"), ("x", "2")]
        )
    ]
    result = aggregate(records, ["r"], ["c"], "v", "count")
    assert result.matrix.total() == len(records)


def test_headers_are_strictly_ascending():
    records = [
        {"a": a, "b": b, "v": 1}
        for a, b in [("b", "2"), ("a", "9"), ("b", "1"), ("a", "9"), ("c", "10")]
    ]
    result = aggregate(records, ["a", "b"], ["b"], "v")
    rows = result.row_headers
    cols = result.column_keys
    assert all(x < y for x, y in zip(rows, rows[1:]))
    assert all(x < y for x, y in zip(cols, cols[1:]))
    # tokens compare as strings
    assert [k.label for k in cols] == ["1", "10", "2", "9"]


def test_empty_records_give_empty_result():
    result = aggregate([], ["region"], ["prod"], "qty")
    assert result.row_headers == []
    assert result.column_groups == []
    assert len(result.matrix) == 0


def test_empty_axes_collapse_to_one_group(sales_records):
    result = aggregate(sales_records, [], [], "qty", "sum")
    assert result.row_headers == [EMPTY_KEY]
    assert result.column_keys == [EMPTY_KEY]
    assert result.matrix.value(EMPTY_KEY, EMPTY_KEY) == 22


def test_missing_value_field_names_field_and_record():
    with pytest.raises(InvalidValueError, match="'qty'") as excinfo:
        aggregate([{"region": "E", "prod": "A"}], ["region"], ["prod"], "qty")
    assert excinfo.value.field == "qty"
    assert excinfo.value.record == {"region": "E", "prod": "A"}


@pytest.mark.parametrize("mode", ["sum", "average", "median"])
def test_non_numeric_value_fails_numeric_modes(mode):
    records = [{"region": "E", "prod": "A", "qty": "ten"}]
    with pytest.raises(InvalidValueError, match="ten"):
        aggregate(records, ["region"], ["prod"], "qty", mode)


def test_unread_bool_field_is_ignored_but_bool_value_fails():
    records = [{"region": "E", "prod": "A", "qty": 2, "active": True}]
    assert aggregate(records, ["region"], ["prod"], "qty").matrix.total() == 2
    with pytest.raises(InvalidValueError, match="'active' must be a number or string") as excinfo:
        aggregate(records, ["region"], ["prod"], "active", "count")
    assert excinfo.value.field == "active"
    with pytest.raises(TypeError, match="'active'"):
        aggregate(records, ["active"], ["prod"], "qty")


def test_count_modes_accept_strings():
    records = [
        {"region": "E", "prod": "A", "who": "ann"},
        {"region": "E", "prod": "A", "who": "bob"},
        {"region": "E", "prod": "A", "who": "ann"},
    ]
    assert aggregate(records, ["region"], ["prod"], "who", "count").matrix.total() == 3
    assert aggregate(records, ["region"], ["prod"], "who", "countUnique").matrix.total() == 2


def test_batches_match_single_pass(sales_records):
    more = [
        {"region": "E", "prod": "A", "qty": 1},
        {"region": "N", "prod": "C", "qty": 2},
    ]
    acc = PivotAccumulator(["region"], ["prod"], "qty", "median")
    acc.extend(more[:1]).extend(sales_records).extend(more[1:])
    batched = acc.result()
    single = aggregate(sales_records + more, ["region"], ["prod"], "qty", "median")

    assert batched.row_headers == single.row_headers
    assert batched.column_keys == single.column_keys
    assert dict(batched.matrix) == dict(single.matrix)
    assert acc.record_count == 5


def test_build_pivot_is_deterministic(sales_records):
    config = PivotConfig(
        rows=["region"],
        columns=["prod"],
        value="qty",
        heatmap={"scope": "column", "show_legend": True},
    )
    first = json.dumps(build_pivot(sales_records, config).to_dict())
    second = json.dumps(build_pivot(list(reversed(sales_records)), config).to_dict())
    assert first == second


def test_build_pivot_payload(sales_records):
    config = PivotConfig(rows=["region"], columns=["prod"], value="qty")
    payload = build_pivot(sales_records, config).to_dict()

    assert payload["matrix"] == [[10, 5], [7, 0]]
    assert payload["column_spans"] == [
        [{"label": "A", "span": 1, "start": 0}, {"label": "B", "span": 1, "start": 1}]
    ]
    assert payload["aggregation"] == "sum"
    assert "heatmap" not in payload


def test_aggregate_logs_group_counts(sales_records, caplog):
    with caplog.at_level(logging.DEBUG, logger="datapivot.pivot.engine"):
        aggregate(sales_records, ["region"], ["prod"], "qty")
    assert any("Aggregated 3 records into 2 rows x 2 columns" in r.message for r in caplog.records)
