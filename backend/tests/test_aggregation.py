"""
Tests for the category aggregator.
"""

from datacopilot.core.types import CategoryTally
from datacopilot.services.aggregation import EMPTY_CATEGORY, aggregate_category


def test_counts_sorted_descending(headers, rows):
    result = aggregate_category(headers, rows, "city")
    assert result == [CategoryTally("Oslo", 2), CategoryTally("Bergen", 1)]


def test_unknown_column_returns_empty_list(headers, rows):
    assert aggregate_category(headers, rows, "country") == []


def test_blank_cells_fold_into_empty_bucket():
    rows = [[""], ["   "], ["a"], []]
    result = aggregate_category(["col"], rows, "col")
    assert result == [CategoryTally(EMPTY_CATEGORY, 3), CategoryTally("a", 1)]


def test_values_are_trimmed():
    result = aggregate_category(["c"], [[" Oslo"], ["Oslo "]], "c")
    assert result == [CategoryTally("Oslo", 2)]


def test_truncated_to_top_fifteen():
    rows = [[f"v{i}"] for i in range(40)] + [["v0"]]
    result = aggregate_category(["c"], rows, "c")

    assert len(result) == 15
    assert result[0] == CategoryTally("v0", 2)
    counts = [t.count for t in result]
    assert counts == sorted(counts, reverse=True)


def test_top_n_is_configurable():
    rows = [["a"], ["b"], ["c"]]
    assert len(aggregate_category(["c"], rows, "c", top_n=2)) == 2


def test_ties_keep_first_encounter_order():
    rows = [["b"], ["a"], ["c"], ["a"], ["b"]]
    result = aggregate_category(["c"], rows, "c")
    assert [t.category for t in result] == ["b", "a", "c"]


def test_duplicate_header_uses_first_position():
    result = aggregate_category(["x", "x"], [["first", "second"]], "x")
    assert result == [CategoryTally("first", 1)]
