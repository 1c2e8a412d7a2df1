import itertools
import random

import pytest

from kubecost_exporter.canonical import (
    TaggedValue,
    ValueKind,
    canonicalize,
    format_float,
    sort_and_join_mapping,
    sort_and_join_sequence,
    tag,
)


def test_text_is_verbatim():
    assert canonicalize("value1") == "value1"
    assert canonicalize("") == ""


def test_sequence_of_text():
    assert canonicalize(["value2a", "value2b", "value2c"], ",") == "value2a,value2b,value2c"


def test_mapping_of_text():
    value = {"key3a": "value3a", "key3b": "value3b", "key3c": "value3c"}
    assert canonicalize(value) == "key3a:value3a,key3b:value3b,key3c:value3c"


@pytest.mark.parametrize(
    "items, expected",
    [
        (["a", "c", "b"], "a,b,c"),
        ([3, 1, 2], "1,2,3"),
        ([10, 9, 100], "9,10,100"),
        ([2.5, 0.5, 1.25], "0.5,1.25,2.5"),
        ([2.0, 1.0], "1,2"),
        ([], ""),
    ],
)
def test_sort_and_join_sequence(items, expected):
    assert sort_and_join_sequence(items, ",") == expected


def test_sort_and_join_sequence_does_not_mutate_input():
    items = ["c", "a", "b"]
    sort_and_join_sequence(items)
    assert items == ["c", "a", "b"]


def test_sequence_is_order_independent():
    items = ["beta", "alpha", "delta", "gamma"]
    results = {canonicalize(list(p), ";") for p in itertools.permutations(items)}
    assert results == {"alpha;beta;delta;gamma"}


def test_mapping_is_insertion_order_independent():
    pairs = [("zone", "us-east-1"), ("app", "api"), ("team", "core"), ("tier", 2)]
    results = set()
    for _ in range(10):
        shuffled = pairs[:]
        random.shuffle(shuffled)
        results.add(canonicalize(dict(shuffled)))
    assert results == {"app:api,team:core,tier:2,zone:us-east-1"}


@pytest.mark.parametrize(
    "mapping, expected",
    [
        ({"a": "1", "c": "3", "b": "2"}, "a:1,b:2,c:3"),
        ({"a": 1, "b": 2}, "a:1,b:2"),
        ({"a": 13.37, "b": 0.1}, "a:13.37,b:0.1"),
        ({"a": 2.0}, "a:2"),
        ({"a": 1e21}, "a:1000000000000000000000"),
        ({"a": 1e-7}, "a:0.0000001"),
        ({}, ""),
    ],
)
def test_sort_and_join_mapping(mapping, expected):
    assert sort_and_join_mapping(mapping, ",") == expected


def test_mapping_skips_values_that_are_not_scalars():
    mapping = {"a": "1", "nested": {"x": "y"}, "list": ["z"], "flag": True, "none": None}
    assert canonicalize(mapping) == "a:1"


def test_custom_separator():
    assert canonicalize({"a": "1", "b": "2"}, "|") == "a:1|b:2"
    assert canonicalize(["b", "a"], "|") == "a|b"


@pytest.mark.parametrize(
    "value",
    [0.1, 1.0 / 3.0, 13.37, 123456789.123, 5e-324, 1.7976931348623157e308, -2.5, 0.0],
)
def test_format_float_round_trips(value):
    assert float(format_float(value)) == value


def test_format_float_non_finite():
    assert format_float(float("nan")) == "NaN"
    assert format_float(float("inf")) == "+Inf"
    assert format_float(float("-inf")) == "-Inf"


def test_top_level_numbers_are_empty():
    assert canonicalize(42) == ""
    assert canonicalize(13.37) == ""
    assert canonicalize(float("nan")) == ""


def test_nested_numbers_render_without_exponent():
    assert canonicalize([3.0, 42]) == "3,42"
    assert canonicalize({"a": 0.25, "b": 1e21}) == "a:0.25,b:1000000000000000000000"


def test_sequence_with_nan_is_order_independent():
    nan = float("nan")
    orders = [[nan, 2.0, 1.0], [1.0, nan, 2.0], [2.0, 1.0, nan]]
    assert {canonicalize(items) for items in orders} == {"1,2,NaN"}


@pytest.mark.parametrize("value", [None, True, False, object()])
def test_other_values_are_empty(value):
    assert canonicalize(value) == ""


def test_tag_never_treats_booleans_as_integers():
    assert tag(True).kind is ValueKind.OTHER
    assert tag(1).kind is ValueKind.INTEGER
    assert tag(1.5).kind is ValueKind.FLOAT
    assert tag("x").kind is ValueKind.TEXT
    assert tag(["x"]).kind is ValueKind.SEQUENCE
    assert tag({"x": 1}).kind is ValueKind.MAPPING


def test_tag_passes_tagged_values_through():
    tagged = TaggedValue(ValueKind.TEXT, "already")
    assert tag(tagged) is tagged
    assert canonicalize(tagged) == "already"


def test_mixed_sequence_is_deterministic():
    """Mixed kinds are not expected upstream; they still render the same every time."""
    first = canonicalize(["b", 2, "a", 1.5])
    second = canonicalize([1.5, "a", 2, "b"])
    assert first == second == "1.5,2,a,b"
