import json
from decimal import Decimal

import pytest

from dbtunnel.config.settings import InferenceLimits
from dbtunnel.outputs.result_normalizer import ResultNormalizer, to_plain_value


@pytest.fixture
def normalizer():
    return ResultNormalizer()


def test_system_columns_come_first(normalizer):
    columns = normalizer.extract_columns([{"id": "1", "_ts": 123, "name": "A"}])
    assert [c.name for c in columns] == ["_ts", "id", "name"]


def test_column_order_types_and_nullability(normalizer):
    rows = [{
        "name": "Jane",
        "age": 41,
        "email": None,
        "isActive": True,
        "id": "7",
    }]
    columns = normalizer.extract_columns(rows)

    assert [c.name for c in columns] == ["id", "age", "email", "isActive", "name"]
    by_name = {c.name: c for c in columns}
    assert by_name["email"].type == "null"
    assert by_name["email"].nullable is True
    assert by_name["age"].type == "number"
    assert by_name["isActive"].type == "boolean"
    assert by_name["name"].nullable is False


def test_system_columns_match_case_insensitively(normalizer):
    columns = normalizer.extract_columns([{"ID": "1", "Name": "x", "_ETAG": "e"}])
    assert [c.name for c in columns] == ["ID", "_ETAG", "Name"]


def test_columns_come_from_first_row_only(normalizer):
    rows = [{"id": "1"}, {"id": "2", "late": "value"}]
    assert [c.name for c in normalizer.extract_columns(rows)] == ["id"]


def test_nullability_samples_leading_rows():
    normalizer = ResultNormalizer(InferenceLimits(nullability_sample_rows=2))
    rows = [{"a": 1}, {"a": 2}, {"a": None}]

    assert normalizer.extract_columns(rows)[0].nullable is False
    assert ResultNormalizer().extract_columns(rows)[0].nullable is True


def test_nested_values_are_preserved(normalizer):
    row = {"id": "1", "meta": {"city": "Seattle"}, "tags": ["x", "y"]}
    assert normalizer.convert_rows([row]) == [row]


def test_numbers():
    assert to_plain_value(2 ** 40) == 2 ** 40
    assert isinstance(to_plain_value(2 ** 70), float)
    assert to_plain_value(Decimal("10")) == 10
    assert isinstance(to_plain_value(Decimal("10")), int)
    assert to_plain_value(Decimal("1.5")) == 1.5
    assert to_plain_value(2.25) == 2.25


def test_sequences_and_mappings():
    assert to_plain_value((1, 2)) == [1, 2]
    assert to_plain_value({1: "a"}) == {"1": "a"}
    assert to_plain_value({"a": (Decimal("3"), None)}) == {"a": [3, None]}


def test_unrecognized_values_become_text():
    assert to_plain_value(b"raw") == "b'raw'"
    assert to_plain_value({3}) == "{3}"


@pytest.mark.parametrize("value", [
    None,
    True,
    "text",
    7,
    2 ** 70,
    Decimal("2.5"),
    (1, (2, 3)),
    {"a": {"b": [1, None]}},
    {4},
])
def test_conversion_is_idempotent(value):
    once = to_plain_value(value)
    assert to_plain_value(once) == once


def test_non_mapping_rows_are_wrapped(normalizer):
    assert normalizer.convert_rows([5]) == [{"_value": 5}]


def test_empty_inputs(normalizer):
    assert normalizer.extract_columns([]) == []
    assert normalizer.convert_rows([]) == []


@pytest.mark.parametrize("value, expected", [
    (float("nan"), "NaN"),
    (float("inf"), "Infinity"),
    (float("-inf"), "-Infinity"),
    (Decimal("NaN"), "NaN"),
    (Decimal("Infinity"), "Infinity"),
    (Decimal("-Infinity"), "-Infinity"),
])
def test_non_finite_numbers_become_text(value, expected):
    assert to_plain_value(value) == expected
    assert to_plain_value(to_plain_value(value)) == expected


def test_decimal_beyond_double_range_keeps_its_digits():
    assert to_plain_value(Decimal("1E+999")) == "1E+999"


def test_rows_with_non_finite_values_serialize_as_json(normalizer):
    rows = normalizer.convert_rows([{"x": float("inf"), "y": "a"}, {"x": Decimal("NaN"), "y": "b"}])

    text = json.dumps(rows, allow_nan=False)
    assert json.loads(text) == [{"x": "Infinity", "y": "a"}, {"x": "NaN", "y": "b"}]


def _nested(levels):
    value = []
    for _ in range(levels):
        value = [value]
    return value


def test_deeply_nested_value_is_cut_at_depth_cap():
    converted = to_plain_value(_nested(3000))

    depth = 0
    while isinstance(converted, list):
        converted = converted[0]
        depth += 1
    assert depth == 64
    assert isinstance(converted, str)


def test_value_depth_cap_is_configurable():
    normalizer = ResultNormalizer(InferenceLimits(max_value_depth=2))
    rows = normalizer.convert_rows([{"a": {"b": {"c": [1]}}, "n": 1}])

    assert rows == [{"a": {"b": '{"c": [1]}'}, "n": 1}]


def test_deep_row_does_not_fail_the_batch(normalizer):
    rows = normalizer.convert_rows([{"id": "1", "deep": _nested(3000)}, {"id": "2", "deep": []}])

    assert len(rows) == 2
    assert rows[1] == {"id": "2", "deep": []}
    json.dumps(rows, allow_nan=False)
