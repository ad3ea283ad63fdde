"""Tests for canonical JSON typing, truthiness and equality"""

import math

import pytest

from chainprobe.execution.types import MISSING
from chainprobe.execution.values import JsonType, is_truthy, json_type, matches_type, strict_equals


class TestJsonType:

    @pytest.mark.parametrize("value,expected", [
        ("x", JsonType.STRING),
        (4, JsonType.NUMBER),
        (4.5, JsonType.NUMBER),
        (True, JsonType.BOOLEAN),
        (False, JsonType.BOOLEAN),
        ({"a": 1}, JsonType.OBJECT),
        ([1, 2], JsonType.ARRAY),
        (None, JsonType.NULL),
        (MISSING, JsonType.UNDEFINED),
    ])
    def test_classification(self, value, expected):
        assert json_type(value) == expected

    def test_object_accepts_arrays(self):
        assert matches_type([1], "object")
        assert matches_type([1], "array")
        assert not matches_type({"a": 1}, "array")

    def test_null_is_not_object(self):
        assert not matches_type(None, "object")
        assert matches_type(None, "null")

    def test_bool_is_not_number(self):
        assert not matches_type(True, "number")
        assert matches_type(True, "boolean")


class TestTruthiness:

    @pytest.mark.parametrize("value", [MISSING, None, False, 0, 0.0, math.nan, ""])
    def test_falsy(self, value):
        assert not is_truthy(value)

    @pytest.mark.parametrize("value", [True, 1, -1, "0", "false", [], {}, [0]])
    def test_truthy(self, value):
        assert is_truthy(value)


class TestStrictEquals:

    def test_number_vs_string(self):
        assert not strict_equals(4, "4")
        assert not strict_equals("4", 4)

    def test_bool_vs_number(self):
        assert not strict_equals(True, 1)
        assert not strict_equals(0, False)

    def test_int_equals_float(self):
        assert strict_equals(4, 4.0)

    def test_null_vs_missing(self):
        assert strict_equals(None, None)
        assert not strict_equals(MISSING, None)

    def test_containers_compare_structurally(self):
        assert strict_equals({"a": [1, {"b": "c"}]}, {"a": [1, {"b": "c"}]})
        assert not strict_equals({"a": [1]}, {"a": [True]})
        assert not strict_equals([1, 2], [1, 2, 3])
        assert not strict_equals({"a": 1}, {"a": 1, "b": 2})


class TestLargeNumbers:
    """Integers beyond float range still classify and compare"""

    def test_huge_int_is_truthy(self):
        assert is_truthy(10 ** 400)
        assert not is_truthy(0)

    def test_huge_int_type_and_equality(self):
        assert json_type(10 ** 400) == JsonType.NUMBER
        assert strict_equals(10 ** 400, 10 ** 400)
        assert not strict_equals(10 ** 400, 1.0)
