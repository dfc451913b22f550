"""
Unit tests for field accessors and value coercion.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from backup_restore.core.identity import canonicalize
from backup_restore.core.normalizers.fields import (
    field,
    first_identifier,
    first_matching,
    first_non_empty,
    first_present,
    joined,
    literal,
    nested,
    to_bool,
    to_datetime,
    to_number,
)

pytestmark = pytest.mark.unit


class TestAccessors:

    def test_field(self):
        assert field("a")({"a": 1}) == 1
        assert field("a")({}) is None

    def test_nested(self):
        assert nested("client", "id")({"client": {"id": "x"}}) == "x"
        assert nested("client", "id")({"client": "x"}) is None

    def test_joined_skips_blank_parts(self):
        rule = joined("first_name", "last_name")
        assert rule({"first_name": " Dana ", "last_name": "Levi"}) == "Dana Levi"
        assert rule({"first_name": "Dana", "last_name": "  "}) == "Dana"
        assert rule({}) is None

    def test_literal(self):
        assert literal("Unknown")({}) == "Unknown"


class TestChains:
    """Tests for ordered fallback chains"""

    def test_first_present_skips_blank_strings(self):
        rules = (field("a"), field("b"))
        assert first_present({"a": "  ", "b": 0}, rules) == 0

    def test_first_non_empty_strips_and_stringifies(self):
        rules = (field("a"), field("b"))
        assert first_non_empty({"a": None, "b": " x "}, rules) == "x"
        assert first_non_empty({"a": 5}, rules) == "5"

    def test_first_non_empty_skips_containers(self):
        rules = (field("a"), field("b"))
        assert first_non_empty({"a": {"x": 1}, "b": "y"}, rules) == "y"

    def test_first_matching_continues_after_rejection(self):
        rules = (field("a"), field("b"))
        assert first_matching({"a": "n/a", "b": "12"}, rules, to_number) == 12.0

    def test_first_identifier_skips_non_scalar(self):
        rules = (field("_id"), field("uuid"))
        namespace = uuid.uuid4()
        record = {"_id": {"unexpected": 1}, "uuid": "u-1"}
        assert first_identifier(record, rules, namespace) == canonicalize("u-1", namespace)

    def test_first_identifier_none(self):
        assert first_identifier({"id": ""}, (field("id"),), uuid.uuid4()) is None


class TestToNumber:

    @pytest.mark.parametrize(
        "value, expected",
        [(5, 5.0), (2.5, 2.5), ("12.40", 12.4), (" 1,250.5 ", 1250.5), ("-3", -3.0)],
    )
    def test_valid(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [True, "abc", "", None, float("nan"), "inf", [1]])
    def test_invalid(self, value):
        assert to_number(value) is None

    @pytest.mark.parametrize("value", ["1,5", "12,34", "1,2345", ",100", "1,,000"])
    def test_comma_outside_thousands_grouping(self, value):
        assert to_number(value) is None

    @pytest.mark.parametrize(
        "value, expected",
        [("1,234.50", 1234.5), ("-12,345,678", -12345678.0), ("+1,000", 1000.0)],
    )
    def test_thousands_separators(self, value, expected):
        assert to_number(value) == expected


class TestToBool:

    def test_only_explicit_booleans(self):
        assert to_bool(True) is True
        assert to_bool(False) is False
        assert to_bool("true") is None
        assert to_bool(1) is None


class TestToDatetime:

    def test_iso_with_z(self):
        assert to_datetime("2024-03-01T08:30:00Z") == datetime(
            2024, 3, 1, 8, 30, tzinfo=timezone.utc
        )

    def test_iso_with_offset(self):
        parsed = to_datetime("2024-03-01T10:30:00+02:00")
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_naive_is_utc(self):
        assert to_datetime("2024-03-01").tzinfo == timezone.utc

    def test_epoch_seconds_and_millis(self):
        expected = datetime(2024, 3, 1, tzinfo=timezone.utc)
        seconds = expected.timestamp()
        assert to_datetime(seconds) == expected
        assert to_datetime(int(seconds * 1000)) == expected

    def test_datetime_passes_through(self):
        value = datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert to_datetime(value) is value

    @pytest.mark.parametrize("value", ["yesterday", "", True, None, {"$date": 1}])
    def test_invalid(self, value):
        assert to_datetime(value) is None
