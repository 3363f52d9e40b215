"""Tests for partial JSON repair."""

import json

import pytest

from streamdown.streamdown_json_repair import PartialJSONRepairer


@pytest.fixture
def repairer():
    """Provide a JSON repairer."""
    return PartialJSONRepairer()


class TestPartialJSONRepair:
    """Test repair of truncated JSON objects."""

    def test_complete_object(self, repairer):
        """Test that complete JSON parses directly."""
        assert repairer.repair('{"a": 1}') == {"a": 1}

    def test_open_brace_only(self, repairer):
        """Test that a lone brace is an empty object."""
        assert repairer.repair('{') == {}

    def test_unterminated_string_value(self, repairer):
        """Test closing a string value that is still streaming."""
        assert repairer.repair('{"text": "Hel') == {"text": "Hel"}

    def test_dangling_escape(self, repairer):
        """Test that a trailing backslash in a string is dropped."""
        assert repairer.repair('{"text": "a\\') == {"text": "a"}

    def test_partial_unicode_escape(self, repairer):
        """Test that a partial unicode escape is dropped."""
        assert repairer.repair('{"text": "a\\u00') == {"text": "a"}

    def test_partial_key(self, repairer):
        """Test that a partly streamed key is removed."""
        assert repairer.repair('{"a": 1, "te') == {"a": 1}

    def test_key_without_value(self, repairer):
        """Test that a key with a colon but no value is removed."""
        assert repairer.repair('{"a": 1, "b":') == {"a": 1}
        assert repairer.repair('{"a": 1, "b": ') == {"a": 1}

    def test_first_key_without_value(self, repairer):
        """Test removing the only key of an object."""
        assert repairer.repair('{"a"') == {}
        assert repairer.repair('{"a":') == {}

    def test_partial_literal_value(self, repairer):
        """Test that a partly streamed literal is removed with its key."""
        assert repairer.repair('{"a": 1, "ok": tr') == {"a": 1}
        assert repairer.repair('{"a": 1, "v": nu') == {"a": 1}
        assert repairer.repair('{"a": 1, "n": -') == {"a": 1}

    def test_complete_literal_kept(self, repairer):
        """Test that a complete literal is kept."""
        assert repairer.repair('{"ok": true') == {"ok": True}

    def test_dangling_decimal_point(self, repairer):
        """Test that a number ending in a decimal point is truncated."""
        assert repairer.repair('{"price": 12.') == {"price": 12}

    def test_number_kept(self, repairer):
        """Test that a number that may still grow is kept as it is."""
        assert repairer.repair('{"price": 12') == {"price": 12}

    def test_trailing_comma(self, repairer):
        """Test that a trailing comma is removed."""
        assert repairer.repair('{"a": 1,') == {"a": 1}

    def test_nested_containers_closed_in_order(self, repairer):
        """Test closing nested arrays and objects."""
        assert repairer.repair('{"a": [1, {"b": [2, 3') == {"a": [1, {"b": [2, 3]}]}

    def test_trailing_comma_in_array(self, repairer):
        """Test a trailing comma inside an array."""
        assert repairer.repair('{"items": [1, 2,') == {"items": [1, 2]}

    def test_string_in_array_not_stripped_as_key(self, repairer):
        """Test that a string inside an array is kept."""
        assert repairer.repair('{"tags": ["a", "b') == {"tags": ["a", "b"]}

    def test_nested_dangling_key(self, repairer):
        """Test a dangling key in a nested object."""
        assert repairer.repair('{"a": {"b": 1, "c":') == {"a": {"b": 1}}

    def test_double_closing_braces(self, repairer):
        """Test a fragment already ending in two closing braces."""
        assert repairer.repair('{"a": {"b": {}}') == {"a": {"b": {}}}

    def test_incomplete_exponent_removed(self, repairer):
        """Test that a number with an incomplete exponent is dropped with its key."""
        assert repairer.repair('{"a": 1, "big": 1e') == {"a": 1}

    def test_not_an_object(self, repairer):
        """Test that non-object JSON is rejected."""
        assert repairer.repair('[1, 2') is None
        assert repairer.repair('"text') is None

    def test_every_prefix_is_parseable_or_none(self, repairer):
        """Test that every prefix of a valid object repairs to a dict or None."""
        source = json.dumps({
            "symbol": "ACME",
            "price": -12.5e3,
            "tags": ["x", "y\"z"],
            "meta": {"open": True, "note": None},
        })
        results = [repairer.repair(source[:i]) for i in range(1, len(source) + 1)]

        assert all(result is None or isinstance(result, dict) for result in results)
        assert results[-1] == json.loads(source)
        assert results[0] == {}
