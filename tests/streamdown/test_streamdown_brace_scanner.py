"""Tests for brace scanning."""

from streamdown.streamdown_brace_scanner import BraceScanner


class TestFindBalanced:
    """Test balanced region detection."""

    def test_simple_object(self):
        """Test finding a flat object."""
        span = BraceScanner.find_balanced('x {"a": 1} y')

        assert span is not None
        assert span.start == 2
        assert span.end == 10
        assert span.text == '{"a": 1}'

    def test_nested_object(self):
        """Test that nested braces are matched."""
        text = '{"a": {"b": {}}} tail'
        span = BraceScanner.find_balanced(text)

        assert span.text == '{"a": {"b": {}}}'

    def test_braces_in_strings_ignored(self):
        """Test that braces inside strings do not affect depth."""
        text = '{"a": "}{"}'
        span = BraceScanner.find_balanced(text)

        assert span.text == text

    def test_escaped_quote_in_string(self):
        """Test that an escaped quote does not end the string."""
        text = '{"a": "say \\"}\\" ok"}'
        span = BraceScanner.find_balanced(text)

        assert span.text == text

    def test_unclosed_returns_none(self):
        """Test that an unclosed object yields None."""
        assert BraceScanner.find_balanced('{"a": {"b": 1}') is None

    def test_no_braces_returns_none(self):
        """Test text without braces."""
        assert BraceScanner.find_balanced('plain text') is None

    def test_start_offset(self):
        """Test scanning from an offset."""
        text = '{"skip": 1} {"take": 2}'
        span = BraceScanner.find_balanced(text, 11)

        assert span.text == '{"take": 2}'
        assert span.start == 12

    def test_stray_closing_brace_ignored(self):
        """Test that a closing brace before any opener is ignored."""
        span = BraceScanner.find_balanced('} {}')

        assert span.start == 2
        assert span.end == 4


class TestOpenContainers:
    """Test open container detection."""

    def test_complete_fragment(self):
        """Test that a complete object leaves nothing open."""
        state = BraceScanner.open_containers('{"a": [1, 2]}')

        assert state.containers == ''
        assert state.in_string is False

    def test_nested_open_containers(self):
        """Test nesting order of open containers."""
        state = BraceScanner.open_containers('{"a": [1, {"b": [')

        assert state.containers == '{[{['

    def test_open_string(self):
        """Test detection of an unterminated string."""
        state = BraceScanner.open_containers('{"a": "hel')

        assert state.in_string is True
        assert state.escape_pending is False

    def test_pending_escape(self):
        """Test detection of a dangling backslash in a string."""
        state = BraceScanner.open_containers('{"a": "hel\\')

        assert state.in_string is True
        assert state.escape_pending is True

    def test_brackets_in_strings_ignored(self):
        """Test that brackets inside strings are not containers."""
        state = BraceScanner.open_containers('{"a": "[{"')

        assert state.containers == '{'
        assert state.in_string is False
