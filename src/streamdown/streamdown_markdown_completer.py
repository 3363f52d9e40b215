"""Completion of partially streamed markdown so it can be parsed safely."""

import logging
import re
from typing import List, Tuple

from streamdown.streamdown_brace_scanner import BraceScanner
from streamdown.streamdown_tag_state_tracker import TagStateTracker
from streamdown.streamdown_types import Marker, MarkerKind, TrackerState


INVISIBLE = '\u200b'


class IncompleteMarkdownCompleter:
    """
    Synthesizes a renderable version of a markdown prefix.

    Open markers are closed, and fragments that would render as noise until
    more text arrives are hidden by overwriting them with zero-width spaces.
    Hiding never changes the length of the text, so offsets recorded by the
    tracker remain valid and the output is never shorter than the input.
    """

    _TRAILING_BACKTICK_LINE = re.compile(r'(?:^|\n)[ \t]*(`{1,3})\Z')
    _TRAILING_WHITESPACE = re.compile(r'[ \t]+\Z')
    _LIST_ITEM = re.compile(r'^\s*(?:[-*+]|\d+[.)])\s+\S')
    _HEADING = re.compile(r'^#{1,6}\s+\S')
    _ORDERED_LIST_NUMBER = re.compile(r'[0-9]{1,9}')

    def __init__(
        self,
        tracker: TagStateTracker | None = None,
        hide_incomplete_components: bool = True,
        normalize_block_spacing: bool = True
    ) -> None:
        """
        Initialize the completer.

        Args:
            tracker: Tracker used when no state is supplied to fix()
            hide_incomplete_components: Hide component invocations that have not closed
            normalize_block_spacing: Separate list items and headings from following paragraphs
        """
        self._logger = logging.getLogger("IncompleteMarkdownCompleter")
        self._tracker = tracker or TagStateTracker()
        self._hide_incomplete_components = hide_incomplete_components
        self._normalize_block_spacing = normalize_block_spacing

    def has_incomplete_markup(self, text: str) -> bool:
        """Return True if any markdown construct is left open at the end of the text."""
        return bool(self._tracker.scan(text).stack)

    def fix(self, text: str, state: TrackerState | None = None) -> str:
        """
        Complete a markdown prefix.

        Args:
            text: The full text streamed so far
            state: Tracker state for exactly this text; computed if omitted

        Returns:
            Markdown with open constructs closed and dangling fragments hidden
        """
        if not text:
            return text

        if state is None:
            state = self._tracker.scan(text)

        working, hidden_from = self._hide_dangling_backticks(text, state)
        if self._hide_incomplete_components:
            working, component_start = self._hide_incomplete_component(working, state)
            hidden_from = min(hidden_from, component_start)

        if not state.stack:
            return self._complete_ordered_list_number(working)

        open_markers = [marker for marker in state.stack if marker.start < hidden_from]
        if not open_markers:
            return working

        tail_start = min(state.earliest_open_offset, len(working))
        head = working[:tail_start]
        tail = working[tail_start:]

        if any(marker.kind == MarkerKind.FENCED_CODE for marker in open_markers):
            return head + self._close_fence(tail)

        partial_bold_close = state.partial_bold_close and hidden_from == len(text)
        tail = self._close_markers(tail, tail_start, open_markers, partial_bold_close)

        if self._normalize_block_spacing:
            at_line_start = tail_start == 0 or working[tail_start - 1] == '\n'
            tail = self._normalize_spacing(tail, at_line_start)

        return head + tail

    def _hide_dangling_backticks(self, text: str, state: TrackerState) -> Tuple[str, int]:
        """
        Hide a trailing run of backticks that starts a code construct with no content.

        Args:
            text: Text to process
            state: Tracker state for the text

        Returns:
            Tuple of the processed text and the offset hiding starts at
            (the text length if nothing was hidden)
        """
        # Only the last line can hold the run
        match = self._TRAILING_BACKTICK_LINE.search(text, max(0, text.rfind('\n')))
        if match is not None:
            run_start = match.start(1)
            run_length = len(match.group(1))

        elif not state.in_fenced_code and text[-2:] in (' `', '\t`'):
            # Lone backtick after a space in the middle of a line
            run_start = len(text) - 1
            run_length = 1

        else:
            return text, len(text)

        hide_from = len(text)
        if state.in_fenced_code:
            fence = state.innermost(MarkerKind.FENCED_CODE)
            if run_length < 3 and (fence is None or fence.start != run_start):
                # Start of a closing fence
                hide_from = run_start

        elif run_length == 1:
            inline = state.innermost(MarkerKind.INLINE_CODE)
            if inline is not None and inline.start == run_start:
                hide_from = run_start

        elif run_length == 2:
            inline = state.innermost(MarkerKind.INLINE_CODE)
            if inline is None:
                hide_from = run_start

            elif inline.start == run_start + 1:
                # First backtick closed a span, the second opened a new one
                hide_from = run_start + 1

        if hide_from == len(text):
            return text, hide_from

        return text[:hide_from] + INVISIBLE * (len(text) - hide_from), hide_from

    def _complete_ordered_list_number(self, text: str) -> str:
        """Add the period to a bare number on the last line so it reads as a list item."""
        line_start = text.rfind('\n') + 1
        if line_start == 0 or self._ORDERED_LIST_NUMBER.fullmatch(text, line_start) is None:
            return text

        return text + '.'

    def _hide_incomplete_component(self, text: str, state: TrackerState) -> Tuple[str, int]:
        """
        Hide a trailing component invocation whose braces have not closed.

        Args:
            text: Text to process
            state: Tracker state for the text

        Returns:
            Tuple of the processed text and the offset hiding starts at
            (the text length if nothing was hidden)
        """
        component = next((marker for marker in state.stack if marker.kind == MarkerKind.COMPONENT), None)
        if component is None or component.start >= len(text):
            return text, len(text)

        if BraceScanner.find_balanced(text, component.start) is not None:
            return text, len(text)

        self._logger.debug("Hiding incomplete component starting at %d", component.start)
        return text[:component.start] + INVISIBLE * (len(text) - component.start), component.start

    def _close_fence(self, tail: str) -> str:
        if tail.endswith('\n'):
            return tail + '```'

        return tail + '\n```'

    def _close_markers(self, tail: str, offset: int, markers: List[Marker], partial_bold_close: bool) -> str:
        """
        Append closers for open markers, innermost first.

        Args:
            tail: Text from the earliest open marker onwards
            offset: Absolute offset of the start of the tail
            markers: Markers still open, earliest first
            partial_bold_close: The tail ends with the first half of a closing '**'

        Returns:
            The tail with closers inserted before any trailing spaces or tabs
        """
        whitespace_match = self._TRAILING_WHITESPACE.search(tail)
        trailing = whitespace_match.group(0) if whitespace_match else ''
        result = tail[:len(tail) - len(trailing)]

        if partial_bold_close and markers[-1].kind != MarkerKind.BOLD and result.endswith('*'):
            # Other closers will follow, so the half closer can't be completed
            result = result[:-1] + INVISIBLE
            partial_bold_close = False

        link_blocked = False
        for marker in reversed(markers):
            local_start = marker.start - offset
            content = result[local_start + len(marker.text):]

            if marker.kind == MarkerKind.COMPONENT:
                # Nothing after an open component can close earlier markers
                break

            if marker.kind == MarkerKind.BOLD:
                if partial_bold_close:
                    result += '*'
                    partial_bold_close = False

                else:
                    result += '**' if content.strip() else INVISIBLE + '**'

            elif marker.kind == MarkerKind.ITALIC:
                result += '*' if content.strip() else INVISIBLE + '*'

            elif marker.kind == MarkerKind.INLINE_CODE:
                result += '`' if content.strip() else INVISIBLE + '`'

            elif marker.kind == MarkerKind.LINK:
                if link_blocked:
                    continue

                url_start = result.find('](', local_start)
                if url_start == -1:
                    # Link text is still arriving; leave it as literal text
                    link_blocked = True
                    continue

                result += ')' if result[url_start + 2:].strip() else '#)'

        return result + trailing

    def _normalize_spacing(self, tail: str, at_line_start: bool) -> str:
        """
        Insert blank lines after list items and headings that run into a paragraph.

        Args:
            tail: Text to normalize
            at_line_start: True if the first line of the tail is a whole line

        Returns:
            The normalized text
        """
        lines = tail.split('\n')
        if len(lines) < 2:
            return tail

        output: List[str] = []
        state = TrackerState()
        line_start = 0
        for index, line in enumerate(lines):
            output.append(line)
            in_fence_before = state.in_fenced_code
            line_end = line_start + len(line)
            state = self._tracker.update(state, tail[:line_end])
            line_start = line_end + 1

            if index == len(lines) - 1 or in_fence_before or state.in_fenced_code:
                continue

            if index == 0 and not at_line_start:
                continue

            next_line = lines[index + 1]
            if not next_line.strip():
                continue

            if self._HEADING.match(line):
                output.append('')

            elif (
                self._LIST_ITEM.match(line) and
                not self._LIST_ITEM.match(next_line) and
                not next_line[0].isspace()
            ):
                output.append('')

        return '\n'.join(output)
