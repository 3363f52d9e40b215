"""Incremental tracking of open markdown markers in a growing text."""

import logging
from typing import List

from streamdown.streamdown_types import Marker, MarkerKind, TrackerCheckpoint, TrackerState


class _MarkerScan:
    """
    Single pass of the marker state machine over a text.

    The scan resumes from a checkpoint. Tokens that start at least LOOKAHEAD
    characters before the end of the text are final; the rest of the text is
    scanned provisionally, using the fact that it is (for now) the end.
    """

    LOOKAHEAD = 3
    CONTEXT_CHARS = 12

    def __init__(self, text: str, checkpoint: TrackerCheckpoint, logger: logging.Logger) -> None:
        self._text = text
        self._len = len(text)
        self._logger = logger
        self._position = checkpoint.offset
        self._stack: List[Marker] = list(checkpoint.stack)
        self._in_fenced_code = checkpoint.in_fenced_code
        self._in_inline_code = checkpoint.in_inline_code
        self._component_depth = checkpoint.component_depth
        self._in_component_string = checkpoint.in_component_string
        self._partial_bold_close = False

    def run(self) -> TrackerState:
        """
        Scan to the end of the text.

        Returns:
            The tracker state for the whole text
        """
        checkpoint: TrackerCheckpoint | None = None
        while self._position < self._len:
            if checkpoint is None and self._position + self.LOOKAHEAD > self._len:
                checkpoint = self._snapshot()

            self._position = self._step(self._position)

        if checkpoint is None:
            checkpoint = self._snapshot()

        counts = {kind: 0 for kind in MarkerKind}
        for marker in self._stack:
            counts[marker.kind] += 1

        return TrackerState(
            stack=tuple(self._stack),
            earliest_open_offset=self._stack[0].start if self._stack else self._len,
            previous_length=self._len,
            counts=counts,
            in_fenced_code=self._in_fenced_code,
            in_inline_code=self._in_inline_code,
            component_depth=self._component_depth,
            in_component_string=self._in_component_string,
            partial_bold_close=self._partial_bold_close,
            checkpoint=checkpoint
        )

    def _snapshot(self) -> TrackerCheckpoint:
        return TrackerCheckpoint(
            offset=self._position,
            stack=tuple(self._stack),
            in_fenced_code=self._in_fenced_code,
            in_inline_code=self._in_inline_code,
            component_depth=self._component_depth,
            in_component_string=self._in_component_string
        )

    def _step(self, pos: int) -> int:
        """
        Recognise the token starting at a position and apply it.

        Args:
            pos: Offset of the token

        Returns:
            Offset of the next token
        """
        text = self._text
        ch = text[pos]

        if self._in_component_string:
            if ch == '\\':
                return min(pos + 2, self._len)

            if ch == '"':
                self._in_component_string = False

            return pos + 1

        if text.startswith('```', pos):
            self._toggle_fence(pos)
            return pos + 3

        if self._in_fenced_code:
            return pos + 1

        if ch == '`':
            self._toggle_inline_code(pos)
            return pos + 1

        if self._in_inline_code:
            return pos + 1

        if self._has_open(MarkerKind.COMPONENT):
            return self._step_component(pos)

        if text.startswith('{{', pos):
            self._push(MarkerKind.COMPONENT, pos, '{{')
            self._component_depth = 0
            return pos + 2

        if text.startswith('**', pos):
            if not self._remove_innermost(MarkerKind.BOLD):
                self._push(MarkerKind.BOLD, pos, '**')

            return pos + 2

        if ch == '*':
            self._single_asterisk(pos)
            return pos + 1

        if ch == '[':
            self._push(MarkerKind.LINK, pos, '[')
            return pos + 1

        if ch == ')':
            link = self._innermost(MarkerKind.LINK)
            if link is not None and '](' in text[link.start:pos]:
                self._stack.remove(link)

            return pos + 1

        return pos + 1

    def _step_component(self, pos: int) -> int:
        text = self._text
        ch = text[pos]

        if ch == '"':
            self._in_component_string = True
            return pos + 1

        if self._component_depth == 0 and text.startswith('}}', pos):
            self._remove_innermost(MarkerKind.COMPONENT)
            return pos + 2

        if ch == '}':
            if self._component_depth > 0:
                self._component_depth -= 1

            return pos + 1

        if text.startswith('{{', pos):
            self._push(MarkerKind.COMPONENT, pos, '{{')
            self._component_depth = 0
            return pos + 2

        if ch == '{':
            self._component_depth += 1

        return pos + 1

    def _single_asterisk(self, pos: int) -> None:
        if self._remove_innermost(MarkerKind.ITALIC):
            return

        bold = self._innermost(MarkerKind.BOLD)
        if (
            bold is not None and
            pos == self._len - 1 and
            pos > bold.start + 2 and
            not self._text[pos - 1].isspace()
        ):
            # Most likely the first half of a closing '**'
            self._partial_bold_close = True
            return

        self._push(MarkerKind.ITALIC, pos, '*')

    def _toggle_fence(self, pos: int) -> None:
        if self._in_fenced_code:
            self._remove_innermost(MarkerKind.FENCED_CODE)
            self._in_fenced_code = False
            return

        if self._stack:
            self._logger.debug("Fence at %d discards %d open markers", pos, len(self._stack))

        self._stack.clear()
        self._in_inline_code = False
        self._component_depth = 0
        self._in_component_string = False
        self._push(MarkerKind.FENCED_CODE, pos, '```')
        self._in_fenced_code = True

    def _toggle_inline_code(self, pos: int) -> None:
        if self._in_inline_code:
            self._remove_innermost(MarkerKind.INLINE_CODE)
            self._in_inline_code = False
            return

        self._push(MarkerKind.INLINE_CODE, pos, '`')
        self._in_inline_code = True

    def _push(self, kind: MarkerKind, pos: int, marker_text: str) -> None:
        context = self._text[max(0, pos - self.CONTEXT_CHARS):pos + len(marker_text)]
        self._stack.append(Marker(kind=kind, start=pos, text=marker_text, context=context))

    def _innermost(self, kind: MarkerKind) -> Marker | None:
        for marker in reversed(self._stack):
            if marker.kind == kind:
                return marker

        return None

    def _has_open(self, kind: MarkerKind) -> bool:
        return self._innermost(kind) is not None

    def _remove_innermost(self, kind: MarkerKind) -> bool:
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index].kind == kind:
                del self._stack[index]
                return True

        return False


class TagStateTracker:
    """
    Tracks which markdown constructs are still open in a growing text.

    The tracker is stateless; all state lives in the immutable TrackerState
    values it returns, so a caller keeps one state per display session and
    feeds it back with each new snapshot of the text.
    """

    def __init__(self) -> None:
        """Initialize the tracker."""
        self._logger = logging.getLogger("TagStateTracker")

    def update(self, state: TrackerState, text: str) -> TrackerState:
        """
        Update tracker state for a new snapshot of the text.

        Only the text added since the previous snapshot, plus a few characters
        of look-back, is scanned. If the text has shrunk the state is rebuilt
        from scratch.

        Args:
            state: State returned for the previous snapshot, or TrackerState()
            text: The full text so far

        Returns:
            State describing the markers left open at the end of the text
        """
        text_len = len(text)
        if text_len < state.previous_length:
            self._logger.debug(
                "Text shrank from %d to %d characters, rebuilding tag state",
                state.previous_length,
                text_len
            )
            state = TrackerState()

        if text_len == state.previous_length:
            return state

        return _MarkerScan(text, state.checkpoint, self._logger).run()

    def scan(self, text: str) -> TrackerState:
        """
        Compute tracker state for a complete text with no prior state.

        Args:
            text: Text to scan

        Returns:
            State describing the markers left open at the end of the text
        """
        return self.update(TrackerState(), text)
