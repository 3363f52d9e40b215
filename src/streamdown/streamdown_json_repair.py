"""Best-effort completion of truncated JSON objects."""

import json
import logging
import re
from typing import Any, Callable, Dict, List

from streamdown.streamdown_brace_scanner import BraceScanner


class PartialJSONRepairer:
    """
    Turns a truncated JSON object into the largest parseable prefix of it.

    Repairs are applied in a fixed order and the candidate is parsed after
    each one, so a fragment that only needs its string closed is not also
    stripped of data.
    """

    # Quoted key at the end of an object, optionally followed by a colon and
    # the start of a literal value that cannot be parsed yet
    _DANGLING_KEY = re.compile(
        r'([{,])\s*"(?:[^"\\]|\\.)*"\s*'
        r'(?::\s*(?:-|-?\d+(?:\.\d+)?[eE][+-]?|tr?u?|fa?l?s?|nu?l?)?)?\s*\Z'
    )
    _DANGLING_DECIMAL = re.compile(r'(\d)\.\s*\Z')
    _TRAILING_COMMA = re.compile(r',\s*\Z')
    _PARTIAL_UNICODE_ESCAPE = re.compile(r'\\u[0-9a-fA-F]{0,3}\Z')

    def __init__(self) -> None:
        """Initialize the repairer."""
        self._logger = logging.getLogger("PartialJSONRepairer")
        self._steps: List[Callable[[str], str]] = [
            self._close_string,
            self._strip_dangling_key,
            self._strip_dangling_decimal,
            self._strip_trailing_comma,
            self._close_containers,
        ]

    def repair(self, fragment: str) -> Dict[str, Any] | None:
        """
        Parse a possibly truncated JSON object.

        Args:
            fragment: JSON text starting with '{' that may stop anywhere

        Returns:
            The parsed object, or None if the fragment cannot be repaired yet
        """
        candidate = fragment
        parsed = self._try_parse(candidate)
        if parsed is not None:
            return parsed

        for step in self._steps:
            candidate = step(candidate)
            parsed = self._try_parse(candidate)
            if parsed is not None:
                return parsed

        self._logger.debug("Could not repair JSON fragment '%s'", fragment)
        return None

    def _try_parse(self, candidate: str) -> Dict[str, Any] | None:
        try:
            value = json.loads(candidate)

        except (ValueError, RecursionError):
            return None

        if not isinstance(value, dict):
            return None

        return value

    def _close_string(self, candidate: str) -> str:
        state = BraceScanner.open_containers(candidate)
        if not state.in_string:
            return candidate

        if state.escape_pending:
            candidate = candidate[:-1]

        else:
            candidate = self._PARTIAL_UNICODE_ESCAPE.sub('', candidate)

        return candidate + '"'

    def _strip_dangling_key(self, candidate: str) -> str:
        state = BraceScanner.open_containers(candidate)
        if state.in_string or not state.containers.endswith('{'):
            return candidate

        match = self._DANGLING_KEY.search(candidate)
        if match is None:
            return candidate

        # Keep the '{' that opens the object, drop a separating ','
        prefix = match.group(1) if match.group(1) == '{' else ''
        return candidate[:match.start()] + prefix

    def _strip_dangling_decimal(self, candidate: str) -> str:
        return self._DANGLING_DECIMAL.sub(r'\1', candidate)

    def _strip_trailing_comma(self, candidate: str) -> str:
        return self._TRAILING_COMMA.sub('', candidate)

    def _close_containers(self, candidate: str) -> str:
        state = BraceScanner.open_containers(candidate)
        closers = ''.join('}' if opener == '{' else ']' for opener in reversed(state.containers))
        return candidate + closers
