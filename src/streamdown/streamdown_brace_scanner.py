"""Brace matching over JSON-like text that may be incomplete."""

from dataclasses import dataclass


@dataclass(frozen=True)
class BraceSpan:
    """A balanced '{...}' region."""

    start: int  # Offset of the opening '{'
    end: int  # Offset just past the matching '}'
    text: str


@dataclass(frozen=True)
class OpenContainers:
    """Containers and string context left open at the end of a fragment."""

    containers: str  # Opening characters ('{' or '['), outermost first
    in_string: bool
    escape_pending: bool  # Fragment ends with an unconsumed '\\' inside a string


class BraceScanner:
    """Quote and escape aware scanning of brace and bracket nesting."""

    @staticmethod
    def find_balanced(text: str, start: int = 0) -> BraceSpan | None:
        """
        Find the first balanced brace region at or after a position.

        Braces inside JSON string literals are ignored, and backslash escapes
        are honoured inside strings.

        Args:
            text: Text to scan
            start: Offset to start scanning from

        Returns:
            The balanced region, or None if the first '{' is never closed
        """
        depth = 0
        region_start = -1
        in_string = False
        escaped = False

        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False

                elif ch == '\\':
                    escaped = True

                elif ch == '"':
                    in_string = False

                continue

            if ch == '"':
                in_string = True

            elif ch == '{':
                if depth == 0:
                    region_start = i

                depth += 1

            elif ch == '}' and depth > 0:
                depth -= 1
                if depth == 0:
                    return BraceSpan(start=region_start, end=i + 1, text=text[region_start:i + 1])

        return None

    @staticmethod
    def open_containers(fragment: str) -> OpenContainers:
        """
        Work out which objects, arrays and strings a JSON fragment leaves open.

        Args:
            fragment: Possibly incomplete JSON text

        Returns:
            Description of the open containers at the end of the fragment
        """
        stack = []
        in_string = False
        escaped = False

        for ch in fragment:
            if in_string:
                if escaped:
                    escaped = False

                elif ch == '\\':
                    escaped = True

                elif ch == '"':
                    in_string = False

                continue

            if ch == '"':
                in_string = True

            elif ch in '{[':
                stack.append(ch)

            elif ch in '}]' and stack:
                stack.pop()

        return OpenContainers(containers=''.join(stack), in_string=in_string, escape_pending=escaped)
