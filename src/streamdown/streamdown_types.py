"""Shared types for streaming markdown completion and component extraction."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from streamdown.streamdown_exceptions import ComponentError


class MarkerKind(Enum):
    """Kinds of markdown construct that can be left open by a partial stream."""
    BOLD = "bold"
    ITALIC = "italic"
    INLINE_CODE = "inline_code"
    FENCED_CODE = "fenced_code"
    LINK = "link"
    COMPONENT = "component"


def _empty_counts() -> Dict[MarkerKind, int]:
    return {kind: 0 for kind in MarkerKind}


@dataclass(frozen=True)
class Marker:
    """An opening marker that has not yet been closed."""

    kind: MarkerKind
    start: int  # Absolute offset of the marker in the full text
    text: str  # The opening marker itself, e.g. '**' or '```'
    context: str  # Text leading up to and including the marker, for debugging


@dataclass(frozen=True)
class TrackerCheckpoint:
    """
    Scanner position and machine state that later text can no longer change.

    Every token that starts before `offset` was recognised with enough
    lookahead to be final, so scanning can resume here on the next update.
    """

    offset: int = 0
    stack: Tuple[Marker, ...] = ()
    in_fenced_code: bool = False
    in_inline_code: bool = False
    component_depth: int = 0
    in_component_string: bool = False


@dataclass(frozen=True)
class TrackerState:
    """Open-marker state for one snapshot of a growing text."""

    stack: Tuple[Marker, ...] = ()  # Bottom of the stack is the earliest marker
    earliest_open_offset: int = 0
    previous_length: int = 0
    counts: Mapping[MarkerKind, int] = field(default_factory=_empty_counts, hash=False)  # Derived from stack
    in_fenced_code: bool = False
    in_inline_code: bool = False
    component_depth: int = 0  # Brace nesting inside the innermost open component
    in_component_string: bool = False
    partial_bold_close: bool = False  # Final '*' is the first half of a closing '**'
    checkpoint: TrackerCheckpoint = field(default_factory=TrackerCheckpoint)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'counts', MappingProxyType(dict(self.counts)))

    def count(self, kind: MarkerKind) -> int:
        """Return the number of open markers of a kind."""
        return self.counts.get(kind, 0)

    def is_open(self, kind: MarkerKind) -> bool:
        """Return True if at least one marker of a kind is open."""
        return self.count(kind) > 0

    def innermost(self, kind: MarkerKind) -> Marker | None:
        """Return the most recently opened marker of a kind, if any."""
        for marker in reversed(self.stack):
            if marker.kind == kind:
                return marker

        return None


@dataclass(frozen=True)
class ComponentInvocation:
    """A component invocation found in streamed text."""

    id: str
    name: str
    properties: Dict[str, Any]
    source_span: Tuple[int, int]  # (start, end) offsets in the scanned text
    source_text: str
    partial: bool = False


@dataclass
class ExtractionResult:
    """Markdown with invocations replaced by placeholders, plus the invocations."""

    markdown: str
    components: List[ComponentInvocation] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Outcome of validating component properties."""

    valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class ComponentErrorReport:
    """Details of an invocation that was skipped during extraction."""

    component_name: str
    error: ComponentError
    props: Any  # Parsed properties, or the raw JSON text if parsing failed


@dataclass
class ComponentSyntaxReport:
    """Result of checking component syntax without a registry."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    component_names: List[str] = field(default_factory=list)


@dataclass
class ComponentStatistics:
    """Summary of the component invocations present in a text."""

    total: int = 0
    unique_names: List[str] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
