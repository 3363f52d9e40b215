"""
Incremental markdown completion for streamed text.

This package tracks which markdown constructs are left open while text
streams in, completes the text so a markdown parser can render it at every
step, and extracts embedded component invocations, including ones whose
JSON properties are still arriving.
"""

from streamdown.streamdown_brace_scanner import BraceScanner, BraceSpan, OpenContainers
from streamdown.streamdown_component_extractor import ComponentErrorCallback, ComponentExtractor
from streamdown.streamdown_component_registry import (
    ComponentDefinition,
    ComponentRegistry,
    SchemaComponentRegistry,
)
from streamdown.streamdown_config import StreamdownConfig
from streamdown.streamdown_exceptions import (
    ComponentError,
    ComponentPropsError,
    ComponentRegistryError,
    ComponentValidationError,
    StreamdownConfigError,
    StreamdownError,
    UnknownComponentError,
)
from streamdown.streamdown_json_repair import PartialJSONRepairer
from streamdown.streamdown_markdown_completer import INVISIBLE, IncompleteMarkdownCompleter
from streamdown.streamdown_session import StreamdownSession, StreamdownUpdate
from streamdown.streamdown_tag_state_tracker import TagStateTracker
from streamdown.streamdown_types import (
    ComponentErrorReport,
    ComponentInvocation,
    ComponentStatistics,
    ComponentSyntaxReport,
    ExtractionResult,
    Marker,
    MarkerKind,
    TrackerCheckpoint,
    TrackerState,
    ValidationResult,
)

__all__ = [
    # Exceptions
    'StreamdownError',
    'ComponentError',
    'ComponentPropsError',
    'UnknownComponentError',
    'ComponentValidationError',
    'ComponentRegistryError',
    'StreamdownConfigError',
    # Types
    'MarkerKind',
    'Marker',
    'TrackerCheckpoint',
    'TrackerState',
    'ComponentInvocation',
    'ExtractionResult',
    'ValidationResult',
    'ComponentErrorReport',
    'ComponentSyntaxReport',
    'ComponentStatistics',
    'BraceSpan',
    'OpenContainers',
    # Core classes
    'TagStateTracker',
    'IncompleteMarkdownCompleter',
    'INVISIBLE',
    'BraceScanner',
    'PartialJSONRepairer',
    'ComponentExtractor',
    'ComponentErrorCallback',
    'ComponentDefinition',
    'ComponentRegistry',
    'SchemaComponentRegistry',
    'StreamdownConfig',
    'StreamdownSession',
    'StreamdownUpdate',
]
