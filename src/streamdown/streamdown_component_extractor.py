"""Extraction of component invocations embedded in markdown."""

import json
import logging
import re
from typing import Any, Callable, Dict, List

from streamdown.streamdown_brace_scanner import BraceScanner
from streamdown.streamdown_component_registry import ComponentRegistry
from streamdown.streamdown_exceptions import (
    ComponentError,
    ComponentPropsError,
    ComponentValidationError,
    UnknownComponentError,
)
from streamdown.streamdown_json_repair import PartialJSONRepairer
from streamdown.streamdown_types import (
    ComponentErrorReport,
    ComponentInvocation,
    ComponentStatistics,
    ComponentSyntaxReport,
    ExtractionResult,
)


ComponentErrorCallback = Callable[[ComponentErrorReport], None]


class ComponentExtractor:
    """
    Finds `{{c:"Name",p:{...}}}` invocations and replaces them with placeholders.

    Complete invocations are parsed, looked up and validated before being
    replaced. A trailing invocation that is still streaming can be extracted
    separately, with its properties repaired into the largest parseable
    object seen so far.
    """

    CLOSE_TOKEN = '}}'
    PLACEHOLDER_START = '\ue000'
    PLACEHOLDER_END = '\ue001'

    _INVOCATION_START = re.compile(r'\{\{\s*c\s*:\s*"([^"]+)"\s*,\s*p\s*:\s*')
    _PLACEHOLDER = re.compile('\ue000component:([^:\ue001]+):([^\ue001]*)\ue001')

    def __init__(self, id_prefix: str = "component") -> None:
        """
        Initialize the extractor.

        Args:
            id_prefix: Prefix for generated invocation ids
        """
        self._logger = logging.getLogger("ComponentExtractor")
        self._id_prefix = id_prefix
        self._next_id = 0
        self._repairer = PartialJSONRepairer()

    def _allocate_id(self) -> str:
        invocation_id = f"{self._id_prefix}-{self._next_id}"
        self._next_id += 1
        return invocation_id

    @classmethod
    def placeholder(cls, invocation: ComponentInvocation) -> str:
        """
        Build the opaque placeholder that stands in for an invocation.

        Args:
            invocation: The extracted invocation

        Returns:
            Placeholder text embedding the invocation id and name
        """
        return f"{cls.PLACEHOLDER_START}component:{invocation.id}:{invocation.name}{cls.PLACEHOLDER_END}"

    def placeholder_ids(self, markdown: str) -> List[str]:
        """Return the invocation ids of all placeholders, in order of appearance."""
        return [match.group(1) for match in self._PLACEHOLDER.finditer(markdown)]

    def remove_placeholders(self, markdown: str) -> str:
        """Return markdown with every component placeholder removed."""
        return self._PLACEHOLDER.sub('', markdown)

    def extract(
        self,
        text: str,
        registry: ComponentRegistry | None,
        on_error: ComponentErrorCallback | None = None
    ) -> ExtractionResult:
        """
        Extract all complete component invocations.

        Invocations that cannot be parsed, name unknown components, or fail
        validation are left in the text and reported through `on_error`.

        Args:
            text: Markdown that may contain invocations
            registry: Registry used to look up and validate components
            on_error: Optional callback for skipped invocations

        Returns:
            Markdown with placeholders, and the extracted invocations
        """
        if registry is None:
            return ExtractionResult(markdown=text, components=[])

        pieces: List[str] = []
        components: List[ComponentInvocation] = []
        cursor = 0

        for match in self._INVOCATION_START.finditer(text):
            if match.start() < cursor:
                continue

            name = match.group(1)
            props_start = match.end()
            span = BraceScanner.find_balanced(text, props_start)
            if span is None or span.start != props_start:
                continue

            if text[span.end:span.end + 2] != self.CLOSE_TOKEN:
                self._logger.debug("Component '%s' at %d has no close token", name, match.start())
                continue

            end = span.end + 2

            try:
                props = json.loads(span.text)

            except (ValueError, RecursionError) as e:
                self._report(on_error, name, ComponentPropsError(
                    f"Invalid JSON properties for component '{name}': {e}",
                    error_details={'start': match.start(), 'end': end}
                ), span.text)
                continue

            if registry.get(name) is None:
                self._logger.warning("Unknown component '%s'", name)
                self._report(on_error, name, UnknownComponentError(
                    f"Unknown component '{name}'",
                    error_details={'start': match.start(), 'end': end}
                ), props)
                continue

            validation = registry.validate(name, props)
            if not validation.valid:
                self._logger.warning("Component '%s' failed validation: %s", name, validation.errors)
                self._report(on_error, name, ComponentValidationError(
                    f"Invalid properties for component '{name}'",
                    error_details={'start': match.start(), 'end': end, 'errors': validation.errors}
                ), props)
                continue

            invocation = ComponentInvocation(
                id=self._allocate_id(),
                name=name,
                properties=props,
                source_span=(match.start(), end),
                source_text=text[match.start():end]
            )
            components.append(invocation)
            pieces.append(text[cursor:match.start()])
            pieces.append(self.placeholder(invocation))
            cursor = end

        if not components:
            return ExtractionResult(markdown=text, components=[])

        pieces.append(text[cursor:])
        return ExtractionResult(markdown=''.join(pieces), components=components)

    def extract_partial(self, text: str, registry: ComponentRegistry | None) -> ExtractionResult:
        """
        Extract the trailing invocation whose properties are still streaming.

        Args:
            text: Markdown whose end may be inside an invocation
            registry: Registry used to look up components

        Returns:
            Markdown with the trailing fragment replaced by a placeholder, and
            at most one invocation marked as partial
        """
        if registry is None:
            return ExtractionResult(markdown=text, components=[])

        cursor = 0
        for match in self._INVOCATION_START.finditer(text):
            if match.start() < cursor:
                continue

            name = match.group(1)
            props_start = match.end()
            if props_start < len(text) and text[props_start] != '{':
                continue

            span = BraceScanner.find_balanced(text, props_start)
            if span is not None and text[span.end:span.end + 2] == self.CLOSE_TOKEN:
                # Complete invocations are handled by extract()
                cursor = span.end + 2
                continue

            props = self._partial_properties(text, props_start)
            if props is None:
                if span is None:
                    self._logger.debug("Partial invocation of '%s' is not yet extractable", name)
                    return ExtractionResult(markdown=text, components=[])

                continue

            if registry.get(name) is None:
                self._logger.debug("Skipping partial invocation of unknown component '%s'", name)
                return ExtractionResult(markdown=text, components=[])

            invocation = ComponentInvocation(
                id=self._allocate_id(),
                name=name,
                properties=props,
                source_span=(match.start(), len(text)),
                source_text=text[match.start():],
                partial=True
            )
            return ExtractionResult(
                markdown=text[:match.start()] + self.placeholder(invocation),
                components=[invocation]
            )

        return ExtractionResult(markdown=text, components=[])

    def _partial_properties(self, text: str, props_start: int) -> Dict[str, Any] | None:
        """
        Work out the properties of an invocation that runs to the end of the text.

        Args:
            text: Full text
            props_start: Offset just after the properties introducer

        Returns:
            Properties parsed so far, or None if the invocation does not run
            to the end of the text or cannot be repaired yet
        """
        if props_start == len(text):
            return {}

        span = BraceScanner.find_balanced(text, props_start)
        if span is None:
            return self._repairer.repair(text[props_start:])

        # Properties are complete, so only part of the close token may follow
        if not self.CLOSE_TOKEN.startswith(text[span.end:]):
            return None

        try:
            props = json.loads(span.text)

        except (ValueError, RecursionError):
            return None

        return props

    def check_syntax(self, text: str) -> ComponentSyntaxReport:
        """
        Check invocation syntax without consulting a registry.

        Args:
            text: Markdown that may contain invocations

        Returns:
            Report listing syntax problems and the names of well-formed invocations
        """
        errors: List[str] = []
        names: List[str] = []

        for match in self._INVOCATION_START.finditer(text):
            name = match.group(1)
            span = BraceScanner.find_balanced(text, match.end())
            if span is None or span.start != match.end():
                errors.append(f"Unclosed properties for component '{name}' at position {match.start()}")
                continue

            if text[span.end:span.end + 2] != self.CLOSE_TOKEN:
                errors.append(f"Missing close token for component '{name}' at position {match.start()}")
                continue

            try:
                json.loads(span.text)

            except (ValueError, RecursionError) as e:
                errors.append(f"Invalid JSON properties for component '{name}': {e}")
                continue

            names.append(name)

        return ComponentSyntaxReport(valid=not errors, errors=errors, component_names=names)

    def statistics(self, text: str) -> ComponentStatistics:
        """
        Count the well-formed invocations in a text.

        Args:
            text: Markdown that may contain invocations

        Returns:
            Totals and per-name counts
        """
        counts: Dict[str, int] = {}
        for name in self.check_syntax(text).component_names:
            counts[name] = counts.get(name, 0) + 1

        return ComponentStatistics(
            total=sum(counts.values()),
            unique_names=list(counts),
            counts=counts
        )

    def _report(
        self,
        on_error: ComponentErrorCallback | None,
        name: str,
        error: ComponentError,
        props: Any
    ) -> None:
        if on_error is None:
            return

        try:
            on_error(ComponentErrorReport(component_name=name, error=error, props=props))

        except Exception as e:
            self._logger.warning("Component error callback failed: %s", e, exc_info=True)
