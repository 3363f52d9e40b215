"""Per-stream orchestration of tracking, completion and component extraction."""

import logging
from dataclasses import dataclass, field
from typing import List

from streamdown.streamdown_component_extractor import ComponentErrorCallback, ComponentExtractor
from streamdown.streamdown_component_registry import ComponentRegistry, SchemaComponentRegistry
from streamdown.streamdown_config import StreamdownConfig
from streamdown.streamdown_markdown_completer import INVISIBLE, IncompleteMarkdownCompleter
from streamdown.streamdown_tag_state_tracker import TagStateTracker
from streamdown.streamdown_types import ComponentInvocation, TrackerState


@dataclass(frozen=True)
class StreamdownUpdate:
    """Everything a renderer needs for one snapshot of the stream."""

    state: TrackerState
    display: str  # Completed markdown, before component extraction
    markdown: str  # Completed markdown with components replaced by placeholders
    components: List[ComponentInvocation] = field(default_factory=list)


class StreamdownSession:
    """
    Holds the tracker state for one growing text and renders each snapshot.

    Each call to update() takes the full text streamed so far.
    """

    def __init__(
        self,
        registry: ComponentRegistry | None = None,
        config: StreamdownConfig | None = None,
        on_error: ComponentErrorCallback | None = None
    ) -> None:
        """
        Initialize the session.

        Args:
            registry: Component registry; loaded from config.registry_path if omitted
            config: Session options
            on_error: Callback for invocations skipped during extraction
        """
        self._logger = logging.getLogger("StreamdownSession")
        self._config = config or StreamdownConfig.create_default()
        if registry is None and self._config.registry_path:
            registry = SchemaComponentRegistry.load_from_file(self._config.registry_path)

        self._registry = registry
        self._on_error = on_error
        self._tracker = TagStateTracker()
        self._completer = IncompleteMarkdownCompleter(
            tracker=self._tracker,
            hide_incomplete_components=self._config.hide_incomplete_components,
            normalize_block_spacing=self._config.normalize_block_spacing
        )
        self._extractor = ComponentExtractor()
        self._state = TrackerState()

    def state(self) -> TrackerState:
        """Return the tracker state for the most recent snapshot."""
        return self._state

    def reset(self) -> None:
        """Forget all state, ready for a new stream."""
        self._state = TrackerState()

    def update(self, text: str) -> StreamdownUpdate:
        """
        Process a new snapshot of the stream.

        Args:
            text: The full text streamed so far

        Returns:
            The completed markdown and the components found in it
        """
        self._state = self._tracker.update(self._state, text)
        display = self._completer.fix(text, self._state)

        working = display
        partial_components: List[ComponentInvocation] = []
        if self._config.extract_partial_components and self._registry is not None:
            partial = self._extractor.extract_partial(text, self._registry)
            for invocation in partial.components:
                start, end = invocation.source_span
                region = working[start:end]
                if region != text[start:end] and region != INVISIBLE * (end - start):
                    self._logger.debug("Partial component '%s' overlaps completed markup", invocation.name)
                    continue

                working = working[:start] + self._extractor.placeholder(invocation) + working[end:]
                partial_components.append(invocation)

        result = self._extractor.extract(working, self._registry, self._on_error)
        return StreamdownUpdate(
            state=self._state,
            display=display,
            markdown=result.markdown,
            components=result.components + partial_components
        )
