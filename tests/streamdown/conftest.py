"""Shared fixtures and utilities for streamdown tests."""

import random
from typing import Any, Dict, List

import pytest

from streamdown.streamdown_component_extractor import ComponentExtractor
from streamdown.streamdown_component_registry import (
    ComponentDefinition,
    ComponentRegistry,
    SchemaComponentRegistry,
)
from streamdown.streamdown_markdown_completer import IncompleteMarkdownCompleter
from streamdown.streamdown_tag_state_tracker import TagStateTracker
from streamdown.streamdown_types import ComponentErrorReport, TrackerState, ValidationResult


class AcceptAllRegistry(ComponentRegistry):
    """Registry that knows every component name and accepts any properties."""

    def get(self, name: str) -> ComponentDefinition | None:
        return ComponentDefinition(name=name)

    def validate(self, name: str, props: Dict[str, Any]) -> ValidationResult:
        return ValidationResult(valid=True)


class ErrorCollector:
    """Callable that records error reports."""

    def __init__(self) -> None:
        self.reports: List[ComponentErrorReport] = []

    def __call__(self, report: ComponentErrorReport) -> None:
        self.reports.append(report)


class StreamdownTestHelpers:
    """Helper utilities for streamdown testing."""

    @staticmethod
    def stream_in_chunks(tracker: TagStateTracker, text: str, chunk_sizes: List[int]) -> TrackerState:
        """Feed successive prefixes of a text to a tracker, one chunk at a time."""
        state = TrackerState()
        position = 0
        index = 0
        while position < len(text):
            size = chunk_sizes[index % len(chunk_sizes)] if chunk_sizes else 1
            position = min(len(text), position + max(1, size))
            state = tracker.update(state, text[:position])
            index += 1

        return state

    @staticmethod
    def random_chunk_sizes(rng: random.Random, count: int = 20) -> List[int]:
        """Generate a list of chunk sizes between 1 and 8."""
        return [rng.randint(1, 8) for _ in range(count)]


@pytest.fixture
def tracker():
    """Provide a tag state tracker."""
    return TagStateTracker()


@pytest.fixture
def completer():
    """Provide a markdown completer with default options."""
    return IncompleteMarkdownCompleter()


@pytest.fixture
def extractor():
    """Provide a component extractor."""
    return ComponentExtractor()


@pytest.fixture
def accept_all_registry():
    """Provide a registry that accepts every component."""
    return AcceptAllRegistry()


@pytest.fixture
def badge_registry():
    """Provide a schema registry with a couple of typical components."""
    return SchemaComponentRegistry([
        ComponentDefinition(
            name='Badge',
            description='Small status label',
            props_schema={
                'type': 'object',
                'required': ['text'],
                'properties': {
                    'text': {'type': 'string'},
                    'tone': {'type': 'string', 'enum': ['info', 'warning', 'error']},
                },
            },
        ),
        ComponentDefinition(
            name='StockCard',
            description='Price summary for a ticker',
            props_schema={
                'type': 'object',
                'required': ['symbol', 'price'],
                'properties': {
                    'symbol': {'type': 'string'},
                    'price': {'type': 'number'},
                    'history': {'type': 'array'},
                },
            },
        ),
    ])


@pytest.fixture
def error_collector():
    """Provide an error report collector."""
    return ErrorCollector()


@pytest.fixture
def helpers():
    """Provide test helper utilities."""
    return StreamdownTestHelpers
