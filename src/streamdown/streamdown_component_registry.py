"""Component definitions and property validation."""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

import yaml

from streamdown.streamdown_exceptions import ComponentRegistryError
from streamdown.streamdown_types import ValidationResult


@dataclass
class ComponentDefinition:
    """Describes a component that may be invoked from streamed markdown."""

    name: str
    props_schema: Dict[str, Any] = field(default_factory=lambda: {'type': 'object'})
    description: str = ""
    examples: List[Dict[str, Any]] = field(default_factory=list)


class ComponentRegistry(ABC):
    """Read-only lookup and validation of component definitions."""

    @abstractmethod
    def get(self, name: str) -> ComponentDefinition | None:
        """
        Look up a component definition.

        Args:
            name: Component name

        Returns:
            The definition, or None if no such component exists
        """

    def has(self, name: str) -> bool:
        """Return True if a component is defined."""
        return self.get(name) is not None

    @abstractmethod
    def validate(self, name: str, props: Dict[str, Any]) -> ValidationResult:
        """
        Validate properties for a component.

        Args:
            name: Component name
            props: Parsed invocation properties

        Returns:
            Validation result listing any problems
        """


class SchemaComponentRegistry(ComponentRegistry):
    """
    In-memory registry validating properties against a small JSON schema subset.

    Supported keywords are `required` at the top level, and `type` and `enum`
    for each entry of `properties`.
    """

    def __init__(self, definitions: List[ComponentDefinition] | None = None) -> None:
        """
        Initialize the registry.

        Args:
            definitions: Initial component definitions
        """
        self._logger = logging.getLogger("SchemaComponentRegistry")
        self._definitions: Dict[str, ComponentDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: ComponentDefinition) -> None:
        """Add or replace a component definition."""
        if definition.name in self._definitions:
            self._logger.debug("Replacing definition for component '%s'", definition.name)

        self._definitions[definition.name] = definition

    def names(self) -> List[str]:
        """Return the names of all registered components, sorted."""
        return sorted(self._definitions)

    def get(self, name: str) -> ComponentDefinition | None:
        return self._definitions.get(name)

    def validate(self, name: str, props: Dict[str, Any]) -> ValidationResult:
        definition = self._definitions.get(name)
        if definition is None:
            return ValidationResult(valid=False, errors=[f'Unknown component "{name}"'])

        schema = definition.props_schema or {}
        errors: List[str] = []

        for key in schema.get('required', []):
            if key not in props:
                errors.append(f'Missing required prop "{key}"')

        properties = schema.get('properties', {})
        for key, value in props.items():
            prop_schema = properties.get(key)
            if not prop_schema:
                continue

            expected_type = prop_schema.get('type')
            if expected_type and not self._matches_type(value, expected_type):
                errors.append(f'Prop "{key}" must be a {expected_type}')
                continue

            allowed = prop_schema.get('enum')
            if allowed is not None and value not in allowed:
                errors.append(f'Prop "{key}" must be one of {allowed}')

        return ValidationResult(valid=not errors, errors=errors)

    @staticmethod
    def _matches_type(value: Any, expected_type: str) -> bool:
        if expected_type == 'string':
            return isinstance(value, str)

        if expected_type == 'number':
            return isinstance(value, (int, float)) and not isinstance(value, bool)

        if expected_type == 'integer':
            return isinstance(value, int) and not isinstance(value, bool)

        if expected_type == 'boolean':
            return isinstance(value, bool)

        if expected_type == 'array':
            return isinstance(value, list)

        if expected_type == 'object':
            return isinstance(value, dict)

        if expected_type == 'null':
            return value is None

        # Unknown types are not enforced
        return True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SchemaComponentRegistry':
        """
        Build a registry from a mapping of component names to definitions.

        Args:
            data: Mapping with a 'components' key

        Returns:
            The populated registry

        Raises:
            ComponentRegistryError: If the data is not shaped as expected
        """
        if not isinstance(data, dict):
            raise ComponentRegistryError("Component definitions must be a mapping")

        components = data.get('components', {})
        if not isinstance(components, dict):
            raise ComponentRegistryError("'components' must map names to definitions")

        definitions = []
        for name, component_data in components.items():
            component_data = component_data or {}
            if not isinstance(component_data, dict):
                raise ComponentRegistryError(
                    f"Definition for component '{name}' must be a mapping",
                    error_details={'component': name}
                )

            definitions.append(ComponentDefinition(
                name=str(name),
                props_schema=component_data.get('props_schema', {'type': 'object'}),
                description=component_data.get('description', ''),
                examples=component_data.get('examples', [])
            ))

        return cls(definitions)

    @classmethod
    def load_from_file(cls, path: str) -> 'SchemaComponentRegistry':
        """
        Load component definitions from a YAML file.

        Args:
            path: Path to the YAML file

        Returns:
            The populated registry

        Raises:
            FileNotFoundError: If the file does not exist
            ComponentRegistryError: If the file content is malformed
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Component definition file not found: {path}")

        with open(path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f)

            except yaml.YAMLError as e:
                raise ComponentRegistryError(
                    f"Failed to parse component definitions: {e}",
                    error_details={'path': path}
                ) from e

        return cls.from_dict(data or {})
