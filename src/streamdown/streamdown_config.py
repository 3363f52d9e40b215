"""
Configuration for streaming markdown sessions.
"""

import os
from dataclasses import dataclass, asdict
from typing import Any, Dict

import yaml

from streamdown.streamdown_exceptions import StreamdownConfigError


@dataclass
class StreamdownConfig:
    """Options controlling completion and component extraction."""

    hide_incomplete_components: bool = True
    normalize_block_spacing: bool = True
    extract_partial_components: bool = True
    registry_path: str | None = None  # YAML component definitions, if any

    @classmethod
    def load_from_file(cls, config_path: str) -> 'StreamdownConfig':
        """Load configuration from YAML file."""
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            try:
                data = yaml.safe_load(f)

            except yaml.YAMLError as e:
                raise StreamdownConfigError(
                    f"Failed to parse configuration: {e}",
                    error_details={'path': config_path}
                ) from e

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StreamdownConfig':
        """Build configuration from a mapping, rejecting unknown or mistyped keys."""
        if not isinstance(data, dict):
            raise StreamdownConfigError("Configuration must be a mapping")

        defaults = cls.create_default()
        unknown = sorted(set(data) - set(asdict(defaults)))
        if unknown:
            raise StreamdownConfigError(
                f"Unknown configuration keys: {', '.join(unknown)}",
                error_details={'keys': unknown}
            )

        for key in ('hide_incomplete_components', 'normalize_block_spacing', 'extract_partial_components'):
            if key in data and not isinstance(data[key], bool):
                raise StreamdownConfigError(f"'{key}' must be true or false", error_details={'key': key})

        registry_path = data.get('registry_path')
        if registry_path is not None and not isinstance(registry_path, str):
            raise StreamdownConfigError("'registry_path' must be a string", error_details={'key': 'registry_path'})

        return cls(
            hide_incomplete_components=data.get('hide_incomplete_components', defaults.hide_incomplete_components),
            normalize_block_spacing=data.get('normalize_block_spacing', defaults.normalize_block_spacing),
            extract_partial_components=data.get('extract_partial_components', defaults.extract_partial_components),
            registry_path=registry_path
        )

    @classmethod
    def create_default(cls) -> 'StreamdownConfig':
        """Create a default configuration."""
        return cls()

    def save_to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(asdict(self), f, default_flow_style=False, sort_keys=False)
