"""Custom exceptions for streaming markdown and component operations."""

from typing import Any


class StreamdownError(Exception):
    """Base exception for streamdown operations."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details


class ComponentError(StreamdownError):
    """Base for problems with a single component invocation."""


class ComponentPropsError(ComponentError):
    """Raised when component properties are not a valid JSON object."""


class UnknownComponentError(ComponentError):
    """Raised when a component name is not present in the registry."""


class ComponentValidationError(ComponentError):
    """Raised when component properties fail registry validation."""


class ComponentRegistryError(StreamdownError):
    """Raised when component definitions cannot be loaded."""


class StreamdownConfigError(StreamdownError):
    """Raised when configuration content is malformed."""
