"""Error taxonomy for the plugin configuration API."""

from typing import Optional


class ConfigAPIError(Exception):
    """Base class for recoverable errors reported to API callers."""


class NotFoundError(ConfigAPIError):
    """Unknown plugin type name or running plugin ID."""


class BadRequestError(ConfigAPIError):
    """Invalid configuration input or plugin initialization failure."""

    def __init__(self, message: str, field_path: Optional[str] = None):
        super().__init__(message)
        self.field_path = field_path


class BindError(BadRequestError):
    """A value could not be bound onto a configuration field."""

    def __init__(self, field_path: str, reason: str, plugin_name: Optional[str] = None):
        message = f"could not set field {field_path!r}: {reason}"
        if plugin_name:
            message = f"{plugin_name}: {message}"
        super().__init__(message, field_path)
        self.reason = reason
        self.plugin_name = plugin_name


class UpdateTimeoutError(ConfigAPIError):
    """A plugin did not shut down in time to be replaced."""


class SchemaDerivationError(RuntimeError):
    """A plugin type has a field the schema deriver cannot describe.

    This is a defect in the plugin type declaration, not a runtime condition:
    listing fails rather than publishing an incomplete schema.
    """
