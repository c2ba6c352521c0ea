"""Exceptions raised by the migration pipeline."""

from typing import Any, Optional


class MigrationError(Exception):
    """Base class for migration errors."""


class ConfigurationError(MigrationError):
    """Configuration is missing or invalid."""


class SourceFetchError(MigrationError):
    """Reading from the source store failed."""


class TransformError(MigrationError, ValueError):
    """A source order could not be mapped to the destination schema."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value
