"""Database access: connection management and table definitions."""

from .connection import DatabaseManager
from .tables import (
    destination_metadata,
    source_metadata,
    DESTINATION_TABLES,
)

__all__ = [
    "DatabaseManager",
    "destination_metadata",
    "source_metadata",
    "DESTINATION_TABLES",
]
