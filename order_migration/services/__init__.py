"""Services for the order migration pipeline."""

from .transformer import OrderTransformer
from .validator import MigrationValidator
from .reporter import MigrationReporter

__all__ = [
    "OrderTransformer",
    "MigrationValidator",
    "MigrationReporter",
]
