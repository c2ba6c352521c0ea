"""Source store extractors."""

from .base import BaseExtractor
from .sql_extractor import SQLOrderExtractor

__all__ = [
    "BaseExtractor",
    "SQLOrderExtractor",
]
