"""Loaders for the destination store."""

from .base import BaseLoader
from .sql_loader import SQLOrderLoader

__all__ = ["BaseLoader", "SQLOrderLoader"]
