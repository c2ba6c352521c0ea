"""Base loader interface for the destination store."""

from abc import ABC, abstractmethod

from ..models.record import LoadResult, TransformedOrder


class BaseLoader(ABC):
    """
    Base class for order loaders.

    Loaders write one transformed order at a time, all-or-nothing, and
    report the outcome as a LoadResult instead of raising.
    """

    @abstractmethod
    def load(self, order: TransformedOrder) -> LoadResult:
        """
        Load a single order and its child rows.

        Args:
            order: Transformed order to write

        Returns:
            LoadResult indicating success/failure
        """
        pass

    def close(self) -> None:
        """Release any resources held by the loader."""
