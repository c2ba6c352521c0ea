"""Base extractor interface."""

from abc import ABC, abstractmethod
from typing import Iterator, List
import logging

from ..models.record import SourceOrder, VoucherRecord

logger = logging.getLogger(__name__)


class BaseExtractor(ABC):
    """
    Base class for source order stores.

    Extractors are responsible for paging denormalized order rows out of
    the source system, in a deterministic order, and for looking up the
    vouchers that belong to an order.
    """

    @abstractmethod
    def fetch_page(self, store_filter: str, limit: int, offset: int) -> List[SourceOrder]:
        """
        Fetch one page of orders.

        Args:
            store_filter: Store whose orders are migrated
            limit: Maximum rows to return
            offset: Zero-based row offset

        Returns:
            Orders sorted by creation time, newest first
        """
        pass

    @abstractmethod
    def fetch_vouchers(self, order_id: str) -> List[VoucherRecord]:
        """
        Fetch the gift vouchers of one order.

        Args:
            order_id: Source order identifier

        Returns:
            List of VoucherRecord objects (possibly empty)
        """
        pass

    def stream(self, store_filter: str, batch_size: int = 100, offset: int = 0) -> Iterator[List[SourceOrder]]:
        """
        Stream orders page by page until the source is exhausted.

        Args:
            store_filter: Store whose orders are migrated
            batch_size: Size of each page
            offset: Row offset to start from

        Yields:
            Pages of SourceOrder objects
        """
        while True:
            logger.info(f"Fetching orders {offset} to {offset + batch_size}")
            page = self.fetch_page(store_filter, batch_size, offset)
            if not page:
                break

            yield page
            offset += batch_size

    def close(self) -> None:
        """Release any resources held by the extractor."""
