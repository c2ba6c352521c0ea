"""Relational source store extractor (MS SQL Server in production)."""

import logging
from typing import List, Optional

from sqlalchemy import Select, case, func, literal, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.elements import ColumnElement

from .base import BaseExtractor
from ..database.connection import DatabaseManager
from ..database.tables import (
    customer_order_table as co,
    order_address_table as oa,
    order_line_item_table as oli,
    order_payment_in_table as opi,
    order_shipment_item_table as osi,
    order_shipment_table as os_,
    order_voucher_details_table as ovd,
)
from ..exceptions import SourceFetchError
from ..models.record import SourceOrder, VoucherRecord

logger = logging.getLogger(__name__)


def _concat(*parts) -> ColumnElement:
    """String concatenation that treats NULL columns as empty strings."""
    expr: Optional[ColumnElement] = None
    for part in parts:
        piece = func.coalesce(part, "") if isinstance(part, ColumnElement) else literal(part)
        expr = piece if expr is None else expr + piece
    return expr


class SQLOrderExtractor(BaseExtractor):
    """
    Extractor for the source order database.

    Each row is one order joined with one of its line items, the shipment
    of that line item, and the order's payments and shipment addresses
    aggregated into strings. Rows are ordered newest first with ties broken
    on order and product identifiers, so offset pagination is stable.
    """

    def __init__(self, database: DatabaseManager):
        """
        Initialize the extractor.

        Args:
            database: Manager for the source database
        """
        self.database = database
        self._orders_query = self._build_orders_query()

    def _build_orders_query(self) -> Select:
        payments = func.aggregate_strings(
            case(
                (opi.c.OuterId.is_(None), None),
                else_=_concat(opi.c.OuterId, ";", opi.c.Status),
            ),
            ",",
        )
        addresses = func.aggregate_strings(
            case(
                (oa.c.Id.is_(None), None),
                else_=_concat(
                    oa.c.AddressType, " : ", oa.c.Line1, " ", oa.c.Line2, " ", oa.c.City, " ",
                    oa.c.RegionId, " ", oa.c.RegionName, " ", oa.c.PostalCode, " ",
                    oa.c.CountryCode, " ", oa.c.CountryName,
                ),
            ),
            ",",
        )

        grouped = [
            co.c.Id, co.c.Number, co.c.Status, co.c.CreatedDate, co.c.ModifiedDate,
            co.c.Sum, co.c.Currency, co.c.CustomerName, co.c.CustomerId, co.c.StoreId,
            oli.c.ProductId, oli.c.Name, oli.c.Quantity, oli.c.Price, oli.c.Currency,
            oli.c.ImageUrl, os_.c.Number, os_.c.Status,
        ]

        return (
            select(
                co.c.Id.label("id"),
                co.c.Number.label("ordernumber"),
                co.c.Status.label("Status"),
                co.c.CreatedDate.label("createddate"),
                co.c.ModifiedDate.label("modifieddate"),
                co.c.Sum.label("orderPrice"),
                co.c.Currency.label("Currency"),
                co.c.CustomerName.label("customername"),
                co.c.CustomerId.label("customerid"),
                co.c.StoreId.label("storeid"),
                oli.c.ProductId.label("productid"),
                oli.c.Name.label("name"),
                oli.c.Quantity.label("quantity"),
                oli.c.Price.label("itemPrice"),
                oli.c.Currency.label("itemCurrency"),
                oli.c.ImageUrl.label("ImageUrl"),
                payments.label("PaymentOuterIds"),
                addresses.label("address"),
                os_.c.Number.label("shipmentNumber"),
                os_.c.Status.label("shipmentStatus"),
            )
            .select_from(co)
            .join(oli, co.c.Id == oli.c.CustomerOrderId)
            .outerjoin(osi, osi.c.LineItemId == oli.c.Id)
            .outerjoin(os_, osi.c.ShipmentId == os_.c.Id)
            .outerjoin(oa, oa.c.ShipmentId == os_.c.Id)
            .outerjoin(opi, co.c.Id == opi.c.CustomerOrderId)
            .group_by(*grouped)
            .order_by(
                co.c.CreatedDate.desc(),
                co.c.Id.desc(),
                oli.c.ProductId,
                os_.c.Number,
            )
        )

    def fetch_page(self, store_filter: str, limit: int, offset: int) -> List[SourceOrder]:
        """Fetch one page of order rows for a store."""
        stmt = (
            self._orders_query
            .where(co.c.StoreId == store_filter)
            .limit(limit)
            .offset(offset)
        )

        try:
            with self.database.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching orders from source at offset {offset}: {e}")
            raise SourceFetchError(f"Failed to fetch orders at offset {offset}: {e}") from e

        return [SourceOrder(id=str(row["id"]), data=dict(row)) for row in rows]

    def fetch_vouchers(self, order_id: str) -> List[VoucherRecord]:
        """Fetch the gift-voucher details of one order."""
        stmt = (
            select(
                ovd.c.OrderId,
                ovd.c.Code.label("voucherCode"),
                ovd.c.Pin.label("pin"),
                ovd.c.Amount.label("amount"),
                ovd.c.ValidityDate.label("validity"),
                ovd.c.ProductId.label("productId"),
            )
            .where(ovd.c.OrderId == order_id)
            .order_by(ovd.c.Code, ovd.c.Id)
        )

        try:
            with self.database.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching voucher details for order {order_id}: {e}")
            raise SourceFetchError(f"Failed to fetch vouchers for order {order_id}: {e}") from e

        return [VoucherRecord(order_id=order_id, data=dict(row)) for row in rows]

    def close(self) -> None:
        self.database.close()
