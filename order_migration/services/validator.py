"""Read-back validation of migrated orders."""

import logging
from typing import Any, Callable, List, Mapping, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..database.connection import DatabaseManager
from ..database.tables import (
    egift_voucher_details_table,
    order_product_table,
    order_table,
    order_total_table,
)
from ..models.record import (
    Discrepancy,
    DiscrepancyType,
    SourceOrder,
    ValidationResult,
)
from .transformer import TOTAL_CODE, is_blank

logger = logging.getLogger(__name__)


def to_int(value: Any) -> int:
    number = float(value)
    if not number.is_integer():
        raise ValueError(f"{value!r} is not an integer")
    return int(number)


# (destination column, source field, coercion applied to both sides)
FieldCheck = Tuple[str, str, Callable[[Any], Any]]

ORDER_FIELDS: Tuple[FieldCheck, ...] = (
    ("customer_id", "customerid", str),
    ("store_id", "storeid", str),
    ("total", "orderPrice", float),
    ("currency_code", "Currency", str),
)

PRODUCT_FIELDS: Tuple[FieldCheck, ...] = (
    ("name", "name", str),
    ("quantity", "quantity", to_int),
    ("price", "itemPrice", float),
)


class MigrationValidator:
    """
    Validator that compares a written order against its source row.

    Supports:
    - Header field checks (customer, store, total, currency)
    - Product line checks matched by product id
    - Order total check against the source order price
    - Tolerant comparison of numbers held as text on one side
    """

    def validate(
        self,
        destination: DatabaseManager,
        source_order: SourceOrder,
        order_id: str,
    ) -> ValidationResult:
        """
        Validate one migrated order.

        Args:
            destination: Destination database
            source_order: The source row the order was migrated from
            order_id: Destination order identifier

        Returns:
            ValidationResult; read failures are returned in ``errors``
        """
        result = ValidationResult(metadata={"order_id": order_id})

        try:
            rows = self._read_order(destination, order_id)
        except SQLAlchemyError as e:
            logger.error(f"Error reading order {order_id} from destination: {e}")
            result.errors.append(f"Failed to read order {order_id} from destination: {e}")
            return result

        if rows is None:
            result.discrepancies.append(Discrepancy(
                type=DiscrepancyType.ORDER,
                field="order_id",
                source_value=order_id,
                error=f"Order {order_id} not found in destination",
            ))
            return result

        order, products, totals, vouchers = rows
        result.metadata.update({
            "product_count": len(products),
            "total_count": len(totals),
            "voucher_count": len(vouchers),
        })

        result.discrepancies.extend(
            self._compare_fields(DiscrepancyType.ORDER, ORDER_FIELDS, source_order, order)
        )
        result.discrepancies.extend(self._check_product(source_order, products))
        result.discrepancies.extend(self._check_total(source_order, totals))

        if not result.is_valid:
            logger.debug(f"Order {order_id} has {len(result.discrepancies)} discrepancies")

        return result

    def _read_order(self, destination: DatabaseManager, order_id: str):
        with destination.connect() as conn:
            order = conn.execute(
                select(order_table).where(order_table.c.order_id == order_id)
            ).mappings().first()
            if order is None:
                return None

            products = conn.execute(
                select(order_product_table).where(order_product_table.c.order_id == order_id)
            ).mappings().all()
            totals = conn.execute(
                select(order_total_table).where(order_total_table.c.order_id == order_id)
            ).mappings().all()
            vouchers = conn.execute(
                select(egift_voucher_details_table)
                .where(egift_voucher_details_table.c.order_id == order_id)
            ).mappings().all()

        return order, products, totals, vouchers

    def _check_product(self, source_order: SourceOrder, products: List[Mapping[str, Any]]) -> List[Discrepancy]:
        product_id = source_order.get_field("productid")
        if is_blank(product_id):
            return []

        match = next((p for p in products if str(p["product_id"]) == str(product_id)), None)
        if match is None:
            return [Discrepancy(
                type=DiscrepancyType.PRODUCT,
                field="product_id",
                source_value=product_id,
                error=f"Product {product_id} not found in destination",
            )]

        return self._compare_fields(DiscrepancyType.PRODUCT, PRODUCT_FIELDS, source_order, match)

    def _check_total(self, source_order: SourceOrder, totals: List[Mapping[str, Any]]) -> List[Discrepancy]:
        source_value = source_order.get_field("orderPrice")
        match = next((t for t in totals if t["code"] == TOTAL_CODE), None)
        if match is None:
            return [Discrepancy(
                type=DiscrepancyType.TOTAL,
                field=TOTAL_CODE,
                source_value=source_value,
                error="Order total not found in destination",
            )]

        if not self.values_match(source_value, match["value"], float):
            return [Discrepancy(
                type=DiscrepancyType.TOTAL,
                field=TOTAL_CODE,
                source_value=source_value,
                dest_value=match["value"],
            )]
        return []

    def _compare_fields(
        self,
        kind: DiscrepancyType,
        checks: Tuple[FieldCheck, ...],
        source_order: SourceOrder,
        row: Mapping[str, Any],
    ) -> List[Discrepancy]:
        discrepancies = []
        for dest_field, source_field, coerce in checks:
            source_value = source_order.get_field(source_field)
            dest_value = row.get(dest_field)
            if not self.values_match(source_value, dest_value, coerce):
                discrepancies.append(Discrepancy(
                    type=kind,
                    field=dest_field,
                    source_value=source_value,
                    dest_value=dest_value,
                ))
        return discrepancies

    @staticmethod
    def values_match(source_value: Any, dest_value: Any, coerce: Optional[Callable[[Any], Any]] = None) -> bool:
        """
        Compare two values tolerantly.

        Both sides are coerced (a failed coercion keeps the raw value); the
        values match when the coerced forms or the string forms are equal.
        """
        if source_value is None and dest_value is None:
            return True

        def _coerce(value: Any) -> Any:
            if coerce is None or value is None:
                return value
            try:
                return coerce(value)
            except (TypeError, ValueError, OverflowError):
                return value

        if _coerce(source_value) == _coerce(dest_value):
            return True
        return str(source_value) == str(dest_value)

