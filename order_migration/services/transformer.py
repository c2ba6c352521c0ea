"""Transformation of source order rows into destination table rows."""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from dateutil import parser as date_parser

from ..exceptions import TransformError
from ..models.record import SourceOrder, TransformedOrder, VoucherRecord
from ..models.schema import (
    ORDER_MAPPING,
    ORDER_PRODUCT_MAPPING,
    ORDER_STATUS_MAP,
    ORDER_TOTAL_MAPPING,
    VOUCHER_MAPPING,
    TableMapping,
    ValueType,
)

logger = logging.getLogger(__name__)

SUB_TOTAL_CODE = "sub_total"
TOTAL_CODE = "total"


def lookup(data: Mapping[str, Any], name: str) -> Any:
    """Get a field by exact name, then case-insensitively."""
    if name in data:
        return data[name]

    lowered = name.lower()
    for key, value in data.items():
        if key.lower() == lowered:
            return value
    return None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class OrderTransformer:
    """
    Converts one extracted order row into the destination schema.

    Supports:
    - Static column mappings with ordered fallback source fields
    - Coercion to string, decimal, integer and datetime
    - Derived fields (split customer name, mapped status, line totals)
    - Voucher rows built from the order overlaid with the voucher's fields

    The transformer holds no state between calls.
    """

    def __init__(self, status_map: Optional[Dict[str, int]] = None):
        """
        Initialize the transformer.

        Args:
            status_map: Lower-cased source status -> destination status id
        """
        self.status_map = {k.lower(): v for k, v in (status_map or ORDER_STATUS_MAP).items()}
        self._coercers: Dict[ValueType, Callable[[Any, str], Any]] = {
            ValueType.RAW: lambda value, name: value,
            ValueType.STRING: self._to_string,
            ValueType.DECIMAL: self._to_decimal,
            ValueType.INTEGER: self._to_integer,
            ValueType.DATETIME: self._to_datetime,
        }

    def transform(
        self,
        source_order: SourceOrder,
        vouchers: Iterable[VoucherRecord] = (),
    ) -> TransformedOrder:
        """
        Transform a source order and its vouchers.

        Args:
            source_order: One row of the extraction query
            vouchers: The order's voucher details

        Returns:
            TransformedOrder with one header row and its child rows

        Raises:
            TransformError: If a present numeric or date field is malformed
        """
        order_id = str(source_order.id)
        context = dict(source_order.data)
        context["id"] = order_id
        context.update(self._derive_order_fields(source_order))

        order = self.build_row(ORDER_MAPPING, context)

        products: List[Dict[str, Any]] = []
        if not is_blank(source_order.get_field("productid")):
            product = self.build_row(ORDER_PRODUCT_MAPPING, context)
            product["image_url"] = self._to_string(source_order.get_field("ImageUrl"), "ImageUrl")
            products.append(product)

        totals = self._build_totals(order_id, order, products)

        voucher_rows = []
        for voucher in vouchers:
            # Voucher fields win over same-named order fields
            merged = {**context, **voucher.data, "id": order_id}
            voucher_rows.append(self.build_row(VOUCHER_MAPPING, merged))

        return TransformedOrder(
            order_id=order_id,
            order=order,
            products=products,
            totals=totals,
            vouchers=voucher_rows,
        )

    def build_row(self, mapping: TableMapping, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Build one destination row; every mapped column is present."""
        row: Dict[str, Any] = {}
        for column in mapping.columns:
            value = None
            for source in column.source:
                candidate = lookup(data, source)
                if not is_blank(candidate):
                    value = self._coercers[column.type](candidate, source)
                    break
            row[column.column] = column.default if value is None else value
        return row

    def _derive_order_fields(self, source_order: SourceOrder) -> Dict[str, Any]:
        firstname, lastname = self.split_name(source_order.get_field("customername"))
        return {
            "_firstname": firstname,
            "_lastname": lastname,
            "_order_status_id": self.map_status(source_order.get_field("Status")),
            "_line_total": self._line_total(source_order),
        }

    @staticmethod
    def split_name(value: Any):
        """Split a customer name into first/last parts on the first space."""
        if is_blank(value):
            return None, None

        parts = str(value).strip().split(" ", 1)
        first = parts[0]
        last = parts[1].strip() if len(parts) > 1 else None
        return first, last or None

    def map_status(self, value: Any) -> Optional[int]:
        """Map a source order status to a destination status id."""
        if is_blank(value):
            return None
        status_id = self.status_map.get(str(value).strip().lower())
        if status_id is None:
            logger.debug(f"Unmapped order status: {value}")
        return status_id

    def _line_total(self, source_order: SourceOrder) -> Optional[float]:
        price = self.parse_decimal(source_order.get_field("itemPrice"), "itemPrice")
        quantity = self._to_integer(source_order.get_field("quantity"), "quantity")
        if price is None or quantity is None:
            return None
        return float(price * quantity)

    def _build_totals(
        self,
        order_id: str,
        order: Dict[str, Any],
        products: List[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        currency = order.get("currency_code")
        entries = []

        line_totals = [p["total"] for p in products if p.get("total") is not None]
        if products:
            sub_total = float(sum(Decimal(str(t)) for t in line_totals)) if line_totals else None
            entries.append((SUB_TOTAL_CODE, "Sub-Total", sub_total, 1))

        entries.append((TOTAL_CODE, "Total", order.get("total"), 9))

        totals = []
        for code, title, value, sort_order in entries:
            context = {
                "id": order_id,
                "_code": code,
                "_title": title,
                "_text": self.format_amount(value, currency),
                "_value": value,
                "_sort_order": sort_order,
            }
            totals.append(self.build_row(ORDER_TOTAL_MAPPING, context))
        return totals

    @staticmethod
    def format_amount(value: Optional[float], currency: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        amount = f"{value:.2f}"
        return f"{currency} {amount}" if currency else amount

    # Coercions

    def _to_string(self, value: Any, name: str) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        return str(value)

    def parse_decimal(self, value: Any, name: str) -> Optional[Decimal]:
        """Parse a number into a Decimal, or None when absent or blank."""
        if is_blank(value):
            return None
        if isinstance(value, bool):
            raise TransformError(f"Field {name} is not numeric: {value!r}", field=name, value=value)

        try:
            number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except InvalidOperation:
            raise TransformError(f"Field {name} is not numeric: {value!r}", field=name, value=value)

        if not number.is_finite():
            raise TransformError(f"Field {name} is not a finite number: {value!r}", field=name, value=value)
        return number

    def _to_decimal(self, value: Any, name: str) -> Optional[float]:
        number = self.parse_decimal(value, name)
        return None if number is None else float(number)

    def _to_integer(self, value: Any, name: str) -> Optional[int]:
        number = self.parse_decimal(value, name)
        if number is None:
            return None
        if number != number.to_integral_value():
            raise TransformError(f"Field {name} is not an integer: {value!r}", field=name, value=value)
        return int(number)

    def _to_datetime(self, value: Any, name: str) -> Optional[datetime]:
        if is_blank(value):
            return None

        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, str):
            try:
                parsed = date_parser.parse(value.strip())
            except (ValueError, OverflowError):
                raise TransformError(f"Field {name} is not a date: {value!r}", field=name, value=value)
        else:
            raise TransformError(f"Field {name} is not a date: {value!r}", field=name, value=value)

        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
