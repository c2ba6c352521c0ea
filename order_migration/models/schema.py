"""Static column mappings for the destination tables."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Tuple


class ValueType(str, Enum):
    """How a mapped source value is coerced before it is written."""
    RAW = "raw"
    STRING = "string"
    DECIMAL = "decimal"
    INTEGER = "integer"
    DATETIME = "datetime"


@dataclass(frozen=True)
class ColumnMapping:
    """
    Mapping of one destination column.

    ``source`` lists the candidate source fields in precedence order; the
    first one with a value wins. An empty ``source`` means the column only
    ever receives ``default``.
    """
    column: str
    source: Tuple[str, ...] = ()
    default: Any = None
    type: ValueType = ValueType.RAW


@dataclass(frozen=True)
class TableMapping:
    """Ordered column mappings for one destination table."""
    table: str
    key_columns: Tuple[str, ...]
    columns: Tuple[ColumnMapping, ...] = field(default_factory=tuple)

    @property
    def column_names(self) -> List[str]:
        return [c.column for c in self.columns]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "table": self.table,
            "key_columns": list(self.key_columns),
            "columns": [
                {
                    "column": c.column,
                    "source": list(c.source),
                    "default": c.default,
                    "type": c.type.value,
                }
                for c in self.columns
            ],
        }


def col(column: str, *source: str, default: Any = None, type: ValueType = ValueType.RAW) -> ColumnMapping:
    return ColumnMapping(column=column, source=tuple(source), default=default, type=type)


S = ValueType.STRING
D = ValueType.DECIMAL
I = ValueType.INTEGER
DT = ValueType.DATETIME


# Source order statuses -> destination order_status_id
ORDER_STATUS_MAP: Dict[str, int] = {
    "new": 1,
    "pending": 1,
    "processing": 2,
    "paid": 2,
    "shipped": 3,
    "completed": 5,
    "complete": 5,
    "cancelled": 7,
    "canceled": 7,
    "denied": 8,
    "failed": 10,
    "refunded": 11,
    "processed": 15,
}


# Fields computed by the transformer rather than read from a source column
# are prefixed with "_".
ORDER_MAPPING = TableMapping(
    table="order",
    key_columns=("order_id",),
    columns=(
        col("order_id", "id", type=S),
        col("invoice_no", "ordernumber", type=S),
        col("invoice_prefix"),
        col("invoice_path"),
        col("store_id", "storeid", type=S),
        col("store_name"),
        col("store_url"),
        col("customer_id", "customerid", type=S),
        col("new_customer_id"),
        col("customer_group_id"),
        col("firstname", "_firstname", type=S),
        col("lastname", "_lastname", type=S),
        col("email"),
        col("telephone"),
        col("fax"),
        col("payment_firstname", "_firstname", type=S),
        col("payment_lastname", "_lastname", type=S),
        col("payment_company"),
        col("payment_company_id"),
        col("payment_tax_id"),
        col("payment_address_1"),
        col("payment_address_2"),
        col("payment_city"),
        col("payment_postcode"),
        col("payment_country"),
        col("payment_country_id"),
        col("payment_zone"),
        col("payment_zone_id"),
        col("payment_address_format"),
        col("payment_method"),
        col("payment_code", "PaymentOuterIds", type=S),
        col("shipping_firstname", "_firstname", type=S),
        col("shipping_lastname", "_lastname", type=S),
        col("shipping_contact_no"),
        col("shipping_company"),
        col("shipping_address_1", "address", type=S),
        col("shipping_address_2"),
        col("shipping_city"),
        col("shipping_postcode"),
        col("shipping_country"),
        col("shipping_country_id"),
        col("shipping_zone"),
        col("shipping_zone_id"),
        col("shipping_address_format"),
        col("shipping_method"),
        col("shipping_code", "shipmentNumber", type=S),
        col("comment"),
        col("total", "orderPrice", type=D),
        col("total_product_discount", default=0),
        col("order_status_id", "_order_status_id", type=I),
        col("delivery_status", "shipmentStatus", type=S),
        col("mail_delivery_status"),
        col("sms_delivery_status"),
        col("delivery_date"),
        col("affiliate_id"),
        col("commission"),
        col("language_id", default=1),
        col("currency_id"),
        col("currency_code", "Currency", type=S),
        col("currency_value", default=1),
        col("ip"),
        col("forwarded_ip"),
        col("user_agent"),
        col("accept_language"),
        col("date_added", "createddate", type=DT),
        col("date_modified", "modifieddate", "createddate", type=DT),
        col("landline"),
        col("shiping_landline"),
        col("is_order_history_deleted", default=0),
        col("order_contains"),
        col("vendor_name"),
        col("client_name", "customername", type=S),
        col("client_order_id", "ordernumber", type=S),
        col("client_order_date", "createddate", type=DT),
        col("po_number"),
        col("po_item_reference"),
        col("otp_telephone"),
        col("source", default="migration"),
        col("prefered_date"),
        col("app"),
        col("client_app_id"),
        col("settled_date"),
    ),
)


ORDER_PRODUCT_MAPPING = TableMapping(
    table="order_product",
    key_columns=("order_id", "product_id"),
    columns=(
        col("order_id", "id", type=S),
        col("product_id", "productid", type=S),
        col("name", "name", type=S),
        col("model", "productid", type=S),
        col("quantity", "quantity", type=I),
        col("price", "itemPrice", type=D),
        col("raw_price", "itemPrice", type=D),
        col("total", "_line_total", type=D),
        col("tax", default=0),
        col("vendor_gst_percent"),
        col("reward", default=0),
        col("receiver_mobile_number"),
        col("receiver_mobile_code"),
        col("order_product_status", "Status", type=S),
        col("order_product_delivery_date"),
        col("courier_tracking_id"),
        col("other_courier_company"),
        col("delivery_status", "shipmentStatus", type=S),
        col("courier_company"),
        col("egift_voucher_theme_id"),
        col("customize_voucher"),
        col("physical_voucher_sl_no"),
        col("alternative_email"),
        col("cancel_reason"),
        col("cancel_user_id"),
        col("product_discount", default=0),
        col("total_after_discount", "_line_total", type=D),
        col("review_cancel"),
        col("frogo_user_type_id"),
        col("prefered_date"),
        col("category_id"),
        col("changes_message"),
        col("city_id"),
        col("address", "address", type=S),
        col("address_id"),
        col("package_id"),
        col("package_info"),
        col("orderImage", "ImageUrl", type=S),
        col("loyalty_name"),
        col("loyalty_conversion"),
        col("loyalty_denomination"),
        col("reference_key"),
        col("reference_value"),
        col("details"),
        col("currency_code", "itemCurrency", "Currency", type=S),
    ),
)


ORDER_PRODUCT_DATA_MAPPING = TableMapping(
    table="order_product_data",
    key_columns=("order_product_id", "key"),
    columns=(
        col("order_product_id", type=I),
        col("key", type=S),
        col("value", type=S),
    ),
)


ORDER_TOTAL_MAPPING = TableMapping(
    table="order_total",
    key_columns=("order_id", "code"),
    columns=(
        col("order_id", "id", type=S),
        col("code", "_code", type=S),
        col("title", "_title", type=S),
        col("text", "_text", type=S),
        col("value", "_value", type=D),
        col("sort_order", "_sort_order", type=I),
        col("type"),
    ),
)


# Voucher rows are mapped from the order fields overlaid with the voucher's
# own fields, so voucher values win over same-named order values.
VOUCHER_MAPPING = TableMapping(
    table="egift_voucher_details",
    key_columns=("order_id", "code"),
    columns=(
        col("order_id", "id", "OrderId", type=S),
        col("validity_date", "validity", type=DT),
        col("amount", "amount", type=D),
        col("product_id", "productId", type=S),
        col("status", default=1),
        col("salt"),
        col("code", "voucherCode", "code", type=S),
        col("pin", "pin", type=S),
        col("date_added", "createddate", type=DT),
        col("date_modified", "modifieddate", "createddate", type=DT),
        col("transfer_voucher_request_id"),
        col("special_case_id"),
    ),
)


DESTINATION_MAPPINGS: Tuple[TableMapping, ...] = (
    ORDER_MAPPING,
    ORDER_PRODUCT_MAPPING,
    ORDER_PRODUCT_DATA_MAPPING,
    ORDER_TOTAL_MAPPING,
    VOUCHER_MAPPING,
)
