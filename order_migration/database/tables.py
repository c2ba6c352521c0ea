"""SQLAlchemy Core table definitions for the source and destination schemas."""

from typing import Dict, Iterable, List

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.types import TypeEngine

from ..models.schema import (
    ORDER_MAPPING,
    ORDER_PRODUCT_MAPPING,
    ORDER_TOTAL_MAPPING,
    VOUCHER_MAPPING,
)


def _money() -> Numeric:
    # Floats out, so values compare cleanly against parsed source prices
    return Numeric(15, 4, asdecimal=False)


def _columns(names: Iterable[str], types: Dict[str, TypeEngine], primary_key: Iterable[str] = ()) -> List[Column]:
    primary_key = set(primary_key)
    return [
        Column(name, types.get(name, String(255)), primary_key=name in primary_key)
        for name in names
    ]


# === Destination (MySQL) ===

destination_metadata = MetaData()

ORDER_COLUMN_TYPES: Dict[str, TypeEngine] = {
    "order_id": String(64),
    "comment": Text(),
    "shipping_address_1": Text(),
    "payment_code": Text(),
    "order_contains": Text(),
    "total": _money(),
    "total_product_discount": _money(),
    "commission": _money(),
    "currency_value": _money(),
    "order_status_id": Integer(),
    "language_id": Integer(),
    "currency_id": Integer(),
    "affiliate_id": Integer(),
    "is_order_history_deleted": Integer(),
    "date_added": DateTime(),
    "date_modified": DateTime(),
    "client_order_date": DateTime(),
    "delivery_date": DateTime(),
    "prefered_date": DateTime(),
    "settled_date": DateTime(),
}

order_table = Table(
    "order",
    destination_metadata,
    *_columns(ORDER_MAPPING.column_names, ORDER_COLUMN_TYPES, primary_key=ORDER_MAPPING.key_columns),
)

ORDER_PRODUCT_COLUMN_TYPES: Dict[str, TypeEngine] = {
    "order_id": String(64),
    "product_id": String(64),
    "quantity": Integer(),
    "price": _money(),
    "raw_price": _money(),
    "total": _money(),
    "tax": _money(),
    "reward": _money(),
    "vendor_gst_percent": _money(),
    "product_discount": _money(),
    "total_after_discount": _money(),
    "address": Text(),
    "details": Text(),
    "package_info": Text(),
    "orderImage": String(1024),
    "order_product_delivery_date": DateTime(),
    "prefered_date": DateTime(),
}

order_product_table = Table(
    "order_product",
    destination_metadata,
    Column("order_product_id", Integer, primary_key=True, autoincrement=True),
    *_columns(ORDER_PRODUCT_MAPPING.column_names, ORDER_PRODUCT_COLUMN_TYPES),
    UniqueConstraint(*ORDER_PRODUCT_MAPPING.key_columns, name="uq_order_product_order_product"),
)

order_product_data_table = Table(
    "order_product_data",
    destination_metadata,
    Column("order_product_id", Integer, primary_key=True, autoincrement=False),
    Column("key", String(64), primary_key=True),
    Column("value", Text),
)

order_total_table = Table(
    "order_total",
    destination_metadata,
    Column("order_total_id", Integer, primary_key=True, autoincrement=True),
    *_columns(
        ORDER_TOTAL_MAPPING.column_names,
        {
            "order_id": String(64),
            "code": String(32),
            "value": _money(),
            "sort_order": Integer(),
        },
    ),
    UniqueConstraint(*ORDER_TOTAL_MAPPING.key_columns, name="uq_order_total_order_code"),
)

egift_voucher_details_table = Table(
    "egift_voucher_details",
    destination_metadata,
    Column("egift_voucher_details_id", Integer, primary_key=True, autoincrement=True),
    *_columns(
        VOUCHER_MAPPING.column_names,
        {
            "order_id": String(64),
            "code": String(128),
            "amount": _money(),
            "status": Integer(),
            "validity_date": DateTime(),
            "date_added": DateTime(),
            "date_modified": DateTime(),
        },
    ),
    UniqueConstraint(*VOUCHER_MAPPING.key_columns, name="uq_egift_voucher_order_code"),
)

DESTINATION_TABLES: Dict[str, Table] = {
    table.name: table
    for table in (
        order_table,
        order_product_table,
        order_product_data_table,
        order_total_table,
        egift_voucher_details_table,
    )
}


# === Source (MS SQL Server) ===

source_metadata = MetaData()

customer_order_table = Table(
    "CustomerOrder",
    source_metadata,
    Column("Id", String(128), primary_key=True),
    Column("Number", String(64)),
    Column("Status", String(64)),
    Column("CreatedDate", DateTime),
    Column("ModifiedDate", DateTime),
    Column("Sum", Numeric(19, 4, asdecimal=False)),
    Column("Currency", String(3)),
    Column("CustomerName", String(255)),
    Column("CustomerId", String(128)),
    Column("StoreId", String(128)),
)

order_line_item_table = Table(
    "OrderLineItem",
    source_metadata,
    Column("Id", String(128), primary_key=True),
    Column("CustomerOrderId", String(128)),
    Column("ProductId", String(128)),
    Column("Name", String(1024)),
    Column("Quantity", Integer),
    Column("Price", Numeric(19, 4, asdecimal=False)),
    Column("Currency", String(3)),
    Column("ImageUrl", String(1028)),
)

order_shipment_table = Table(
    "OrderShipment",
    source_metadata,
    Column("Id", String(128), primary_key=True),
    Column("CustomerOrderId", String(128)),
    Column("Number", String(64)),
    Column("Status", String(64)),
)

order_shipment_item_table = Table(
    "OrderShipmentItem",
    source_metadata,
    Column("Id", String(128), primary_key=True),
    Column("LineItemId", String(128)),
    Column("ShipmentId", String(128)),
)

order_address_table = Table(
    "OrderAddress",
    source_metadata,
    Column("Id", String(128), primary_key=True),
    Column("ShipmentId", String(128)),
    Column("AddressType", String(32)),
    Column("Line1", String(2048)),
    Column("Line2", String(2048)),
    Column("City", String(128)),
    Column("RegionId", String(128)),
    Column("RegionName", String(128)),
    Column("PostalCode", String(32)),
    Column("CountryCode", String(64)),
    Column("CountryName", String(128)),
)

order_payment_in_table = Table(
    "OrderPaymentIn",
    source_metadata,
    Column("Id", String(128), primary_key=True),
    Column("CustomerOrderId", String(128)),
    Column("OuterId", String(128)),
    Column("Status", String(64)),
)

order_voucher_details_table = Table(
    "OrderVoucherDetails",
    source_metadata,
    Column("Id", Integer, primary_key=True, autoincrement=True),
    Column("OrderId", String(128)),
    Column("Code", String(128)),
    Column("Pin", String(64)),
    Column("Amount", Numeric(19, 4, asdecimal=False)),
    Column("ValidityDate", DateTime),
    Column("ProductId", String(128)),
)
