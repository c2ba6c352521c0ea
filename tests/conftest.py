"""pytest fixtures: SQLite stand-ins for the source and destination stores."""

import logging
from datetime import datetime

import pytest
from sqlalchemy import insert

from order_migration.database.connection import DatabaseManager
from order_migration.database.tables import (
    customer_order_table,
    destination_metadata,
    order_address_table,
    order_line_item_table,
    order_payment_in_table,
    order_shipment_item_table,
    order_shipment_table,
    order_voucher_details_table,
    source_metadata,
)
from order_migration.exceptions import SourceFetchError
from order_migration.extractors.base import BaseExtractor
from order_migration.models.migration import DatabaseConfig
from order_migration.models.record import SourceOrder, VoucherRecord


@pytest.fixture(autouse=True)
def restore_root_logger():
    """configure_logging replaces root handlers; put the originals back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


def sqlite_config(path) -> DatabaseConfig:
    return DatabaseConfig(url=f"sqlite:///{path}")


@pytest.fixture
def destination_path(tmp_path):
    return tmp_path / "destination.db"


@pytest.fixture
def destination(destination_path):
    """Destination database with the order tables created."""
    db = DatabaseManager(sqlite_config(destination_path), name="destination database").initialize()
    destination_metadata.create_all(db.engine)
    yield db
    db.close()


@pytest.fixture
def source_path(tmp_path):
    return tmp_path / "source.db"


@pytest.fixture
def source_db(source_path):
    """Source database seeded with two MTB orders and one order of another store."""
    db = DatabaseManager(sqlite_config(source_path), name="source database").initialize()
    source_metadata.create_all(db.engine)

    with db.begin() as conn:
        conn.execute(insert(customer_order_table), [
            {
                "Id": "O1", "Number": "1001", "Status": "Completed",
                "CreatedDate": datetime(2024, 1, 2, 10, 0), "ModifiedDate": datetime(2024, 1, 3, 8, 0),
                "Sum": 30.0, "Currency": "USD", "CustomerName": "Jane Doe",
                "CustomerId": "C1", "StoreId": "MTB",
            },
            {
                "Id": "O2", "Number": "1002", "Status": "Pending",
                "CreatedDate": datetime(2024, 1, 1, 9, 0), "ModifiedDate": None,
                "Sum": 25.0, "Currency": "USD", "CustomerName": "Bob",
                "CustomerId": "C2", "StoreId": "MTB",
            },
            {
                "Id": "O3", "Number": "1003", "Status": "Completed",
                "CreatedDate": datetime(2024, 1, 5, 9, 0), "ModifiedDate": None,
                "Sum": 5.0, "Currency": "EUR", "CustomerName": "Eve",
                "CustomerId": "C3", "StoreId": "OTHER",
            },
        ])
        conn.execute(insert(order_line_item_table), [
            {"Id": "L1", "CustomerOrderId": "O1", "ProductId": "P1", "Name": "Gift Card",
             "Quantity": 1, "Price": 10.0, "Currency": "USD", "ImageUrl": "https://img.example/p1.png"},
            {"Id": "L2", "CustomerOrderId": "O1", "ProductId": "P2", "Name": "Mug",
             "Quantity": 2, "Price": 10.0, "Currency": "USD", "ImageUrl": None},
            {"Id": "L3", "CustomerOrderId": "O2", "ProductId": "P3", "Name": "E-Voucher",
             "Quantity": 1, "Price": 25.0, "Currency": "USD", "ImageUrl": None},
            {"Id": "L4", "CustomerOrderId": "O3", "ProductId": "P4", "Name": "Pen",
             "Quantity": 1, "Price": 5.0, "Currency": "EUR", "ImageUrl": None},
        ])
        conn.execute(insert(order_shipment_table), [
            {"Id": "S1", "CustomerOrderId": "O1", "Number": "SH-1", "Status": "Shipped"},
        ])
        conn.execute(insert(order_shipment_item_table), [
            {"Id": "SI1", "LineItemId": "L1", "ShipmentId": "S1"},
            {"Id": "SI2", "LineItemId": "L2", "ShipmentId": "S1"},
        ])
        conn.execute(insert(order_address_table), [
            {"Id": "A1", "ShipmentId": "S1", "AddressType": "Shipping", "Line1": "1 Main St",
             "Line2": None, "City": "Springfield", "RegionId": None, "RegionName": "IL",
             "PostalCode": "62701", "CountryCode": "US", "CountryName": "United States"},
        ])
        conn.execute(insert(order_payment_in_table), [
            {"Id": "PI1", "CustomerOrderId": "O1", "OuterId": "pay-1", "Status": "Paid"},
        ])
        conn.execute(insert(order_voucher_details_table), [
            {"OrderId": "O2", "Code": "V-100", "Pin": "1234", "Amount": 25.0,
             "ValidityDate": datetime(2025, 1, 1), "ProductId": "P3"},
        ])

    yield db
    db.close()


def _make_order(order_id: str = "O1", **overrides) -> SourceOrder:
    data = {
        "id": order_id,
        "ordernumber": "1001",
        "Status": "Completed",
        "createddate": datetime(2024, 1, 15, 10, 30),
        "modifieddate": datetime(2024, 1, 16, 9, 0),
        "orderPrice": 19.99,
        "Currency": "USD",
        "customername": "Jane Doe",
        "customerid": "C1",
        "storeid": "MTB",
        "productid": "P1",
        "name": "Gift Card",
        "quantity": 1,
        "itemPrice": 19.99,
        "itemCurrency": "USD",
        "ImageUrl": "https://img.example/p1.png",
        "PaymentOuterIds": "pay-1;Paid",
        "address": "Shipping : 1 Main St  Springfield  IL 62701 US United States",
        "shipmentNumber": "SH-1",
        "shipmentStatus": "Shipped",
    }
    data.update(overrides)
    return SourceOrder(id=str(data["id"]), data=data)


@pytest.fixture
def make_order():
    """Factory for source order rows; keyword arguments override fields."""
    return _make_order


class FakeExtractor(BaseExtractor):
    """In-memory source that records every page request."""

    def __init__(self, orders, vouchers=None, fail_at_offset=None):
        self.orders = list(orders)
        self.vouchers = vouchers or {}
        self.fail_at_offset = fail_at_offset
        self.calls = []
        self.closed = False

    def fetch_page(self, store_filter, limit, offset):
        self.calls.append((store_filter, limit, offset))
        if self.fail_at_offset is not None and offset >= self.fail_at_offset:
            raise SourceFetchError(f"Failed to fetch orders at offset {offset}: connection lost")
        return self.orders[offset:offset + limit]

    def fetch_vouchers(self, order_id):
        vouchers = self.vouchers.get(order_id, [])
        if isinstance(vouchers, Exception):
            raise vouchers
        return [VoucherRecord(order_id=order_id, data=v) for v in vouchers]

    def close(self):
        self.closed = True


@pytest.fixture
def fake_extractor():
    """Factory for FakeExtractor instances."""
    return FakeExtractor
