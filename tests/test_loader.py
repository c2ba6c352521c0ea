"""Tests for SQLOrderLoader against a SQLite destination."""

import pytest
from sqlalchemy import func, select

from order_migration.database.tables import (
    DESTINATION_TABLES,
    egift_voucher_details_table,
    order_product_data_table,
    order_product_table,
    order_table,
    order_total_table,
)
from order_migration.loaders.sql_loader import SQLOrderLoader
from order_migration.models.record import VoucherRecord
from order_migration.services.transformer import OrderTransformer


@pytest.fixture
def loader(destination):
    return SQLOrderLoader(destination)


@pytest.fixture
def transformer():
    return OrderTransformer()


def count_rows(db, table):
    with db.connect() as conn:
        return conn.execute(select(func.count()).select_from(table)).scalar_one()


def table_snapshot(db):
    snapshot = {}
    with db.connect() as conn:
        for name, table in DESTINATION_TABLES.items():
            rows = conn.execute(select(table)).mappings().all()
            snapshot[name] = sorted((dict(r) for r in rows), key=repr)
    return snapshot


class TestLoad:
    def test_writes_all_tables(self, destination, loader, transformer, make_order):
        vouchers = [VoucherRecord(order_id="O1", data={"voucherCode": "V-1", "pin": "1111", "amount": 19.99})]
        result = loader.load(transformer.transform(make_order(), vouchers))

        assert result.success
        assert result.order_id == "O1"
        assert result.error is None

        with destination.connect() as conn:
            order = conn.execute(select(order_table)).mappings().one()
            product = conn.execute(select(order_product_table)).mappings().one()
            data = conn.execute(select(order_product_data_table)).mappings().one()
            totals = conn.execute(select(order_total_table)).mappings().all()
            voucher = conn.execute(select(egift_voucher_details_table)).mappings().one()

        assert order["order_id"] == "O1"
        assert order["total"] == 19.99
        assert product["product_id"] == "P1"
        assert data["order_product_id"] == product["order_product_id"]
        assert data["key"] == "image_url"
        assert data["value"] == "https://img.example/p1.png"
        assert {t["code"] for t in totals} == {"sub_total", "total"}
        assert voucher["code"] == "V-1"
        assert voucher["amount"] == 19.99

    def test_no_image_row_without_image_url(self, destination, loader, transformer, make_order):
        loader.load(transformer.transform(make_order(ImageUrl=None)))

        assert count_rows(destination, order_product_table) == 1
        assert count_rows(destination, order_product_data_table) == 0

    def test_header_only_order(self, destination, loader, transformer, make_order):
        result = loader.load(transformer.transform(make_order(productid=None)))

        assert result.success
        assert count_rows(destination, order_table) == 1
        assert count_rows(destination, order_product_table) == 0
        assert count_rows(destination, order_total_table) == 1

    def test_skips_voucher_without_code(self, destination, loader, transformer, make_order):
        vouchers = [VoucherRecord(order_id="O1", data={"pin": "1111"})]
        result = loader.load(transformer.transform(make_order(), vouchers))

        assert result.success
        assert count_rows(destination, egift_voucher_details_table) == 0


class TestIdempotence:
    def test_loading_twice_leaves_destination_unchanged(self, destination, loader, transformer, make_order):
        vouchers = [VoucherRecord(order_id="O1", data={"voucherCode": "V-1", "amount": 5})]
        transformed = transformer.transform(make_order(), vouchers)

        assert loader.load(transformed).success
        first = table_snapshot(destination)

        assert loader.load(transformed).success
        assert table_snapshot(destination) == first

    def test_second_run_overwrites_changed_values(self, destination, loader, transformer, make_order):
        loader.load(transformer.transform(make_order(orderPrice=19.99)))
        loader.load(transformer.transform(make_order(orderPrice=25.0, shipmentStatus="Delivered")))

        with destination.connect() as conn:
            order = conn.execute(select(order_table)).mappings().one()
            total = conn.execute(
                select(order_total_table).where(order_total_table.c.code == "total")
            ).mappings().one()

        assert order["total"] == 25.0
        assert order["delivery_status"] == "Delivered"
        assert total["value"] == 25.0
        assert total["text"] == "USD 25.00"
        assert count_rows(destination, order_table) == 1

    def test_product_lines_of_one_order_accumulate(self, destination, loader, transformer, make_order):
        loader.load(transformer.transform(make_order(productid="P1")))
        loader.load(transformer.transform(make_order(productid="P2", ImageUrl="https://img.example/p2.png")))

        assert count_rows(destination, order_table) == 1
        assert count_rows(destination, order_product_table) == 2
        assert count_rows(destination, order_product_data_table) == 2

    def test_sub_total_sums_every_stored_line(self, destination, loader, transformer, make_order):
        loader.load(transformer.transform(make_order(productid="P1", quantity=1, itemPrice=10)))
        loader.load(transformer.transform(make_order(productid="P2", quantity=2, itemPrice=10)))

        with destination.connect() as conn:
            sub_total = conn.execute(
                select(order_total_table).where(order_total_table.c.code == "sub_total")
            ).mappings().one()

        assert sub_total["value"] == 30.0
        assert sub_total["text"] == "USD 30.00"

    def test_reloading_a_line_does_not_double_count(self, destination, loader, transformer, make_order):
        line = transformer.transform(make_order(productid="P1", quantity=1, itemPrice=10))
        loader.load(line)
        loader.load(line)

        with destination.connect() as conn:
            value = conn.execute(
                select(order_total_table.c.value).where(order_total_table.c.code == "sub_total")
            ).scalar_one()

        assert value == 10.0


class TestAtomicity:
    def test_failing_row_rolls_back_whole_order(self, destination, loader, transformer, make_order):
        transformed = transformer.transform(make_order())
        transformed.vouchers.append({"order_id": "O1", "code": "V-bad", "amount": object()})

        result = loader.load(transformed)

        assert not result.success
        assert result.order_id == "O1"
        assert result.error
        for table in DESTINATION_TABLES.values():
            assert count_rows(destination, table) == 0

    def test_failure_does_not_touch_previous_version(self, destination, loader, transformer, make_order):
        loader.load(transformer.transform(make_order(orderPrice=10)))

        transformed = transformer.transform(make_order(orderPrice=99))
        transformed.vouchers.append({"order_id": "O1", "code": "V-bad", "amount": object()})
        assert not loader.load(transformed).success

        with destination.connect() as conn:
            order = conn.execute(select(order_table)).mappings().one()
        assert order["total"] == 10.0

    def test_load_never_raises_on_missing_tables(self, tmp_path, transformer, make_order):
        from order_migration.database.connection import DatabaseManager
        from order_migration.models.migration import DatabaseConfig

        with DatabaseManager(DatabaseConfig(url=f"sqlite:///{tmp_path / 'empty.db'}")) as empty:
            result = SQLOrderLoader(empty).load(transformer.transform(make_order()))

        assert not result.success
        assert "order" in result.error


class TestEmulatedUpsert:
    def test_insert_then_update(self, destination, loader):
        row = {"order_id": "O9", "code": "total", "title": "Total", "value": 1.0, "sort_order": 9}
        changes = ["title", "value", "sort_order"]

        with destination.begin() as conn:
            loader._emulated_upsert(conn, order_total_table, ("order_id", "code"), row, changes)
            loader._emulated_upsert(conn, order_total_table, ("order_id", "code"), {**row, "value": 2.0}, changes)

        with destination.connect() as conn:
            rows = conn.execute(select(order_total_table)).mappings().all()
        assert len(rows) == 1
        assert rows[0]["value"] == 2.0
