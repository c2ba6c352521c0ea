"""Relational destination store loader (MySQL in production)."""

import logging
from typing import Any, Dict, Mapping, Sequence

from sqlalchemy import Table, and_, func, insert, select, update
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Connection

from .base import BaseLoader
from ..database.connection import DatabaseManager
from ..database.tables import (
    egift_voucher_details_table,
    order_product_data_table,
    order_product_table,
    order_table,
    order_total_table,
)
from ..models.record import LoadResult, TransformedOrder
from ..models.schema import (
    ORDER_MAPPING,
    ORDER_PRODUCT_DATA_MAPPING,
    ORDER_PRODUCT_MAPPING,
    ORDER_TOTAL_MAPPING,
    VOUCHER_MAPPING,
)
from ..services.transformer import SUB_TOTAL_CODE, OrderTransformer

logger = logging.getLogger(__name__)

IMAGE_URL_KEY = "image_url"

_ON_CONFLICT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


class SQLOrderLoader(BaseLoader):
    """
    Loader that upserts orders into the destination database.

    Every order is written in one transaction: header, product lines with
    their image-URL data rows, totals, then vouchers. Each row is an upsert
    on the table's natural key, so loading the same order twice leaves the
    destination unchanged. Any error rolls the whole order back.
    """

    def __init__(self, database: DatabaseManager):
        """
        Initialize the loader.

        Args:
            database: Manager for the destination database
        """
        self.database = database

    def load(self, order: TransformedOrder) -> LoadResult:
        """Write one order atomically."""
        try:
            with self.database.begin() as conn:
                self._write_order(conn, order)
        except Exception as e:
            logger.error(f"Failed to load order {order.order_id}, rolled back: {e}")
            return LoadResult(success=False, order_id=order.order_id, error=str(e))

        logger.debug(
            f"Loaded order {order.order_id}: {len(order.products)} products, "
            f"{len(order.totals)} totals, {len(order.vouchers)} vouchers"
        )
        return LoadResult(success=True, order_id=order.order_id)

    def _write_order(self, conn: Connection, order: TransformedOrder) -> None:
        self.upsert(conn, order_table, ORDER_MAPPING.key_columns, order.order)

        for product in order.products:
            self.upsert(conn, order_product_table, ORDER_PRODUCT_MAPPING.key_columns, product)

            image_url = product.get(IMAGE_URL_KEY)
            if image_url:
                order_product_id = conn.execute(
                    select(order_product_table.c.order_product_id).where(and_(
                        order_product_table.c.order_id == product["order_id"],
                        order_product_table.c.product_id == product["product_id"],
                    ))
                ).scalar_one()
                self.upsert(
                    conn,
                    order_product_data_table,
                    ORDER_PRODUCT_DATA_MAPPING.key_columns,
                    {"order_product_id": order_product_id, "key": IMAGE_URL_KEY, "value": image_url},
                )

        for total in order.totals:
            if total.get("code") == SUB_TOTAL_CODE:
                total = self._stored_sub_total(conn, order, total)
            self.upsert(conn, order_total_table, ORDER_TOTAL_MAPPING.key_columns, total)

        for voucher in order.vouchers:
            if not voucher.get("code"):
                logger.warning(f"Skipping voucher without a code for order {order.order_id}")
                continue
            self.upsert(conn, egift_voucher_details_table, VOUCHER_MAPPING.key_columns, voucher)

    def _stored_sub_total(
        self,
        conn: Connection,
        order: TransformedOrder,
        row: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Replace the sub-total of ``row`` with the sum of every product line
        stored for the order.

        The source yields one row per line item, so a single transform only
        knows its own line.
        """
        stored = conn.execute(
            select(func.sum(order_product_table.c.total)).where(
                order_product_table.c.order_id == order.order_id
            )
        ).scalar()
        if stored is None:
            return row

        value = round(float(stored), 2)
        currency = order.order.get("currency_code")
        return {**row, "value": value, "text": OrderTransformer.format_amount(value, currency)}

    def upsert(
        self,
        conn: Connection,
        table: Table,
        key_columns: Sequence[str],
        row: Mapping[str, Any],
    ) -> None:
        """
        Insert ``row`` or overwrite the existing row with the same key.

        Keys of ``row`` that are not columns of ``table`` are ignored.
        """
        values = {c.name: row.get(c.name) for c in table.columns if c.name in row}
        changes = [name for name in values if name not in key_columns]
        dialect = conn.dialect.name

        if dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(table).values(values)
            stmt = stmt.on_duplicate_key_update({name: stmt.inserted[name] for name in changes})
            conn.execute(stmt)
        elif dialect in _ON_CONFLICT_INSERTS:
            stmt = _ON_CONFLICT_INSERTS[dialect](table).values(values)
            stmt = stmt.on_conflict_do_update(
                index_elements=list(key_columns),
                set_={name: stmt.excluded[name] for name in changes},
            )
            conn.execute(stmt)
        else:
            self._emulated_upsert(conn, table, key_columns, values, changes)

    def _emulated_upsert(
        self,
        conn: Connection,
        table: Table,
        key_columns: Sequence[str],
        values: Dict[str, Any],
        changes: Sequence[str],
    ) -> None:
        key_clause = and_(*(table.c[name] == values[name] for name in key_columns))
        existing = conn.execute(select(*(table.c[name] for name in key_columns)).where(key_clause)).first()

        if existing is None:
            conn.execute(insert(table).values(values))
        elif changes:
            conn.execute(update(table).where(key_clause).values({name: values[name] for name in changes}))

    def close(self) -> None:
        self.database.close()
