"""SQLAlchemy-backed stores for customers, products, invoices and items."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.engine import RowMapping

from invimport.database import Database, customers, invoice_items, invoices, products
from invimport.entities import Customer, Entity, Invoice, InvoiceItem, Product

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class SqlStore(Generic[E]):
    """
    CRUD shared by all stores.

    ``save`` inserts when the entity has no identity and updates otherwise.
    Inserts assign identity and both timestamps; updates refresh
    ``updated_at`` only.
    """

    table: Table

    def __init__(self, database: Database) -> None:
        self.database = database

    def _to_values(self, entity: E) -> dict[str, Any]:
        raise NotImplementedError

    def _from_row(self, row: RowMapping) -> E:
        raise NotImplementedError

    @staticmethod
    def _hydrate_timestamps(entity: E, row: RowMapping) -> E:
        entity.id = int(row["id"])
        entity.created_at = row["created_at"]
        entity.updated_at = row["updated_at"]
        return entity

    def find(self, entity_id: int) -> Optional[E]:
        row = self.database.fetch_one(
            select(self.table).where(self.table.c.id == entity_id)
        )
        if row is None:
            return None
        return self._from_row(row)

    def find_all(self) -> list[E]:
        rows = self.database.fetch_all(select(self.table).order_by(self.table.c.id))
        return [self._from_row(row) for row in rows]

    def save(self, entity: E) -> E:
        now = datetime.now()
        values = self._to_values(entity)

        if entity.id is None:
            result = self.database.execute(
                insert(self.table).values(**values, created_at=now, updated_at=now)
            )
            entity.id = int(result.inserted_primary_key[0])
            entity.created_at = now
            entity.updated_at = now
            self.database.track_insert(entity)
            return entity

        result = self.database.execute(
            update(self.table)
            .where(self.table.c.id == entity.id)
            .values(**values, updated_at=now)
        )
        if result.rowcount == 0:
            logger.warning("%s %s no longer exists; update skipped", self.table.name, entity.id)
            return entity
        entity.updated_at = now
        return entity

    def delete(self, entity: E) -> bool:
        if entity.id is None:
            return False
        result = self.database.execute(
            delete(self.table).where(self.table.c.id == entity.id)
        )
        return result.rowcount > 0


class SqlCustomerStore(SqlStore[Customer]):
    table = customers

    def _to_values(self, entity: Customer) -> dict[str, Any]:
        return {"name": entity.name, "address": entity.address}

    def _from_row(self, row: RowMapping) -> Customer:
        customer = Customer(name=row["name"], address=row["address"] or "")
        return self._hydrate_timestamps(customer, row)

    def find_by_name(self, name: str) -> Optional[Customer]:
        """Exact-match lookup used for deduplication; None means "create one"."""
        row = self.database.fetch_one(
            select(self.table).where(self.table.c.name == name).order_by(self.table.c.id)
        )
        if row is None:
            return None
        return self._from_row(row)


class SqlProductStore(SqlStore[Product]):
    table = products

    def _to_values(self, entity: Product) -> dict[str, Any]:
        return {"name": entity.name, "price": entity.price}

    def _from_row(self, row: RowMapping) -> Product:
        product = Product(name=row["name"], price=row["price"])
        return self._hydrate_timestamps(product, row)

    def find_by_name(self, name: str) -> Optional[Product]:
        """Exact-match lookup used for deduplication; None means "create one"."""
        row = self.database.fetch_one(
            select(self.table).where(self.table.c.name == name).order_by(self.table.c.id)
        )
        if row is None:
            return None
        return self._from_row(row)


class SqlInvoiceStore(SqlStore[Invoice]):
    table = invoices

    def _to_values(self, entity: Invoice) -> dict[str, Any]:
        return {
            "customer_id": entity.customer_id,
            "invoice_date": entity.invoice_date,
            "grand_total": entity.grand_total,
        }

    def _from_row(self, row: RowMapping) -> Invoice:
        invoice = Invoice(
            customer_id=int(row["customer_id"]),
            invoice_date=row["invoice_date"],
            grand_total=row["grand_total"],
        )
        return self._hydrate_timestamps(invoice, row)

    def find_by_customer_id(self, customer_id: int) -> list[Invoice]:
        rows = self.database.fetch_all(
            select(self.table)
            .where(self.table.c.customer_id == customer_id)
            .order_by(self.table.c.id)
        )
        return [self._from_row(row) for row in rows]


class SqlInvoiceItemStore(SqlStore[InvoiceItem]):
    table = invoice_items

    def _to_values(self, entity: InvoiceItem) -> dict[str, Any]:
        return {
            "invoice_id": entity.invoice_id,
            "product_id": entity.product_id,
            "quantity": entity.quantity,
            "price": entity.price,
            "total": entity.total,
        }

    def _from_row(self, row: RowMapping) -> InvoiceItem:
        item = InvoiceItem(
            invoice_id=int(row["invoice_id"]),
            product_id=int(row["product_id"]),
            quantity=int(row["quantity"]),
            price=row["price"],
            total=row["total"],
        )
        return self._hydrate_timestamps(item, row)

    def find_by_invoice_id(self, invoice_id: int) -> list[InvoiceItem]:
        rows = self.database.fetch_all(
            select(self.table)
            .where(self.table.c.invoice_id == invoice_id)
            .order_by(self.table.c.id)
        )
        return [self._from_row(row) for row in rows]

    def delete_by_invoice_id(self, invoice_id: int) -> int:
        """Remove every item of one invoice. Returns the number removed."""
        result = self.database.execute(
            delete(self.table).where(self.table.c.invoice_id == invoice_id)
        )
        return result.rowcount
