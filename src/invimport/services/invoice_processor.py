"""Invoice import pipeline: rows in, persisted invoices out."""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional, Union

from invimport.config import ImportConfig
from invimport.database import Database
from invimport.entities import Customer, Invoice, InvoiceItem, Product
from invimport.excel_reader import RowSource
from invimport.exceptions import PersistenceFailure
from invimport.models import InvoiceRow
from invimport.repositories.base import (
    CustomerStore,
    InvoiceItemStore,
    InvoiceStore,
    ProductStore,
)
from invimport.repositories.sql import (
    SqlCustomerStore,
    SqlInvoiceItemStore,
    SqlInvoiceStore,
    SqlProductStore,
)
from invimport.services.row_grouping import InvoiceRowGroup, group_rows_by_invoice
from invimport.validator import InvoiceRowValidator

logger = logging.getLogger(__name__)


class InvoiceProcessor:
    """
    Normalizes spreadsheet rows into customers, products, invoices and items.

    Business Rules:
    1. One invoice per distinct invoice key, in first-seen order
    2. Customers and products are reused on exact name match, created otherwise
    3. Every invoice is inserted anew; re-imports never touch earlier invoices
    4. Quantities, prices and totals are stored exactly as the source gives them
    5. The whole file commits or rolls back as one transaction

    Only one import may run against a database at a time: the name lookup
    followed by an insert is not atomic across concurrent writers.
    """

    def __init__(
        self,
        database: Database,
        row_source: RowSource,
        config: ImportConfig,
        *,
        customer_store: Optional[CustomerStore] = None,
        product_store: Optional[ProductStore] = None,
        invoice_store: Optional[InvoiceStore] = None,
        item_store: Optional[InvoiceItemStore] = None,
    ) -> None:
        self.database = database
        self.row_source = row_source
        self.config = config
        self.validator = InvoiceRowValidator(config)
        self.customer_store = customer_store or SqlCustomerStore(database)
        self.product_store = product_store or SqlProductStore(database)
        self.invoice_store = invoice_store or SqlInvoiceStore(database)
        self.item_store = item_store or SqlInvoiceItemStore(database)

    def process_from_excel(self, file_path: Union[str, Path]) -> list[Invoice]:
        """
        Import every invoice in a spreadsheet.

        Args:
            file_path: Workbook to import

        Returns:
            Persisted invoices with their items, in first-seen key order

        Raises:
            SourceUnavailable: If the file cannot be read (nothing is written)
            ValidationFailure: If a row is incomplete or not coercible
            PersistenceFailure: If a store operation fails
        """
        rows = self.row_source.read(file_path)
        groups = group_rows_by_invoice(rows, self.config.column_headers.invoice)
        logger.info("Importing %d invoices from %d rows", len(groups), len(rows))

        processed: list[Invoice] = []
        current_key: Any = None

        self.database.begin_transaction()
        try:
            for group in groups:
                current_key = group.key
                processed.append(self._process_invoice(group))
            self.database.commit()
        except Exception:
            logger.error("Import failed at invoice %r; rolling back", current_key)
            try:
                self.database.rollback()
            except PersistenceFailure as rollback_error:
                logger.error("Rollback failed: %s", rollback_error)
            raise

        logger.info(
            "Committed %d invoices with %d items",
            len(processed),
            sum(len(invoice.items) for invoice in processed),
        )
        return processed

    def _process_invoice(self, group: InvoiceRowGroup) -> Invoice:
        rows = [
            self.validator.validate_row(raw, row_number)
            for raw, row_number in zip(group.rows, group.row_numbers)
        ]

        # Customer and invoice fields come from the first row only.
        first = rows[0]
        customer = self._process_customer(first.customer_name, first.customer_address)

        invoice = self.invoice_store.save(
            Invoice(
                customer_id=customer.id,
                invoice_date=first.invoice_date,
                grand_total=first.grand_total,
            )
        )

        for row in rows:
            invoice.add_item(self._process_invoice_item(invoice, row))

        return invoice

    def _process_customer(self, name: str, address: str) -> Customer:
        customer = self.customer_store.find_by_name(name)
        if customer is not None:
            logger.debug("Reusing customer %s (%r)", customer.id, name)
            return customer

        customer = self.customer_store.save(Customer(name=name, address=address))
        logger.debug("Created customer %s (%r)", customer.id, name)
        return customer

    def _process_product(self, name: str, price: Decimal) -> Product:
        product = self.product_store.find_by_name(name)
        if product is not None:
            logger.debug("Reusing product %s (%r)", product.id, name)
            return product

        product = self.product_store.save(Product(name=name, price=price))
        logger.debug("Created product %s (%r)", product.id, name)
        return product

    def _process_invoice_item(self, invoice: Invoice, row: InvoiceRow) -> InvoiceItem:
        product = self._process_product(row.product_name, row.price)

        return self.item_store.save(
            InvoiceItem(
                invoice_id=invoice.id,
                product_id=product.id,
                quantity=row.quantity,
                price=row.price,
                total=row.total,
            )
        )
