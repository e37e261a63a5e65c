"""Read-side assembly of invoices with customer, items and products."""

from __future__ import annotations

import logging
from typing import Optional, Union

from invimport.database import Database
from invimport.entities import Invoice, InvoiceItem
from invimport.models import (
    InvoiceDetails,
    InvoiceItemDetails,
    MissingCustomer,
    MissingProduct,
    ResolvedCustomer,
    ResolvedProduct,
)
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

logger = logging.getLogger(__name__)


class InvoiceQueryService:
    """Builds denormalized invoice views. Never writes, never opens a transaction."""

    def __init__(
        self,
        database: Database,
        *,
        customer_store: Optional[CustomerStore] = None,
        product_store: Optional[ProductStore] = None,
        invoice_store: Optional[InvoiceStore] = None,
        item_store: Optional[InvoiceItemStore] = None,
    ) -> None:
        self.customer_store = customer_store or SqlCustomerStore(database)
        self.product_store = product_store or SqlProductStore(database)
        self.invoice_store = invoice_store or SqlInvoiceStore(database)
        self.item_store = item_store or SqlInvoiceItemStore(database)

    def get_all_invoices_with_details(self) -> list[InvoiceDetails]:
        """
        Return every stored invoice joined with its customer, items and products.

        Dangling customer or product references come back as explicit
        ``missing`` variants instead of raising.
        """
        details = [self._build_details(invoice) for invoice in self.invoice_store.find_all()]
        logger.debug("Assembled %d invoice views", len(details))
        return details

    def _build_details(self, invoice: Invoice) -> InvoiceDetails:
        invoice.items = self.item_store.find_by_invoice_id(invoice.id)

        return InvoiceDetails(
            id=invoice.id,
            invoice_date=invoice.invoice_date,
            customer=self._resolve_customer(invoice.customer_id),
            items=[self._build_item(item) for item in invoice.items],
            grand_total=invoice.grand_total,
        )

    def _resolve_customer(
        self, customer_id: int
    ) -> Union[ResolvedCustomer, MissingCustomer]:
        customer = self.customer_store.find(customer_id)
        if customer is None:
            logger.warning("Invoice references missing customer %s", customer_id)
            return MissingCustomer(id=customer_id)
        return ResolvedCustomer(id=customer.id, name=customer.name, address=customer.address)

    def _build_item(self, item: InvoiceItem) -> InvoiceItemDetails:
        found = self.product_store.find(item.product_id)
        if found is None:
            logger.warning("Invoice item %s references missing product %s", item.id, item.product_id)
            product: Union[ResolvedProduct, MissingProduct] = MissingProduct(id=item.product_id)
        else:
            product = ResolvedProduct(id=found.id, name=found.name)

        return InvoiceItemDetails(
            id=item.id,
            product=product,
            product_name=product.name,
            quantity=item.quantity,
            price=item.price,
            total=item.total,
        )
