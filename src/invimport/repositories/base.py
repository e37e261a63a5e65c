"""Store interfaces for invoice persistence."""

from typing import Optional, Protocol

from invimport.entities import Customer, Invoice, InvoiceItem, Product


class CustomerStore(Protocol):
    """Persistence operations for customers."""

    def find(self, customer_id: int) -> Optional[Customer]:
        ...

    def find_by_name(self, name: str) -> Optional[Customer]:
        ...

    def find_all(self) -> list[Customer]:
        ...

    def save(self, customer: Customer) -> Customer:
        ...

    def delete(self, customer: Customer) -> bool:
        ...


class ProductStore(Protocol):
    """Persistence operations for products."""

    def find(self, product_id: int) -> Optional[Product]:
        ...

    def find_by_name(self, name: str) -> Optional[Product]:
        ...

    def find_all(self) -> list[Product]:
        ...

    def save(self, product: Product) -> Product:
        ...

    def delete(self, product: Product) -> bool:
        ...


class InvoiceStore(Protocol):
    """Persistence operations for invoice headers."""

    def find(self, invoice_id: int) -> Optional[Invoice]:
        ...

    def find_by_customer_id(self, customer_id: int) -> list[Invoice]:
        ...

    def find_all(self) -> list[Invoice]:
        ...

    def save(self, invoice: Invoice) -> Invoice:
        ...

    def delete(self, invoice: Invoice) -> bool:
        ...


class InvoiceItemStore(Protocol):
    """Persistence operations for invoice line items."""

    def find(self, item_id: int) -> Optional[InvoiceItem]:
        ...

    def find_all(self) -> list[InvoiceItem]:
        ...

    def find_by_invoice_id(self, invoice_id: int) -> list[InvoiceItem]:
        ...

    def save(self, item: InvoiceItem) -> InvoiceItem:
        ...

    def delete(self, item: InvoiceItem) -> bool:
        ...

    def delete_by_invoice_id(self, invoice_id: int) -> int:
        ...
