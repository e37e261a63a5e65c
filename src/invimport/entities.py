"""Persistable invoice entities.

Identity and timestamps are unset until a store saves the entity; callers
never assign them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(eq=False)
class Entity:
    """Fields every stored entity carries."""

    id: Optional[int] = field(default=None, kw_only=True)
    created_at: Optional[datetime] = field(default=None, kw_only=True)
    updated_at: Optional[datetime] = field(default=None, kw_only=True)

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def clear_identity(self) -> None:
        """Forget store-assigned identity and timestamps."""
        self.id = None
        self.created_at = None
        self.updated_at = None


@dataclass(eq=False)
class Customer(Entity):
    """Invoice recipient; deduplicated by exact name."""

    name: str
    address: str = ""


@dataclass(eq=False)
class Product(Entity):
    """Sold product; deduplicated by exact name."""

    name: str
    price: Decimal = Decimal("0")


@dataclass(eq=False)
class InvoiceItem(Entity):
    """Single line of an invoice.

    ``total`` is taken from the source as-is and never recomputed from
    ``quantity * price``.
    """

    invoice_id: int
    product_id: int
    quantity: int
    price: Decimal
    total: Decimal


@dataclass(eq=False)
class Invoice(Entity):
    """Invoice header.

    ``grand_total`` is taken from the source as-is. ``items`` is filled by
    the import pipeline or the query path, never by the invoice store.
    """

    customer_id: int
    invoice_date: datetime
    grand_total: Decimal
    items: list[InvoiceItem] = field(default_factory=list)

    def add_item(self, item: InvoiceItem) -> None:
        self.items.append(item)
