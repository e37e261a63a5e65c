"""Pydantic data models for imported rows, import results and invoice views."""

from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_serializer,
    field_validator,
)

DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DISPLAY_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

UNKNOWN_CUSTOMER_NAME = "Unknown Customer"
UNKNOWN_PRODUCT_NAME = "Unknown Product"

# Money columns are NUMERIC(10, 2).
MONEY_QUANTUM = Decimal("0.01")


class InvoiceRow(BaseModel):
    """One spreadsheet row coerced to typed values."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    row_number: int = Field(..., ge=1, description="Spreadsheet row (header is row 1)")
    invoice_key: Any = Field(..., description="Raw grouping key, never coerced")
    invoice_date: datetime
    customer_name: str = Field(..., min_length=1)
    customer_address: str = ""
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, description="Whole units; fractions are rejected")
    price: Decimal = Field(..., ge=0, description="Unit price")
    total: Decimal = Field(..., description="Line total as given by the source")
    grand_total: Decimal = Field(..., description="Invoice total as given by the source")

    @field_validator("quantity", mode="before")
    @classmethod
    def reject_bool_quantity(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("quantity must be a number, not a boolean")
        return v

    @field_validator("price", "total", "grand_total")
    @classmethod
    def round_money(cls, v: Decimal) -> Decimal:
        """Round to cents, half up, so the row equals what is stored."""
        try:
            return v.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValueError(f"amount {v} is out of range")

    @field_validator("customer_address", mode="before")
    @classmethod
    def blank_address(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("invoice_date", mode="before")
    @classmethod
    def parse_invoice_date(cls, v: Any, info: ValidationInfo) -> datetime:
        """Accept date cells as-is; text must match the configured format."""
        if isinstance(v, datetime):
            return v
        if isinstance(v, date):
            return datetime.combine(v, time.min)
        if isinstance(v, str):
            date_format = (info.context or {}).get("date_format", DEFAULT_DATE_FORMAT)
            try:
                return datetime.strptime(v.strip(), date_format)
            except ValueError:
                raise ValueError(f"'{v}' does not match date format {date_format}")
        raise ValueError(f"unsupported date value {v!r}")


class ImportStats(BaseModel):
    """Aggregate counts for one import run."""

    invoice_count: int = Field(..., ge=0)
    item_count: int = Field(..., ge=0)


class ResolvedCustomer(BaseModel):
    """Customer found in the store."""

    kind: Literal["resolved"] = "resolved"
    id: int
    name: str
    address: str


class MissingCustomer(BaseModel):
    """Invoice points at a customer that no longer exists."""

    kind: Literal["missing"] = "missing"
    id: Optional[int] = Field(None, description="Dangling customer reference")
    name: str = UNKNOWN_CUSTOMER_NAME
    address: str = ""


class ResolvedProduct(BaseModel):
    """Product found in the store."""

    kind: Literal["resolved"] = "resolved"
    id: int
    name: str


class MissingProduct(BaseModel):
    """Item points at a product that no longer exists."""

    kind: Literal["missing"] = "missing"
    id: Optional[int] = Field(None, description="Dangling product reference")
    name: str = UNKNOWN_PRODUCT_NAME


CustomerRef = Annotated[
    Union[ResolvedCustomer, MissingCustomer], Field(discriminator="kind")
]
ProductRef = Annotated[Union[ResolvedProduct, MissingProduct], Field(discriminator="kind")]


class InvoiceItemDetails(BaseModel):
    """Invoice line joined with its product."""

    id: int
    product: ProductRef
    product_name: str
    quantity: int
    price: Decimal
    total: Decimal


class InvoiceDetails(BaseModel):
    """Invoice joined with its customer, items and products."""

    id: int
    invoice_date: datetime
    customer: CustomerRef
    items: List[InvoiceItemDetails] = Field(default_factory=list)
    grand_total: Decimal

    @field_serializer("invoice_date")
    def serialize_invoice_date(self, value: datetime) -> str:
        return value.strftime(DISPLAY_DATETIME_FORMAT)


class InvoiceListResponse(BaseModel):
    """Success envelope for the invoice listing endpoint."""

    success: Literal[True] = True
    count: int
    invoices: List[InvoiceDetails]


class ErrorResponse(BaseModel):
    """Error envelope for every failed request."""

    error: Literal[True] = True
    message: str
