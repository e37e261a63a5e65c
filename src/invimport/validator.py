"""Row validation and type coercion for spreadsheet rows."""

import logging
from typing import Any, Dict, Mapping, TYPE_CHECKING

from pydantic import ValidationError

from .exceptions import ValidationFailure
from .models import InvoiceRow

if TYPE_CHECKING:
    from .config import ImportConfig

logger = logging.getLogger(__name__)


class InvoiceRowValidator:
    """Coerce raw header-keyed rows into typed invoice rows."""

    def __init__(self, config: "ImportConfig"):
        """Initialize validator with configuration."""
        from .config import ImportConfig

        self.config: ImportConfig = config
        self.field_headers: Dict[str, str] = config.column_headers.model_dump()

    def validate_row(self, raw: Mapping[Any, Any], row_number: int) -> InvoiceRow:
        """
        Map configured headers to fields and coerce values.

        Quantity must be a whole positive number: fractional or non-numeric
        input raises instead of being truncated. Prices and totals become
        Decimal; text dates must match the configured date format.

        Args:
            raw: {header: value} mapping from the row source
            row_number: Spreadsheet row number, used in error messages

        Returns:
            InvoiceRow with typed values

        Raises:
            ValidationFailure: If a column is missing or a value cannot be coerced
        """
        missing = [
            header for header in self.field_headers.values() if header not in raw
        ]
        if missing:
            raise ValidationFailure(
                f"Row {row_number}: missing column(s): {', '.join(missing)}",
                details={"row": row_number, "missing_columns": missing},
            )

        payload: Dict[str, Any] = {
            field: raw[header] for field, header in self.field_headers.items()
        }
        payload["invoice_key"] = payload.pop("invoice")
        payload["row_number"] = row_number

        try:
            return InvoiceRow.model_validate(
                payload, context={"date_format": self.config.date_format}
            )
        except ValidationError as e:
            problems = [self._describe(error) for error in e.errors()]
            logger.debug("Row %d rejected: %s", row_number, problems)
            raise ValidationFailure(
                f"Row {row_number}: " + "; ".join(problems),
                details={"row": row_number, "errors": problems},
            ) from e

    def _describe(self, error: Mapping[str, Any]) -> str:
        loc = error.get("loc") or ("row",)
        field = str(loc[0])
        if field == "invoice_key":
            field = "invoice"
        header = self.field_headers.get(field, field)
        return f"{header}: {error.get('msg')}"
