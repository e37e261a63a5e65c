"""Grouping of raw spreadsheet rows into one bucket per invoice."""

from dataclasses import dataclass, field
from typing import Any, Hashable, Iterable, Mapping

from invimport.excel_reader import FIRST_DATA_ROW
from invimport.exceptions import ValidationFailure


@dataclass
class InvoiceRowGroup:
    """Rows sharing one invoice key, in sheet order."""

    key: Any
    rows: list[Mapping[Any, Any]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)


def _exact_key(value: Any) -> tuple[str, Hashable]:
    # 1, 1.0 and True hash alike; the type keeps them apart.
    return type(value).__name__, value


def group_rows_by_invoice(
    rows: Iterable[Mapping[Any, Any]], key_header: str
) -> list[InvoiceRowGroup]:
    """
    Partition rows by the raw value of the invoice key column.

    Groups come back in the order their key was first seen and keep the
    original row order. Row numbers are taken from the row source when it
    provides them, so blank sheet rows do not shift error messages. Keys
    are compared exactly: ``1`` and ``"1"`` are different invoices.
    """
    groups: dict[tuple[str, Hashable], InvoiceRowGroup] = {}

    for position, row in enumerate(rows, start=FIRST_DATA_ROW):
        # Sheet rows know their own number; plain mappings are counted.
        row_number = getattr(row, "row_number", position)
        if key_header not in row:
            raise ValidationFailure(
                f"Row {row_number}: missing column(s): {key_header}",
                details={"row": row_number, "missing_columns": [key_header]},
            )
        value = row[key_header]
        if value is None or value == "":
            raise ValidationFailure(
                f"Row {row_number}: {key_header}: invoice key is empty",
                details={"row": row_number},
            )

        group_key = _exact_key(value)
        group = groups.get(group_key)
        if group is None:
            group = InvoiceRowGroup(key=value)
            groups[group_key] = group
        group.rows.append(row)
        group.row_numbers.append(row_number)

    return list(groups.values())
