"""Spreadsheet reading for invoice import."""

import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, List, Protocol, Union

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .exceptions import SourceUnavailable

logger = logging.getLogger(__name__)

RawRow = Dict[Any, Any]

# Row 1 holds the headers.
FIRST_DATA_ROW = 2


class SheetRow(dict):
    """Header-keyed cell values that remember their row in the sheet."""

    def __init__(self, values: Any, row_number: int) -> None:
        super().__init__(values)
        self.row_number = row_number


class RowSource(Protocol):
    """Produces header-keyed rows for one spreadsheet."""

    def read(self, file_path: Union[str, Path]) -> List[RawRow]:
        ...


class ExcelReader:
    """Read the active sheet of an .xlsx workbook into header-keyed rows."""

    def read(self, file_path: Union[str, Path]) -> List[RawRow]:
        """
        Read every data row of the active sheet.

        Row 1 holds the headers. Cells beyond the last header are ignored,
        missing trailing cells become None and fully empty rows are skipped.

        Args:
            file_path: Path to the workbook

        Returns:
            One SheetRow per data row, in sheet order, carrying its sheet
            row number

        Raises:
            SourceUnavailable: If the file is missing or not a readable workbook
        """
        path = Path(file_path)
        if not path.is_file():
            raise SourceUnavailable(f"File does not exist: {path}")

        try:
            workbook = load_workbook(path, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            logger.error(f"Workbook loading failed: {e}", exc_info=True)
            raise SourceUnavailable(f"Could not read spreadsheet {path}: {e}") from e

        try:
            sheet = workbook.active
            if sheet is None:
                return []

            rows = sheet.iter_rows(values_only=True)
            header_row = next(rows, None)
            if header_row is None:
                return []

            headers = list(header_row)
            while headers and headers[-1] is None:
                headers.pop()

            data: List[RawRow] = []
            for row_number, values in enumerate(rows, start=FIRST_DATA_ROW):
                cells = list(values[: len(headers)])
                if all(cell is None or cell == "" for cell in cells):
                    continue
                cells.extend([None] * (len(headers) - len(cells)))
                data.append(SheetRow(zip(headers, cells), row_number))
        finally:
            workbook.close()

        logger.info(f"Read {len(data)} rows from {path.name}")
        return data
