"""Import entry point used by the CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from invimport.config import ImportConfig
from invimport.database import Database
from invimport.excel_reader import ExcelReader, RowSource
from invimport.models import ImportStats
from invimport.services.invoice_processor import InvoiceProcessor

logger = logging.getLogger(__name__)


class ImportService:
    """Runs the import pipeline and reports aggregate counts."""

    def __init__(
        self,
        database: Database,
        config: ImportConfig,
        row_source: Optional[RowSource] = None,
    ) -> None:
        self.database = database
        self.database.init_schema()
        self.processor = InvoiceProcessor(
            database,
            row_source or ExcelReader(),
            config,
        )

    def import_from_excel(self, file_path: Union[str, Path]) -> ImportStats:
        """Import a workbook and count the invoices and items written."""
        invoices = self.processor.process_from_excel(file_path)
        stats = ImportStats(
            invoice_count=len(invoices),
            item_count=sum(len(invoice.items) for invoice in invoices),
        )
        logger.info(
            "Imported %d invoices with %d items from %s",
            stats.invoice_count,
            stats.item_count,
            file_path,
        )
        return stats
