"""Shared test fixtures."""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any, Optional

import pytest
from openpyxl import Workbook

from invimport.config import ImportConfig, reload_config
from invimport.database import Database

HEADERS = [
    "invoice",
    "Invoice Date",
    "Customer Name",
    "Customer Address",
    "Product Name",
    "Qyantity",
    "Price",
    "Total",
    "Grand Total",
]


def make_row(**overrides: Any) -> dict[str, Any]:
    """Build one raw spreadsheet row keyed by the default headers."""
    row: dict[str, Any] = {
        "invoice": 1,
        "Invoice Date": "2023-01-01",
        "Customer Name": "Acme",
        "Customer Address": "1 Main St",
        "Product Name": "Widget",
        "Qyantity": 2,
        "Price": 5.0,
        "Total": 10.0,
        "Grand Total": 10.0,
    }
    row.update(overrides)
    return row


class ListRowSource:
    """Row source returning prepared rows, recording what was asked for."""

    def __init__(self, rows: Optional[list[dict[str, Any]]] = None) -> None:
        self.rows = rows or []
        self.paths: list[Any] = []

    def read(self, file_path: Any) -> list[dict[str, Any]]:
        self.paths.append(file_path)
        return [dict(row) for row in self.rows]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Point the global config at an in-memory database for every test."""
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    reload_config()
    yield
    monkeypatch.delenv("DATABASE_URL", raising=False)
    reload_config()


@pytest.fixture
def test_config() -> ImportConfig:
    """Provide a test-owned config instance."""
    return ImportConfig(_env_file=None, database_url="sqlite://")


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """Fresh in-memory database with the schema in place."""
    db = Database("sqlite://")
    db.init_schema()
    try:
        yield db
    finally:
        db.disconnect()


@pytest.fixture
def write_workbook(tmp_path: Path) -> Callable[..., Path]:
    """Write rows to an .xlsx file and return its path."""

    def _write(
        rows: list[dict[str, Any]],
        headers: Optional[list[str]] = None,
        name: str = "invoices.xlsx",
    ) -> Path:
        columns = headers or HEADERS
        workbook = Workbook()
        sheet = workbook.active
        sheet.append(columns)
        for row in rows:
            sheet.append([row.get(header) for header in columns])
        path = tmp_path / name
        workbook.save(path)
        return path

    return _write
