"""End-to-end tests for CLI and API consistency."""

import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

from conftest import make_row
from invimport.api import create_app
from invimport.cli import app
from invimport.config import reload_config

cli_runner = CliRunner()


@pytest.mark.e2e
def test_cli_import_is_listed_by_api(tmp_path, monkeypatch, write_workbook):
    """Test that invoices imported by the CLI are served by the API."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'var' / 'database.sqlite'}")
    reload_config()
    path = write_workbook(
        [
            make_row(invoice=1),
            make_row(invoice=1, **{"Product Name": "Gadget"}),
            make_row(invoice=2, **{"Customer Name": "Globex"}),
        ]
    )

    cli_result = cli_runner.invoke(app, ["import", str(path)])
    assert cli_result.exit_code == 0, cli_result.output
    assert "Processed 2 invoices with 3 items." in cli_result.output

    with TestClient(create_app()) as api_client:
        api_response = api_client.get("/invoices")

    assert api_response.status_code == 200
    data = api_response.json()
    assert data["count"] == 2
    assert sum(len(invoice["items"]) for invoice in data["invoices"]) == 3
    assert [invoice["customer"]["name"] for invoice in data["invoices"]] == ["Acme", "Globex"]


@pytest.mark.e2e
def test_reimport_adds_invoices_without_duplicate_customers(tmp_path, monkeypatch, write_workbook):
    """Test that importing the same file twice doubles invoices only."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'var' / 'database.sqlite'}")
    reload_config()
    path = write_workbook([make_row()])

    for _ in range(2):
        result = cli_runner.invoke(app, ["import", str(path)])
        assert result.exit_code == 0, result.output

    with TestClient(create_app()) as api_client:
        data = api_client.get("/invoices").json()

    assert data["count"] == 2
    assert {invoice["customer"]["id"] for invoice in data["invoices"]} == {1}
    assert {invoice["items"][0]["product"]["id"] for invoice in data["invoices"]} == {1}
