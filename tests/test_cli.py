"""Test suite for invoice import CLI."""

from typer.testing import CliRunner

from conftest import make_row
from invimport.cli import app
from invimport.database import Database
from invimport.repositories.sql import SqlInvoiceItemStore, SqlInvoiceStore

runner = CliRunner()


def _db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'var' / 'database.sqlite'}"


def test_cli_help():
    """Test -h and --help print usage."""
    for flag in ("-h", "--help"):
        result = runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert "import" in result.output


def test_cli_import_help():
    result = runner.invoke(app, ["import", "--help"])
    assert result.exit_code == 0
    # Metavar case differs between typer releases.
    assert "file_path" in result.output.lower()


def test_cli_import_missing_path():
    """Test import without a file path argument."""
    result = runner.invoke(app, ["import"])
    assert result.exit_code == 1
    assert "Missing file path argument" in result.output


def test_cli_import_nonexistent_file():
    """Test import with a file that does not exist."""
    result = runner.invoke(app, ["import", "nonexistent.xlsx"])
    assert result.exit_code == 1
    assert "does not exist" in result.output.lower()


def test_cli_import_success(tmp_path, write_workbook):
    """Test a successful import prints counts and writes the database."""
    path = write_workbook(
        [make_row(), make_row(**{"Product Name": "Gadget"}), make_row(invoice=2)]
    )
    url = _db_url(tmp_path)

    result = runner.invoke(app, ["import", str(path), "--database", url])

    assert result.exit_code == 0, result.output
    assert "Import completed successfully." in result.output
    assert "Processed 2 invoices with 3 items." in result.output

    with Database(url) as db:
        assert len(SqlInvoiceStore(db).find_all()) == 2
        assert len(SqlInvoiceItemStore(db).find_all()) == 3


def test_cli_import_uses_configured_database(tmp_path, monkeypatch, write_workbook):
    """Test DATABASE_URL is used when --database is not given."""
    from invimport.config import reload_config

    url = _db_url(tmp_path)
    monkeypatch.setenv("DATABASE_URL", url)
    reload_config()

    result = runner.invoke(app, ["import", str(write_workbook([make_row()]))])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "var" / "database.sqlite").exists()


def test_cli_import_invalid_workbook(tmp_path):
    """Test a file that is not a spreadsheet reports the error."""
    path = tmp_path / "broken.xlsx"
    path.write_text("not a workbook")

    result = runner.invoke(app, ["import", str(path), "--database", _db_url(tmp_path)])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Could not read spreadsheet" in result.output


def test_cli_import_validation_error_rolls_back(tmp_path, write_workbook):
    """Test a bad row fails the whole import."""
    path = write_workbook([make_row(), make_row(invoice=2, Qyantity=1.5)])
    url = _db_url(tmp_path)

    result = runner.invoke(app, ["import", str(path), "--database", url])

    assert result.exit_code == 1
    assert "Row 3" in result.output
    with Database(url) as db:
        assert SqlInvoiceStore(db).find_all() == []


def test_cli_import_verbose(tmp_path, write_workbook):
    """Test verbose output shows configuration."""
    path = write_workbook([make_row()])

    result = runner.invoke(
        app, ["import", str(path), "--database", _db_url(tmp_path), "--verbose"]
    )

    assert result.exit_code == 0, result.output
    assert "Configuration:" in result.output


def test_cli_version():
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "invimport version 0.1.0" in result.output
