"""CLI interface for invoice import."""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from .config import get_config
from .database import Database
from .import_service import ImportService

app = typer.Typer(
    name="invimport",
    help="""
    [bold]Invoice Import CLI[/bold]

    Load invoice spreadsheets into a relational database of customers,
    products, invoices and invoice items.

    [cyan]Examples:[/cyan]
      invimport import invoices.xlsx
      invimport import invoices.xlsx --database sqlite:///var/database.sqlite
      invimport import invoices.xlsx --verbose

    [cyan]Expected columns:[/cyan]
      invoice, Invoice Date, Customer Name, Customer Address, Product Name,
      Qyantity, Price, Total, Grand Total
    """,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()
logger = logging.getLogger(__name__)


@app.command("import")
def import_file(
    file_path: Optional[Path] = typer.Argument(
        None,
        help="Path to the Excel file to import",
        show_default=False,
    ),
    database_url: Optional[str] = typer.Option(
        None,
        "--database",
        "-d",
        help="SQLAlchemy database URL (default: DATABASE_URL setting)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed processing information",
    ),
):
    """Import invoices from an Excel file."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if file_path is None:
        console.print("[bold red]Error:[/bold red] Missing file path argument.")
        console.print("Usage: invimport import <file_path>  (see --help)")
        raise typer.Exit(code=1)

    if not file_path.exists():
        console.print(
            f"[bold red]Error:[/bold red] File does not exist: {escape(str(file_path))}"
        )
        raise typer.Exit(code=1)

    database: Optional[Database] = None
    try:
        config = get_config()
        if database_url:
            config = config.model_copy(update={"database_url": database_url})

        if verbose:
            console.print("[bold]Configuration:[/bold]")
            console.print(f"  Database: {escape(config.database_url)}")
            console.print(f"  Date format: {escape(config.date_format)}")
            console.print()

        database = Database.from_config(config)
        stats = ImportService(database, config).import_from_excel(file_path)

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        if verbose:
            import traceback

            console.print(f"[dim white]{escape(traceback.format_exc())}[/dim white]")
        raise typer.Exit(code=1)
    finally:
        if database is not None:
            database.disconnect()

    console.print("[bold green]Import completed successfully.[/bold green]")
    console.print(
        f"Processed {stats.invoice_count} invoices with {stats.item_count} items."
    )


@app.command()
def version():
    """Show version information."""
    console.print("invimport version 0.1.0")


if __name__ == "__main__":
    app()
