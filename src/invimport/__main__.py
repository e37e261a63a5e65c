"""Module entry point: ``python -m invimport``."""

import logging
from typing import Optional

import typer

from invimport.cli import app as cli_app
from invimport.config import get_config

API_APP_PATH = "invimport.api:app"

app = typer.Typer(
    help="Invoice import tool - CLI or API mode.",
    no_args_is_help=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)
app.add_typer(cli_app, name="", help="Invoice import CLI commands.")


def serve_api(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Serve the invoice query API, falling back to the configured address."""
    import uvicorn

    config = get_config()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        API_APP_PATH,
        host=host or config.api_host,
        port=port or config.api_port,
        reload=False,
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    mode: str = typer.Option(
        "cli",
        "--mode",
        help="Run mode: cli (default) or api",
    ),
    host: Optional[str] = typer.Option(
        None,
        "--host",
        help="API host (default: API_HOST setting)",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        help="API port (default: API_PORT setting)",
    ),
) -> None:
    """Invoice import tool - CLI or API mode."""
    if mode == "api":
        serve_api(host, port)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


if __name__ == "__main__":
    app()
