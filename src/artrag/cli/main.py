"""artrag CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer
from dotenv import load_dotenv

from artrag.cli.ingest import ingest_cmd
from artrag.cli.query import query_cmd
from artrag.cli.status import status_cmd
from artrag.logging_setup import configure_logging


def _version() -> str:
    try:
        return importlib.metadata.version("artrag")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"artrag {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="artrag",
    help=(
        "artrag: question answering over artwork records.\n\n"
        "  artrag ingest DIR   Embed a directory of JSON records into the index.\n"
        "  artrag query TEXT   Answer a question from the index."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Debug logging."),
    ] = False,
) -> None:
    """artrag: question answering over artwork records."""
    load_dotenv()
    configure_logging(verbose)


app.command("ingest")(ingest_cmd)
app.command("query")(query_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed artrag version."""
    typer.echo(f"artrag {_version()}")


if __name__ == "__main__":
    app()
