"""artrag status: summary of the saved vector index."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from artrag.config import ConfigError, load_config
from artrag.cli.errors import err_config, err_no_index
from artrag.index.vector_index import VectorIndex

console = Console()


class _NoEmbedder:
    """Status never searches, so no provider is needed."""

    def embed(self, texts: list[str]) -> list[list[float]]:
        raise RuntimeError("status does not embed")


def status_cmd(
    index: Annotated[
        Path | None,
        typer.Option("--index", "-i", help="Vector index to inspect."),
    ] = None,
) -> None:
    """Show chunk count, dimensions and embedding model of the index."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    index_path = index or Path(cfg.index.path)

    try:
        vector_index = VectorIndex.load(index_path, _NoEmbedder())
    except FileNotFoundError:
        console.print(err_no_index(str(index_path)))
        raise typer.Exit(1)

    table = Table(title="Vector index", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Path", str(index_path))
    table.add_row("Chunks", str(len(vector_index)))
    table.add_row("Dimensions", str(vector_index.dimensions or "n/a"))
    table.add_row("Embedding model", vector_index.embedding_model or "n/a")
    console.print(table)
    vector_index.close()
