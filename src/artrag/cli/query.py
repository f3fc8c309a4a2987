"""artrag query: answer one question against the saved index."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from artrag.config import ConfigError, load_config
from artrag.cli.errors import err_config, err_generation_failed, err_no_api_key, err_no_index
from artrag.errors import GenerationError
from artrag.rag.engine import create_engine

console = Console()


def query_cmd(
    question: Annotated[str, typer.Argument(help="Question about the artwork collection.")],
    index: Annotated[
        Path | None,
        typer.Option("--index", "-i", help="Vector index to query."),
    ] = None,
    max_results: Annotated[
        int | None,
        typer.Option("--max-results", "-k", min=1, help="Chunks to retrieve (default 10)."),
    ] = None,
    threshold: Annotated[
        float | None,
        typer.Option("--threshold", "-t", help="Minimum cosine similarity (default 0.2)."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the raw {answer, sources} JSON."),
    ] = False,
) -> None:
    """Ask a question and print the answer with its sources."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    index_path = index or Path(cfg.index.path)

    try:
        engine = create_engine(cfg, index_path)
    except FileNotFoundError:
        console.print(err_no_index(str(index_path)))
        raise typer.Exit(1)
    except EnvironmentError as exc:
        console.print(err_no_api_key(str(exc)))
        raise typer.Exit(1)

    try:
        response = engine.answer_query(
            question, max_results=max_results, similarity_threshold=threshold
        )
    except GenerationError as exc:
        console.print(err_generation_failed(str(exc)))
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(response.to_dict(), ensure_ascii=False))
        return

    console.print(escape(response.answer))
    if response.sources:
        console.print("\n[bold]Sources:[/]")
        for source in response.sources:
            console.print(f"  • {escape(source)}")
