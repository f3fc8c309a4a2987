"""artrag ingest: embed a directory of artwork JSON records into the index.

Steps:
  1. Load records (malformed files are skipped and logged)
  2. Chunk (recursive character splitter)
  3. Show counts + cost estimate, confirm
  4. Embed in token-budgeted batches with retry/backoff
  5. Save the index
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from artrag.config import ConfigError, load_config
from artrag.cli.errors import (
    err_config,
    err_embedding_failed,
    err_no_api_key,
    err_no_directory,
    err_persistence_failed,
)
from artrag.errors import EmbeddingFailedError, IndexPersistenceError
from artrag.ingest.batcher import BatcherConfig, EmbeddingBatcher, build_batches, estimate_tokens
from artrag.ingest.chunker import RecursiveChunker
from artrag.ingest.loader import load_documents
from artrag.rag.llm_client import LiteLLMEmbedder, validate_api_key

console = Console()


def ingest_cmd(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory of artwork JSON records (searched recursively)."),
    ],
    index: Annotated[
        Path | None,
        typer.Option("--index", "-i", help="Where to write the vector index."),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Load and chunk only; no embedding calls."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt."),
    ] = False,
) -> None:
    """Ingest artwork records into the vector index."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    index_path = index or Path(cfg.index.path)

    console.print(f"[bold]→ Loading documents from {escape(str(directory))}[/]")
    try:
        documents = load_documents(directory)
    except (FileNotFoundError, NotADirectoryError):
        console.print(err_no_directory(str(directory)))
        raise typer.Exit(1)
    console.print(f"  [green]✓[/] {len(documents)} documents loaded")

    chunker = RecursiveChunker(cfg.chunking.chunk_size, cfg.chunking.chunk_overlap)
    chunks = chunker.split_documents(documents)
    console.print(f"  [green]✓[/] {len(chunks)} chunks created")

    batches = build_batches(chunks, cfg.ingest.max_tokens_per_batch)
    total_tokens = sum(estimate_tokens(c.text) for c in chunks)
    _show_cost_estimate(len(chunks), len(batches), total_tokens)

    if dry_run:
        console.print("  [dim]Dry run: nothing embedded or saved[/]")
        return

    try:
        validate_api_key(cfg.embedding.model)
    except EnvironmentError as exc:
        console.print(err_no_api_key(str(exc)))
        raise typer.Exit(1)

    if chunks and not yes:
        if not typer.confirm("  Proceed with embedding?", default=True):
            console.print("  [dim]Skipped.[/]")
            raise typer.Exit(0)

    batcher_cfg = BatcherConfig(
        max_tokens_per_batch=cfg.ingest.max_tokens_per_batch,
        max_retries=cfg.ingest.max_retries,
        base_delay=cfg.ingest.base_delay,
        cooldown=cfg.ingest.cooldown,
        embedding_model=cfg.embedding.model,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        transient=True,
        console=console,
    ) as prog:
        task = prog.add_task("Embedding…", total=len(chunks) or None)

        def _on_batch(number: int, size: int, tokens: int) -> None:
            prog.update(task, advance=size, description=f"Embedding (batch #{number})…")

        batcher = EmbeddingBatcher(
            LiteLLMEmbedder(cfg.embedding.model), batcher_cfg, on_batch=_on_batch
        )
        try:
            vector_index = batcher.run(chunks, index_path)
        except EmbeddingFailedError as exc:
            console.print(err_embedding_failed(str(exc.__cause__ or exc)))
            raise typer.Exit(1)
        except IndexPersistenceError as exc:
            console.print(err_persistence_failed(str(exc)))
            raise typer.Exit(1)

    console.print(
        f"  [green]✓[/] Embedded {len(vector_index)} chunks in {len(batches)} batches"
    )
    console.print(f"  [green]✓[/] Index saved to {escape(str(index_path))}")


# ------------------------------------------------------------------
# Cost estimate display
# ------------------------------------------------------------------


def _show_cost_estimate(chunk_count: int, batch_count: int, total_tokens: int) -> None:
    """Print a rough USD cost estimate to the console."""
    # text-embedding-3-small: $0.02 / 1M tokens
    cost = (total_tokens / 1_000_000) * 0.02
    console.print(
        f"  [dim]Estimate: {chunk_count} chunks · {batch_count} batches · "
        f"{total_tokens:,} tokens · ~${cost:.4f}[/]"
    )
