"""artrag rich error messages with actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from artrag.cli.errors import err_no_index
    console.print(err_no_index("artrag-index.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_no_api_key(detail: str) -> str:
    """Missing provider credential (message from validate_api_key)."""
    return (
        f"[red]Error:[/] {escape(detail)}\n"
        "  Export the key in your shell or add it to a .env file, e.g.:\n"
        "    OPENAI_API_KEY=sk-..."
    )


def err_no_index(index_path: str) -> str:
    """Vector index file missing."""
    return (
        f"[red]Error:[/] No vector index found at '{escape(index_path)}'.\n"
        "  Run:  artrag ingest <records-directory>"
    )


def err_no_directory(path: str) -> str:
    return (
        f"[red]Error:[/] Records directory not found: '{escape(path)}'\n"
        "  Pass a directory containing artwork .json files."
    )


def err_embedding_failed(detail: str) -> str:
    """Embedding batch failed after retries; the run was aborted."""
    return (
        f"[red]Error:[/] Embedding failed: {escape(detail)}\n"
        "  The index was NOT saved. Check your API quota / network and re-run\n"
        "  artrag ingest; consider lowering ingest.max_tokens_per_batch."
    )


def err_persistence_failed(detail: str) -> str:
    """All batches embedded but the index could not be written."""
    return (
        f"[red]Error:[/] Could not save the vector index: {escape(detail)}\n"
        "  Check that the target directory exists and is writable, or pass --index PATH."
    )


def err_generation_failed(detail: str) -> str:
    return (
        f"[red]Error:[/] {escape(detail)}\n"
        "  The answer was not cached. Try again in a moment."
    )


def err_config(detail: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration: {escape(detail)}\n"
        "  Fix artrag.yaml or ~/.artrag/config.yaml and retry."
    )
