"""Artwork record loader: JSON files to labelled-text Documents."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from artrag.models import ArtworkMetadata, Document

logger = logging.getLogger(__name__)

SOURCE_TAG = "ingest-script"

_RECORD_EXTS = {".json"}

# (label, record key) in rendering order.
_FIELDS: tuple[tuple[str, str], ...] = (
    ("Title", "title"),
    ("Artist", "artist"),
    ("Dated", "dated"),
    ("Department", "department"),
    ("Description", "description"),
    ("Medium", "medium"),
    ("Country", "country"),
    ("Dimensions", "dimensions"),
    ("Credit Line", "creditLine"),
    ("Style", "style"),
    ("Text", "text"),
)


def record_to_document(record: dict[str, Any]) -> Document:
    """Render one artwork record as ``Label: value`` lines.

    Missing, ``null`` and empty-string fields are left out entirely so that
    sparse records do not produce placeholder lines.
    """
    lines = [
        f"{label}: {record[key]}"
        for label, key in _FIELDS
        if record.get(key) is not None and record.get(key) != ""
    ]
    metadata = ArtworkMetadata(
        title=str(record.get("title") or ""),
        artist=str(record.get("artist") or ""),
        source_tag=SOURCE_TAG,
    )
    return Document(text="\n".join(lines), metadata=metadata)


def load_documents(root: Path | str) -> list[Document]:
    """Walk *root* depth-first and return one Document per parseable record.

    Files that are unreadable, not valid JSON, or not a JSON object are
    skipped with a warning.

    Raises:
        FileNotFoundError: If *root* does not exist.
        NotADirectoryError: If *root* is not a directory.
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"Directory not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    documents: list[Document] = []
    for path in _walk(root):
        record = _read_record(path)
        if record is None:
            continue
        documents.append(record_to_document(record))

    logger.info("Loaded %d documents from %s", len(documents), root)
    return documents


def _walk(directory: Path) -> list[Path]:
    files: list[Path] = []
    try:
        entries = sorted(directory.iterdir())
    except PermissionError:
        logger.warning("Permission denied, skipping directory %s", directory)
        return []
    for entry in entries:
        if entry.is_dir():
            files.extend(_walk(entry))
        elif entry.is_file() and entry.suffix.lower() in _RECORD_EXTS:
            files.append(entry)
    return files


def _read_record(path: Path) -> dict[str, Any] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Skipping malformed record %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.warning("Skipping %s: expected a JSON object, got %s", path, type(data).__name__)
        return None
    return data
