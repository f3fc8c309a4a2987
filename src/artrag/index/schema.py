"""Vector index schema DDL.

The vec0 table is created lazily by ``ensure_vec_table()`` once the first
batch of embeddings fixes the index dimensionality.
"""

from __future__ import annotations

import sqlite3

CURRENT_VERSION = 1

VEC_TABLE = "vec_chunks"

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS chunks (
    id          INTEGER PRIMARY KEY,
    text        TEXT NOT NULL,
    metadata    TEXT NOT NULL DEFAULT '{}',
    created_at  DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS index_meta (
    key     TEXT PRIMARY KEY,
    value   TEXT NOT NULL
);
"""


def initialize(conn: sqlite3.Connection) -> None:
    """Create the chunk and metadata tables (idempotent)."""
    conn.executescript(_SCHEMA_SQL)
    conn.execute(
        "INSERT OR IGNORE INTO index_meta (key, value) VALUES ('schema_version', ?)",
        (str(CURRENT_VERSION),),
    )
    conn.commit()


def vec_table_exists(conn: sqlite3.Connection) -> bool:
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?", (VEC_TABLE,)
    ).fetchone()
    return row is not None


def ensure_vec_table(conn: sqlite3.Connection, dimensions: int) -> str:
    """Create the vec0 table with cosine distance if it doesn't already exist.

    Returns:
        The table name.

    Raises:
        ValueError: If *dimensions* < 1.
    """
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")
    if not vec_table_exists(conn):
        conn.execute(
            f"CREATE VIRTUAL TABLE {VEC_TABLE} USING "
            f"vec0(embedding float[{dimensions}] distance_metric=cosine)"
        )
    return VEC_TABLE
