"""SQLite connection layer with the sqlite-vec extension loaded."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import sqlite_vec

MEMORY = ":memory:"


def connect(db_path: Path | str = MEMORY) -> sqlite3.Connection:
    """Open a connection, load sqlite-vec, and return the connection.

    Args:
        db_path: Database file, or ``":memory:"`` (the default) for a
            private in-memory database.
    """
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.enable_load_extension(True)
    sqlite_vec.load(conn)
    conn.enable_load_extension(False)
    return conn
