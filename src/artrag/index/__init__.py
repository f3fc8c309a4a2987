"""artrag vector index layer."""

from artrag.index.connection import connect
from artrag.index.schema import ensure_vec_table, initialize
from artrag.index.vector_index import VectorIndex

__all__ = [
    "VectorIndex",
    "connect",
    "ensure_vec_table",
    "initialize",
]
