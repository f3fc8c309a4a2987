"""Persistent vector index over embedded artwork chunks.

Storage is a SQLite database with a sqlite-vec ``vec0`` table configured
for cosine distance. The working copy always lives in memory; ``save()``
and ``load()`` copy it to and from a file with the SQLite backup API, so a
saved index is one self-contained file.

Score convention:
  score = 1 - cosine_distance   (cosine similarity, range [-1, 1])
  Higher is more similar. Relevance filters keep ``score >= threshold``.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from array import array
from pathlib import Path

from artrag.index.connection import MEMORY, connect
from artrag.index.schema import VEC_TABLE, ensure_vec_table, initialize, vec_table_exists
from artrag.models import ArtworkMetadata, Chunk, EmbeddedChunk, ScoredChunk
from artrag.rag.llm_client import Embedder

logger = logging.getLogger(__name__)

# sqlite-vec refuses KNN queries with k above this.
KNN_MAX_K = 4096


class VectorIndex:
    """Similarity index mapping chunk text + metadata to embedding vectors.

    Use ``build()`` or ``load()`` rather than the constructor.

    Args:
        conn: In-memory connection with sqlite-vec loaded and schema initialised.
        embedder: Embeds chunks on ``extend()`` and queries on ``search()``.
    """

    def __init__(self, conn: sqlite3.Connection, embedder: Embedder) -> None:
        self._conn = conn
        self._embedder = embedder

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def empty(cls, embedder: Embedder, embedding_model: str = "") -> VectorIndex:
        """Return a new in-memory index with no chunks."""
        conn = connect(MEMORY)
        initialize(conn)
        index = cls(conn, embedder)
        if embedding_model:
            index._set_meta("embedding_model", embedding_model)
        return index

    @classmethod
    def build(
        cls, chunks: list[Chunk], embedder: Embedder, embedding_model: str = ""
    ) -> VectorIndex:
        """Embed *chunks* and return a new index containing them."""
        return cls.empty(embedder, embedding_model).extend(chunks)

    @classmethod
    def load(cls, path: Path | str, embedder: Embedder) -> VectorIndex:
        """Load a saved index into memory.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Vector index not found: {path}")
        conn = connect(MEMORY)
        source = sqlite3.connect(str(path))
        try:
            source.backup(conn)
        finally:
            source.close()
        initialize(conn)
        index = cls(conn, embedder)
        logger.info("Loaded vector index %s (%d chunks)", path, len(index))
        return index

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def extend(self, chunks: list[Chunk]) -> VectorIndex:
        """Embed *chunks* and add them. Mutates in place; returns ``self``.

        Vectors are checked before anything is written, so a batch with the
        wrong dimensionality leaves the index unchanged.

        Raises:
            ValueError: If the embedder returns the wrong number of vectors or
                a vector whose size differs from the index dimensionality.
        """
        if not chunks:
            return self

        vectors = self._embedder.embed([c.text for c in chunks])
        if len(vectors) != len(chunks):
            raise ValueError(
                f"Embedder returned {len(vectors)} vectors for {len(chunks)} chunks"
            )

        dims = self.dimensions or len(vectors[0])
        for vector in vectors:
            if len(vector) != dims:
                raise ValueError(
                    f"Vector has {len(vector)} dimensions, index expects {dims}"
                )

        with self._conn:
            ensure_vec_table(self._conn, dims)
            if self.dimensions is None:
                self._set_meta("dimensions", str(dims), commit=False)
            for chunk, vector in zip(chunks, vectors):
                cur = self._conn.execute(
                    "INSERT INTO chunks (text, metadata) VALUES (?, ?)",
                    (chunk.text, chunk.metadata.to_json()),
                )
                self._conn.execute(
                    f"INSERT INTO {VEC_TABLE}(rowid, embedding) VALUES (?, ?)",
                    (cur.lastrowid, json.dumps(vector)),
                )
        logger.debug("Indexed %d chunks (%d total)", len(chunks), len(self))
        return self

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def search(self, query_text: str, k: int = 10) -> list[ScoredChunk]:
        """Return the *k* nearest chunks to *query_text*, highest score first.

        An empty index returns ``[]`` without calling the embedder. *k* is
        capped at the number of stored chunks and at ``KNN_MAX_K``. A zero
        vector has no cosine distance; such hits score 0.0.
        """
        k = min(k, len(self), KNN_MAX_K)
        if k < 1 or not vec_table_exists(self._conn):
            return []

        query_vector = self._embedder.embed([query_text])[0]
        rows = self._conn.execute(
            f"SELECT rowid, distance, embedding FROM {VEC_TABLE} "
            "WHERE embedding MATCH ? AND k = ? ORDER BY distance",
            (json.dumps(query_vector), k),
        ).fetchall()

        results: list[ScoredChunk] = []
        for row in rows:
            chunk_row = self._conn.execute(
                "SELECT id, text, metadata FROM chunks WHERE id = ?", (row["rowid"],)
            ).fetchone()
            if chunk_row is None:
                continue
            embedded = EmbeddedChunk(
                vector=_decode_vector(row["embedding"]),
                text=chunk_row["text"],
                metadata=ArtworkMetadata.from_json(chunk_row["metadata"]),
                rowid=chunk_row["id"],
            )
            distance = row["distance"]
            score = 0.0 if distance is None else 1.0 - distance
            results.append(ScoredChunk(chunk=embedded, score=score))

        results.sort(key=lambda s: s.score, reverse=True)
        return results

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Path | str) -> Path:
        """Write the index to *path* (replacing any existing file) and return it.

        The copy is written to a sibling temp file first and moved into place,
        so a failed save never leaves a truncated index behind.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(path.name + ".tmp")
        if tmp.exists():
            tmp.unlink()
        target = sqlite3.connect(str(tmp))
        try:
            self._conn.backup(target)
        finally:
            target.close()
        os.replace(tmp, path)
        logger.info("Saved vector index to %s (%d chunks)", path, len(self))
        return path

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]

    @property
    def dimensions(self) -> int | None:
        raw = self._get_meta("dimensions")
        return int(raw) if raw is not None else None

    @property
    def embedding_model(self) -> str:
        return self._get_meta("embedding_model") or ""

    def _get_meta(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM index_meta WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row else None

    def _set_meta(self, key: str, value: str, commit: bool = True) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO index_meta (key, value) VALUES (?, ?)", (key, value)
        )
        if commit:
            self._conn.commit()


def _decode_vector(blob: bytes | str) -> list[float]:
    """vec0 returns float32 vectors as raw little-endian bytes."""
    if isinstance(blob, str):
        return [float(v) for v in json.loads(blob)]
    values = array("f")
    values.frombytes(blob)
    return values.tolist()
