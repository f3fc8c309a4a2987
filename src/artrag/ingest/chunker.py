"""Recursive character chunker with overlap.

Splits on the coarsest boundary that occurs in the text (paragraph, then
line, sentence, word) and recurses with finer boundaries only for pieces
that are still too long. The last resort is a hard cut between characters,
so the splitter always terminates and never emits a chunk longer than
``chunk_size``.

The resulting pieces are merged greedily into windows across the whole
document. Each new window starts with the last ``chunk_overlap`` (or a few
more, to land on a word start) characters of the previous chunk, so
consecutive chunks always share at least ``chunk_overlap`` characters.
"""

from __future__ import annotations

from artrag.models import Chunk, Document

DEFAULT_SEPARATORS: tuple[str, ...] = ("\n\n", "\n", ". ", " ", "")


class RecursiveChunker:
    """Split documents into overlapping chunks of at most ``chunk_size`` characters.

    Args:
        chunk_size: Maximum chunk length in characters.
        chunk_overlap: Characters carried over from the end of one chunk into
            the start of the next. Must be smaller than ``chunk_size``.
        separators: Boundaries to try, coarsest first. ``""`` means hard cut.
    """

    def __init__(
        self,
        chunk_size: int = 500,
        chunk_overlap: int = 50,
        separators: tuple[str, ...] = DEFAULT_SEPARATORS,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.separators = separators if separators and separators[-1] == "" else (*separators, "")

    def split_documents(self, documents: list[Document]) -> list[Chunk]:
        """Chunk every document in order; each chunk keeps its parent's metadata."""
        return [
            Chunk(text=text, metadata=doc.metadata)
            for doc in documents
            for text in self.split_text(doc.text)
        ]

    def split_text(self, text: str) -> list[str]:
        if not text.strip():
            return []
        return self._merge(self._pieces(text, self.separators))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _pieces(self, text: str, separators: tuple[str, ...]) -> list[str]:
        """Split *text* into pieces no longer than ``chunk_size - chunk_overlap``.

        A piece that size always fits after a carried-over overlap tail.
        """
        separator = ""
        finer: tuple[str, ...] = ()
        for i, sep in enumerate(separators):
            if sep == "" or sep in text:
                separator = sep
                finer = separators[i + 1:]
                break

        limit = self.chunk_size - self.chunk_overlap
        pieces: list[str] = []
        for piece in _split_keep(text, separator):
            if len(piece) <= limit or not finer:
                pieces.append(piece)
            else:
                pieces.extend(self._pieces(piece, finer))
        return pieces

    def _merge(self, pieces: list[str]) -> list[str]:
        """Greedily join *pieces* into windows that each open with an overlap tail."""
        chunks: list[str] = []
        window = ""
        carried = 0  # length of the overlap tail at the start of window
        for piece in pieces:
            if len(window) + len(piece) > self.chunk_size and len(window) > carried:
                _emit(chunks, window, carried)
                window = self._overlap_tail(chunks[-1]) if chunks else ""
                carried = len(window)
            if len(window) + len(piece) > self.chunk_size:
                # Tail plus piece too long: shorten the tail, never below chunk_overlap.
                window = window[len(window) + len(piece) - self.chunk_size:]
                carried = len(window)
            window += piece
        if len(window) > carried:
            _emit(chunks, window, carried)
        return chunks

    def _overlap_tail(self, previous: str) -> str:
        """Last ``chunk_overlap`` characters of *previous*, widened to a word start.

        Widening looks back at most another ``chunk_overlap`` characters and
        is skipped when no word boundary is found there.
        """
        if self.chunk_overlap == 0:
            return ""
        start = max(0, len(previous) - self.chunk_overlap)
        floor = max(0, start - self.chunk_overlap)
        for pos in range(start, floor - 1, -1):
            if not previous[pos].isspace() and (pos == 0 or previous[pos - 1].isspace()):
                return previous[pos:]
        return previous[start:]


def _split_keep(text: str, separator: str) -> list[str]:
    """Split *text* on *separator*, keeping the separator on the left piece."""
    if separator == "":
        return list(text)
    parts = text.split(separator)
    pieces = [p + separator for p in parts[:-1]]
    pieces.append(parts[-1])
    return [p for p in pieces if p]


def _emit(chunks: list[str], window: str, carried: int) -> None:
    # A window opening with an overlap tail is only right-stripped so the
    # tail stays intact; skip windows that add nothing beyond the tail.
    text = window.rstrip() if carried else window.strip()
    if len(text) > carried:
        chunks.append(text)
