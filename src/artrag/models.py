"""Domain models shared by the ingest and query pipelines."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class ArtworkMetadata:
    title: str = ""
    artist: str = ""
    source_tag: str = "ingest-script"

    def label(self) -> str:
        """Human-readable source label, e.g. ``Mona Lisa by Leonardo da Vinci``."""
        if self.title and self.artist:
            return f"{self.title} by {self.artist}"
        return self.title or self.artist or "Untitled"

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> ArtworkMetadata:
        data = json.loads(raw or "{}")
        return cls(
            title=str(data.get("title", "")),
            artist=str(data.get("artist", "")),
            source_tag=str(data.get("source_tag", "ingest-script")),
        )


@dataclass(frozen=True)
class Document:
    """One artwork record rendered as labelled text."""

    text: str
    metadata: ArtworkMetadata = field(default_factory=ArtworkMetadata)


@dataclass(frozen=True)
class Chunk:
    text: str
    metadata: ArtworkMetadata = field(default_factory=ArtworkMetadata)


@dataclass
class EmbeddedChunk:
    """A chunk as stored in the vector index."""

    vector: list[float]
    text: str
    metadata: ArtworkMetadata = field(default_factory=ArtworkMetadata)
    rowid: int | None = None  # set once stored


@dataclass
class ScoredChunk:
    """A search hit. ``score`` is cosine similarity: higher = more similar."""

    chunk: EmbeddedChunk
    score: float


@dataclass
class RagResponse:
    answer: str
    sources: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"answer": self.answer, "sources": list(self.sources)}
