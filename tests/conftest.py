"""Shared pytest fixtures: deterministic providers and sample artwork records."""

from __future__ import annotations

import json
import math
import re
from pathlib import Path

import pytest

# Keyword vocabulary for the deterministic embedder. A query token matches a
# term when it starts with it ("painted" → "paint").
_VOCAB = (
    "mona", "lisa", "leonardo", "vinci", "paint", "oil", "poplar",
    "eiffel", "tower", "paris", "landmark", "starry", "night", "gogh",
    "capital", "france",
)
# Keeps every vector non-zero so cosine distance is always defined.
_BIAS = 0.01


class KeywordEmbedder:
    """Bag-of-keywords embedder: one dimension per vocabulary term plus a bias."""

    dimensions = len(_VOCAB) + 1

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [self.vector(t) for t in texts]

    @staticmethod
    def vector(text: str) -> list[float]:
        tokens = re.findall(r"[a-z]+", text.lower())
        counts = [float(sum(1 for tok in tokens if tok.startswith(term))) for term in _VOCAB]
        return counts + [_BIAS]


class FakeGenerator:
    """Returns a canned answer (or raises) and records every prompt."""

    def __init__(self, reply: str | None = None, error: Exception | None = None) -> None:
        self.reply = reply if reply is not None else json.dumps(
            {"answer": "<b>Leonardo da Vinci</b> painted it.", "sources": ["Mona Lisa by Leonardo da Vinci"]}
        )
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    return dot / (math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b)))


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def records_dir(tmp_path: Path) -> Path:
    """Directory tree with two artwork records, one nested, plus noise."""
    root = tmp_path / "records"
    nested = root / "paintings"
    nested.mkdir(parents=True)
    (nested / "mona-lisa.json").write_text(
        json.dumps(
            {
                "title": "Mona Lisa",
                "artist": "Leonardo da Vinci",
                "medium": "oil on poplar",
                "dated": "1503",
            }
        ),
        encoding="utf-8",
    )
    (root / "eiffel.json").write_text(
        json.dumps({"title": "Eiffel Tower", "description": "Paris landmark"}),
        encoding="utf-8",
    )
    (root / "notes.txt").write_text("not a record", encoding="utf-8")
    return root
