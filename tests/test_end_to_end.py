"""End-to-end: records on disk → saved index → answered questions.

Uses the deterministic keyword embedder and a canned generator so the whole
pipeline runs offline.
"""

from __future__ import annotations

from pathlib import Path

from artrag.index.vector_index import VectorIndex
from artrag.ingest.batcher import BatcherConfig, EmbeddingBatcher
from artrag.ingest.chunker import RecursiveChunker
from artrag.ingest.loader import load_documents
from artrag.rag.engine import QueryEngine
from artrag.rag.prompt import FALLBACK_ANSWER


def _ingest(records_dir: Path, index_path: Path, embedder) -> VectorIndex:
    documents = load_documents(records_dir)
    chunks = RecursiveChunker().split_documents(documents)
    batcher = EmbeddingBatcher(embedder, BatcherConfig(), sleep=lambda _: None)
    return batcher.run(chunks, index_path)


def test_question_answered_from_matching_record(
    records_dir: Path, tmp_path: Path, keyword_embedder, fake_generator
) -> None:
    index_path = tmp_path / "index.db"
    _ingest(records_dir, index_path, keyword_embedder)

    engine = QueryEngine(VectorIndex.load(index_path, keyword_embedder), fake_generator)
    response = engine.answer_query("Who painted the Mona Lisa?")

    assert response.sources == ["Mona Lisa by Leonardo da Vinci"]
    assert len(fake_generator.prompts) == 1
    prompt = fake_generator.prompts[0]
    assert "Source: Mona Lisa by Leonardo da Vinci" in prompt
    assert "Medium: oil on poplar" in prompt
    assert "Eiffel Tower" not in prompt


def test_unrelated_question_gets_fallback_without_generation(
    records_dir: Path, tmp_path: Path, keyword_embedder, fake_generator
) -> None:
    index_path = tmp_path / "index.db"
    _ingest(records_dir, index_path, keyword_embedder)

    engine = QueryEngine(VectorIndex.load(index_path, keyword_embedder), fake_generator)
    response = engine.answer_query("What is the capital of France?")

    assert response.answer == FALLBACK_ANSWER
    assert response.sources == []
    assert fake_generator.prompts == []


def test_repeated_question_is_served_from_cache(
    records_dir: Path, tmp_path: Path, keyword_embedder, fake_generator
) -> None:
    index_path = tmp_path / "index.db"
    _ingest(records_dir, index_path, keyword_embedder)

    engine = QueryEngine(VectorIndex.load(index_path, keyword_embedder), fake_generator)
    engine.answer_query("Who painted the Mona Lisa?")
    embed_calls = len(keyword_embedder.calls)

    again = engine.answer_query("  WHO PAINTED THE MONA LISA?")

    assert again.sources == ["Mona Lisa by Leonardo da Vinci"]
    assert len(keyword_embedder.calls) == embed_calls
    assert len(fake_generator.prompts) == 1
