"""Query engine: cache → retrieve → filter → prompt → generate → parse → cache.

Per-query flow, terminal on first success or failure:
  1. Cache hit          → return cached response (no provider calls).
  2. Retrieve           → index.search(query, max_results).
  3. Filter             → keep score >= similarity_threshold (cosine
                          similarity, higher is better).
  4. No match           → fixed fallback answer, cached, no generation.
  5. Prompt + generate  → provider failure raises GenerationError.
  6. Parse              → bad shape raises MalformedResponseError.
  7. Cache and return.

Failed generations are never cached.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from artrag.config import ArtragConfig
from artrag.errors import GenerationError, MalformedResponseError
from artrag.index.vector_index import VectorIndex
from artrag.models import RagResponse, ScoredChunk
from artrag.rag.cache import ResultCache
from artrag.rag.llm_client import (
    Generator,
    LiteLLMEmbedder,
    LiteLLMGenerator,
    validate_api_key,
)
from artrag.rag.parser import parse_response
from artrag.rag.prompt import FALLBACK_ANSWER, build_prompt

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    max_results: int = 10
    similarity_threshold: float = 0.2


def filter_relevant(results: list[ScoredChunk], threshold: float) -> list[ScoredChunk]:
    """Keep hits whose score meets *threshold* (inclusive)."""
    return [r for r in results if r.score >= threshold]


class QueryEngine:
    """Answer questions over a read-only VectorIndex.

    Args:
        index: Loaded vector index; never mutated here.
        generator: Language-model provider.
        cache: Shared result cache (a fresh one if omitted).
        config: Default ``max_results`` / ``similarity_threshold``.
    """

    def __init__(
        self,
        index: VectorIndex,
        generator: Generator,
        cache: ResultCache | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._index = index
        self._generator = generator
        self._cache = cache if cache is not None else ResultCache()
        self._config = config or EngineConfig()

    @property
    def cache(self) -> ResultCache:
        return self._cache

    def answer_query(
        self,
        query: str,
        max_results: int | None = None,
        similarity_threshold: float | None = None,
    ) -> RagResponse:
        """Answer *query* from retrieved context.

        Raises:
            GenerationError: The model call failed or returned a malformed answer.
        """
        started = time.monotonic()
        k = max_results if max_results is not None else self._config.max_results
        threshold = (
            similarity_threshold
            if similarity_threshold is not None
            else self._config.similarity_threshold
        )

        cached = self._cache.get(query)
        if cached is not None:
            logger.info("Cache hit for query: %r", query)
            return cached

        logger.info("Processing RAG query: %r", query)
        relevant = filter_relevant(self._index.search(query, k), threshold)

        if not relevant:
            logger.info("No relevant documents found (threshold %.3f)", threshold)
            response = RagResponse(answer=FALLBACK_ANSWER, sources=[])
            self._cache.set(query, response)
            return response

        logger.info(
            "Found %d relevant documents: %s",
            len(relevant),
            ", ".join(f"{r.chunk.metadata.label()} ({r.score:.3f})" for r in relevant),
        )

        prompt = build_prompt(query, relevant)
        try:
            raw = self._generator.generate(prompt)
        except Exception as exc:
            logger.error("Error generating answer: %s", exc)
            raise GenerationError(
                "Failed to generate answer. Please try again later."
            ) from exc

        try:
            response = parse_response(raw)
        except MalformedResponseError as exc:
            logger.error("Malformed model response: %s", exc)
            raise

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info("RAG query completed in %.0fms", elapsed_ms)
        self._cache.set(query, response)
        return response


def create_engine(
    config: ArtragConfig,
    index_path: Path | str | None = None,
    cache: ResultCache | None = None,
) -> QueryEngine:
    """Validate credentials, load the index and wire LiteLLM providers.

    Raises:
        EnvironmentError: If an API key required by the configured models is missing.
        FileNotFoundError: If the index file does not exist.
    """
    validate_api_key(config.embedding.model)
    validate_api_key(config.generation.model)

    index = VectorIndex.load(
        index_path or config.index.path, LiteLLMEmbedder(config.embedding.model)
    )
    if index.embedding_model and index.embedding_model != config.embedding.model:
        logger.warning(
            "Index was built with %s but config uses %s",
            index.embedding_model,
            config.embedding.model,
        )

    generator = LiteLLMGenerator(
        model=config.generation.model,
        temperature=config.generation.temperature,
        max_tokens=config.generation.max_tokens,
    )
    return QueryEngine(
        index,
        generator,
        cache=cache,
        config=EngineConfig(
            max_results=config.retrieval.max_results,
            similarity_threshold=config.retrieval.similarity_threshold,
        ),
    )
