"""Token-budgeted embedding batcher with retry/backoff.

Pipeline for one ingest run:
  1. Group chunks into batches whose estimated token sum stays within
     ``max_tokens_per_batch``. A chunk that alone exceeds the budget
     becomes its own batch, so no chunk is dropped.
  2. Embed each batch. The first batch builds the index, later batches
     extend it. Every call is retried on rate-limit / connection errors
     with exponential backoff (base_delay, 2*base_delay, 4*base_delay, ...)
     for at most ``max_retries`` retries.
  3. Sleep ``cooldown`` seconds between successive batches.
  4. Save the index.

Any permanent failure aborts the run. Batches added before the failure stay
in the in-memory index; nothing is saved.
"""

from __future__ import annotations

import logging
import math
import sqlite3
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from artrag.errors import EmbeddingFailedError, IndexPersistenceError, is_retryable
from artrag.index.vector_index import VectorIndex
from artrag.models import Chunk
from artrag.rag.llm_client import Embedder

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BatcherConfig:
    max_tokens_per_batch: int = 50_000
    max_retries: int = 5
    base_delay: float = 2.0   # seconds; doubles each retry
    cooldown: float = 5.0     # seconds between batches
    embedding_model: str = ""


def estimate_tokens(text: str) -> int:
    """Approximate token count: 4 characters ≈ 1 token (minimum 1)."""
    return max(1, math.ceil(len(text) / 4))


def build_batches(chunks: list[Chunk], max_tokens_per_batch: int) -> list[list[Chunk]]:
    """Greedily group *chunks* so each batch's estimated tokens fit the budget."""
    if max_tokens_per_batch < 1:
        raise ValueError("max_tokens_per_batch must be >= 1")

    batches: list[list[Chunk]] = []
    current: list[Chunk] = []
    current_tokens = 0
    for chunk in chunks:
        tokens = estimate_tokens(chunk.text)
        if current and current_tokens + tokens > max_tokens_per_batch:
            batches.append(current)
            current = []
            current_tokens = 0
        current.append(chunk)
        current_tokens += tokens
    if current:
        batches.append(current)
    return batches


class EmbeddingBatcher:
    """Embed chunks batch by batch into a VectorIndex and persist it.

    Args:
        embedder: Embedding provider; its exceptions drive the retry policy.
        config: Batching, retry and cooldown settings.
        sleep: Blocking sleep function (injected in tests).
        on_batch: Optional callback ``(batch_number, batch_size, batch_tokens)``
            invoked after each batch is embedded.
    """

    def __init__(
        self,
        embedder: Embedder,
        config: BatcherConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_batch: Callable[[int, int, int], None] | None = None,
    ) -> None:
        self._embedder = embedder
        self._config = config or BatcherConfig()
        self._sleep = sleep
        self._on_batch = on_batch

    def run(self, chunks: list[Chunk], index_path: Path | str) -> VectorIndex:
        """Embed all *chunks*, save the index to *index_path*, and return it.

        Raises:
            EmbeddingFailedError: A batch failed permanently or ran out of retries.
            IndexPersistenceError: The index could not be saved.
        """
        cfg = self._config
        batches = build_batches(chunks, cfg.max_tokens_per_batch)
        index: VectorIndex | None = None

        for number, batch in enumerate(batches, start=1):
            batch_tokens = sum(estimate_tokens(c.text) for c in batch)
            logger.info(
                "Sending batch #%d with %d chunks, ~%d tokens", number, len(batch), batch_tokens
            )
            if index is None:
                index = self._with_retry(
                    lambda: VectorIndex.build(batch, self._embedder, cfg.embedding_model)
                )
            else:
                current = index
                self._with_retry(lambda: current.extend(batch))

            if self._on_batch is not None:
                self._on_batch(number, len(batch), batch_tokens)
            if number < len(batches):
                self._sleep(cfg.cooldown)

        if index is None:
            logger.warning("No chunks to embed; saving an empty index")
            index = VectorIndex.empty(self._embedder, cfg.embedding_model)

        try:
            index.save(index_path)
        except (OSError, sqlite3.Error) as exc:
            raise IndexPersistenceError(f"Failed to save index to {index_path}: {exc}") from exc

        logger.info("All batches sent. Total chunks processed: %d", len(chunks))
        return index

    # ------------------------------------------------------------------
    # Retry policy
    # ------------------------------------------------------------------

    def _with_retry(self, fn: Callable[[], T]) -> T:
        cfg = self._config
        retrying = Retrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(cfg.max_retries + 1),
            wait=wait_exponential(multiplier=cfg.base_delay, exp_base=2),
            sleep=self._sleep,
            before_sleep=_log_retry,
            reraise=True,
        )
        try:
            return retrying(fn)
        except Exception as exc:
            raise EmbeddingFailedError(f"Embedding request failed: {exc}") from exc


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    delay = state.next_action.sleep if state.next_action else 0.0
    logger.warning("Error: %s. Retrying in %.1fs (attempt %d)", exc, delay, state.attempt_number)
