"""Exception taxonomy for ingestion and query failures.

Transient provider errors (rate limits, dropped connections) are not
represented here: they are the provider's own exceptions, classified by
``is_retryable()`` and retried by the embedding batcher.
"""

from __future__ import annotations

import litellm

# LiteLLM exception types that signal a transient condition.
_TRANSIENT_TYPES: tuple[type[BaseException], ...] = (
    litellm.exceptions.RateLimitError,
    litellm.exceptions.APIConnectionError,
    litellm.exceptions.Timeout,
    ConnectionError,
    TimeoutError,
)


class ArtragError(Exception):
    """Base class for all artrag errors."""


class IngestionError(ArtragError):
    """Fatal ingestion failure. Batches already added are not rolled back."""


class EmbeddingFailedError(IngestionError):
    """An embedding call failed permanently or exhausted its retry budget."""


class IndexPersistenceError(IngestionError):
    """The vector index could not be written to durable storage."""


class GenerationError(ArtragError):
    """The language model call failed. Never cached."""


class MalformedResponseError(GenerationError):
    """The language model answered, but not with the mandated JSON shape."""


def is_retryable(exc: BaseException) -> bool:
    """Return True if *exc* is a rate-limit or transient connection failure."""
    if getattr(exc, "status_code", None) == 429:
        return True
    return isinstance(exc, _TRANSIENT_TYPES)
