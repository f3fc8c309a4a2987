"""LiteLLM-backed embedding and generation providers, plus API key validation.

The rest of the package depends only on the ``Embedder`` and ``Generator``
protocols, so tests substitute deterministic stubs.

LiteLLM's own retries are disabled for embeddings (``num_retries=0``): the
ingest batcher owns the retry/backoff policy and must see every failure.
"""

from __future__ import annotations

import os
from typing import Protocol

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


class Embedder(Protocol):
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Return one vector per input text, in input order."""
        ...


class Generator(Protocol):
    def generate(self, prompt: str) -> str:
        """Return the model's raw text answer to *prompt*."""
        ...


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    return model.split("/")[0].lower() if "/" in model else "openai"


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return  # No key required (e.g. ollama) or provider not listed

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


class LiteLLMEmbedder:
    """Batch embeddings through ``litellm.embedding()``."""

    def __init__(self, model: str = "openai/text-embedding-3-small") -> None:
        self.model = model

    def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        response = litellm.embedding(model=self.model, input=texts, num_retries=0)
        return [item["embedding"] for item in response.data]


class LiteLLMGenerator:
    """Single-turn chat completion through ``litellm.completion()``."""

    def __init__(
        self,
        model: str = "openai/gpt-4.1",
        temperature: float = 0.7,
        max_tokens: int = 1000,
        num_retries: int = 0,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.num_retries = num_retries

    def generate(self, prompt: str) -> str:
        response = litellm.completion(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            num_retries=self.num_retries,
        )
        return response.choices[0].message.content or ""
