"""Tests for the LiteLLM provider wrappers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from artrag.rag.llm_client import (
    LiteLLMEmbedder,
    LiteLLMGenerator,
    provider_of,
    validate_api_key,
)


# ------------------------------------------------------------------
# validate_api_key
# ------------------------------------------------------------------


def test_validate_api_key_raises_if_missing(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("openai/text-embedding-3-small")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
    validate_api_key("openai/gpt-4.1")  # should not raise


def test_validate_api_key_anthropic(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="ANTHROPIC_API_KEY"):
        validate_api_key("anthropic/claude-3-5-sonnet-20241022")


def test_validate_api_key_ollama_no_key_required():
    validate_api_key("ollama/nomic-embed-text")


def test_validate_api_key_bare_model_is_openai(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="OPENAI_API_KEY"):
        validate_api_key("gpt-4.1")


@pytest.mark.parametrize(
    "model",
    ["bedrock/amazon.titan-embed-text-v2:0", "vertex_ai/text-embedding-004", "voyage/voyage-3"],
)
def test_validate_api_key_unlisted_provider_not_checked(monkeypatch, model):
    for var in ("BEDROCK_API_KEY", "VERTEX_AI_API_KEY", "VOYAGE_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    validate_api_key(model)  # should not raise


@pytest.mark.parametrize(
    "model,provider",
    [("openai/gpt-4.1", "openai"), ("Anthropic/claude", "anthropic"), ("gpt-4.1", "openai")],
)
def test_provider_of(model, provider):
    assert provider_of(model) == provider


# ------------------------------------------------------------------
# LiteLLMEmbedder
# ------------------------------------------------------------------


def test_embed_returns_vectors_in_order():
    mock_response = MagicMock()
    mock_response.data = [{"embedding": [0.1, 0.2]}, {"embedding": [0.3, 0.4]}]

    with patch(
        "artrag.rag.llm_client.litellm.embedding", return_value=mock_response
    ) as mock_embed:
        result = LiteLLMEmbedder("openai/text-embedding-3-small").embed(["a", "b"])

    assert result == [[0.1, 0.2], [0.3, 0.4]]
    kwargs = mock_embed.call_args.kwargs
    assert kwargs["model"] == "openai/text-embedding-3-small"
    assert kwargs["input"] == ["a", "b"]
    assert kwargs["num_retries"] == 0


def test_embed_empty_input_skips_provider():
    with patch("artrag.rag.llm_client.litellm.embedding") as mock_embed:
        assert LiteLLMEmbedder().embed([]) == []
    mock_embed.assert_not_called()


def test_embed_propagates_provider_errors():
    with patch(
        "artrag.rag.llm_client.litellm.embedding", side_effect=ConnectionError("down")
    ):
        with pytest.raises(ConnectionError):
            LiteLLMEmbedder().embed(["x"])


# ------------------------------------------------------------------
# LiteLLMGenerator
# ------------------------------------------------------------------


def test_generate_returns_content():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = '{"answer": "hi", "sources": []}'

    with patch("artrag.rag.llm_client.litellm.completion", return_value=mock_response):
        result = LiteLLMGenerator().generate("prompt")

    assert result == '{"answer": "hi", "sources": []}'


def test_generate_returns_empty_string_on_none_content():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = None

    with patch("artrag.rag.llm_client.litellm.completion", return_value=mock_response):
        assert LiteLLMGenerator().generate("prompt") == ""


def test_generate_passes_params_to_litellm():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = "ok"

    with patch(
        "artrag.rag.llm_client.litellm.completion", return_value=mock_response
    ) as mock_complete:
        LiteLLMGenerator("openai/gpt-4.1", temperature=0.7, max_tokens=1000).generate("Q?")

    kwargs = mock_complete.call_args.kwargs
    assert kwargs["model"] == "openai/gpt-4.1"
    assert kwargs["messages"] == [{"role": "user", "content": "Q?"}]
    assert kwargs["temperature"] == 0.7
    assert kwargs["max_tokens"] == 1000
