"""artrag configuration loader.

Priority (high → low):
  1. CLI flags           (handled at the call site, not in this module)
  2. Environment variables  (ARTRAG_GENERATION_MODEL, ARTRAG_EMBEDDING_MODEL,
     ARTRAG_INDEX_PATH)
  3. Per-project artrag.yaml  (current working directory)
  4. Global ~/.artrag/config.yaml  (model defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".artrag"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "artrag.yaml"

# Fields that suggest an API key. Forbidden in global config.
# Does NOT match legitimate config keys like max_tokens_per_batch.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "generation", "retrieval", "chunking", "ingest", "index"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (artrag.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"


@dataclass
class GenerationCfg:
    """LLM generation configuration (artrag.yaml: generation:)."""

    model: str = "openai/gpt-4.1"
    temperature: float = 0.7
    max_tokens: int = 1000


@dataclass
class RetrievalCfg:
    """Query-time retrieval defaults (artrag.yaml: retrieval:).

    Attributes:
        max_results: Number of nearest chunks requested from the index.
        similarity_threshold: Minimum cosine similarity (inclusive) for a
            chunk to count as relevant.
    """

    max_results: int = 10
    similarity_threshold: float = 0.2


@dataclass
class ChunkingCfg:
    """Character-based splitter settings (artrag.yaml: chunking:)."""

    chunk_size: int = 500
    chunk_overlap: int = 50


@dataclass
class IngestCfg:
    """Embedding batch loop settings (artrag.yaml: ingest:).

    Attributes:
        max_tokens_per_batch: Estimated-token budget per embedding request.
        max_retries: Retries per batch on rate-limit / connection errors.
        base_delay: First backoff delay in seconds; doubles each retry.
        cooldown: Pause in seconds between successive batches.
    """

    max_tokens_per_batch: int = 50_000
    max_retries: int = 5
    base_delay: float = 2.0
    cooldown: float = 5.0


@dataclass
class IndexCfg:
    """Vector index location (artrag.yaml: index:)."""

    path: str = "artrag-index.db"


@dataclass
class ArtragConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    generation: GenerationCfg = field(default_factory=GenerationCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    chunking: ChunkingCfg = field(default_factory=ChunkingCfg)
    ingest: IngestCfg = field(default_factory=IngestCfg)
    index: IndexCfg = field(default_factory=IndexCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}' (ignored).",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: ArtragConfig) -> None:
    ch = cfg.chunking
    if ch.chunk_size < 1:
        raise ConfigError(f"chunking.chunk_size must be >= 1, got {ch.chunk_size}")
    if not 0 <= ch.chunk_overlap < ch.chunk_size:
        raise ConfigError(
            f"chunking.chunk_overlap must be in [0, chunk_size), got {ch.chunk_overlap}"
        )
    if cfg.ingest.max_tokens_per_batch < 1:
        raise ConfigError("ingest.max_tokens_per_batch must be >= 1")
    if cfg.ingest.max_retries < 0:
        raise ConfigError("ingest.max_retries must be >= 0")
    if cfg.retrieval.max_results < 1:
        raise ConfigError("retrieval.max_results must be >= 1")


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> ArtragConfig:
    """Build an *ArtragConfig* from a merged raw YAML dict."""
    cfg = ArtragConfig()

    if "embedding" in data:
        e = data["embedding"]
        cfg.embedding = EmbeddingCfg(model=str(e.get("model", cfg.embedding.model)))

    if "generation" in data:
        g = data["generation"]
        cfg.generation = GenerationCfg(
            model=str(g.get("model", cfg.generation.model)),
            temperature=float(g.get("temperature", cfg.generation.temperature)),
            max_tokens=int(g.get("max_tokens", cfg.generation.max_tokens)),
        )

    if "retrieval" in data:
        r = data["retrieval"]
        cfg.retrieval = RetrievalCfg(
            max_results=int(r.get("max_results", cfg.retrieval.max_results)),
            similarity_threshold=float(
                r.get("similarity_threshold", cfg.retrieval.similarity_threshold)
            ),
        )

    if "chunking" in data:
        c = data["chunking"]
        cfg.chunking = ChunkingCfg(
            chunk_size=int(c.get("chunk_size", cfg.chunking.chunk_size)),
            chunk_overlap=int(c.get("chunk_overlap", cfg.chunking.chunk_overlap)),
        )

    if "ingest" in data:
        i = data["ingest"]
        cfg.ingest = IngestCfg(
            max_tokens_per_batch=int(
                i.get("max_tokens_per_batch", cfg.ingest.max_tokens_per_batch)
            ),
            max_retries=int(i.get("max_retries", cfg.ingest.max_retries)),
            base_delay=float(i.get("base_delay", cfg.ingest.base_delay)),
            cooldown=float(i.get("cooldown", cfg.ingest.cooldown)),
        )

    if "index" in data:
        cfg.index = IndexCfg(path=str(data["index"].get("path", cfg.index.path)))

    return cfg


def _apply_env_overrides(cfg: ArtragConfig) -> ArtragConfig:
    """Apply ARTRAG_* environment variable overrides."""
    if model := os.environ.get("ARTRAG_GENERATION_MODEL"):
        cfg.generation.model = model
    if model := os.environ.get("ARTRAG_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if path := os.environ.get("ARTRAG_INDEX_PATH"):
        cfg.index.path = path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> ArtragConfig:
    """Load and return a merged *ArtragConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *artrag.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, or if a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg
