"""CLI test isolation: temp working directory, no global config, fast ingest."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml


@pytest.fixture(autouse=True)
def cli_workdir(tmp_path: Path, monkeypatch) -> Path:
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setattr("artrag.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    for var in ("ARTRAG_GENERATION_MODEL", "ARTRAG_EMBEDDING_MODEL", "ARTRAG_INDEX_PATH"):
        monkeypatch.delenv(var, raising=False)
    (workdir / "artrag.yaml").write_text(
        yaml.dump({"ingest": {"cooldown": 0, "base_delay": 0}}), encoding="utf-8"
    )
    return workdir
