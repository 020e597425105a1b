"""Shared fixtures."""

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch) -> Path:
    """Point every config and theme path at a temporary directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr("shvar.config.CONFIG_PATH", config_dir / "config.json")
    monkeypatch.setattr("shvar.config._README_PATH", config_dir / "README.md")
    monkeypatch.setattr("shvar.config.THEME_CONFIG_PATH", config_dir / "theme.json")
    return config_dir


@pytest.fixture
def ifcfg(tmp_path: Path):
    """Return a helper that writes *content* to a file and returns its path."""

    def _write(content: str | bytes, name: str = "ifcfg-eth0") -> Path:
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_bytes(content)
        return path

    return _write
