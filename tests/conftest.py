from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep developer config files and RIF_LOOKUP_* variables out of tests."""
    for key in list(os.environ):
        if key.startswith("RIF_LOOKUP_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RIF_LOOKUP_CONFIG", str(tmp_path / "missing.toml"))
