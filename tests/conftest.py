"""Shared test fixtures for safety-net tests.

Provides:
- Environment isolation from SAFETY_NET_* variables and ~/.safety-net
- A config factory producing AnalyzerConfig objects rooted in tmp_path
- A temporary audit directory
"""

import os
from pathlib import Path
from typing import Callable

import pytest

from safety_net.audit import flush_audit
from safety_net.config import AnalyzerConfig, load_config


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path: Path):
    """Clear SAFETY_NET_* variables and point file locations at tmp_path."""
    for key in list(os.environ):
        if key.startswith("SAFETY_NET_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SAFETY_NET_CONFIG_FILE", str(tmp_path / "no-such-config.yaml"))
    monkeypatch.setenv("SAFETY_NET_AUDIT_DIR", str(tmp_path / "audit"))
    yield
    flush_audit()


@pytest.fixture
def audit_dir(tmp_path: Path) -> Path:
    """Directory the default audit logger writes to."""
    return tmp_path / "audit"


@pytest.fixture
def config(tmp_path: Path) -> Callable[..., AnalyzerConfig]:
    """Factory for configs loaded from the isolated environment.

    Usage:
        cfg = config(paranoid=True)
    """

    def _make(**overrides) -> AnalyzerConfig:
        return load_config(cwd=str(tmp_path), **overrides)

    return _make
