"""
Root conftest.py - Shared Pytest fixtures.

Provides fixtures for:
- A fresh, isolated acceptor registry per test.
- A fresh parameter handler per test.
- A recording store that logs every subsection call.
- A config loader rooted in a temporary directory.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from acceptor.config.loader import ConfigLoader
from acceptor.core.registry import Registry
from acceptor.store.parameter_handler import ParameterHandler
from tests.fakes import RecordingStore


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def registry() -> Registry:
    """A fresh registry, isolated from the process-wide default."""
    return Registry()


@pytest.fixture
def prm() -> ParameterHandler:
    """A fresh, empty parameter handler."""
    return ParameterHandler()


@pytest.fixture
def recording_store() -> RecordingStore:
    """A store that records subsection calls."""
    return RecordingStore()


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Temporary directory for parameter files."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def loader(config_dir: Path) -> ConfigLoader:
    """Config loader rooted in the temporary config directory."""
    return ConfigLoader(config_dir=config_dir)
