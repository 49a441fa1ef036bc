"""Shared fixtures for agentsync tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from agentsync.config import Config
from agentsync.data.db import Database

SAMPLE_SESSION_PATH = Path(__file__).parent / "data" / "claude" / "valid_session.jsonl"


@pytest.fixture
def sample_session_path() -> Path:
    """Path to the sample Claude session JSONL file."""
    return SAMPLE_SESSION_PATH


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Config pointing at empty temporary agent directories."""
    config = Config(
        claude_dir=tmp_path / ".claude",
        codex_dir=tmp_path / ".codex",
        cache_dir=tmp_path / "cache",
    )
    config.projects_dir.mkdir(parents=True)
    config.codex_sessions_dir.mkdir(parents=True)
    return config


@pytest.fixture
def write_claude_session(test_config: Config):  # type: ignore[no-untyped-def]
    """Write ``content`` to ``<projects>/<project_dir>/<filename>`` and return the path."""

    def _write(project_dir: str, filename: str, content: str) -> Path:
        directory = test_config.projects_dir / project_dir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_bytes(content.encode("utf-8"))
        return path

    return _write


@pytest.fixture
def write_codex_session(test_config: Config):  # type: ignore[no-untyped-def]
    """Write ``content`` to ``<sessions>/YYYY/MM/DD/<filename>`` and return the path."""

    def _write(day: str, filename: str, content: str) -> Path:
        directory = test_config.codex_sessions_dir / day
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_bytes(content.encode("utf-8"))
        return path

    return _write


@pytest.fixture
async def test_db(tmp_path: Path) -> AsyncGenerator[Database]:
    """A fresh on-disk test database."""
    db = Database(tmp_path / "test.db")
    await db.__aenter__()
    yield db  # type: ignore[misc]
    await db.__aexit__(None, None, None)


@pytest.fixture
async def in_memory_db() -> AsyncGenerator[Database]:
    """SQLite in-memory database for fast unit/integration tests."""
    db = Database(Path(":memory:"))
    await db.__aenter__()
    yield db  # type: ignore[misc]
    await db.__aexit__(None, None, None)
