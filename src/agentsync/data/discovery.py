"""Discover Claude/Codex session files and resolve session IDs back to them."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from agentsync.models.messages import AgentType

if TYPE_CHECKING:
    from agentsync.config import Config

logger = logging.getLogger(__name__)

CODEX_ID_PREFIX = "codex:"

_JSONL_SUFFIX = ".jsonl"
_SUBAGENT_PREFIX = "agent-"
_ROLLOUT_UUID_RE = re.compile(
    r"rollout-.*-([0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12})"
)
_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(frozen=True)
class DiscoveredFile:
    """A candidate session log found on disk."""

    path: Path
    agent: AgentType
    project_hint: str = ""


def discover_files(config: Config) -> list[DiscoveredFile]:
    """Discover all session files from the Claude and Codex stores."""
    files: list[DiscoveredFile] = []
    files.extend(discover_claude_projects(config.projects_dir))
    files.extend(discover_codex_sessions(config.codex_sessions_dir))
    return files


def discover_claude_projects(projects_dir: Path) -> list[DiscoveredFile]:
    """List session files under a Claude projects root, one directory per project."""
    if not projects_dir.is_dir():
        logger.info("Claude projects directory not found: %s", projects_dir)
        return []

    files: list[DiscoveredFile] = []
    for project_dir in _list_dir(projects_dir):
        if not project_dir.is_dir():
            continue
        for path in _list_dir(project_dir):
            if path.suffix != _JSONL_SUFFIX or not path.is_file():
                continue
            if path.stem.startswith(_SUBAGENT_PREFIX):
                continue
            files.append(
                DiscoveredFile(path=path, agent=AgentType.CLAUDE, project_hint=project_dir.name)
            )

    files.sort(key=lambda f: str(f.path))
    return files


def discover_codex_sessions(sessions_dir: Path) -> list[DiscoveredFile]:
    """List session files under a Codex ``YYYY/MM/DD`` sessions root."""
    if not sessions_dir.is_dir():
        logger.info("Codex sessions directory not found: %s", sessions_dir)
        return []

    files = [
        DiscoveredFile(path=path, agent=AgentType.CODEX)
        for day_dir in _iter_codex_day_dirs(sessions_dir)
        for path in _list_dir(day_dir)
        if path.suffix == _JSONL_SUFFIX and path.is_file()
    ]
    files.sort(key=lambda f: str(f.path))
    return files


def find_source_file(config: Config, session_id: str) -> Path | None:
    """Find the log file backing a stored session ID."""
    if session_id.startswith(CODEX_ID_PREFIX):
        return find_codex_source_file(
            config.codex_sessions_dir,
            session_id.removeprefix(CODEX_ID_PREFIX),
        )
    return find_claude_source_file(config.projects_dir, session_id)


def find_claude_source_file(projects_dir: Path, session_id: str) -> Path | None:
    """Find ``<project>/<session_id>.jsonl`` under a Claude projects root."""
    if not is_valid_session_id(session_id):
        return None

    target = session_id + _JSONL_SUFFIX
    for project_dir in _list_dir(projects_dir):
        if not project_dir.is_dir():
            continue
        candidate = project_dir / target
        if candidate.is_file():
            return candidate
    return None


def find_codex_source_file(sessions_dir: Path, session_id: str) -> Path | None:
    """Find the rollout file whose UUID suffix equals ``session_id``."""
    if not is_valid_session_id(session_id):
        return None

    for day_dir in _iter_codex_day_dirs(sessions_dir):
        for path in _list_dir(day_dir):
            if not path.name.startswith("rollout-") or path.suffix != _JSONL_SUFFIX:
                continue
            if extract_uuid_from_rollout(path.name) == session_id:
                return path
    return None


def extract_uuid_from_rollout(filename: str) -> str:
    """Extract the trailing UUID from ``rollout-<timestamp>-<uuid>.jsonl``."""
    stem = filename.removesuffix(_JSONL_SUFFIX)
    match = _ROLLOUT_UUID_RE.fullmatch(stem)
    return match.group(1) if match else ""


def is_valid_session_id(session_id: str) -> bool:
    """Only letters, digits, ``-`` and ``_`` may be used to build lookup paths."""
    return bool(_SESSION_ID_RE.fullmatch(session_id))


def _iter_codex_day_dirs(root: Path) -> Iterator[Path]:
    """Yield ``root/YYYY/MM/DD`` directories in name order, skipping non-numeric names."""
    for year in _numeric_subdirs(root):
        for month in _numeric_subdirs(year):
            yield from _numeric_subdirs(month)


def _numeric_subdirs(path: Path) -> list[Path]:
    return [entry for entry in _list_dir(path) if entry.name.isdecimal() and entry.is_dir()]


def _list_dir(path: Path) -> list[Path]:
    try:
        return sorted(path.iterdir())
    except OSError:
        return []
