"""Configuration for agentsync."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    claude_dir: Path = field(default_factory=lambda: Path.home() / ".claude")
    codex_dir: Path = field(default_factory=lambda: Path.home() / ".codex")
    cache_dir: Path = field(default_factory=lambda: Path.home() / ".cache" / "agentsync")
    machine: str = "local"

    @property
    def projects_dir(self) -> Path:
        return self.claude_dir / "projects"

    @property
    def codex_sessions_dir(self) -> Path:
        return self.codex_dir / "sessions"

    @property
    def db_path(self) -> Path:
        return self.cache_dir / "index.db"

    @classmethod
    def from_env(cls, **overrides: object) -> Config:
        """Build a config from environment variables, then explicit overrides.

        ``None`` overrides are ignored so CLI options can be passed straight through.
        """
        values: dict[str, object] = {}
        if claude_dir := os.environ.get("CLAUDE_CONFIG_DIR"):
            values["claude_dir"] = Path(claude_dir).expanduser()
        if codex_dir := os.environ.get("CODEX_HOME"):
            values["codex_dir"] = Path(codex_dir).expanduser()
        if cache_dir := os.environ.get("AGENTSYNC_CACHE_DIR"):
            values["cache_dir"] = Path(cache_dir).expanduser()
        if machine := os.environ.get("AGENTSYNC_MACHINE"):
            values["machine"] = machine
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)  # type: ignore[arg-type]
