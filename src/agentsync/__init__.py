"""Sync Claude Code and Codex session logs into a local SQLite index."""

__version__ = "0.1.0"
