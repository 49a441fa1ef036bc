"""Typer CLI for agentsync: sync and resync commands."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from result import Ok

from agentsync.config import Config

if TYPE_CHECKING:
    from agentsync.models.sync import Progress, SyncStats

app = typer.Typer(
    name="agentsync",
    help="Mirror Claude Code and Codex session logs into a local SQLite index.",
    no_args_is_help=True,
)

ClaudeDirOption = Annotated[
    Path | None,
    typer.Option("--claude-dir", help="Path to Claude data directory"),
]
CodexDirOption = Annotated[
    Path | None,
    typer.Option("--codex-dir", help="Path to Codex data directory"),
]
CacheDirOption = Annotated[
    Path | None,
    typer.Option("--cache-dir", help="Directory holding the SQLite index"),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]


@app.command()
def sync(
    claude_dir: ClaudeDirOption = None,
    codex_dir: CodexDirOption = None,
    cache_dir: CacheDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Sync all changed session files into the index."""
    _configure_logging(verbose)
    config = Config.from_env(claude_dir=claude_dir, codex_dir=codex_dir, cache_dir=cache_dir)
    asyncio.run(_do_sync(config))


@app.command()
def resync(
    session_id: Annotated[str, typer.Argument(help="Session ID to reparse")],
    claude_dir: ClaudeDirOption = None,
    codex_dir: CodexDirOption = None,
    cache_dir: CacheDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Reparse one session regardless of whether its file changed."""
    _configure_logging(verbose)
    config = Config.from_env(claude_dir=claude_dir, codex_dir=codex_dir, cache_dir=cache_dir)
    ok = asyncio.run(_do_resync(config, session_id))
    if not ok:
        raise typer.Exit(code=1)


async def _do_sync(config: Config) -> SyncStats:
    """Run a full sync pass."""
    from agentsync.data.db import Database
    from agentsync.data.engine import SyncEngine

    typer.echo(f"Syncing sessions from {config.projects_dir} and {config.codex_sessions_dir}...")

    async with Database(config.db_path) as db:
        engine = SyncEngine(db, config)

        def progress(snapshot: Progress) -> None:
            if snapshot.sessions_done and snapshot.sessions_done % 50 == 0:
                typer.echo(
                    f"  [{snapshot.sessions_done}/{snapshot.sessions_total}] "
                    f"{snapshot.percent():.0f}%"
                )

        stats = await engine.sync_all(progress)

    typer.echo(
        f"\nDone! synced={stats.synced} skipped={stats.skipped} "
        f"failed={stats.failed} messages={stats.messages_indexed}"
    )
    for error in stats.errors:
        typer.echo(f"  error: {error}", err=True)
    return stats


async def _do_resync(config: Config, session_id: str) -> bool:
    """Force a reparse of one session."""
    from agentsync.data.db import Database
    from agentsync.data.engine import SyncEngine

    async with Database(config.db_path) as db:
        result = await SyncEngine(db, config).sync_single_session(session_id)

    if isinstance(result, Ok):
        typer.echo(f"Resynced {session_id}: {result.ok_value} messages")
        return True
    typer.echo(f"Error: {result.err_value}", err=True)
    return False


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
