"""Incremental sync engine for Claude/Codex session logs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import aiosqlite
from result import Err, Ok, Result

from agentsync.data import discovery
from agentsync.data.discovery import CODEX_ID_PREFIX, DiscoveredFile, discover_files
from agentsync.data.hashing import FileCheck, HashError, check_file
from agentsync.data.pairing import pair_and_filter, summarize_session
from agentsync.data.parser import parse_session_file
from agentsync.data.project import get_project_name, resolve_parent_session, resolve_project
from agentsync.data.repositories import SessionRepository
from agentsync.data.timestamps import format_timestamp
from agentsync.models.messages import AgentType
from agentsync.models.sessions import SessionRecord
from agentsync.models.sync import Progress, SyncPhase, SyncStats

if TYPE_CHECKING:
    from agentsync.config import Config
    from agentsync.data.db import Database
    from agentsync.data.protocols import ProgressCallback, SessionStoreProtocol
    from agentsync.models.messages import ParsedSession

logger = logging.getLogger(__name__)


class SyncEngine:
    """Discovers session files and mirrors changed ones into the store."""

    def __init__(
        self,
        db: Database,
        config: Config,
        *,
        store: SessionStoreProtocol | None = None,
    ) -> None:
        self._config = config
        self._store: SessionStoreProtocol = store or SessionRepository(db)

    async def sync_all(self, progress: ProgressCallback | None = None) -> SyncStats:
        """Sync every discovered session file whose content changed.

        Args:
            progress: Optional sink for progress snapshots.

        Returns:
            SyncStats with synced/skipped/failed counts. Per-file failures are
            recorded, never raised.
        """
        stats = SyncStats()
        _report(progress, SyncPhase.DISCOVERING, stats, 0)

        files = discover_files(self._config)
        stats.total_sessions = len(files)
        logger.debug("Discovered %d session files", len(files))
        _report(progress, SyncPhase.SYNCING, stats, 0)

        for done, file in enumerate(files, 1):
            try:
                await self._sync_discovered(file, stats)
            except Exception as exc:
                logger.exception("Failed to sync %s", file.path)
                stats.record_failure(f"{file.path}: {exc}")
            _report(progress, SyncPhase.SYNCING, stats, done)

        _report(progress, SyncPhase.DONE, stats, len(files))
        logger.info(
            "Sync complete: %d synced, %d skipped, %d failed, %d messages",
            stats.synced,
            stats.skipped,
            stats.failed,
            stats.messages_indexed,
        )
        return stats

    async def sync_single_session(self, session_id: str) -> Result[int, str]:
        """Reparse and rewrite one session regardless of its stored hash.

        Returns:
            Ok with the stored message count or Err with a reason.
        """
        path = self.find_source_file(session_id)
        if path is None:
            return Err(f"Source file not found for session {session_id}")

        if session_id.startswith(CODEX_ID_PREFIX):
            file = DiscoveredFile(path=path, agent=AgentType.CODEX)
        else:
            file = DiscoveredFile(path=path, agent=AgentType.CLAUDE, project_hint=path.parent.name)

        try:
            check = check_file(path, None)
        except HashError as exc:
            logger.warning("Cannot resync %s: %s", session_id, exc)
            return Err(str(exc))
        if not check.changed:
            return Err(f"Source file for session {session_id} is not readable: {path}")
        return await self._sync_file(file, check)

    def find_source_file(self, session_id: str) -> Path | None:
        return discovery.find_source_file(self._config, session_id)

    async def _sync_discovered(self, file: DiscoveredFile, stats: SyncStats) -> None:
        session_id = await self._session_id_for(file)
        stored = await self._store.get_session_file_info(session_id) if session_id else None

        try:
            check = check_file(file.path, stored)
        except HashError as exc:
            logger.warning("Failed to hash %s: %s", file.path, exc)
            stats.record_failure(str(exc))
            return

        if check.changed:
            result = await self._sync_file(file, check)
            if isinstance(result, Ok):
                stats.record_synced(result.ok_value)
            else:
                stats.record_failure(result.err_value)
            return

        stats.record_skip()
        if stored is not None and session_id and check.mtime != stored.mtime:
            try:
                await self._store.update_file_mtime(session_id, check.mtime)
            except aiosqlite.Error:
                logger.exception("Failed to update mtime for %s", session_id)

    async def _session_id_for(self, file: DiscoveredFile) -> str:
        """Stored session ID for a file, derived without parsing it."""
        if file.agent == AgentType.CLAUDE:
            return file.path.stem
        uuid = discovery.extract_uuid_from_rollout(file.path.name)
        if uuid:
            return CODEX_ID_PREFIX + uuid
        return await self._store.find_session_id_by_path(str(file.path)) or ""

    async def _sync_file(self, file: DiscoveredFile, check: FileCheck) -> Result[int, str]:
        """Parse, pair, resolve identity and persist one file."""
        project = get_project_name(file.project_hint) if file.agent == AgentType.CLAUDE else ""
        try:
            session, messages = parse_session_file(
                file.path,
                file.agent,
                project=project,
                machine=self._config.machine,
            )
        except OSError as exc:
            logger.warning("Failed to read %s: %s", file.path, exc)
            return Err(f"reading {file.path}: {exc}")

        messages = pair_and_filter(messages)
        session = summarize_session(session, messages)
        try:
            existing = await self._store.get_session_full(session.id)
            record = _build_record(session, check, existing)
            await self._store.save_session(record, messages)
        except Exception as exc:
            logger.exception("Failed to save session %s", session.id)
            return Err(f"saving {session.id}: {exc}")

        logger.debug("Synced %s (%d messages)", session.id, record.message_count)
        return Ok(record.message_count)


def _build_record(
    session: ParsedSession,
    check: FileCheck,
    existing: SessionRecord | None,
) -> SessionRecord:
    stored_project = existing.project if existing else None
    stored_parent = existing.parent_session_id if existing else None
    return SessionRecord(
        id=session.id,
        project=resolve_project(stored_project, session.project),
        machine=session.machine,
        agent=str(session.agent),
        first_message=session.first_message or None,
        started_at=format_timestamp(session.started_at) or None,
        ended_at=format_timestamp(session.ended_at) or None,
        message_count=session.message_count,
        user_message_count=session.user_message_count,
        parent_session_id=(
            resolve_parent_session(stored_parent, session.parent_session_id, session.id) or None
        ),
        total_input_tokens=session.usage.input_tokens,
        total_output_tokens=session.usage.output_tokens,
        total_cache_creation_tokens=session.usage.cache_creation_tokens,
        total_cache_read_tokens=session.usage.cache_read_tokens,
        mcp_servers=",".join(session.mcp_servers),
        file_path=session.file_path,
        file_size=check.size,
        file_mtime=check.mtime,
        file_hash=check.hash,
    )


def _report(
    progress: ProgressCallback | None,
    phase: SyncPhase,
    stats: SyncStats,
    done: int,
) -> None:
    if progress is None:
        return
    progress(
        Progress(
            phase=phase,
            sessions_total=stats.total_sessions,
            sessions_done=done,
            synced=stats.synced,
            skipped=stats.skipped,
            failed=stats.failed,
            messages_indexed=stats.messages_indexed,
        )
    )
