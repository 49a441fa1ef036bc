"""Sync pass bookkeeping models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class SyncPhase(StrEnum):
    DISCOVERING = "discovering"
    SYNCING = "syncing"
    DONE = "done"


@dataclass(slots=True)
class SyncStats:
    """Result summary for a sync pass."""

    total_sessions: int = 0
    synced: int = 0
    skipped: int = 0
    failed: int = 0
    messages_indexed: int = 0
    errors: list[str] = field(default_factory=list)

    def record_skip(self) -> None:
        self.skipped += 1

    def record_synced(self, message_count: int) -> None:
        self.synced += 1
        self.messages_indexed += message_count

    def record_failure(self, error: str) -> None:
        self.failed += 1
        self.errors.append(error)


@dataclass(frozen=True, slots=True)
class Progress:
    """Snapshot of a running sync pass, handed to progress sinks."""

    phase: SyncPhase = SyncPhase.DISCOVERING
    sessions_total: int = 0
    sessions_done: int = 0
    synced: int = 0
    skipped: int = 0
    failed: int = 0
    messages_indexed: int = 0

    def percent(self) -> float:
        if self.sessions_total <= 0:
            return 0.0
        return self.sessions_done / self.sessions_total * 100
