"""Protocol definitions for data access."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from agentsync.models.messages import ParsedMessage
    from agentsync.models.sessions import MessageView, SessionFileInfo, SessionRecord
    from agentsync.models.sync import Progress


class SessionStoreProtocol(Protocol):
    """Persistence boundary used by the sync engine."""

    async def get_session_file_info(self, session_id: str) -> SessionFileInfo | None: ...

    async def find_session_id_by_path(self, file_path: str) -> str | None: ...

    async def get_session_full(self, session_id: str) -> SessionRecord | None: ...

    async def upsert_session(self, session: SessionRecord) -> None: ...

    async def replace_session_messages(
        self, session_id: str, messages: list[ParsedMessage]
    ) -> None: ...

    async def save_session(
        self, session: SessionRecord, messages: list[ParsedMessage]
    ) -> None: ...

    async def update_file_mtime(self, session_id: str, mtime: int | None) -> None: ...

    async def get_all_messages(self, session_id: str) -> list[MessageView]: ...


class ProgressCallback(Protocol):
    """Callback for sync progress snapshots."""

    def __call__(self, progress: Progress) -> None: ...
