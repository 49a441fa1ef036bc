"""Repository layer for session persistence and read-back."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentsync.data.timestamps import format_timestamp
from agentsync.models.sessions import (
    MessageView,
    SessionFileInfo,
    SessionRecord,
    ToolCallView,
)

if TYPE_CHECKING:
    from aiosqlite import Row

    from agentsync.data.db import Database
    from agentsync.models.messages import ParsedMessage

_SESSION_COLUMNS = (
    "id",
    "project",
    "machine",
    "agent",
    "first_message",
    "started_at",
    "ended_at",
    "message_count",
    "user_message_count",
    "parent_session_id",
    "total_input_tokens",
    "total_output_tokens",
    "total_cache_creation_tokens",
    "total_cache_read_tokens",
    "mcp_servers",
    "file_path",
    "file_size",
    "file_mtime",
    "file_hash",
)


class SessionRepository:
    """SQL repository for sessions, messages and tool calls.

    Public write methods run inside :meth:`Database.transaction`.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_session_file_info(self, session_id: str) -> SessionFileInfo | None:
        row = await self._db.fetch_one(
            "SELECT file_size, file_hash, file_mtime FROM sessions WHERE id = ?",
            (session_id,),
        )
        if row is None:
            return None
        return SessionFileInfo(
            size=int(row["file_size"] or 0),
            hash=str(row["file_hash"] or ""),
            mtime=row["file_mtime"],
        )

    async def find_session_id_by_path(self, file_path: str) -> str | None:
        row = await self._db.fetch_one(
            "SELECT id FROM sessions WHERE file_path = ? ORDER BY id LIMIT 1",
            (file_path,),
        )
        return str(row["id"]) if row else None

    async def get_session_full(self, session_id: str) -> SessionRecord | None:
        row = await self._db.fetch_one("SELECT * FROM sessions WHERE id = ?", (session_id,))
        if row is None:
            return None
        return SessionRecord(**dict(row))

    async def upsert_session(self, session: SessionRecord) -> None:
        """Insert a session row or update every column except ``created_at``."""
        async with self._db.transaction():
            await self._upsert_session(session)

    async def replace_session_messages(
        self, session_id: str, messages: list[ParsedMessage]
    ) -> None:
        """Delete a session's messages and tool calls, then insert ``messages``."""
        async with self._db.transaction():
            await self._replace_session_messages(session_id, messages)

    async def save_session(self, session: SessionRecord, messages: list[ParsedMessage]) -> None:
        """Write the session row and its messages in one transaction."""
        async with self._db.transaction():
            await self._upsert_session(session)
            await self._replace_session_messages(session.id, messages)

    async def update_file_mtime(self, session_id: str, mtime: int | None) -> None:
        async with self._db.transaction():
            await self._db.execute(
                "UPDATE sessions SET file_mtime = ? WHERE id = ?",
                (mtime, session_id),
            )

    async def get_all_messages(self, session_id: str) -> list[MessageView]:
        """All messages of a session ordered by ordinal, with their tool calls."""
        rows = await self._db.fetch_all(
            "SELECT * FROM messages WHERE session_id = ? ORDER BY ordinal",
            (session_id,),
        )
        tool_rows = await self._db.fetch_all(
            "SELECT * FROM tool_calls WHERE session_id = ? ORDER BY id",
            (session_id,),
        )
        tools_by_message: dict[int, list[ToolCallView]] = {}
        for tool_row in tool_rows:
            tools_by_message.setdefault(int(tool_row["message_id"]), []).append(
                _row_to_tool_call(tool_row)
            )
        return [
            _row_to_message(row, tools_by_message.get(int(row["id"]), [])) for row in rows
        ]

    async def _upsert_session(self, session: SessionRecord) -> None:
        values = session.model_dump(include=set(_SESSION_COLUMNS))
        placeholders = ", ".join("?" for _ in _SESSION_COLUMNS)
        updates = ",\n                   ".join(
            f"{column} = excluded.{column}" for column in _SESSION_COLUMNS[1:]
        )
        await self._db.execute(
            f"""INSERT INTO sessions ({", ".join(_SESSION_COLUMNS)})
                VALUES ({placeholders})
                ON CONFLICT(id) DO UPDATE SET
                   {updates}""",
            tuple(values[column] for column in _SESSION_COLUMNS),
        )

    async def _replace_session_messages(
        self, session_id: str, messages: list[ParsedMessage]
    ) -> None:
        await self._db.execute("DELETE FROM tool_calls WHERE session_id = ?", (session_id,))
        await self._db.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))

        tool_call_rows: list[tuple[object, ...]] = []
        for msg in messages:
            cursor = await self._db.execute(
                """INSERT INTO messages
                (session_id, ordinal, role, content, timestamp,
                 has_thinking, has_tool_use, content_length)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    session_id,
                    msg.ordinal,
                    str(msg.role),
                    msg.content,
                    format_timestamp(msg.timestamp),
                    1 if msg.has_thinking else 0,
                    1 if msg.has_tool_use else 0,
                    msg.content_length,
                ),
            )
            message_id = cursor.lastrowid
            tool_call_rows.extend(
                (
                    message_id,
                    session_id,
                    call.tool_use_id,
                    call.tool_name,
                    call.category,
                    call.input_json,
                    call.result_content_length,
                    call.result_content,
                )
                for call in msg.tool_calls
            )

        if tool_call_rows:
            await self._db.execute_many(
                """INSERT INTO tool_calls
                (message_id, session_id, tool_use_id, tool_name, category,
                 input_json, result_content_length, result_content)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                tool_call_rows,
            )


def _row_to_tool_call(row: Row) -> ToolCallView:
    return ToolCallView(
        tool_use_id=str(row["tool_use_id"] or ""),
        tool_name=str(row["tool_name"]),
        category=str(row["category"] or ""),
        input_json=str(row["input_json"] or "{}"),
        result_content_length=int(row["result_content_length"] or 0),
        result_content=str(row["result_content"] or ""),
    )


def _row_to_message(row: Row, tool_calls: list[ToolCallView]) -> MessageView:
    return MessageView(
        id=int(row["id"]),
        session_id=str(row["session_id"]),
        ordinal=int(row["ordinal"]),
        role=str(row["role"]),
        content=str(row["content"] or ""),
        timestamp=str(row["timestamp"] or ""),
        has_thinking=bool(row["has_thinking"]),
        has_tool_use=bool(row["has_tool_use"]),
        content_length=int(row["content_length"] or 0),
        tool_calls=tool_calls,
    )
