"""Store-side session and message models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SessionFileInfo(BaseModel):
    """Change-detection state stored with a session."""

    size: int = 0
    hash: str = ""
    mtime: int | None = None


class SessionRecord(BaseModel):
    """A row of the sessions table."""

    id: str
    project: str = ""
    machine: str = "local"
    agent: str = "claude"
    first_message: str | None = None
    started_at: str | None = None
    ended_at: str | None = None
    message_count: int = 0
    user_message_count: int = 0
    parent_session_id: str | None = None
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_cache_creation_tokens: int = 0
    total_cache_read_tokens: int = 0
    mcp_servers: str = ""
    file_path: str | None = None
    file_size: int | None = None
    file_mtime: int | None = None
    file_hash: str | None = None
    created_at: str = ""


class ToolCallView(BaseModel):
    """A stored tool call with its paired result."""

    tool_use_id: str
    tool_name: str
    category: str = ""
    input_json: str = "{}"
    result_content_length: int = 0
    result_content: str = ""


class MessageView(BaseModel):
    """A stored message read back with its tool calls."""

    id: int = 0
    session_id: str
    ordinal: int
    role: str
    content: str = ""
    timestamp: str = ""
    has_thinking: bool = False
    has_tool_use: bool = False
    content_length: int = 0
    tool_calls: list[ToolCallView] = Field(default_factory=list)
