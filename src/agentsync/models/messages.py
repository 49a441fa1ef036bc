"""Message-level models for parsed JSONL data."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class AgentType(StrEnum):
    """Agent tool that produced a session log."""

    CLAUDE = "claude"
    CODEX = "codex"


class Role(StrEnum):
    """Normalized message role."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class TokenUsage(BaseModel):
    """Token counters from one API response (or a session total)."""

    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_creation_tokens=self.cache_creation_tokens + other.cache_creation_tokens,
            cache_read_tokens=self.cache_read_tokens + other.cache_read_tokens,
        )


class ParsedToolCall(BaseModel):
    """A tool invocation, decorated with its result once paired."""

    tool_use_id: str
    tool_name: str
    category: str = ""
    input_json: str = "{}"
    result_content_length: int = 0
    result_content: str = ""


class ParsedToolResult(BaseModel):
    """A tool result carried by a user turn. Only used while pairing."""

    tool_use_id: str
    content_length: int = 0
    content: str = ""


class ParsedMessage(BaseModel):
    """A normalized message from a session file."""

    ordinal: int = 0
    role: Role
    content: str = ""
    timestamp: datetime | None = None
    has_thinking: bool = False
    has_tool_use: bool = False
    content_length: int = 0
    tool_calls: list[ParsedToolCall] = Field(default_factory=list)
    tool_results: list[ParsedToolResult] = Field(default_factory=list)


class ParsedSession(BaseModel):
    """Session-level metadata derived from one log file."""

    id: str
    project: str = ""
    machine: str = "local"
    agent: AgentType
    first_message: str = ""
    started_at: datetime | None = None
    ended_at: datetime | None = None
    # Set from the paired and filtered messages, zero straight out of the parser.
    message_count: int = 0
    user_message_count: int = 0
    mcp_servers: list[str] = Field(default_factory=list)
    parent_session_id: str = ""
    usage: TokenUsage = Field(default_factory=TokenUsage)
    file_path: str = ""
