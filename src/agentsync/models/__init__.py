"""Pydantic models and sync bookkeeping types for agentsync."""

from agentsync.models.messages import (
    AgentType,
    ParsedMessage,
    ParsedSession,
    ParsedToolCall,
    ParsedToolResult,
    Role,
    TokenUsage,
)
from agentsync.models.sessions import MessageView, SessionFileInfo, SessionRecord, ToolCallView
from agentsync.models.sync import Progress, SyncPhase, SyncStats

__all__ = [
    "AgentType",
    "MessageView",
    "ParsedMessage",
    "ParsedSession",
    "ParsedToolCall",
    "ParsedToolResult",
    "Progress",
    "Role",
    "SessionFileInfo",
    "SessionRecord",
    "SyncPhase",
    "SyncStats",
    "TokenUsage",
    "ToolCallView",
]
