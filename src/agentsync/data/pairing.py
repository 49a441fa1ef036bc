"""Pair tool calls with their results and tidy the message sequence."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentsync.data.content import mcp_server_name
from agentsync.models.messages import Role

if TYPE_CHECKING:
    from agentsync.models.messages import ParsedMessage, ParsedSession, ParsedToolCall


def pair_tool_results(messages: list[ParsedMessage]) -> None:
    """Copy each tool result onto the earlier call with the same ID.

    Each call ID is consumed by its first matching result. Results stay on
    their own message; unmatched calls keep a zero result length.
    """
    pending: dict[str, ParsedToolCall] = {}
    for message in messages:
        for result in message.tool_results:
            call = pending.pop(result.tool_use_id, None)
            if call is None:
                continue
            call.result_content = result.content
            call.result_content_length = result.content_length
        for call in message.tool_calls:
            if call.tool_use_id:
                pending[call.tool_use_id] = call


def filter_empty_messages(messages: list[ParsedMessage]) -> list[ParsedMessage]:
    """Drop user turns that only carried tool output."""
    return [message for message in messages if not _is_result_placeholder(message)]


def reassign_ordinals(messages: list[ParsedMessage]) -> list[ParsedMessage]:
    for ordinal, message in enumerate(messages):
        message.ordinal = ordinal
    return messages


def pair_and_filter(messages: list[ParsedMessage]) -> list[ParsedMessage]:
    """Pair results into calls, drop placeholders and renumber."""
    pair_tool_results(messages)
    return reassign_ordinals(filter_empty_messages(messages))


def post_filter_counts(messages: list[ParsedMessage]) -> tuple[int, int]:
    """Return ``(total, user)`` message counts."""
    user = sum(1 for message in messages if message.role == Role.USER)
    return len(messages), user


def extract_mcp_servers(messages: list[ParsedMessage]) -> list[str]:
    """Sorted distinct MCP server names used by the session's tool calls."""
    servers = {
        server
        for message in messages
        for call in message.tool_calls
        if (server := mcp_server_name(call.tool_name))
    }
    return sorted(servers)


def summarize_session(session: ParsedSession, messages: list[ParsedMessage]) -> ParsedSession:
    """Copy of ``session`` with counts and MCP servers taken from the final messages."""
    total, user = post_filter_counts(messages)
    return session.model_copy(
        update={
            "message_count": total,
            "user_message_count": user,
            "mcp_servers": extract_mcp_servers(messages),
        }
    )


def _is_result_placeholder(message: ParsedMessage) -> bool:
    return (
        message.role == Role.USER
        and not message.content.strip()
        and bool(message.tool_results)
    )
