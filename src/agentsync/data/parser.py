"""Agent-aware parser for Claude/Codex JSONL session files."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from agentsync.data.content import render_content
from agentsync.data.discovery import CODEX_ID_PREFIX, extract_uuid_from_rollout
from agentsync.data.project import extract_project_from_cwd
from agentsync.data.timestamps import parse_timestamp
from agentsync.models.messages import (
    AgentType,
    ParsedMessage,
    ParsedSession,
    ParsedToolResult,
    Role,
    TokenUsage,
)

logger = logging.getLogger(__name__)

FIRST_MESSAGE_MAX = 300
_INT64_MAX = 2**63 - 1
_INT64_MIN = -(2**63)

_SYSTEM_SIGNATURES = (
    "This session is being continued from a previous conversation",
    "[Request interrupted by user",
    "<command-message>",
    "<command-name>",
    "<local-command-",
    "<task-notification>",
    "Stop hook feedback:",
)
_CODEX_SYSTEM_PREFIXES = ("<environment_context>", "<user_instructions>")
_PLAN_PREFIX = "Implement the following plan"
_TRANSCRIPT_REF_RE = re.compile(r"([A-Za-z0-9_-]+)\.jsonl\b")


def parse_session_file(
    path: Path,
    agent: AgentType,
    *,
    project: str = "",
    machine: str = "local",
) -> tuple[ParsedSession, list[ParsedMessage]]:
    """Parse one session file into session metadata and messages in file order.

    Ordinals are provisional; they are finalized after pairing and filtering.

    Raises:
        OSError: if the file cannot be opened or read.
    """
    match agent:
        case AgentType.CODEX:
            session, messages = parse_codex_session(path, machine=machine)
        case _:
            session, messages = parse_claude_session(path, project=project, machine=machine)
    logger.debug("Parsed %s: %d messages", path, len(messages))
    return session, messages


def parse_claude_session(
    path: Path,
    *,
    project: str = "",
    machine: str = "local",
) -> tuple[ParsedSession, list[ParsedMessage]]:
    session_id = path.stem
    messages: list[ParsedMessage] = []
    usage_by_message: dict[str, TokenUsage] = {}
    sid_parent = ""

    for line_num, record in _iter_records(path):
        record_type = record.get("type")
        if record_type not in ("user", "assistant"):
            continue
        message = record.get("message")
        if not isinstance(message, dict):
            continue
        timestamp = parse_timestamp(_record_timestamp(record))

        if record_type == "user":
            record_sid = _as_str(record.get("sessionId"))
            if not sid_parent and record_sid and record_sid != session_id:
                sid_parent = record_sid
            parsed = _parse_claude_user(record, message, timestamp)
        else:
            usage = _claude_usage(message)
            if usage is not None:
                key = (
                    _as_str(message.get("id"))
                    or _as_str(record.get("uuid"))
                    or f"line:{line_num}"
                )
                usage_by_message[key] = usage
            parsed = _parse_claude_assistant(message, timestamp)

        if parsed is not None:
            parsed.ordinal = len(messages)
            messages.append(parsed)

    first_message = _first_user_message(messages)
    parent = sid_parent or _transcript_parent(first_message, session_id)
    total = sum(usage_by_message.values(), TokenUsage())
    total_usage = TokenUsage(**{name: _clamp(count) for name, count in total.model_dump().items()})
    session = _build_session(
        session_id=session_id,
        agent=AgentType.CLAUDE,
        project=project,
        machine=machine,
        path=path,
        messages=messages,
        parent_session_id=parent,
        usage=total_usage,
    )
    return session, messages


def parse_codex_session(
    path: Path,
    *,
    machine: str = "local",
) -> tuple[ParsedSession, list[ParsedMessage]]:
    meta_id = ""
    cwd = ""
    originator = ""
    messages: list[ParsedMessage] = []

    for _line_num, record in _iter_records(path):
        payload = record.get("payload")
        if not isinstance(payload, dict):
            continue
        match record.get("type"):
            case "session_meta":
                meta_id = meta_id or _as_str(payload.get("id"))
                cwd = cwd or _as_str(payload.get("cwd"))
                originator = originator or _as_str(payload.get("originator"))
            case "response_item":
                parsed = _parse_codex_item(
                    payload,
                    parse_timestamp(record.get("timestamp")),
                    originator,
                )
                if parsed is not None:
                    parsed.ordinal = len(messages)
                    messages.append(parsed)

    uuid = extract_uuid_from_rollout(path.name) or meta_id or path.stem
    session = _build_session(
        session_id=CODEX_ID_PREFIX + uuid,
        agent=AgentType.CODEX,
        project=extract_project_from_cwd(cwd),
        machine=machine,
        path=path,
        messages=messages,
    )
    return session, messages


def is_system_content(content: str) -> bool:
    """Whether user-typed text is a synthetic notice rather than a real prompt."""
    return content.strip().startswith(_SYSTEM_SIGNATURES)


def _iter_records(path: Path) -> Iterator[tuple[int, dict[str, object]]]:
    """Yield ``(line_number, record)`` for each JSON object line; skip the rest."""
    with open(path, "rb") as file:
        for line_num, raw_line in enumerate(file, 1):
            line = raw_line.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except ValueError:
                continue
            if isinstance(record, dict):
                yield line_num, record


def _parse_claude_user(
    record: dict[str, object],
    message: dict[str, object],
    timestamp: datetime | None,
) -> ParsedMessage | None:
    raw_content = message.get("content")
    text_parts: list[str] = []
    tool_results: list[ParsedToolResult] = []

    if isinstance(raw_content, str):
        text_parts.append(raw_content)
    elif isinstance(raw_content, list):
        for block in raw_content:
            if isinstance(block, str):
                text_parts.append(block)
                continue
            if not isinstance(block, dict):
                continue
            match block.get("type"):
                case "text":
                    text = _as_str(block.get("text"))
                    if text:
                        text_parts.append(text)
                case "tool_result":
                    result_text = _extract_content_text(block.get("content"))
                    tool_results.append(
                        ParsedToolResult(
                            tool_use_id=_as_str(block.get("tool_use_id")),
                            content_length=len(result_text),
                            content=result_text,
                        )
                    )

    content = "\n".join(text_parts)
    if not content.strip() and not tool_results:
        return None

    is_system = (
        bool(record.get("isMeta"))
        or bool(record.get("isCompactSummary"))
        or is_system_content(content)
    )
    return ParsedMessage(
        role=Role.SYSTEM if is_system else Role.USER,
        content=content,
        timestamp=timestamp,
        content_length=len(content),
        tool_results=tool_results,
    )


def _parse_claude_assistant(
    message: dict[str, object],
    timestamp: datetime | None,
) -> ParsedMessage | None:
    rendered = render_content(message.get("content"))
    if not rendered.text and not rendered.tool_calls:
        return None
    return ParsedMessage(
        role=Role.ASSISTANT,
        content=rendered.text,
        timestamp=timestamp,
        has_thinking=rendered.has_thinking,
        has_tool_use=rendered.has_tool_use,
        content_length=len(rendered.text),
        tool_calls=rendered.tool_calls,
    )


def _claude_usage(message: dict[str, object]) -> TokenUsage | None:
    usage = message.get("usage")
    if not isinstance(usage, dict):
        return None
    return TokenUsage(
        input_tokens=_int(usage.get("input_tokens", 0)),
        output_tokens=_int(usage.get("output_tokens", 0)),
        cache_creation_tokens=_int(usage.get("cache_creation_input_tokens", 0)),
        cache_read_tokens=_int(usage.get("cache_read_input_tokens", 0)),
    )


def _parse_codex_item(
    payload: dict[str, object],
    timestamp: datetime | None,
    originator: str,
) -> ParsedMessage | None:
    if _as_str(payload.get("type")) not in ("", "message"):
        return None

    role_name = _as_str(payload.get("role")) or originator
    match role_name:
        case "user":
            role = Role.USER
        case "assistant":
            role = Role.ASSISTANT
        case "developer" | "system":
            role = Role.SYSTEM
        case _:
            return None

    content = _codex_text(payload.get("content"))
    if not content.strip():
        return None
    if role == Role.USER and content.lstrip().startswith(_CODEX_SYSTEM_PREFIXES):
        role = Role.SYSTEM
    return ParsedMessage(
        role=role,
        content=content,
        timestamp=timestamp,
        content_length=len(content),
    )


def _codex_text(raw_content: object) -> str:
    if isinstance(raw_content, str):
        return raw_content
    if not isinstance(raw_content, list):
        return ""
    parts: list[str] = []
    for block in raw_content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") in ("input_text", "output_text"):
            text = _as_str(block.get("text"))
            if text:
                parts.append(text)
    return "\n".join(parts)


def _build_session(
    *,
    session_id: str,
    agent: AgentType,
    project: str,
    machine: str,
    path: Path,
    messages: list[ParsedMessage],
    parent_session_id: str = "",
    usage: TokenUsage | None = None,
) -> ParsedSession:
    timestamps = [m.timestamp for m in messages if m.timestamp is not None]
    return ParsedSession(
        id=session_id,
        project=project,
        machine=machine,
        agent=agent,
        first_message=_truncate(_first_user_message(messages)),
        started_at=timestamps[0] if timestamps else None,
        ended_at=timestamps[-1] if timestamps else None,
        parent_session_id=parent_session_id,
        usage=usage or TokenUsage(),
        file_path=str(path),
    )


def _first_user_message(messages: list[ParsedMessage]) -> str:
    for message in messages:
        if message.role == Role.USER and message.content.strip():
            return message.content
    return ""


def _transcript_parent(first_message: str, session_id: str) -> str:
    """Parent ID from a plan-continuation prompt that names an earlier transcript."""
    if not first_message.lstrip().startswith(_PLAN_PREFIX):
        return ""
    refs = _TRANSCRIPT_REF_RE.findall(first_message)
    for ref in reversed(refs):
        if ref != session_id:
            return ref
    return ""


def _truncate(text: str) -> str:
    if len(text) <= FIRST_MESSAGE_MAX:
        return text
    return text[:FIRST_MESSAGE_MAX] + "..."


def _record_timestamp(record: dict[str, object]) -> object:
    timestamp = record.get("timestamp")
    if timestamp:
        return timestamp
    snapshot = record.get("snapshot")
    if isinstance(snapshot, dict):
        return snapshot.get("timestamp")
    return None


def _extract_content_text(content: object) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: list[str] = []
        for item in content:
            if isinstance(item, dict) and item.get("type") == "text":
                parts.append(_as_str(item.get("text")))
            elif isinstance(item, str):
                parts.append(item)
        return "\n".join(parts)
    return ""


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""


def _int(val: object) -> int:
    """Coerce a JSON number to an int that fits an SQLite INTEGER; junk is 0."""
    if isinstance(val, str):
        try:
            val = float(val)
        except ValueError:
            return 0
    if not isinstance(val, int | float):
        return 0
    try:
        number = int(val)
    except (OverflowError, ValueError):
        return 0
    return _clamp(number)


def _clamp(number: int) -> int:
    return max(_INT64_MIN, min(number, _INT64_MAX))
