"""Render assistant content blocks into canonical message text."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

from agentsync.models.messages import ParsedToolCall

_TODO_ICONS = {
    "completed": "✓",
    "in_progress": "→",
    "pending": "○",
}

_TOOL_CATEGORIES = {
    "Read": "Read",
    "Edit": "Edit",
    "MultiEdit": "Edit",
    "NotebookEdit": "Edit",
    "Write": "Write",
    "Bash": "Bash",
    "BashOutput": "Bash",
    "KillShell": "Bash",
    "shell": "Bash",
    "exec_command": "Bash",
    "Grep": "Grep",
    "Glob": "Glob",
    "Task": "Task",
    "TodoWrite": "Todo",
    "WebFetch": "Web",
    "WebSearch": "Web",
    "AskUserQuestion": "Question",
    "EnterPlanMode": "Plan",
    "ExitPlanMode": "Plan",
}

MCP_PREFIX = "mcp__"


@dataclass(slots=True)
class RenderedContent:
    """Text and flags extracted from a message's content field."""

    text: str = ""
    has_thinking: bool = False
    has_tool_use: bool = False
    tool_calls: list[ParsedToolCall] = field(default_factory=list)


def render_content(content: object) -> RenderedContent:
    """Render a string or a list of content blocks.

    ``text`` blocks are kept verbatim, ``thinking`` blocks become
    ``[Thinking]\\n...`` and ``tool_use`` blocks are summarized per tool.
    Parts are joined with newlines.
    """
    if isinstance(content, str):
        return RenderedContent(text=content)
    if not isinstance(content, list):
        return RenderedContent()

    rendered = RenderedContent()
    parts: list[str] = []
    for block in content:
        if not isinstance(block, dict):
            continue
        match block.get("type"):
            case "text":
                text = _as_str(block.get("text"))
                if text:
                    parts.append(text)
            case "thinking":
                thinking = _as_str(block.get("thinking"))
                if thinking:
                    rendered.has_thinking = True
                    parts.append("[Thinking]\n" + thinking)
            case "tool_use":
                rendered.has_tool_use = True
                name = _as_str(block.get("name"))
                tool_input = block.get("input")
                parts.append(format_tool_use(name, tool_input))
                rendered.tool_calls.append(
                    ParsedToolCall(
                        tool_use_id=_as_str(block.get("id")),
                        tool_name=name,
                        category=tool_category(name),
                        input_json=_compact_json(tool_input),
                    )
                )
    rendered.text = "\n".join(parts)
    return rendered


def format_tool_use(name: str, tool_input: object) -> str:
    """One-line (or short multi-line) summary of a tool invocation."""
    args = tool_input if isinstance(tool_input, dict) else {}
    match name:
        case "AskUserQuestion":
            return _format_question(name, args)
        case "TodoWrite":
            return _format_todos(args)
        case "EnterPlanMode":
            return "[Entering Plan Mode]"
        case "ExitPlanMode":
            return "[Exiting Plan Mode]"
        case "Read" | "Edit" | "Write":
            return f"[{name}: {_as_str(args.get('file_path'))}]"
        case "Grep":
            return f"[Grep: {_as_str(args.get('pattern'))}]"
        case "Glob":
            path = _as_str(args.get("path")) or "."
            return f"[Glob: {_as_str(args.get('pattern'))} in {path}]"
        case "Bash":
            command = _as_str(args.get("command"))
            description = _as_str(args.get("description"))
            if description:
                return f"[Bash: {description}]\n$ {command}"
            return f"[Bash]\n$ {command}"
        case "Task":
            description = _as_str(args.get("description"))
            return f"[Task: {description} ({_as_str(args.get('subagent_type'))})]"
        case _:
            return f"[Tool: {name}]"


def tool_category(name: str) -> str:
    """Map a tool name to its display category."""
    if name in _TOOL_CATEGORIES:
        return _TOOL_CATEGORIES[name]
    server = mcp_server_name(name)
    return server or "Other"


def mcp_server_name(tool_name: str) -> str:
    """Return ``server`` for ``mcp__server__op`` tool names, else ``""``."""
    if not tool_name.startswith(MCP_PREFIX):
        return ""
    server, sep, _ = tool_name.removeprefix(MCP_PREFIX).partition("__")
    if not sep:
        return ""
    return server


def _format_question(name: str, args: dict[str, object]) -> str:
    lines = [f"[Question: {name}]"]
    questions = args.get("questions")
    for question in questions if isinstance(questions, list) else []:
        if not isinstance(question, dict):
            continue
        lines.append("  " + _as_str(question.get("question")))
        options = question.get("options")
        for option in options if isinstance(options, list) else []:
            if isinstance(option, dict):
                label = _as_str(option.get("label"))
                lines.append(f"    - {label}: {_as_str(option.get('description'))}")
    return "\n".join(lines)


def _format_todos(args: dict[str, object]) -> str:
    lines = ["[Todo List]"]
    todos = args.get("todos")
    for todo in todos if isinstance(todos, list) else []:
        if not isinstance(todo, dict):
            continue
        icon = _TODO_ICONS.get(_as_str(todo.get("status")), "○")
        lines.append(f"  {icon} {_as_str(todo.get('content'))}")
    return "\n".join(lines)


def _compact_json(value: object) -> str:
    if value is None:
        return "{}"
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return "{}"


def _as_str(value: object) -> str:
    return value if isinstance(value, str) else ""
