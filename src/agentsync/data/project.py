"""Project labels and parent linkage for sessions."""

from __future__ import annotations

from pathlib import PurePosixPath, PureWindowsPath

# Best-effort heuristic tables for decoding Claude project directory names.
PROJECT_MARKERS = frozenset({"code", "projects", "repos", "src", "work", "dev"})
SYSTEM_DIRS = frozenset({"users", "home", "var", "tmp", "private"})
_REPARSE_PREFIXES = ("_Users", "_home", "_private", "_tmp", "_var")
_REPARSE_FRAGMENTS = ("_var_folders_", "_var_tmp_")


def get_project_name(dir_name: str) -> str:
    """Decode a Claude project directory name into a project label.

    Claude encodes ``/Users/wesm/code/my-app`` as ``-Users-wesm-code-my-app``;
    that decodes to ``my_app``.
    """
    if not dir_name:
        return ""
    if not dir_name.startswith("-"):
        return _normalize(dir_name)

    parts = dir_name.split("-")
    for index, part in enumerate(parts[:-1]):
        if part.lower() in PROJECT_MARKERS:
            rest = "-".join(parts[index + 1 :])
            if rest:
                return _normalize(rest)

    for part in reversed(parts):
        if part and part.lower() not in SYSTEM_DIRS:
            return _normalize(part)
    return _normalize(dir_name)


def extract_project_from_cwd(cwd: str) -> str:
    """Project label from a working directory: its last path segment."""
    if not cwd:
        return ""
    path = PureWindowsPath(cwd) if "\\" in cwd else PurePosixPath(cwd)
    name = path.name
    if name in {"", ".", ".."}:
        return ""
    return _normalize(name)


def needs_project_reparse(project: str) -> bool:
    """Whether a stored label still looks like an undecoded directory name."""
    if project.startswith(_REPARSE_PREFIXES):
        return True
    return any(fragment in project for fragment in _REPARSE_FRAGMENTS)


def resolve_project(stored: str | None, derived: str) -> str:
    """Keep a stored label unless it is empty or needs reparse."""
    if stored and not needs_project_reparse(stored):
        return stored
    return derived


def resolve_parent_session(stored: str | None, derived: str, session_id: str) -> str:
    """Keep a stored parent link unless it is empty or points at the session itself."""
    if stored and stored != session_id:
        return stored
    if derived == session_id:
        return ""
    return derived


def _normalize(name: str) -> str:
    return name.replace("-", "_")
