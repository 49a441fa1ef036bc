"""Content hashing and file change detection."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from agentsync.models.sessions import SessionFileInfo

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


class HashError(OSError):
    """Raised when a file cannot be opened or read for hashing."""

    @property
    def not_found(self) -> bool:
        return isinstance(self.__cause__, FileNotFoundError)


def digest(stream: BinaryIO) -> str:
    """Return the SHA-256 hex digest of everything readable from ``stream``."""
    hasher = hashlib.sha256()
    while chunk := stream.read(_CHUNK_SIZE):
        hasher.update(chunk)
    return hasher.hexdigest()


def digest_file(path: Path) -> str:
    """Return the SHA-256 hex digest of the file at ``path``."""
    if path.is_dir():
        raise HashError(f"hashing {path}: is a directory") from IsADirectoryError(str(path))
    try:
        with open(path, "rb") as file:
            return digest(file)
    except OSError as exc:
        raise HashError(f"hashing {path}: {exc}") from exc


@dataclass(frozen=True, slots=True)
class FileCheck:
    """Outcome of comparing a file on disk with its stored state.

    ``mtime`` is the value to keep in the store afterwards; ``None`` clears it.
    """

    changed: bool
    size: int = 0
    mtime: int | None = None
    hash: str = ""


def check_file(path: Path, stored: SessionFileInfo | None) -> FileCheck:
    """Decide whether ``path`` must be reparsed given its stored state.

    Raises:
        HashError: if the file had to be hashed and could not be read.
    """
    previous_mtime = stored.mtime if stored is not None else None
    try:
        stat = path.stat()
    except (FileNotFoundError, NotADirectoryError):
        logger.debug("File disappeared before sync: %s", path)
        return FileCheck(changed=False, mtime=None)
    except OSError as exc:
        logger.debug("Cannot stat %s, keeping stored state: %s", path, exc)
        return FileCheck(changed=False, mtime=previous_mtime)

    size = stat.st_size
    mtime = stat.st_mtime_ns
    current = digest_file(path)
    if stored is None or stored.size != size:
        return FileCheck(changed=True, size=size, mtime=mtime, hash=current)
    # Equal sizes are settled by the digest alone; mtime is only written back.
    return FileCheck(changed=current != stored.hash, size=size, mtime=mtime, hash=current)
