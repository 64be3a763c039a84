"""
File-system oracle.

Every existence check, directory listing and file read of the resolution
engine goes through a FileSystem object, so callers can substitute an
in-memory implementation.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class FileSystem(Protocol):
    """Protocol for file-system access used by the engine."""

    def exists(self, path: Path) -> bool:
        ...

    def is_file(self, path: Path) -> bool:
        ...

    def is_dir(self, path: Path) -> bool:
        ...

    def list_dir(self, path: Path) -> List[Tuple[str, bool]]:
        """Return (name, is_directory) pairs, empty when unreadable."""
        ...

    def read_text(self, path: Path) -> Optional[str]:
        """Return file content, or None when it cannot be read."""
        ...


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def exists(self, path: Path) -> bool:
        return os.path.exists(path)

    def is_file(self, path: Path) -> bool:
        return os.path.isfile(path)

    def is_dir(self, path: Path) -> bool:
        return os.path.isdir(path)

    def list_dir(self, path: Path) -> List[Tuple[str, bool]]:
        try:
            with os.scandir(path) as it:
                return sorted(
                    (entry.name, entry.is_dir(follow_symlinks=True)) for entry in it
                )
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning("Cannot list %s: %s", path, e)
            return []

    def read_text(self, path: Path) -> Optional[str]:
        try:
            with open(path, encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError:
            logger.debug("Non-UTF-8 content in %s, decoding as latin-1", path)
            try:
                with open(path, encoding="latin-1") as f:
                    return f.read()
            except OSError as e:
                logger.warning("Cannot read %s: %s", path, e)
                return None
        except OSError as e:
            logger.warning("Cannot read %s: %s", path, e)
            return None


# Directories never descended into
SKIP_DIRS = {
    ".git", ".svn", "node_modules", "vendor", "runtime", "assets",
}


def walk_files(file_system: FileSystem, root: Path, extension: str = ".php") -> List[Path]:
    """
    Files below ``root`` ending in ``extension``, sorted.

    Prunes vendored, runtime and hidden directories before descending.
    """
    files: List[Path] = []
    pending = [Path(root)]
    while pending:
        current = pending.pop()
        for name, is_dir in file_system.list_dir(current):
            if is_dir:
                if name not in SKIP_DIRS and not name.startswith("."):
                    pending.append(current / name)
            elif name.endswith(extension):
                files.append(current / name)
    files.sort()
    return files
