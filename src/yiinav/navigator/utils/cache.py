"""
Path-keyed caches with explicit invalidation.

Entries live until they are invalidated; there is no expiry. Directory
aggregates are stored under "<namespace>:<dir>" keys so that a change to a
single file can drop every ancestor aggregate that may include it.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Optional

logger = logging.getLogger(__name__)


def aggregate_key(namespace: str, dir_path: Path) -> str:
    """Cache key of a directory aggregate, e.g. ``classes:/ws/protected``."""
    return f"{namespace}:{Path(dir_path)}"


def ancestor_dirs(path: Path, root: Path) -> Iterator[Path]:
    """
    Yield the parent directories of ``path`` up to and including ``root``.

    Nothing is yielded when ``path`` does not lie under ``root``.
    """
    path = Path(path)
    root = Path(root)
    try:
        path.relative_to(root)
    except ValueError:
        return

    current = path.parent
    while True:
        yield current
        if current == root or current == current.parent:
            return
        current = current.parent


class PathCache:
    """
    Dictionary cache keyed by strings built from absolute paths.

    Not thread-safe; one instance per engine.
    """

    def __init__(self, name: str = "cache"):
        self.name = name
        self._entries: Dict[str, Any] = {}
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        return None

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def delete(self, key: str) -> bool:
        if key in self._entries:
            del self._entries[key]
            logger.debug("%s: dropped %s", self.name, key)
            return True
        return False

    def delete_under(self, dir_path: Path) -> int:
        """Drop every path-keyed entry located under ``dir_path``."""
        prefix = str(Path(dir_path)) + "/"
        doomed = [key for key in self._entries if key.startswith(prefix)]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug("%s: dropped %d entries under %s", self.name, len(doomed), dir_path)
        return len(doomed)

    def keys(self) -> Iterable[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()


def invalidate_with_ancestors(
    file_path: Path,
    root: Path,
    file_cache: PathCache,
    directory_cache: PathCache,
    namespaces: Iterable[str],
) -> int:
    """
    Drop a file's own entry and every ancestor directory aggregate up to root.

    Args:
        file_path: Changed, created or deleted file
        root: Highest directory whose aggregates may include the file
        file_cache: Per-file cache keyed by absolute path
        directory_cache: Aggregate cache keyed by ``aggregate_key``
        namespaces: Aggregate namespaces to drop for each ancestor

    Returns:
        Number of entries removed
    """
    namespaces = list(namespaces)
    removed = int(file_cache.delete(str(Path(file_path))))
    for directory in ancestor_dirs(file_path, root):
        for namespace in namespaces:
            removed += int(directory_cache.delete(aggregate_key(namespace, directory)))
    return removed
