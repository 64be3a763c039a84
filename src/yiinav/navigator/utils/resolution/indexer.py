"""
Class/Behavior Indexer
======================
Lazily indexes PHP classes below a directory.

Two caches are kept:
- a per-file cache: absolute file path -> ClassRecord (or None)
- a directory aggregate cache: "classes:<dir>" / "behaviors:<dir>" -> tuple of records

Entries never expire; callers invalidate explicitly when files change.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from yiinav.navigator.utils.cache import PathCache, aggregate_key, invalidate_with_ancestors
from yiinav.navigator.utils.config import DEFAULT_BEHAVIOR_BASE_CLASS
from yiinav.navigator.utils.fs import FileSystem, LocalFileSystem, walk_files
from yiinav.navigator.utils.resolution.references import ClassRecord
from yiinav.navigator.utils.resolution.scanner import extract_class

logger = logging.getLogger(__name__)

CLASSES_NAMESPACE = "classes"
BEHAVIORS_NAMESPACE = "behaviors"

_MISSING = object()


class ClassIndexer:
    """
    Lazy index of classes found in ``.php`` files.

    Attributes:
        walk_count: Number of directory walks performed
    """

    def __init__(
        self,
        file_system: Optional[FileSystem] = None,
        class_cache: Optional[PathCache] = None,
        directory_cache: Optional[PathCache] = None,
    ):
        self.fs = file_system or LocalFileSystem()
        self.class_cache = class_cache or PathCache("class-records")
        self.directory_cache = directory_cache or PathCache("class-directories")
        self.walk_count = 0

    def _walk_php_files(self, root: Path) -> List[Path]:
        self.walk_count += 1
        return walk_files(self.fs, root)

    def get_class_record(self, file_path: Path) -> Optional[ClassRecord]:
        """Class declared in a file, cached by absolute path."""
        key = str(Path(file_path))
        if key in self.class_cache:
            cached = self.class_cache.get(key)
            return None if cached is _MISSING else cached

        content = self.fs.read_text(file_path)
        record = extract_class(content, file_path) if content else None
        self.class_cache.set(key, record if record is not None else _MISSING)
        return record

    def get_all_classes(self, dir_path: Path) -> Tuple[ClassRecord, ...]:
        """
        All classes declared below ``dir_path``.

        A second call without invalidation performs no walk and returns the
        same immutable tuple.
        """
        key = aggregate_key(CLASSES_NAMESPACE, dir_path)
        cached = self.directory_cache.get(key)
        if cached is not None:
            logger.debug("Class index hit for %s", dir_path)
            return cached

        found = []
        for file_path in self._walk_php_files(Path(dir_path)):
            record = self.get_class_record(file_path)
            if record is not None:
                found.append(record)

        records = tuple(found)
        logger.debug("Indexed %d classes under %s", len(records), dir_path)
        self.directory_cache.set(key, records)
        return records

    def get_all_behavior_classes(
        self, dir_path: Path, base_class: str = DEFAULT_BEHAVIOR_BASE_CLASS
    ) -> Tuple[ClassRecord, ...]:
        """Classes below ``dir_path`` whose direct parent is ``base_class``."""
        key = aggregate_key(f"{BEHAVIORS_NAMESPACE}[{base_class}]", dir_path)
        cached = self.directory_cache.get(key)
        if cached is not None:
            return cached

        behaviors = tuple(
            record for record in self.get_all_classes(dir_path)
            if record.parent_class_name == base_class
        )
        self.directory_cache.set(key, behaviors)
        return behaviors

    def find_class(self, name: str, dir_path: Path) -> Optional[ClassRecord]:
        for record in self.get_all_classes(dir_path):
            if record.name == name:
                return record
        return None

    def find_behavior_class(
        self, name: str, dir_path: Path, base_class: str = DEFAULT_BEHAVIOR_BASE_CLASS
    ) -> Optional[ClassRecord]:
        for record in self.get_all_behavior_classes(dir_path, base_class):
            if record.name == name:
                return record
        return None

    def _aggregate_keys(self, dir_key: str) -> List[str]:
        suffix = ":" + dir_key
        return [key for key in self.directory_cache.keys() if key.endswith(suffix)]

    def invalidate_cache(self, dir_path: Path) -> None:
        """
        Drop the aggregates of ``dir_path`` and every per-file entry below it.

        Entries of files that no longer exist are dropped as well.
        """
        dir_path = Path(dir_path)
        for key in self._aggregate_keys(str(dir_path)):
            self.directory_cache.delete(key)
        self.class_cache.delete_under(dir_path)
        for key in list(self.directory_cache.keys()):
            # aggregates of sub-directories ("classes:/root/sub")
            _, _, path = key.partition(":")
            if path.startswith(str(dir_path) + "/"):
                self.directory_cache.delete(key)

    def invalidate_file(self, file_path: Path, root: Path) -> int:
        """
        Drop a changed file's record and every ancestor aggregate up to root.

        Returns:
            Number of cache entries removed
        """
        namespaces = {key.partition(":")[0] for key in self.directory_cache.keys()}
        removed = invalidate_with_ancestors(
            file_path, root, self.class_cache, self.directory_cache, namespaces
        )
        logger.debug("Invalidated %d entries for %s", removed, file_path)
        return removed
