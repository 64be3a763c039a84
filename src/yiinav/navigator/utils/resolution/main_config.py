"""
Main configuration import list.

Reads the ``'import' => array(...)`` (or ``[...]``) entry of
protected/config/main.php and answers whether a class dot path is covered by
one of the configured imports.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from yiinav.navigator.utils.fs import FileSystem, LocalFileSystem
from yiinav.navigator.utils.resolution.scanner import TextIndex, strip_comments_and_preserve_strings

logger = logging.getLogger(__name__)

IMPORT_KEY_PATTERN = re.compile(r"(['\"])import\1\s*=>\s*(?P<open>array\s*\(|\[)", re.IGNORECASE)

_ARRAY_TOKENS = re.compile(
    r"\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'|#[^\n]*|[()\[\],]"
)

_DOUBLE_QUOTE_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\", "$": "$"}


@dataclass(frozen=True)
class ImportEntry:
    """One string element of the import array."""

    value: str
    offset: int
    line: int


def unquote_php_string(literal: str) -> Optional[str]:
    """
    Value of a quoted PHP string literal, or None for anything else.

    Single-quoted strings only unescape ``\\'`` and ``\\\\``.
    """
    literal = literal.strip()
    if len(literal) < 2 or literal[0] not in "'\"" or literal[-1] != literal[0]:
        return None
    quote, content = literal[0], literal[1:-1]
    if quote == "'":
        return re.sub(r"\\([\\'])", r"\1", content)
    return re.sub(
        r"\\(.)",
        lambda m: _DOUBLE_QUOTE_ESCAPES.get(m.group(1), m.group(0)),
        content,
    )


def parse_import_entries(content: str) -> List[ImportEntry]:
    """
    Extract the elements of the first ``'import'`` array in a config file.

    Elements are split on top-level commas; nested arrays and non-string
    elements are skipped.
    """
    stripped = strip_comments_and_preserve_strings(content, keep_layout=True)
    match = IMPORT_KEY_PATTERN.search(stripped)
    if not match:
        return []

    index = TextIndex(content)
    entries: List[ImportEntry] = []
    depth = 1
    element_tokens: List[re.Match] = []

    def flush():
        if len(element_tokens) == 1:
            token = element_tokens[0]
            value = unquote_php_string(token.group(0))
            if value is not None:
                entries.append(ImportEntry(value, token.start() + 1, index.line_of(token.start())))
        element_tokens.clear()

    for token in _ARRAY_TOKENS.finditer(stripped, match.end()):
        text = token.group(0)
        if text.startswith("#"):
            continue
        if text in "([":
            depth += 1
            element_tokens.append(token)
        elif text in ")]":
            depth -= 1
            if depth == 0:
                flush()
                break
            element_tokens.append(token)
        elif text == "," and depth == 1:
            flush()
        elif text != ",":
            element_tokens.append(token)

    return entries


def matches_import_path(dot_path: str, imports: Iterable[str]) -> bool:
    """
    Whether a class dot path is covered by any configured import.

    ``prefix.*`` covers a dot path whose parent segments start with the
    prefix segments; an exact import covers only the identical path.
    """
    segments = dot_path.split(".")
    parent = segments[:-1]
    for imported in imports:
        imported = imported.strip()
        if imported.endswith(".*"):
            prefix = imported[:-2].split(".")
            if parent[: len(prefix)] == prefix:
                return True
        elif imported == dot_path:
            return True
    return False


class MainConfigReader:
    """Cached access to the import list of one main.php file."""

    def __init__(self, config_path: Path, file_system: Optional[FileSystem] = None):
        self.config_path = Path(config_path)
        self.fs = file_system or LocalFileSystem()
        self._entries: Optional[List[ImportEntry]] = None

    def get_import_entries(self) -> List[ImportEntry]:
        if self._entries is None:
            content = self.fs.read_text(self.config_path) if self.fs.is_file(self.config_path) else None
            self._entries = parse_import_entries(content) if content else []
            logger.debug("Read %d imports from %s", len(self._entries), self.config_path)
        return self._entries

    def get_import_paths(self) -> List[str]:
        return [entry.value for entry in self.get_import_entries()]

    def is_imported(self, dot_path: str) -> bool:
        return matches_import_path(dot_path, self.get_import_paths())

    def invalidate(self) -> None:
        self._entries = None
