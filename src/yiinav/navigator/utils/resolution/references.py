"""
Reference Model
===============
Kinds of symbolic references found in Yii source text, the notation styles
they are written in, and the records produced by scanning, indexing and
resolution.

Notation styles are checked in priority order:
- ``//a/b``        absolute from the application views directory
- ``/a/b``         absolute from the current module's views directory
- ``./a``, ``../a``  relative to the current document
- ``a.b.c``        dot notation (path alias)
- ``a``            bare name, needs controller context
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple


class ReferenceKind(Enum):
    """Kinds of symbolic references."""

    VIEW = "view"
    PARTIAL_VIEW = "partial"
    LAYOUT = "layout"
    IMPORT = "import"
    ROUTE = "route"
    BEHAVIOR_CLASS = "behavior"

    @classmethod
    def from_name(cls, name: str) -> "ReferenceKind":
        """Look up a kind by value or member name, case-insensitively."""
        lowered = name.strip().lower()
        for kind in cls:
            if lowered in (kind.value, kind.name.lower()):
                return kind
        raise ValueError(f"Unknown reference kind: {name}")


class NotationStyle(Enum):
    """How a reference literal is written."""

    DOT_NOTATION = "dot"
    ABSOLUTE_DOUBLE_SLASH = "absolute_app"
    ABSOLUTE_SINGLE_SLASH = "absolute_module"
    RELATIVE = "relative"
    BARE = "bare"


# Kinds whose missing targets may be created as empty files
CREATABLE_KINDS = frozenset({
    ReferenceKind.LAYOUT,
    ReferenceKind.VIEW,
    ReferenceKind.PARTIAL_VIEW,
    ReferenceKind.BEHAVIOR_CLASS,
})


def classify_notation(raw_text: str) -> NotationStyle:
    """Classify a literal by its prefix; exactly one style applies."""
    if raw_text.startswith("//"):
        return NotationStyle.ABSOLUTE_DOUBLE_SLASH
    if raw_text.startswith("/"):
        return NotationStyle.ABSOLUTE_SINGLE_SLASH
    if raw_text.startswith("./") or raw_text.startswith("../"):
        return NotationStyle.RELATIVE
    if "." in raw_text:
        return NotationStyle.DOT_NOTATION
    return NotationStyle.BARE


@dataclass(frozen=True)
class TextPosition:
    """Zero-based line and column."""

    line: int
    column: int


@dataclass(frozen=True)
class TextRange:
    start: TextPosition
    end: TextPosition


@dataclass(frozen=True)
class SymbolicReference:
    """
    A reference literal found in source text.

    Attributes:
        kind: What the literal refers to
        raw_text: Literal content without quotes
        source_file: File the literal was found in
        source_offset: Offset of the literal's first character
        source_range: Line/column range of the literal content
        quote: Quote character enclosing the literal
    """

    kind: ReferenceKind
    raw_text: str
    source_file: Optional[Path] = None
    source_offset: int = 0
    source_range: Optional[TextRange] = None
    quote: str = "'"

    @property
    def notation_style(self) -> NotationStyle:
        return classify_notation(self.raw_text)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        data = {
            "kind": self.kind.value,
            "raw_text": self.raw_text,
            "notation": self.notation_style.value,
            "source_file": str(self.source_file) if self.source_file else None,
            "offset": self.source_offset,
        }
        if self.source_range:
            data["line"] = self.source_range.start.line
            data["column"] = self.source_range.start.column
        return data


@dataclass
class ResolvedPath:
    """
    Result of resolving a symbolic reference.

    Attributes:
        kind: Kind of the resolved reference
        raw_text: The literal that was resolved
        candidate_paths: Candidates in order, most specific first
        existing_path: First candidate that exists, if any
        best_guess_path: First candidate, offered for creation when missing
        error: Reason the reference could not be resolved at all
        is_wildcard: Import ended in ``.*``
        symbol: Method located inside the target (routes)
        symbol_offset: Offset of ``symbol`` in the target file
        symbol_line: Zero-based line of ``symbol``
        class_record: Matching class (behaviors)
    """

    kind: ReferenceKind
    raw_text: str
    candidate_paths: Tuple[Path, ...] = ()
    existing_path: Optional[Path] = None
    best_guess_path: Optional[Path] = None
    error: Optional[str] = None
    is_wildcard: bool = False
    symbol: Optional[str] = None
    symbol_offset: Optional[int] = None
    symbol_line: Optional[int] = None
    class_record: Optional["ClassRecord"] = None

    @classmethod
    def unresolvable(cls, kind: ReferenceKind, raw_text: str, error: str) -> "ResolvedPath":
        return cls(kind=kind, raw_text=raw_text, error=error)

    @property
    def is_unresolvable(self) -> bool:
        """True if the literal matched no convention at all."""
        return self.error is not None or not self.candidate_paths

    @property
    def is_resolved(self) -> bool:
        """True if a candidate exists on disk."""
        return self.existing_path is not None

    @property
    def is_missing(self) -> bool:
        """True if the literal is well-formed but nothing exists."""
        return not self.is_unresolvable and self.existing_path is None

    @property
    def can_create_file(self) -> bool:
        return self.is_missing and self.kind in CREATABLE_KINDS and self.best_guess_path is not None

    @property
    def target_path(self) -> Optional[Path]:
        """Existing path when found, best guess otherwise."""
        return self.existing_path or self.best_guess_path

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "raw_text": self.raw_text,
            "candidates": [str(p) for p in self.candidate_paths],
            "existing_path": str(self.existing_path) if self.existing_path else None,
            "best_guess_path": str(self.best_guess_path) if self.best_guess_path else None,
            "error": self.error,
            "wildcard": self.is_wildcard,
            "symbol": self.symbol,
            "symbol_line": self.symbol_line,
        }


@dataclass(frozen=True)
class ClassRecord:
    """
    A PHP class found by lexical scanning.

    Attributes:
        name: Class name
        parent_class_name: Name after ``extends``, if any
        is_abstract: Declared ``abstract class``
        method_names: Declared method names
        property_names: Declared property names (without ``$``)
        file_path: File the class was found in
    """

    name: str
    parent_class_name: Optional[str]
    is_abstract: bool
    method_names: FrozenSet[str] = field(default_factory=frozenset)
    property_names: FrozenSet[str] = field(default_factory=frozenset)
    file_path: Optional[Path] = None

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "parent": self.parent_class_name,
            "abstract": self.is_abstract,
            "methods": sorted(self.method_names),
            "properties": sorted(self.property_names),
            "file_path": str(self.file_path) if self.file_path else None,
        }


@dataclass(frozen=True)
class ActionRecord:
    """
    A controller action method.

    ``body_end_offset`` is -1 when the body is not terminated; callers then
    treat the rest of the file as the body.
    """

    name: str
    offset: int
    line: int
    body_start_offset: int
    body_end_offset: int

    def contains(self, offset: int) -> bool:
        if offset < self.offset:
            return False
        return self.body_end_offset < 0 or offset < self.body_end_offset

    @property
    def action_id(self) -> str:
        """Action name without the ``action`` prefix, first letter lowered."""
        rest = self.name[len("action"):]
        return rest[:1].lower() + rest[1:]
