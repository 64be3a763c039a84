"""
Lexical Scanner
===============
Regex and brace-counting primitives that pull symbolic references out of PHP
source text. There is no parser here: every extractor works on the text with
comments blanked out, so a reference inside a comment is never reported,
while string contents are kept verbatim.

Extractors return ScannedLiteral records with offsets into the original
text. No match yields an empty list.
"""
from __future__ import annotations

import logging
import re
from bisect import bisect_right
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from yiinav.navigator.utils.resolution.references import (
    ActionRecord,
    ClassRecord,
    ReferenceKind,
    SymbolicReference,
    TextPosition,
    TextRange,
)

logger = logging.getLogger(__name__)

NOT_FOUND = -1

_QUOTED = r"(?P<quote>['\"])(?P<value>[^'\"]+)(?P=quote)"

# Inline HTML after a closing tag is kept verbatim, so an apostrophe in
# markup never opens a string. A line comment ends at ?> as in PHP.
COMMENT_PATTERN = re.compile(
    r"(\?>[\s\S]*?(?:<\?(?:php\b|=)?|\Z)"
    r"|\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*')"
    r"|(//(?:[^?\n]|\?(?!>))*|/\*[\s\S]*?\*/)"
)
OPEN_TAG_PATTERN = re.compile(r"<\?(?:php\b|=)?")

STRING_PATTERN = re.compile(r"\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*'")

# Tokens that matter for brace matching; everything else is skipped
_BRACE_TOKENS = re.compile(
    r"\"(?:\\.|[^\"\\])*(?:\"|\Z)"
    r"|'(?:\\.|[^'\\])*(?:'|\Z)"
    r"|//[^\n]*"
    r"|\#[^\n]*"
    r"|/\*.*?(?:\*/|\Z)"
    r"|[{}]",
    re.DOTALL,
)

RENDER_PATTERN = re.compile(
    r"(?:->|::)\s*(?P<call>render(?:Partial)?)\s*\(\s*" + _QUOTED
)
IMPORT_PATTERN = re.compile(
    r"\bYii\s*::\s*(?P<call>import)\s*\(\s*" + _QUOTED
)
ROUTE_PATTERN = re.compile(
    r"(?:->|::)\s*(?P<call>create(?:Absolute)?Url)\s*\(\s*(?:array\s*\(\s*|\[\s*)?" + _QUOTED,
    re.IGNORECASE,
)
LAYOUT_PATTERN = re.compile(
    r"(?P<call>\$this\s*->\s*layout|\b(?:public|protected|private|var)\s+\$layout)\s*=\s*" + _QUOTED
)
BEHAVIORS_METHOD_PATTERN = re.compile(
    r"\bfunction\s+behaviors\s*\([^)]*\)\s*\{", re.IGNORECASE
)
CLASS_ENTRY_PATTERN = re.compile(
    r"(?P<key>['\"])class(?P=key)\s*=>\s*" + _QUOTED
)
ACTION_PATTERN = re.compile(
    r"\bfunction\s+(?P<name>action(?!s\s*\()\w+)\s*\(", re.IGNORECASE
)
CLASS_PATTERN = re.compile(
    r"(?<![\w$>:])(?P<abstract>abstract\s+)?(?:final\s+)?class\s+(?P<name>\w+)"
    r"(?:\s+extends\s+(?P<parent>[\w\\]+))?(?:\s+implements\s+[^{]+)?\s*\{",
    re.IGNORECASE,
)
METHOD_PATTERN = re.compile(r"\bfunction\s+&?\s*(?P<name>\w+)\s*\(", re.IGNORECASE)
PROPERTY_PATTERN = re.compile(
    r"\b(?:public|protected|private|var)\s+(?:static\s+)?(?:\??[\w\\]+\s+)?\$(?P<name>\w+)"
)


@dataclass(frozen=True)
class ScannedLiteral:
    """
    A quoted literal captured by an extractor.

    Attributes:
        value: Literal content without quotes
        offset: Offset of the first content character
        end_offset: Offset just past the last content character
        quote: Enclosing quote character
        match_offset: Offset where the whole construct starts
        call: Construct that captured the literal (render, import, ...)
    """

    value: str
    offset: int
    end_offset: int
    quote: str
    match_offset: int
    call: str

    @property
    def is_partial(self) -> bool:
        return self.call == "renderPartial"


class TextIndex:
    """Offset to zero-based line/column mapping for one text."""

    def __init__(self, text: str):
        self._line_starts = [0]
        self._line_starts.extend(m.end() for m in re.finditer(r"\n", text))

    def position(self, offset: int) -> TextPosition:
        line = bisect_right(self._line_starts, offset) - 1
        return TextPosition(line=line, column=offset - self._line_starts[line])

    def line_of(self, offset: int) -> int:
        return bisect_right(self._line_starts, offset) - 1

    def range(self, start: int, end: int) -> TextRange:
        return TextRange(self.position(start), self.position(end))


def _blank(match: re.Match) -> str:
    return re.sub(r"[^\n]", " ", match.group(0))


def strip_comments_and_preserve_strings(text: str, keep_layout: bool = False) -> str:
    """
    Remove ``//`` and ``/* */`` comments while leaving string literals intact.

    Inline HTML (before the first open tag of a template, or between ``?>``
    and the next open tag) is returned untouched and never scanned for
    strings. Text without any open tag is treated as PHP throughout.

    Args:
        text: PHP source
        keep_layout: Blank comments with spaces instead of deleting them so
            that offsets and line numbers still match ``text``

    Returns:
        Text without comments
    """

    def replace(match: re.Match) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return _blank(match) if keep_layout else ""

    opening = OPEN_TAG_PATTERN.search(text)
    head = opening.end() if opening else 0
    return text[:head] + COMMENT_PATTERN.sub(replace, text[head:])


def blank_strings(text: str) -> str:
    """Replace the contents of string literals with spaces, keeping quotes."""

    def replace(match: re.Match) -> str:
        literal = match.group(0)
        return literal[0] + re.sub(r"[^\n]", " ", literal[1:-1]) + literal[-1]

    return STRING_PATTERN.sub(replace, text)


def find_brace_delimited_body(text: str, start_offset: int) -> int:
    """
    Find the end of the brace-delimited block opening at or after start_offset.

    Braces inside quoted strings (a quote preceded by an odd number of
    backslashes is escaped) and inside ``//``, ``#`` and ``/* */`` comments
    are ignored. A closing brace seen before any opening brace is skipped.

    Returns:
        Offset just past the matching closing brace, or NOT_FOUND
    """
    depth = 0
    for match in _BRACE_TOKENS.finditer(text, start_offset):
        token = match.group(0)
        if token == "{":
            depth += 1
        elif token == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                return match.end()
    return NOT_FOUND


def _literals(pattern: re.Pattern, text: str, start: int = 0, end: Optional[int] = None) -> List[ScannedLiteral]:
    stripped = strip_comments_and_preserve_strings(text, keep_layout=True)
    end = len(stripped) if end is None else end
    results = []
    for match in pattern.finditer(stripped, start, end):
        call = match.group("call") if "call" in pattern.groupindex else ""
        results.append(
            ScannedLiteral(
                value=match.group("value"),
                offset=match.start("value"),
                end_offset=match.end("value"),
                quote=match.group("quote"),
                match_offset=match.start(),
                call=call,
            )
        )
    return results


def find_render_calls(text: str, start: int = 0, end: Optional[int] = None) -> List[ScannedLiteral]:
    """``->render('x')`` and ``->renderPartial('x')`` calls, optionally within a span."""
    return _literals(RENDER_PATTERN, text, start, end)


def find_import_calls(text: str) -> List[ScannedLiteral]:
    """``Yii::import('alias.path')`` calls."""
    return _literals(IMPORT_PATTERN, text)


def find_route_building_calls(text: str) -> List[ScannedLiteral]:
    """``createUrl``/``createAbsoluteUrl`` route arguments, plain or in an array."""
    return _literals(ROUTE_PATTERN, text)


def find_layout_assignments(text: str) -> List[ScannedLiteral]:
    results = _literals(LAYOUT_PATTERN, text)
    return [
        ScannedLiteral(r.value, r.offset, r.end_offset, r.quote, r.match_offset, "layout")
        for r in results
    ]


def find_behavior_class_entries(text: str) -> List[ScannedLiteral]:
    """
    ``'class' => '...'`` entries inside every ``behaviors()`` method body.

    An unterminated body extends to the end of the text.
    """
    stripped = strip_comments_and_preserve_strings(text, keep_layout=True)
    results = []
    for method in BEHAVIORS_METHOD_PATTERN.finditer(stripped):
        body_end = find_brace_delimited_body(text, method.start())
        if body_end == NOT_FOUND:
            body_end = len(text)
        for match in CLASS_ENTRY_PATTERN.finditer(stripped, method.end(), body_end):
            results.append(
                ScannedLiteral(
                    value=match.group("value"),
                    offset=match.start("value"),
                    end_offset=match.end("value"),
                    quote=match.group("quote"),
                    match_offset=match.start(),
                    call="behaviors",
                )
            )
    return results


def find_all_action_methods(text: str) -> List[ActionRecord]:
    """All ``function actionXxx(`` methods, in source order."""
    stripped = strip_comments_and_preserve_strings(text, keep_layout=True)
    index = TextIndex(text)
    actions = []
    for match in ACTION_PATTERN.finditer(stripped):
        body_start = stripped.find("{", match.end())
        actions.append(
            ActionRecord(
                name=match.group("name"),
                offset=match.start(),
                line=index.line_of(match.start()),
                body_start_offset=body_start,
                body_end_offset=find_brace_delimited_body(text, match.start()),
            )
        )
    return actions


def find_action_at(text: str, offset: int) -> Optional[ActionRecord]:
    """Action method whose span contains ``offset``."""
    found = None
    for action in find_all_action_methods(text):
        if action.offset > offset:
            break
        if action.contains(offset):
            found = action
    return found


def find_action_by_name(text: str, name: str) -> Optional[ActionRecord]:
    """Action method called ``name``, compared case-insensitively."""
    wanted = name.lower()
    for action in find_all_action_methods(text):
        if action.name.lower() == wanted:
            return action
    return None


def find_method_offset(text: str, method_name: str) -> int:
    """Offset of ``function <method_name>(``, matched case-insensitively."""
    stripped = strip_comments_and_preserve_strings(text, keep_layout=True)
    pattern = re.compile(r"\bfunction\s+" + re.escape(method_name) + r"\s*\(", re.IGNORECASE)
    match = pattern.search(stripped)
    return match.start() if match else NOT_FOUND


def extract_class(text: str, file_path: Optional[Path] = None) -> Optional[ClassRecord]:
    """
    Extract the first class declared in ``text``.

    Returns:
        ClassRecord with method and property names, or None without a class
    """
    stripped = blank_strings(strip_comments_and_preserve_strings(text, keep_layout=True))
    match = CLASS_PATTERN.search(stripped)
    if not match:
        return None

    body_end = find_brace_delimited_body(text, match.start())
    if body_end == NOT_FOUND:
        body_end = len(text)
    body = stripped[match.end():body_end]

    parent = match.group("parent")
    if parent:
        parent = parent.rsplit("\\", 1)[-1]

    return ClassRecord(
        name=match.group("name"),
        parent_class_name=parent,
        is_abstract=bool(match.group("abstract")),
        method_names=frozenset(m.group("name") for m in METHOD_PATTERN.finditer(body)),
        property_names=frozenset(m.group("name") for m in PROPERTY_PATTERN.finditer(body)),
        file_path=Path(file_path) if file_path else None,
    )


_EXTRACTORS = (
    (find_import_calls, lambda lit: ReferenceKind.IMPORT),
    (find_layout_assignments, lambda lit: ReferenceKind.LAYOUT),
    (find_route_building_calls, lambda lit: ReferenceKind.ROUTE),
    (find_behavior_class_entries, lambda lit: ReferenceKind.BEHAVIOR_CLASS),
    (
        find_render_calls,
        lambda lit: ReferenceKind.PARTIAL_VIEW if lit.is_partial else ReferenceKind.VIEW,
    ),
)


def to_reference(
    literal: ScannedLiteral,
    kind: ReferenceKind,
    source_file: Optional[Path],
    index: TextIndex,
) -> SymbolicReference:
    return SymbolicReference(
        kind=kind,
        raw_text=literal.value,
        source_file=Path(source_file) if source_file else None,
        source_offset=literal.offset,
        source_range=index.range(literal.offset, literal.end_offset),
        quote=literal.quote,
    )


def scan_references(text: str, source_file: Optional[Path] = None) -> List[SymbolicReference]:
    """
    Every symbolic reference in ``text``, ordered by offset.

    Render calls are reported wherever they occur; callers that need them
    scoped to action bodies filter by offset.
    """
    index = TextIndex(text)
    references = []
    for extractor, kind_of in _EXTRACTORS:
        for literal in extractor(text):
            references.append(to_reference(literal, kind_of(literal), source_file, index))
    references.sort(key=lambda ref: ref.source_offset)
    logger.debug("Scanned %d references in %s", len(references), source_file or "<text>")
    return references
