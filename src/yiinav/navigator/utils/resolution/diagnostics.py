"""
Document Checker
================
Reports references that do not resolve to existing files.

Detects:
- Views and partials whose template is missing or found at a fallback path
- Layouts whose file is missing
- Imports that would not load, and imports repeated in one file
- Behavior classes that are missing or not covered by a configured import
- Routes whose controller or action cannot be found

Severity levels:
- error: The reference fails at runtime
- warning: Likely a problem, may be acceptable
- info: Works, but not where the convention expects it
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from yiinav.navigator.utils.fs import walk_files
from yiinav.navigator.utils.resolution.context import DocumentLocation, ResolutionContext
from yiinav.navigator.utils.resolution.main_config import matches_import_path, parse_import_entries
from yiinav.navigator.utils.resolution.references import ReferenceKind, ResolvedPath, SymbolicReference
from yiinav.navigator.utils.resolution.resolver import ImportResolver, ResolverRegistry
from yiinav.navigator.utils.resolution.scanner import TextIndex, find_all_action_methods, scan_references

logger = logging.getLogger(__name__)


class DiagnosticSeverity(Enum):
    """Severity level for diagnostics."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class DiagnosticCode(Enum):
    """Stable diagnostic codes."""

    VIEW_PATH_UNRESOLVED = "view-path-unresolved"
    VIEW_FILE_MISSING = "view-file-missing"
    VIEW_ALTERNATIVE_PATH = "view-alternative-path"
    LAYOUT_PATH_UNRESOLVED = "layout-path-unresolved"
    LAYOUT_FILE_MISSING = "layout-file-missing"
    IMPORT_PATH_UNRESOLVED = "import-path-unresolved"
    IMPORT_PATH_MISSING = "import-path-missing"
    IMPORT_DUPLICATE = "import-duplicate"
    BEHAVIOR_CLASS_UNRESOLVED = "behavior-class-unresolved"
    BEHAVIOR_FILE_MISSING = "behavior-file-missing"
    BEHAVIOR_NOT_IMPORTED = "behavior-not-imported"
    ROUTE_CONTROLLER_MISSING = "route-controller-missing"
    ROUTE_ACTION_MISSING = "route-action-missing"


class Remediation(Enum):
    """Quick fix a front end may offer."""

    NONE = "none"
    CREATE_FILE = "create-file"
    INSERT_IMPORT = "insert-import"


@dataclass
class Diagnostic:
    """
    A problem found at a reference.

    Attributes:
        code: Stable diagnostic code
        severity: Error, warning, or info
        message: Human-readable description
        reference: The offending reference
        remediation: Quick fix kind
        remediation_target: File to create, or import alias to add
    """

    code: DiagnosticCode
    severity: DiagnosticSeverity
    message: str
    reference: SymbolicReference
    remediation: Remediation = Remediation.NONE
    remediation_target: Optional[str] = None

    @property
    def location(self) -> Optional[Path]:
        return self.reference.source_file

    @property
    def line(self) -> Optional[int]:
        return self.reference.source_range.start.line if self.reference.source_range else None

    @property
    def column(self) -> Optional[int]:
        return self.reference.source_range.start.column if self.reference.source_range else None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "severity": self.severity.value,
            "message": self.message,
            "location": str(self.location) if self.location else None,
            "line": self.line,
            "column": self.column,
            "raw_text": self.reference.raw_text,
            "remediation": self.remediation.value,
            "remediation_target": self.remediation_target,
        }

    def __str__(self) -> str:
        """Human-readable string representation."""
        prefix = {
            DiagnosticSeverity.ERROR: "ERROR",
            DiagnosticSeverity.WARNING: "WARN",
            DiagnosticSeverity.INFO: "INFO",
        }[self.severity]

        location_str = ""
        if self.location:
            location_str = f" at {self.location}"
            if self.line is not None:
                location_str += f":{self.line + 1}:{self.column + 1}"
        return f"[{prefix}] {self.code.value}: {self.message}{location_str}"


@dataclass
class DiagnosticReport:
    """
    Aggregated diagnostics of a check run.

    Attributes:
        diagnostics: All diagnostics found
        checked_files: Number of files checked
    """

    diagnostics: List[Diagnostic] = field(default_factory=list)
    checked_files: int = 0

    def _count(self, severity: DiagnosticSeverity) -> int:
        return sum(1 for d in self.diagnostics if d.severity == severity)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0

    @property
    def error_count(self) -> int:
        return self._count(DiagnosticSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(DiagnosticSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return self._count(DiagnosticSeverity.INFO)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def filter_by_code(self, code: DiagnosticCode) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.code == code]

    def filter_by_severity(self, severity: DiagnosticSeverity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "valid": self.is_valid,
            "checked_files": self.checked_files,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


class DocumentChecker:
    """
    Checks the references of PHP documents.

    Render calls are checked inside action bodies of controllers and anywhere
    in view files. Imports, layouts, routes and behaviors are checked in
    every file. Results are kept per document path; the latest check wins.
    """

    def __init__(self, registry: ResolverRegistry):
        self.registry = registry
        self._results: Dict[str, List[Diagnostic]] = {}
        self._checks: Dict[ReferenceKind, Callable] = {
            ReferenceKind.VIEW: self._check_view,
            ReferenceKind.PARTIAL_VIEW: self._check_view,
            ReferenceKind.LAYOUT: self._check_layout,
            ReferenceKind.IMPORT: self._check_import,
            ReferenceKind.BEHAVIOR_CLASS: self._check_behavior,
            ReferenceKind.ROUTE: self._check_route,
        }

    def results_for(self, document_path: Path) -> List[Diagnostic]:
        """Diagnostics of the latest check of a document."""
        return self._results.get(str(Path(document_path)), [])

    def check_document(self, document_path: Path, text: Optional[str] = None) -> List[Diagnostic]:
        """
        Check every reference of one document.

        Args:
            document_path: Absolute path of the document
            text: Current content; read from disk when omitted

        Returns:
            Diagnostics in source order
        """
        document_path = Path(document_path)
        if text is None:
            text = self.registry.fs.read_text(document_path)
        if text is None:
            return []

        context = self.registry.context_for(document_path)
        references = self._references_to_check(text, document_path, context)
        document_imports = [r.raw_text for r in references if r.kind == ReferenceKind.IMPORT]

        diagnostics: List[Diagnostic] = []
        seen_imports = set()
        for reference in references:
            if reference.kind == ReferenceKind.IMPORT:
                if reference.raw_text in seen_imports:
                    diagnostics.append(self._duplicate_import(reference))
                    continue
                seen_imports.add(reference.raw_text)
            resolved = self.registry.resolve(reference, context)
            check = self._checks[reference.kind]
            diagnostic = check(reference, resolved, document_imports)
            if diagnostic is not None:
                diagnostics.append(diagnostic)

        if document_path == self.registry.main_config.config_path:
            diagnostics.extend(self._check_main_config(text, document_path, context))

        self._results[str(document_path)] = diagnostics
        return diagnostics

    def check_workspace(self, paths: Optional[Iterable[Path]] = None) -> DiagnosticReport:
        """
        Check files or directories, the protected directory by default.
        """
        files: List[Path] = []
        for path in paths or [self.registry.protected_dir]:
            path = Path(path)
            if self.registry.fs.is_dir(path):
                files.extend(walk_files(self.registry.fs, path))
            elif self.registry.fs.is_file(path):
                files.append(path)
            else:
                logger.warning("Skipping missing path %s", path)

        report = DiagnosticReport()
        for file_path in files:
            report.diagnostics.extend(self.check_document(file_path))
            report.checked_files += 1
        return report

    def _references_to_check(
        self, text: str, document_path: Path, context: ResolutionContext
    ) -> List[SymbolicReference]:
        references = scan_references(text, document_path)
        view_kinds = (ReferenceKind.VIEW, ReferenceKind.PARTIAL_VIEW)

        if context.location == DocumentLocation.VIEWS:
            return references
        if context.location == DocumentLocation.CONTROLLERS:
            actions = find_all_action_methods(text)
            return [
                r for r in references
                if r.kind not in view_kinds
                or any(action.contains(r.source_offset) for action in actions)
            ]
        return [r for r in references if r.kind not in view_kinds]

    def _duplicate_import(self, reference: SymbolicReference) -> Diagnostic:
        return Diagnostic(
            code=DiagnosticCode.IMPORT_DUPLICATE,
            severity=DiagnosticSeverity.WARNING,
            message=f"Duplicate import '{reference.raw_text}'",
            reference=reference,
        )

    def _check_view(self, reference, resolved: ResolvedPath, document_imports) -> Optional[Diagnostic]:
        if resolved.is_unresolvable:
            return Diagnostic(
                code=DiagnosticCode.VIEW_PATH_UNRESOLVED,
                severity=DiagnosticSeverity.WARNING,
                message=f"Cannot resolve view '{reference.raw_text}': {resolved.error}",
                reference=reference,
            )
        if resolved.is_missing:
            return Diagnostic(
                code=DiagnosticCode.VIEW_FILE_MISSING,
                severity=DiagnosticSeverity.ERROR,
                message=f"View file not found: {resolved.best_guess_path}",
                reference=reference,
                remediation=Remediation.CREATE_FILE,
                remediation_target=str(resolved.best_guess_path),
            )
        if resolved.existing_path != resolved.best_guess_path:
            return Diagnostic(
                code=DiagnosticCode.VIEW_ALTERNATIVE_PATH,
                severity=DiagnosticSeverity.INFO,
                message=f"View '{reference.raw_text}' found at {resolved.existing_path}",
                reference=reference,
            )
        return None

    def _check_layout(self, reference, resolved: ResolvedPath, document_imports) -> Optional[Diagnostic]:
        if resolved.is_unresolvable:
            return Diagnostic(
                code=DiagnosticCode.LAYOUT_PATH_UNRESOLVED,
                severity=DiagnosticSeverity.WARNING,
                message=f"Cannot resolve layout '{reference.raw_text}': {resolved.error}",
                reference=reference,
            )
        if resolved.is_missing:
            return Diagnostic(
                code=DiagnosticCode.LAYOUT_FILE_MISSING,
                severity=DiagnosticSeverity.WARNING,
                message=f"Layout file not found: {resolved.best_guess_path}",
                reference=reference,
                remediation=Remediation.CREATE_FILE,
                remediation_target=str(resolved.best_guess_path),
            )
        return None

    def _check_import(self, reference, resolved: ResolvedPath, document_imports) -> Optional[Diagnostic]:
        if resolved.is_unresolvable:
            return Diagnostic(
                code=DiagnosticCode.IMPORT_PATH_UNRESOLVED,
                severity=DiagnosticSeverity.WARNING,
                message=f"Malformed import path '{reference.raw_text}'",
                reference=reference,
            )
        if not ImportResolver.is_valid(resolved):
            expected = "directory" if resolved.is_wildcard else "class file"
            return Diagnostic(
                code=DiagnosticCode.IMPORT_PATH_MISSING,
                severity=DiagnosticSeverity.ERROR,
                message=f"Import '{reference.raw_text}' does not match a {expected}",
                reference=reference,
            )
        return None

    def _check_behavior(self, reference, resolved: ResolvedPath, document_imports) -> Optional[Diagnostic]:
        if resolved.is_unresolvable:
            return Diagnostic(
                code=DiagnosticCode.BEHAVIOR_CLASS_UNRESOLVED,
                severity=DiagnosticSeverity.WARNING,
                message=f"Cannot resolve behavior '{reference.raw_text}': {resolved.error}",
                reference=reference,
            )
        if resolved.is_missing:
            return Diagnostic(
                code=DiagnosticCode.BEHAVIOR_FILE_MISSING,
                severity=DiagnosticSeverity.ERROR,
                message=f"Behavior class '{reference.raw_text}' not found",
                reference=reference,
                remediation=Remediation.CREATE_FILE,
                remediation_target=str(resolved.best_guess_path),
            )

        # A dot-path literal loads itself
        if "." in reference.raw_text or resolved.class_record is None:
            return None
        dot_path = self.registry.behavior_dot_path(resolved.existing_path)
        if dot_path is None:
            return None
        imports = list(self.registry.main_config.get_import_paths()) + list(document_imports)
        if matches_import_path(dot_path, imports):
            return None
        suggested = dot_path.rsplit(".", 1)[0] + ".*"
        return Diagnostic(
            code=DiagnosticCode.BEHAVIOR_NOT_IMPORTED,
            severity=DiagnosticSeverity.WARNING,
            message=f"Behavior '{reference.raw_text}' ({dot_path}) is not covered by any import",
            reference=reference,
            remediation=Remediation.INSERT_IMPORT,
            remediation_target=suggested,
        )

    def _check_route(self, reference, resolved: ResolvedPath, document_imports) -> Optional[Diagnostic]:
        # Single-segment routes are relative to the current controller
        if resolved.is_unresolvable:
            return None
        if resolved.is_missing:
            return Diagnostic(
                code=DiagnosticCode.ROUTE_CONTROLLER_MISSING,
                severity=DiagnosticSeverity.WARNING,
                message=f"No controller for route '{reference.raw_text}'",
                reference=reference,
            )
        if resolved.symbol is None:
            return Diagnostic(
                code=DiagnosticCode.ROUTE_ACTION_MISSING,
                severity=DiagnosticSeverity.WARNING,
                message=f"No action for route '{reference.raw_text}' in {resolved.existing_path.name}",
                reference=reference,
            )
        return None

    def _check_main_config(
        self, text: str, document_path: Path, context: ResolutionContext
    ) -> List[Diagnostic]:
        index = TextIndex(text)
        diagnostics = []
        seen = set()
        for entry in parse_import_entries(text):
            reference = SymbolicReference(
                kind=ReferenceKind.IMPORT,
                raw_text=entry.value,
                source_file=document_path,
                source_offset=entry.offset,
                source_range=index.range(entry.offset, entry.offset + len(entry.value)),
            )
            if entry.value in seen:
                diagnostics.append(self._duplicate_import(reference))
                continue
            seen.add(entry.value)
            diagnostic = self._check_import(reference, self.registry.resolve(reference, context), [])
            if diagnostic is not None:
                diagnostics.append(diagnostic)
        return diagnostics
