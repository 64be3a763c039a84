"""
Reference Check CLI Command
===========================
Runs the document checker over files or the whole protected directory.

Usage:
    yiinav check
    yiinav check protected/controllers --format json
    yiinav check --strict
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List, Optional

from yiinav.navigator.utils.repo import find_workspace_root
from yiinav.navigator.utils.resolution.diagnostics import (
    Diagnostic,
    DiagnosticCode,
    DiagnosticReport,
    DiagnosticSeverity,
    DocumentChecker,
)
from yiinav.navigator.utils.resolution.resolver import ResolverRegistry


class CheckCommand:
    """CLI command handler for reference diagnostics."""

    def __init__(self, workspace_root: Optional[Path] = None):
        self.workspace_root = workspace_root or find_workspace_root()
        self.registry = ResolverRegistry(self.workspace_root)
        self.checker = DocumentChecker(self.registry)

    def check(
        self,
        paths: Optional[List[str]] = None,
        format: str = "text",
        strict: bool = False,
    ) -> int:
        """
        Check references and report diagnostics.

        Args:
            paths: Files or directories to check (default: protected dir)
            format: Output format - "text" or "json"
            strict: If True, warnings also cause failure

        Returns:
            Exit code (0 for pass, 1 for failure)
        """
        try:
            targets = [Path(p).resolve() for p in paths] if paths else None
            report = self.checker.check_workspace(targets)

            if format == "json":
                print(json.dumps(report.to_dict(), indent=2))
            else:
                self._print_report(report)

            if strict:
                return 1 if report.has_errors or report.has_warnings else 0
            return 1 if report.has_errors else 0

        except Exception as e:
            print(f"Error checking references: {e}", file=sys.stderr)
            return 1

    def _print_diagnostic(self, diagnostic: Diagnostic) -> None:
        """Print a single diagnostic."""
        severity_icons = {
            DiagnosticSeverity.ERROR: "❌",
            DiagnosticSeverity.WARNING: "⚠️ ",
            DiagnosticSeverity.INFO: "ℹ️ ",
        }

        icon = severity_icons.get(diagnostic.severity, "  ")
        line_info = f":{diagnostic.line + 1}" if diagnostic.line is not None else ""
        print(f"{icon} {diagnostic.location}{line_info}")
        print(f"   {diagnostic.message}")
        if diagnostic.remediation_target:
            print(f"   Fix ({diagnostic.remediation.value}): {diagnostic.remediation_target}")
        print()

    def _print_report(self, report: DiagnosticReport) -> None:
        """Print report summary."""
        print("=" * 60)
        print("Yii Reference Check Report")
        print("=" * 60)
        print()

        print(f"Checked files: {report.checked_files}")
        print()

        if not report.diagnostics:
            print("✅ All references resolve!")
            return

        by_code = {}
        for diagnostic in report.diagnostics:
            by_code.setdefault(diagnostic.code, []).append(diagnostic)

        print("Summary:")
        print(f"  Errors: {report.error_count}")
        print(f"  Warnings: {report.warning_count}")
        print(f"  Info: {report.info_count}")

        for code in DiagnosticCode:
            diagnostics = by_code.get(code)
            if not diagnostics:
                continue
            print(f"\n{code.value} ({len(diagnostics)}):")
            print("-" * 40)
            for diagnostic in diagnostics:
                self._print_diagnostic(diagnostic)

        print()
        if report.has_errors:
            print("❌ Check FAILED")
        elif report.has_warnings:
            print("⚠️  Check passed with warnings")
        else:
            print("✅ Check passed")
