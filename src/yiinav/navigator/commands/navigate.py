"""
Navigation CLI Command
======================
Provides CLI interface for resolving references in a Yii workspace.

Commands:
- resolve: Resolve one literal of a given kind
- scan: List every reference of a file with its resolution
- context: Show the module/controller a file belongs to
- controller: Find the controller action rendering a view
- classes: List indexed classes or behavior classes

Usage:
    yiinav resolve view index --from protected/controllers/SiteController.php
    yiinav resolve import 'application.models.*'
    yiinav scan protected/controllers/SiteController.php --format json
    yiinav controller protected/views/site/index.php
    yiinav classes --behaviors
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

from yiinav.navigator.utils.repo import find_workspace_root
from yiinav.navigator.utils.resolution.locator import ControllerLocator
from yiinav.navigator.utils.resolution.references import ReferenceKind, ResolvedPath
from yiinav.navigator.utils.resolution.resolver import ResolverRegistry
from yiinav.navigator.utils.resolution.scanner import scan_references


class NavigateCommand:
    """
    CLI command handler for navigation operations.

    Paths given on the command line are taken relative to the current
    directory and made absolute.
    """

    def __init__(self, workspace_root: Optional[Path] = None):
        self.workspace_root = workspace_root or find_workspace_root()
        self.registry = ResolverRegistry(self.workspace_root)
        self.locator = ControllerLocator(self.registry)

    @staticmethod
    def _absolute(path: str) -> Path:
        return Path(path).resolve()

    def resolve(
        self,
        kind: str,
        literal: str,
        document: Optional[str] = None,
        format: str = "text",
    ) -> int:
        """
        Resolve a single literal.

        Args:
            kind: Reference kind (view, partial, layout, import, route, behavior)
            literal: Literal text without quotes
            document: File the literal appears in (default: workspace root)
            format: Output format - "text" or "json"

        Returns:
            Exit code (0 if an existing target was found, 1 if not)
        """
        try:
            reference_kind = ReferenceKind.from_name(kind)
            document_path = self._absolute(document) if document else self.workspace_root
            resolved = self.registry.resolve_text(reference_kind, literal, document_path)

            if format == "json":
                print(json.dumps(resolved.to_dict(), indent=2))
            else:
                self._print_resolution(resolved)

            return 0 if resolved.is_resolved else 1

        except Exception as e:
            print(f"Error resolving reference: {e}", file=sys.stderr)
            return 1

    def scan(self, file: str, format: str = "text") -> int:
        """
        List every reference of a file with its resolution.

        Returns:
            Exit code (0 for success)
        """
        try:
            path = self._absolute(file)
            text = self.registry.fs.read_text(path)
            if text is None:
                print(f"Error: cannot read {path}", file=sys.stderr)
                return 1

            results = self.registry.resolve_all(scan_references(text, path))

            if format == "json":
                output = [
                    {"reference": ref.to_dict(), "resolution": res.to_dict()}
                    for ref, res in results
                ]
                print(json.dumps(output, indent=2))
            else:
                if not results:
                    print("No references found.")
                for ref, res in results:
                    line = ref.source_range.start.line + 1 if ref.source_range else "?"
                    status = "✅" if res.is_resolved else ("❌" if res.is_missing else "⚠️ ")
                    print(f"{status} {line}: {ref.kind.value} '{ref.raw_text}'")
                    target = res.target_path or res.error
                    print(f"    └─ {target}")

            return 0

        except Exception as e:
            print(f"Error scanning file: {e}", file=sys.stderr)
            return 1

    def context(self, file: str, format: str = "text") -> int:
        """Show the module and controller a file belongs to."""
        try:
            ctx = self.registry.context_for(self._absolute(file))
            output = {
                "document": str(ctx.document_path),
                "module": ctx.module_name,
                "controller": ctx.controller_name,
                "location": ctx.location.value,
                "views_dir": str(ctx.views_dir),
            }
            if format == "json":
                print(json.dumps(output, indent=2))
            else:
                for key, value in output.items():
                    print(f"{key.replace('_', ' ').capitalize()}: {value if value else '-'}")
            return 0

        except Exception as e:
            print(f"Error deriving context: {e}", file=sys.stderr)
            return 1

    def controller(self, view: str, format: str = "text") -> int:
        """
        Find the controller action rendering a view.

        Returns:
            Exit code (0 if a controller was found, 1 if not)
        """
        try:
            match = self.locator.locate(self._absolute(view))

            if format == "json":
                print(json.dumps(match.to_dict(), indent=2))
            elif match.is_found:
                print(f"Controller: {match.controller_path}")
                if match.action_name:
                    print(f"Action: {match.action_name} (line {match.action_line + 1})")
                else:
                    print("Action: not found")
            else:
                print(f"Error: {match.error}")

            return 0 if match.is_found else 1

        except Exception as e:
            print(f"Error locating controller: {e}", file=sys.stderr)
            return 1

    def classes(
        self,
        directory: Optional[str] = None,
        behaviors: bool = False,
        format: str = "text",
    ) -> int:
        """
        List classes indexed under a directory (default: protected dir).

        Returns:
            Exit code (always 0 unless an error occurs)
        """
        try:
            root = self._absolute(directory) if directory else self.registry.protected_dir
            if behaviors:
                records = self.registry.indexer.get_all_behavior_classes(
                    root, self.registry.behavior_base_class
                )
            else:
                records = self.registry.indexer.get_all_classes(root)

            if format == "json":
                print(json.dumps([r.to_dict() for r in records], indent=2))
            else:
                label = "behavior classes" if behaviors else "classes"
                print(f"Found {len(records)} {label} under {root}:\n")
                for record in sorted(records, key=lambda r: r.name):
                    parent = f" extends {record.parent_class_name}" if record.parent_class_name else ""
                    abstract = "abstract " if record.is_abstract else ""
                    print(f"  {abstract}{record.name}{parent}")
                    print(f"    └─ {record.file_path}")

            return 0

        except Exception as e:
            print(f"Error indexing classes: {e}", file=sys.stderr)
            return 1

    def _print_resolution(self, resolved: ResolvedPath) -> None:
        print(f"Reference: {resolved.raw_text}")
        print(f"Kind: {resolved.kind.value}")
        if resolved.is_unresolvable:
            print(f"Error: {resolved.error}")
            return
        print("Candidates:")
        for path in resolved.candidate_paths:
            marker = "✅" if path == resolved.existing_path else "  "
            print(f"  {marker} {path}")
        if resolved.is_resolved:
            print(f"Resolved to: {resolved.existing_path}")
        else:
            print(f"Not found. Best guess: {resolved.best_guess_path}")
        if resolved.symbol:
            print(f"Symbol: {resolved.symbol} (line {resolved.symbol_line + 1})")
