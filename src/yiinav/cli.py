#!/usr/bin/env python3
"""
yiinav - convention-based navigation for Yii 1.1 projects.

Resolves view names, layouts, imports, routes and behavior classes found in
PHP source to the files they refer to, and reports the ones that do not
resolve:
- resolve: Resolve one literal of a given kind
- scan: List every reference of a file with its resolution
- check: Report unresolved references
- context: Show the module/controller of a file
- controller: Find the controller action rendering a view
- classes: List indexed classes

Usage:
    yiinav resolve view index --from protected/controllers/SiteController.php
    yiinav resolve partial _form --from protected/views/post/create.php
    yiinav resolve layout //layouts/column2
    yiinav resolve import 'application.components.*'
    yiinav resolve route admin/user/update
    yiinav scan protected/controllers/SiteController.php
    yiinav check                             # Check the protected directory
    yiinav check --strict --format json      # Warnings fail too
    yiinav context protected/modules/admin/views/user/index.php
    yiinav controller protected/views/site/index.php
    yiinav classes --behaviors
    yiinav --help                            # Show help
"""

import argparse
import logging
import sys
from pathlib import Path

from yiinav import __version__
from yiinav.navigator.commands.check import CheckCommand
from yiinav.navigator.commands.navigate import NavigateCommand
from yiinav.navigator.utils.config import get_directory_names, is_enabled
from yiinav.navigator.utils.repo import find_workspace_root, is_yii_project

KINDS = ["view", "partial", "layout", "import", "route", "behavior"]


def _add_format_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="yiinav",
        description="yiinav - Navigate Yii 1.1 views, layouts, imports, routes and behaviors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resolve a single reference
  %(prog)s resolve view index --from protected/controllers/SiteController.php
  %(prog)s resolve route sow-info/load_all
  %(prog)s resolve behavior TimestampBehavior

  # Inspect a file
  %(prog)s scan protected/controllers/SiteController.php
  %(prog)s context protected/views/site/index.php
  %(prog)s controller protected/views/site/_form.php

  # Diagnostics
  %(prog)s check                          Check every file under protected/
  %(prog)s check protected/modules/admin  Check one directory
  %(prog)s check --strict                 Fail on warnings too

Reference kinds:
  view, partial  render() / renderPartial() view names
  layout         $this->layout / public $layout values
  import         Yii::import() path aliases
  route          createUrl() / createAbsoluteUrl() routes
  behavior       'class' entries of behaviors()
        """
    )
    parser.add_argument(
        "--root",
        type=str,
        metavar="PATH",
        help="Workspace root (default: auto-detect from current directory)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ----- yiinav resolve <kind> <literal> -----
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve a reference literal to a file"
    )
    resolve_parser.add_argument("kind", choices=KINDS, help="Reference kind")
    resolve_parser.add_argument("literal", type=str, help="Literal text without quotes")
    resolve_parser.add_argument(
        "--from",
        dest="document",
        type=str,
        metavar="FILE",
        help="File the literal appears in (sets module/controller context)"
    )
    _add_format_argument(resolve_parser)

    # ----- yiinav scan <file> -----
    scan_parser = subparsers.add_parser(
        "scan",
        help="List every reference of a file with its resolution"
    )
    scan_parser.add_argument("file", type=str, help="PHP file to scan")
    _add_format_argument(scan_parser)

    # ----- yiinav check [paths...] -----
    check_parser = subparsers.add_parser(
        "check",
        help="Report references that do not resolve"
    )
    check_parser.add_argument(
        "paths",
        nargs="*",
        help="Files or directories to check (default: protected directory)"
    )
    check_parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings as failures"
    )
    _add_format_argument(check_parser)

    # ----- yiinav context <file> -----
    context_parser = subparsers.add_parser(
        "context",
        help="Show the module and controller a file belongs to"
    )
    context_parser.add_argument("file", type=str, help="File path")
    _add_format_argument(context_parser)

    # ----- yiinav controller <view> -----
    controller_parser = subparsers.add_parser(
        "controller",
        help="Find the controller action rendering a view"
    )
    controller_parser.add_argument("view", type=str, help="View file path")
    _add_format_argument(controller_parser)

    # ----- yiinav classes -----
    classes_parser = subparsers.add_parser(
        "classes",
        help="List classes found under a directory"
    )
    classes_parser.add_argument(
        "--dir",
        dest="directory",
        type=str,
        help="Directory to index (default: protected directory)"
    )
    classes_parser.add_argument(
        "--behaviors",
        action="store_true",
        help="Only list behavior classes"
    )
    _add_format_argument(classes_parser)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    workspace_root = find_workspace_root(Path(args.root) if args.root else None)

    if not is_enabled(workspace_root):
        print(f"yiinav is disabled for {workspace_root} (.yiinav/config.yaml)", file=sys.stderr)
        return 1
    if not is_yii_project(workspace_root, get_directory_names(workspace_root)):
        print(f"Warning: {workspace_root} does not look like a Yii project", file=sys.stderr)

    # yiinav check
    if args.command == "check":
        return CheckCommand(workspace_root).check(
            paths=args.paths,
            format=args.format,
            strict=args.strict,
        )

    cmd = NavigateCommand(workspace_root)

    # yiinav resolve
    if args.command == "resolve":
        return cmd.resolve(
            kind=args.kind,
            literal=args.literal,
            document=args.document,
            format=args.format,
        )

    # yiinav scan
    elif args.command == "scan":
        return cmd.scan(file=args.file, format=args.format)

    # yiinav context
    elif args.command == "context":
        return cmd.context(file=args.file, format=args.format)

    # yiinav controller
    elif args.command == "controller":
        return cmd.controller(view=args.view, format=args.format)

    # yiinav classes
    elif args.command == "classes":
        return cmd.classes(
            directory=args.directory,
            behaviors=args.behaviors,
            format=args.format,
        )

    parser.print_help()
    return 0


def cli() -> int:
    """CLI entry point."""
    return main()


if __name__ == "__main__":
    sys.exit(cli())
