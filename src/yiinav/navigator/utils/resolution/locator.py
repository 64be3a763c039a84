"""
View/controller navigation.

Finds the controller action that renders a view template, and the views an
action renders.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from yiinav.navigator.utils.resolution.context import DocumentLocation
from yiinav.navigator.utils.resolution.references import ActionRecord, ReferenceKind, ResolvedPath
from yiinav.navigator.utils.resolution.resolver import ResolverRegistry, RouteResolver
from yiinav.navigator.utils.resolution.scanner import (
    TextIndex,
    find_action_at,
    find_action_by_name,
    find_render_calls,
    to_reference,
)

logger = logging.getLogger(__name__)


@dataclass
class ControllerMatch:
    """
    Controller (and action, when found) behind a view template.

    Attributes:
        controller_path: Controller class file
        action_name: Action method rendering the view, if found
        action_offset: Offset of the action in the controller file
        action_line: Zero-based line of the action
        error: Reason no controller was found
    """

    controller_path: Optional[Path] = None
    action_name: Optional[str] = None
    action_offset: Optional[int] = None
    action_line: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_found(self) -> bool:
        return self.controller_path is not None

    def to_dict(self) -> Dict:
        return {
            "controller_path": str(self.controller_path) if self.controller_path else None,
            "action": self.action_name,
            "line": self.action_line,
            "error": self.error,
        }


class ControllerLocator:
    """Navigates between view templates and controller actions."""

    def __init__(self, registry: ResolverRegistry):
        self.registry = registry
        self.fs = registry.fs
        self.names = registry.names

    def locate(self, view_path: Path) -> ControllerMatch:
        """
        Find the controller and action rendering a view file.

        The controller comes from the views sub-directory; the action is the
        first one whose render call resolves to the view, or else the action
        named like the view.
        """
        view_path = Path(view_path)
        context = self.registry.context_for(view_path)
        if context.location != DocumentLocation.VIEWS or not context.controller_name:
            return ControllerMatch(error="View file is not in a views directory")

        controllers_dir = self.names.controllers_dir(self.registry.workspace_root, context.module_name)
        controller_path = None
        for file_name in RouteResolver.controller_file_names(context.controller_name):
            candidate = controllers_dir / file_name
            if self.fs.is_file(candidate):
                controller_path = candidate
                break
        if controller_path is None:
            return ControllerMatch(error=f"Controller not found for '{context.controller_name}'")

        text = self.fs.read_text(controller_path) or ""
        action = self._action_rendering(controller_path, text, view_path)
        if action is None:
            action = self._action_named_like(text, view_path)

        match = ControllerMatch(controller_path=controller_path)
        if action is not None:
            match.action_name = action.name
            match.action_offset = action.offset
            match.action_line = action.line
        return match

    def _action_rendering(self, controller_path: Path, text: str, view_path: Path) -> Optional[ActionRecord]:
        target = os.path.normpath(view_path)
        context = self.registry.context_for(controller_path)
        index = TextIndex(text)
        for literal in find_render_calls(text):
            kind = ReferenceKind.PARTIAL_VIEW if literal.is_partial else ReferenceKind.VIEW
            reference = to_reference(literal, kind, controller_path, index)
            resolved = self.registry.resolve(reference, context)
            if any(os.path.normpath(c) == target for c in resolved.candidate_paths):
                action = find_action_at(text, literal.offset)
                if action is not None:
                    return action
        return None

    @staticmethod
    def _action_named_like(text: str, view_path: Path) -> Optional[ActionRecord]:
        view_name = view_path.stem.lstrip("_")
        for method_name in RouteResolver.action_method_names(view_name):
            action = find_action_by_name(text, method_name)
            if action is not None:
                return action
        return None

    def views_for_action(self, controller_path: Path, offset: int) -> List[ResolvedPath]:
        """Resolved views rendered by the action containing ``offset``."""
        controller_path = Path(controller_path)
        text = self.fs.read_text(controller_path)
        if not text:
            return []
        action = find_action_at(text, offset)
        if action is None:
            return []

        end = action.body_end_offset if action.body_end_offset >= 0 else len(text)
        context = self.registry.context_for(controller_path)
        index = TextIndex(text)
        resolved = []
        for literal in find_render_calls(text, action.offset, end):
            kind = ReferenceKind.PARTIAL_VIEW if literal.is_partial else ReferenceKind.VIEW
            resolved.append(self.registry.resolve(to_reference(literal, kind, controller_path, index), context))
        return resolved
