"""
Module/Controller Context Deriver
=================================
Derives which module and controller a document belongs to from its path
alone. Pure: no file-system access.

    protected/modules/admin/views/user/index.php      -> module admin, controller user
    protected/controllers/SiteController.php          -> controller Site
    protected/modules/shop/controllers/CartController.php -> module shop, controller Cart
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from yiinav.navigator.utils.config import DirectoryNames

CONTROLLER_SUFFIX = "Controller"


class DocumentLocation(Enum):
    """Where a document sits in the MVC layout."""

    VIEWS = "views"
    CONTROLLERS = "controllers"
    OTHER = "other"


@dataclass(frozen=True)
class ResolutionContext:
    """
    Context a reference is resolved in.

    Attributes:
        workspace_root: Workspace root directory
        document_path: File containing the reference
        module_name: Module the document belongs to, if any
        controller_name: Controller class stem (controllers) or views
            sub-directory name (views)
        location: Views, controllers, or anywhere else
        directory_names: Directory conventions in effect
    """

    workspace_root: Path
    document_path: Path
    module_name: Optional[str] = None
    controller_name: Optional[str] = None
    location: DocumentLocation = DocumentLocation.OTHER
    directory_names: DirectoryNames = field(default_factory=DirectoryNames)

    @property
    def views_dir(self) -> Path:
        """Views directory of the document's module, or the main one."""
        return self.directory_names.views_dir(self.workspace_root, self.module_name)

    @property
    def main_views_dir(self) -> Path:
        return self.directory_names.views_dir(self.workspace_root)

    @property
    def document_dir(self) -> Path:
        return self.document_path.parent


def controller_id_to_class_name(
    name: str, separators: str = "_", lowercase_first: bool = False
) -> str:
    """
    Convert a controller id to its class-name stem.

    Splits on the separator characters, capitalises each part and lowers the
    rest of it: ``sow_info`` -> ``SowInfo``. With ``lowercase_first`` the
    first letter of the result is lowered (``sowInfo``).
    """
    parts = [p for p in re.split("[" + re.escape(separators) + "]", name) if p]
    joined = "".join(p[:1].upper() + p[1:].lower() for p in parts)
    if lowercase_first:
        return joined[:1].lower() + joined[1:]
    return joined


def controller_class_to_id(name: str) -> str:
    """``SowInfo`` -> ``sowInfo``, the views sub-directory of a controller."""
    return name[:1].lower() + name[1:]


def _controller_from_filename(filename: str) -> Optional[str]:
    stem = filename[:-4] if filename.lower().endswith(".php") else filename
    if stem.endswith(CONTROLLER_SUFFIX):
        stem = stem[: -len(CONTROLLER_SUFFIX)]
    return stem or None


def _index_followed_by(segments: Sequence[str], name: str, following: int) -> int:
    for i, segment in enumerate(segments):
        if segment == name and i + following < len(segments):
            return i
    return -1


class ContextDeriver:
    """Derives ResolutionContext values from document paths."""

    def __init__(self, directory_names: Optional[DirectoryNames] = None):
        self.names = directory_names or DirectoryNames()

    def derive(self, document_path: Path, workspace_root: Path) -> ResolutionContext:
        """
        Derive module and controller of a document.

        A document outside the workspace root gets an empty context.
        """
        document_path = Path(document_path)
        workspace_root = Path(workspace_root)
        try:
            segments = document_path.relative_to(workspace_root).parts
        except ValueError:
            segments = ()

        module_name = None
        module_index = _index_followed_by(segments, self.names.modules, 2)
        if module_index >= 0:
            module_name = segments[module_index + 1]

        controller_name = None
        location = DocumentLocation.OTHER

        # views/<controller>/<file>: the segment after views must be a directory
        views_index = _index_followed_by(segments, self.names.views, 2)
        controllers_index = _index_followed_by(segments, self.names.controllers, 1)
        if views_index >= 0:
            controller_name = segments[views_index + 1]
            location = DocumentLocation.VIEWS
        elif controllers_index >= 0:
            controller_name = _controller_from_filename(segments[-1])
            location = DocumentLocation.CONTROLLERS

        return ResolutionContext(
            workspace_root=workspace_root,
            document_path=document_path,
            module_name=module_name,
            controller_name=controller_name,
            location=location,
            directory_names=self.names,
        )
