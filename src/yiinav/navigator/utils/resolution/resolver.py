"""
Path Resolution Engine
======================
Maps symbolic references to file-system locations using Yii 1.1 conventions.

Each reference kind has a dedicated resolver that:
- Interprets the literal according to its notation style
- Produces an ordered list of candidate paths
- Reports the first existing candidate and a best guess for creation

Architecture:
- ResolvedPath: Result record (see references)
- BaseResolver: Shared candidate/existence handling
- ResolverRegistry: Derives context and dispatches by ReferenceKind

Resolution never raises. A literal that matches no convention yields a
ResolvedPath carrying an ``error``; a well-formed literal whose target does
not exist yields candidates with ``existing_path`` set to None.
"""
from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from yiinav.navigator.utils.config import (
    DirectoryNames,
    get_behavior_config,
    get_directory_names,
    get_main_config_path,
)
from yiinav.navigator.utils.fs import FileSystem, LocalFileSystem
from yiinav.navigator.utils.repo import find_workspace_root
from yiinav.navigator.utils.resolution.context import (
    CONTROLLER_SUFFIX,
    ContextDeriver,
    DocumentLocation,
    ResolutionContext,
    controller_class_to_id,
    controller_id_to_class_name,
)
from yiinav.navigator.utils.resolution.indexer import ClassIndexer
from yiinav.navigator.utils.resolution.main_config import MainConfigReader
from yiinav.navigator.utils.resolution.references import (
    NotationStyle,
    ReferenceKind,
    ResolvedPath,
    SymbolicReference,
    classify_notation,
)
from yiinav.navigator.utils.resolution.scanner import NOT_FOUND, TextIndex, find_method_offset

logger = logging.getLogger(__name__)

PHP_EXTENSION = ".php"
APPLICATION_ALIAS = "application"
ZII_ALIAS = "zii"
SYSTEM_ALIAS = "system"
BUILTIN_ALIASES = frozenset({APPLICATION_ALIAS, ZII_ALIAS, SYSTEM_ALIAS})
LAYOUTS_DIR = "layouts"
ACTION_PREFIX = "action"
DEFAULT_BEHAVIORS_DIR = ("components", "behaviors")
# Directory holding application classes when an unknown alias is imported
FALLBACK_IMPORT_DIR = "application"

_ALIAS_SEGMENT = re.compile(r"^\w+$")
_RELATIVE_PREFIX = re.compile(r"^\.\.?/")


def _normalize(path: Path) -> Path:
    return Path(os.path.normpath(path))


def _with_php(path: Path) -> Path:
    return path.with_name(path.name + PHP_EXTENSION)


def _segments(text: str, separator: str = "/") -> List[str]:
    return [segment for segment in text.split(separator) if segment]


class BaseResolver(ABC):
    """Base class for reference resolvers with common functionality."""

    def __init__(
        self,
        workspace_root: Path,
        directory_names: Optional[DirectoryNames] = None,
        file_system: Optional[FileSystem] = None,
    ):
        self.workspace_root = Path(workspace_root)
        self.names = directory_names or DirectoryNames()
        self.fs = file_system or LocalFileSystem()
        self.protected_dir = self.names.protected_dir(self.workspace_root)

    @property
    @abstractmethod
    def kinds(self) -> FrozenSet[ReferenceKind]:
        """Return the reference kinds this resolver handles."""
        pass

    def can_resolve(self, kind: ReferenceKind) -> bool:
        return kind in self.kinds

    @abstractmethod
    def resolve(self, kind: ReferenceKind, raw_text: str, context: ResolutionContext) -> ResolvedPath:
        """Resolve a literal of the given kind."""
        pass

    def _build(
        self,
        kind: ReferenceKind,
        raw_text: str,
        candidates: Sequence[Path],
        exists=None,
        **extra,
    ) -> ResolvedPath:
        """Result with the first existing candidate and the first candidate as best guess."""
        exists = exists or self.fs.is_file
        candidates = tuple(_normalize(c) for c in candidates)
        existing = next((c for c in candidates if exists(c)), None)
        return ResolvedPath(
            kind=kind,
            raw_text=raw_text,
            candidate_paths=candidates,
            existing_path=existing,
            best_guess_path=candidates[0] if candidates else None,
            **extra,
        )


class ViewResolver(BaseResolver):
    """
    Resolver for render() and renderPartial() view names.

    Resolution by notation:
        //site/index                  -> protected/views/site/index.php
        /site/index                   -> <module views or views>/site/index.php
        ../site/index                 -> relative to the document, controllers -> views
        application.views.site.index  -> protected/views/site/index.php
        index                         -> <module views or views>/<controller>/index.php
    """

    @property
    def kinds(self) -> FrozenSet[ReferenceKind]:
        return frozenset({ReferenceKind.VIEW, ReferenceKind.PARTIAL_VIEW})

    def resolve(self, kind: ReferenceKind, raw_text: str, context: ResolutionContext) -> ResolvedPath:
        style = classify_notation(raw_text)
        base, error = self.locate_base(raw_text, style, context)
        if base is None:
            logger.debug("Unresolvable view %r: %s", raw_text, error)
            return ResolvedPath.unresolvable(kind, raw_text, error)

        if kind == ReferenceKind.PARTIAL_VIEW:
            candidates = self.partial_candidates(base, style)
        else:
            candidates = [_with_php(base)]
        return self._build(kind, raw_text, candidates)

    @staticmethod
    def partial_candidates(base: Path, style: NotationStyle) -> List[Path]:
        """
        The underscore-prefixed and plain file for a partial, in lookup order.

        A literal written with the underscore is tried as written first;
        otherwise relative literals are tried as written first and every
        other style follows the ``_name`` convention first.
        """
        name = base.name
        if name.startswith("_") and len(name) > 1:
            plain = name[1:]
            order = ["_" + plain, plain]
        elif style == NotationStyle.RELATIVE:
            order = [name, "_" + name]
        else:
            order = ["_" + name, name]
        return [base.parent / (entry + PHP_EXTENSION) for entry in order]

    def locate_base(
        self, raw_text: str, style: NotationStyle, context: ResolutionContext
    ) -> Tuple[Optional[Path], Optional[str]]:
        """
        Path of the view without extension, or None with a reason.
        """
        if style == NotationStyle.ABSOLUTE_DOUBLE_SLASH:
            segments = _segments(raw_text[2:])
            if len(segments) < 2:
                return None, "Expected //controller/view"
            return context.main_views_dir.joinpath(*segments), None

        if style == NotationStyle.ABSOLUTE_SINGLE_SLASH:
            segments = _segments(raw_text[1:])
            if len(segments) < 2:
                return None, "Expected /controller/view"
            return context.views_dir.joinpath(*segments), None

        if style == NotationStyle.RELATIVE:
            return self._relative_base(raw_text, context), None

        if style == NotationStyle.DOT_NOTATION:
            return self.alias_base(raw_text)

        if not context.controller_name:
            return None, "No controller context for bare view name"
        controller_dir = self._controller_views_dir(context)
        return controller_dir.joinpath(*_segments(raw_text)), None

    def _relative_base(self, raw_text: str, context: ResolutionContext) -> Path:
        """
        One leading ./ or ../ is dropped and the rest joined to the
        document directory, so ../layouts/main from a controller lands in
        views/layouts. A controllers segment below the workspace root is
        then rewritten to views.
        """
        path = _normalize(context.document_dir / _RELATIVE_PREFIX.sub("", raw_text, count=1))
        try:
            parts = list(path.relative_to(context.workspace_root).parts)
        except ValueError:
            parts = []
        if self.names.controllers in parts:
            parts[parts.index(self.names.controllers)] = self.names.views
            path = context.workspace_root.joinpath(*parts)
        if path.suffix == PHP_EXTENSION:
            path = path.with_suffix("")
        return path

    def alias_base(self, raw_text: str) -> Tuple[Optional[Path], Optional[str]]:
        """
        View path of an ``application.`` alias.

        application.modules.<M>.views.<rest>  (at least 5 segments)
        application.views.<rest>              (at least 4 segments)
        """
        segments = raw_text.split(".")
        if segments[0] != APPLICATION_ALIAS or any(not s for s in segments):
            return None, "View alias must start with 'application.'"
        if (
            len(segments) >= 5
            and segments[1] == self.names.modules
            and segments[3] == self.names.views
        ):
            views_dir = self.names.views_dir(self.workspace_root, segments[2])
            return views_dir.joinpath(*segments[4:]), None
        if len(segments) >= 4 and segments[1] == self.names.views:
            return self.names.views_dir(self.workspace_root).joinpath(*segments[2:]), None
        return None, "Malformed view alias"

    def _controller_views_dir(self, context: ResolutionContext) -> Path:
        name = context.controller_name
        if context.location == DocumentLocation.VIEWS:
            return context.views_dir / name

        controller_id = controller_class_to_id(name)
        preferred = context.views_dir / controller_id
        exact = context.views_dir / name
        if controller_id != name and not self.fs.is_dir(preferred) and self.fs.is_dir(exact):
            return exact
        return preferred


class LayoutResolver(BaseResolver):
    """
    Resolver for layout names.

    Resolution:
        //layouts/main           -> protected/views/layouts/main.php
        application.views.x.y    -> view alias rules
        main, /main              -> module views/layouts/main.php, then views/layouts/main.php
    """

    def __init__(self, *args, view_resolver: Optional[ViewResolver] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.view_resolver = view_resolver or ViewResolver(self.workspace_root, self.names, self.fs)

    @property
    def kinds(self) -> FrozenSet[ReferenceKind]:
        return frozenset({ReferenceKind.LAYOUT})

    def resolve(self, kind: ReferenceKind, raw_text: str, context: ResolutionContext) -> ResolvedPath:
        style = classify_notation(raw_text)
        main_views = context.main_views_dir
        module_views = (
            self.names.views_dir(self.workspace_root, context.module_name)
            if context.module_name else None
        )

        if style == NotationStyle.ABSOLUTE_DOUBLE_SLASH:
            segments = _segments(raw_text[2:])
            if not segments:
                return ResolvedPath.unresolvable(kind, raw_text, "Empty layout path")
            return self._build(kind, raw_text, [_with_php(main_views.joinpath(*segments))])

        if style == NotationStyle.DOT_NOTATION:
            base, error = self.view_resolver.alias_base(raw_text)
            if base is None:
                return ResolvedPath.unresolvable(kind, raw_text, error)
            return self._build(kind, raw_text, [_with_php(base)])

        segments = _segments(raw_text)
        if not segments:
            return ResolvedPath.unresolvable(kind, raw_text, "Empty layout path")
        candidates = [
            _with_php(root.joinpath(LAYOUTS_DIR, *segments))
            for root in (module_views, main_views)
            if root is not None
        ]
        return self._build(kind, raw_text, candidates)


class ImportResolver(BaseResolver):
    """
    Resolver for Yii::import() path aliases.

    Resolution:
        application.models.User      -> protected/models/User.php
        application.modules.M.x      -> protected/modules/M/x
        zii.widgets.CMenu            -> framework/zii/widgets/CMenu.php
        system.web.CController       -> framework/web/CController.php
        other.path                   -> protected/other/path, then application/other/path
        <alias>.*                    -> the directory
    """

    @property
    def kinds(self) -> FrozenSet[ReferenceKind]:
        return frozenset({ReferenceKind.IMPORT})

    def alias_bases(self, alias: str) -> Optional[List[Path]]:
        """Base paths (without extension) an alias may point to, or None if malformed."""
        segments = alias.split(".")
        if not alias or any(not _ALIAS_SEGMENT.match(s) for s in segments):
            return None

        root, rest = segments[0], segments[1:]
        if root == APPLICATION_ALIAS:
            if len(rest) >= 2 and rest[0] == self.names.modules:
                return [self.names.module_dir(self.workspace_root, rest[1]).joinpath(*rest[2:])]
            return [self.protected_dir.joinpath(*rest)]
        if root == ZII_ALIAS:
            return [(self.names.framework_dir(self.workspace_root) / "zii").joinpath(*rest)]
        if root == SYSTEM_ALIAS:
            return [self.names.framework_dir(self.workspace_root).joinpath(*rest)]
        return [
            self.protected_dir.joinpath(*segments),
            (self.workspace_root / FALLBACK_IMPORT_DIR).joinpath(*segments),
        ]

    def resolve(self, kind: ReferenceKind, raw_text: str, context: ResolutionContext) -> ResolvedPath:
        alias = raw_text.strip()
        is_wildcard = alias.endswith(".*")
        if is_wildcard:
            alias = alias[:-2]

        bases = self.alias_bases(alias)
        if bases is None:
            return ResolvedPath.unresolvable(kind, raw_text, "Malformed import path")

        candidates: List[Path] = []
        for base in bases:
            candidates.extend([_with_php(base), base])

        if is_wildcard:
            exists = self.fs.is_dir
        else:
            exists = self._exists_as_file_or_dir
        return self._build(kind, raw_text, candidates, exists=exists, is_wildcard=is_wildcard)

    def _exists_as_file_or_dir(self, path: Path) -> bool:
        if path.suffix == PHP_EXTENSION:
            return self.fs.is_file(path)
        return self.fs.is_dir(path)

    @staticmethod
    def is_valid(resolved: ResolvedPath) -> bool:
        """
        Whether an import statement would load.

        Wildcards need a directory, unless the alias root is user-defined.
        Class imports need an existing ``.php`` file.
        """
        if resolved.is_unresolvable:
            return False
        existing = resolved.existing_path
        if resolved.is_wildcard:
            if existing is not None:
                return True
            root = resolved.raw_text.strip().split(".", 1)[0]
            return root not in BUILTIN_ALIASES
        return existing is not None and existing.suffix == PHP_EXTENSION


class RouteResolver(BaseResolver):
    """
    Resolver for createUrl() routes.

    Resolution:
        site/index           -> controllers/SiteController.php :: actionIndex
        admin/user/update    -> modules/admin/controllers/UserController.php :: actionUpdate
        sow-info/load_all    -> controllers/SowInfoController.php :: actionLoadAll
    """

    @property
    def kinds(self) -> FrozenSet[ReferenceKind]:
        return frozenset({ReferenceKind.ROUTE})

    @staticmethod
    def controller_file_names(controller_id: str) -> List[str]:
        names = [
            controller_id_to_class_name(controller_id, separators="-_"),
            controller_id_to_class_name(controller_id, separators="-_", lowercase_first=True),
            controller_id[:1].upper() + controller_id[1:],
        ]
        unique = list(dict.fromkeys(names))
        return [name + CONTROLLER_SUFFIX + PHP_EXTENSION for name in unique]

    @staticmethod
    def action_method_names(action_id: str) -> List[str]:
        """Method names an action id may map to, in lookup order."""
        names = []
        if action_id[:1].isupper():
            names.append(ACTION_PREFIX + action_id)
        names.append(
            ACTION_PREFIX + "".join(p[:1].upper() + p[1:] for p in re.split("[-_]", action_id))
        )
        if "-" in action_id or "_" in action_id:
            names.append(ACTION_PREFIX + controller_id_to_class_name(action_id, separators="-_"))
        return list(dict.fromkeys(names))

    def resolve(self, kind: ReferenceKind, raw_text: str, context: ResolutionContext) -> ResolvedPath:
        segments = _segments(raw_text.strip().lstrip("/"))
        if len(segments) < 2:
            return ResolvedPath.unresolvable(kind, raw_text, "Route needs controller/action")

        if len(segments) >= 3 and self.fs.is_dir(self.names.module_dir(self.workspace_root, segments[0])):
            controller_id, action_id = segments[1], segments[2]
            directories = [self.names.controllers_dir(self.workspace_root, segments[0])]
        else:
            controller_id, action_id = segments[0], segments[1]
            directories = []
            if context.module_name:
                directories.append(self.names.controllers_dir(self.workspace_root, context.module_name))
            directories.append(self.names.controllers_dir(self.workspace_root))

        candidates = [
            directory / file_name
            for directory in directories
            for file_name in self.controller_file_names(controller_id)
        ]
        result = self._build(kind, raw_text, candidates)
        if result.existing_path is not None:
            self._locate_action(result, action_id)
        return result

    def _locate_action(self, result: ResolvedPath, action_id: str) -> None:
        text = self.fs.read_text(result.existing_path)
        if not text:
            return
        for method_name in self.action_method_names(action_id):
            offset = find_method_offset(text, method_name)
            if offset != NOT_FOUND:
                result.symbol = method_name
                result.symbol_offset = offset
                result.symbol_line = TextIndex(text).line_of(offset)
                return
        logger.debug("No action %s in %s", action_id, result.existing_path)


class BehaviorResolver(BaseResolver):
    """
    Resolver for behavior class references in behaviors() arrays.

    The class is looked up by simple name among behavior classes of the
    application, then among all its classes. Framework aliases (zii.,
    system.) follow import rules.
    """

    def __init__(
        self,
        *args,
        indexer: Optional[ClassIndexer] = None,
        import_resolver: Optional[ImportResolver] = None,
        base_class: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.indexer = indexer or ClassIndexer(self.fs)
        self.import_resolver = import_resolver or ImportResolver(self.workspace_root, self.names, self.fs)
        self.base_class = base_class or get_behavior_config(self.workspace_root)["base_class"]

    @property
    def kinds(self) -> FrozenSet[ReferenceKind]:
        return frozenset({ReferenceKind.BEHAVIOR_CLASS})

    def resolve(self, kind: ReferenceKind, raw_text: str, context: ResolutionContext) -> ResolvedPath:
        literal = raw_text.strip()
        segments = literal.split(".")
        class_name = segments[-1]
        if not class_name or not _ALIAS_SEGMENT.match(class_name):
            return ResolvedPath.unresolvable(kind, raw_text, "Malformed behavior class")

        if len(segments) > 1 and segments[0] in (ZII_ALIAS, SYSTEM_ALIAS):
            bases = self.import_resolver.alias_bases(literal)
            if bases is None:
                return ResolvedPath.unresolvable(kind, raw_text, "Malformed behavior alias")
            return self._build(kind, raw_text, [_with_php(b) for b in bases])

        record = self.indexer.find_behavior_class(class_name, self.protected_dir, self.base_class)
        if record is None:
            record = self.indexer.find_class(class_name, self.protected_dir)
        if record is not None:
            return ResolvedPath(
                kind=kind,
                raw_text=raw_text,
                candidate_paths=(record.file_path,),
                existing_path=record.file_path,
                best_guess_path=record.file_path,
                class_record=record,
            )

        guess = None
        if len(segments) > 1:
            bases = self.import_resolver.alias_bases(literal)
            if bases:
                guess = _with_php(bases[0])
        if guess is None:
            guess = self.protected_dir.joinpath(*DEFAULT_BEHAVIORS_DIR, class_name + PHP_EXTENSION)
        return self._build(kind, raw_text, [guess])

    def dot_path(self, file_path: Path) -> Optional[str]:
        """``protected/components/behaviors/Foo.php`` -> ``application.components.behaviors.Foo``."""
        try:
            relative = Path(file_path).relative_to(self.protected_dir)
        except ValueError:
            return None
        parts = list(relative.parts)
        parts[-1] = Path(parts[-1]).stem
        return ".".join([APPLICATION_ALIAS] + parts)


class ResolverRegistry:
    """
    Registry coordinating all reference resolvers.

    Provides a unified interface for resolving references of every kind in
    the context of the document they appear in.
    """

    def __init__(
        self,
        workspace_root: Optional[Path] = None,
        directory_names: Optional[DirectoryNames] = None,
        file_system: Optional[FileSystem] = None,
        indexer: Optional[ClassIndexer] = None,
        main_config: Optional[MainConfigReader] = None,
        behavior_base_class: Optional[str] = None,
    ):
        self.workspace_root = Path(workspace_root) if workspace_root else find_workspace_root()
        self.names = directory_names or get_directory_names(self.workspace_root)
        self.fs = file_system or LocalFileSystem()
        self.indexer = indexer or ClassIndexer(self.fs)
        self.main_config = main_config or MainConfigReader(
            get_main_config_path(self.workspace_root, self.names), self.fs
        )
        self.behavior_base_class = behavior_base_class or get_behavior_config(self.workspace_root)["base_class"]
        self.deriver = ContextDeriver(self.names)
        self._resolvers: Dict[ReferenceKind, BaseResolver] = {}
        self._register_default_resolvers()

    def _register_default_resolvers(self) -> None:
        """Register all default kind resolvers."""
        common = (self.workspace_root, self.names, self.fs)
        views = ViewResolver(*common)
        imports = ImportResolver(*common)
        resolvers = [
            views,
            LayoutResolver(*common, view_resolver=views),
            imports,
            RouteResolver(*common),
            BehaviorResolver(
                *common,
                indexer=self.indexer,
                import_resolver=imports,
                base_class=self.behavior_base_class,
            ),
        ]
        for resolver in resolvers:
            self.register(resolver)

    def register(self, resolver: BaseResolver) -> None:
        """Register a resolver for every kind it handles."""
        for kind in resolver.kinds:
            self._resolvers[kind] = resolver

    def get_resolver(self, kind: ReferenceKind) -> Optional[BaseResolver]:
        return self._resolvers.get(kind)

    @property
    def protected_dir(self) -> Path:
        return self.names.protected_dir(self.workspace_root)

    def context_for(self, document_path: Path) -> ResolutionContext:
        return self.deriver.derive(Path(document_path), self.workspace_root)

    def resolve(
        self, reference: SymbolicReference, context: Optional[ResolutionContext] = None
    ) -> ResolvedPath:
        """
        Resolve a reference found in a document.

        The context is derived from ``reference.source_file`` unless given.
        """
        if context is None:
            document = reference.source_file or self.workspace_root
            context = self.context_for(document)

        resolver = self._resolvers.get(reference.kind)
        if not resolver:
            return ResolvedPath.unresolvable(
                reference.kind, reference.raw_text, f"No resolver registered for {reference.kind.value}"
            )
        return resolver.resolve(reference.kind, reference.raw_text, context)

    def resolve_text(self, kind: ReferenceKind, raw_text: str, document_path: Path) -> ResolvedPath:
        """Resolve a literal as if it appeared in ``document_path``."""
        reference = SymbolicReference(kind=kind, raw_text=raw_text, source_file=Path(document_path))
        return self.resolve(reference)

    def resolve_all(self, references: Iterable[SymbolicReference]) -> List[Tuple[SymbolicReference, ResolvedPath]]:
        return [(reference, self.resolve(reference)) for reference in references]

    def behavior_dot_path(self, file_path: Path) -> Optional[str]:
        resolver = self._resolvers.get(ReferenceKind.BEHAVIOR_CLASS)
        if isinstance(resolver, BehaviorResolver):
            return resolver.dot_path(file_path)
        return None

    def invalidate(self, file_path: Path) -> None:
        """Drop cached state that may include ``file_path``."""
        file_path = Path(file_path)
        self.indexer.invalidate_file(file_path, self.protected_dir)
        if _normalize(file_path) == _normalize(self.main_config.config_path):
            self.main_config.invalidate()
