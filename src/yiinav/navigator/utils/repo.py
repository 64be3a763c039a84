"""
Workspace root detection utility.

Finds the Yii workspace root by searching upward for a .yiinav/ directory or
for a directory holding the application's protected/ folder.
"""

from pathlib import Path
from typing import Optional

from yiinav.navigator.utils.config import CONFIG_DIR, DirectoryNames


def find_workspace_root(start: Path = None, names: Optional[DirectoryNames] = None) -> Path:
    """
    Find workspace root by searching upward.

    Args:
        start: Starting directory (default: cwd)
        names: Directory conventions (default: stock Yii layout)

    Returns:
        Path to workspace root

    Note:
        If no marker is found, returns the starting directory (cwd).
        Resolution still works there, it just finds nothing.
    """
    names = names or DirectoryNames()
    current = start or Path.cwd()
    current = current.resolve()
    if current.is_file():
        current = current.parent

    while current != current.parent:
        if (current / CONFIG_DIR).is_dir():
            return current
        if (current / names.protected).is_dir():
            return current
        current = current.parent

    return start.resolve() if start else Path.cwd().resolve()


def is_yii_project(root: Path, names: Optional[DirectoryNames] = None) -> bool:
    """
    Check whether a directory looks like a Yii 1.1 application.

    Accepts a bundled framework (framework/Yii.php), or a protected directory
    together with one of: main.php config, a controllers directory, or an
    index.php entry script that bootstraps Yii.
    """
    names = names or DirectoryNames()
    root = Path(root)

    if (names.framework_dir(root) / "Yii.php").is_file():
        return True

    protected = names.protected_dir(root)
    if not protected.is_dir():
        return False

    if (protected / "config" / "main.php").is_file():
        return True
    if names.controllers_dir(root).is_dir():
        return True

    index = root / "index.php"
    if index.is_file():
        try:
            content = index.read_text(encoding="utf-8", errors="replace")
        except OSError:
            return False
        return "Yii" in content or names.framework in content

    return False
