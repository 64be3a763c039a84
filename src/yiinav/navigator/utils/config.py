"""
yiinav Configuration Loader.

Loads configuration from .yiinav/config.yaml for directory conventions and
behavior indexing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = ".yiinav"
CONFIG_FILE = "config.yaml"

DEFAULT_BEHAVIOR_BASE_CLASS = "CActiveRecordBehavior"
DEFAULT_MAIN_CONFIG = "config/main.php"


@dataclass(frozen=True)
class DirectoryNames:
    """
    Directory names of the Yii application layout.

    All paths are derived from a workspace root; nothing here touches the
    file system.
    """

    protected: str = "protected"
    views: str = "views"
    controllers: str = "controllers"
    modules: str = "modules"
    framework: str = "framework"

    def protected_dir(self, root: Path) -> Path:
        return Path(root) / self.protected

    def modules_dir(self, root: Path) -> Path:
        return self.protected_dir(root) / self.modules

    def module_dir(self, root: Path, module_name: str) -> Path:
        return self.modules_dir(root) / module_name

    def views_dir(self, root: Path, module_name: Optional[str] = None) -> Path:
        """Views directory of a module, or of the main application."""
        if module_name:
            return self.module_dir(root, module_name) / self.views
        return self.protected_dir(root) / self.views

    def controllers_dir(self, root: Path, module_name: Optional[str] = None) -> Path:
        """Controllers directory of a module, or of the main application."""
        if module_name:
            return self.module_dir(root, module_name) / self.controllers
        return self.protected_dir(root) / self.controllers

    def framework_dir(self, root: Path) -> Path:
        return Path(root) / self.framework


def load_yiinav_config(workspace_root: Path) -> Dict[str, Any]:
    """
    Load .yiinav/config.yaml configuration file.

    Args:
        workspace_root: Workspace root path

    Returns:
        Parsed configuration dict, or empty dict if file doesn't exist

    Example config:
        enabled: true
        paths:
          protected: protected
          views: views
          framework: vendor/yiisoft/yii/framework
        behaviors:
          base_class: CActiveRecordBehavior
        main_config: config/main.php
    """
    config_path = Path(workspace_root) / CONFIG_DIR / CONFIG_FILE

    if not config_path.exists():
        return {}

    try:
        with open(config_path) as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_path, e)
        return {}

    if not isinstance(config, dict):
        return {}
    return config


def get_directory_names(workspace_root: Path) -> DirectoryNames:
    """
    Get directory conventions with defaults applied.

    Args:
        workspace_root: Workspace root path

    Returns:
        DirectoryNames built from the ``paths`` section
    """
    config = load_yiinav_config(workspace_root)
    paths = config.get("paths") or {}

    overrides = {}
    for key in ("protected", "views", "controllers", "modules", "framework"):
        value = paths.get(key)
        if value is None:
            continue
        if not isinstance(value, str) or not value.strip():
            logger.warning("Ignoring invalid paths.%s value: %r", key, value)
            continue
        overrides[key] = value.strip().strip("/")

    return DirectoryNames(**overrides)


def get_behavior_config(workspace_root: Path) -> Dict[str, Any]:
    """
    Get behavior indexing configuration.

    Returns:
        Behavior configuration with defaults
    """
    config = load_yiinav_config(workspace_root)
    behavior_config = dict(config.get("behaviors") or {})

    defaults = {
        "base_class": DEFAULT_BEHAVIOR_BASE_CLASS,
    }

    for key, default_value in defaults.items():
        if key not in behavior_config:
            behavior_config[key] = default_value

    return behavior_config


def get_main_config_path(workspace_root: Path, names: Optional[DirectoryNames] = None) -> Path:
    """Absolute path of the application's main.php configuration."""
    names = names or get_directory_names(workspace_root)
    config = load_yiinav_config(workspace_root)
    relative = config.get("main_config") or DEFAULT_MAIN_CONFIG
    return names.protected_dir(workspace_root) / relative


def is_enabled(workspace_root: Path) -> bool:
    """
    Check whether navigation is enabled for the workspace.

    Returns:
        False only when the config explicitly sets ``enabled: false``
    """
    config = load_yiinav_config(workspace_root)
    return config.get("enabled", True) is not False
