"""
Context Deriver Tests
=====================
Module and controller derivation from document paths.
"""
from pathlib import Path

import pytest

from yiinav.navigator.utils.config import DirectoryNames
from yiinav.navigator.utils.resolution.context import (
    ContextDeriver,
    DocumentLocation,
    controller_class_to_id,
    controller_id_to_class_name,
)

ROOT = Path("/ws")


@pytest.fixture
def deriver():
    return ContextDeriver()


@pytest.mark.parametrize(
    "relative, module, controller, location",
    [
        ("protected/views/site/index.php", None, "site", DocumentLocation.VIEWS),
        ("protected/views/layouts/main.php", None, "layouts", DocumentLocation.VIEWS),
        ("protected/modules/admin/views/user/update.php", "admin", "user", DocumentLocation.VIEWS),
        ("protected/controllers/SiteController.php", None, "Site", DocumentLocation.CONTROLLERS),
        ("protected/modules/shop/controllers/CartController.php", "shop", "Cart", DocumentLocation.CONTROLLERS),
        ("protected/models/Post.php", None, None, DocumentLocation.OTHER),
        ("protected/views/orphan.php", None, None, DocumentLocation.OTHER),
        ("protected/modules/shop/components/Cart.php", "shop", None, DocumentLocation.OTHER),
    ],
)
def test_derive_context(deriver, relative, module, controller, location):
    """
    Given: A document path inside the workspace
    When: Deriving its context
    Then: Module, controller and location follow the directory layout
    """
    context = deriver.derive(ROOT / relative, ROOT)

    assert context.module_name == module
    assert context.controller_name == controller
    assert context.location == location


def test_derive_outside_workspace_is_empty(deriver):
    context = deriver.derive(Path("/elsewhere/protected/views/site/index.php"), ROOT)

    assert context.module_name is None
    assert context.controller_name is None
    assert context.location == DocumentLocation.OTHER


def test_views_dir_is_module_aware(deriver):
    module_context = deriver.derive(ROOT / "protected/modules/admin/views/user/update.php", ROOT)
    main_context = deriver.derive(ROOT / "protected/views/site/index.php", ROOT)

    assert module_context.views_dir == ROOT / "protected/modules/admin/views"
    assert module_context.main_views_dir == ROOT / "protected/views"
    assert main_context.views_dir == ROOT / "protected/views"


def test_custom_directory_names():
    """
    Given: Directory names overridden by configuration
    When: Deriving context
    Then: The configured names are used
    """
    names = DirectoryNames(protected="app", views="templates")
    context = ContextDeriver(names).derive(ROOT / "app/templates/post/index.php", ROOT)

    assert context.controller_name == "post"
    assert context.views_dir == ROOT / "app/templates"


@pytest.mark.parametrize(
    "name, separators, lowercase_first, expected",
    [
        ("sow_info", "_", False, "SowInfo"),
        ("sow_info", "_", True, "sowInfo"),
        ("site", "_", False, "Site"),
        ("sow-info", "-_", False, "SowInfo"),
        ("SOW", "_", False, "Sow"),
    ],
)
def test_controller_id_to_class_name(name, separators, lowercase_first, expected):
    assert controller_id_to_class_name(name, separators, lowercase_first) == expected


def test_controller_class_to_id():
    assert controller_class_to_id("Site") == "site"
    assert controller_class_to_id("SowInfo") == "sowInfo"
