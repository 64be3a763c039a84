"""
Controller Locator Tests
========================
Navigation from view templates to the controller action rendering them,
and from an action to the views it renders.
"""
import pytest

from yiinav.navigator.utils.resolution.locator import ControllerLocator

pytestmark = pytest.mark.resolver


@pytest.fixture
def locator(registry):
    return ControllerLocator(registry)


def test_locate_action_rendering_view(locator, protected):
    """
    Given: views/site/index.php rendered by SiteController::actionIndex
    When: Locating its controller
    Then: The controller file and action line are returned
    """
    match = locator.locate(protected / "views/site/index.php")

    assert match.is_found
    assert match.controller_path == protected / "controllers/SiteController.php"
    assert match.action_name == "actionIndex"
    assert match.action_line == 12


def test_locate_partial_rendered_without_underscore(locator, protected):
    match = locator.locate(protected / "views/site/_form.php")

    assert match.action_name == "actionContact"


def test_locate_camel_case_views_directory(locator, protected):
    match = locator.locate(protected / "views/sowInfo/index.php")

    assert match.controller_path == protected / "controllers/SowInfoController.php"
    assert match.action_name == "actionIndex"


def test_locate_falls_back_to_action_named_like_view(locator, protected):
    """
    Given: views/sowInfo/load_all.php that no action renders
    When: Locating its controller
    Then: actionLoadAll is matched by name
    """
    match = locator.locate(protected / "views/sowInfo/load_all.php")

    assert match.action_name == "actionLoadAll"


def test_locate_in_module(locator, protected):
    match = locator.locate(protected / "modules/admin/views/user/update.php")

    assert match.controller_path == protected / "modules/admin/controllers/UserController.php"
    assert match.action_name == "actionUpdate"


def test_locate_controller_without_matching_action(locator, protected):
    match = locator.locate(protected / "modules/admin/views/user/_grid.php")

    assert match.is_found
    assert match.action_name is None
    assert match.to_dict()["action"] is None


@pytest.mark.parametrize(
    "relative",
    ["controllers/SiteController.php", "models/Post.php", "views/orphan/list.php"],
)
def test_locate_without_controller(locator, protected, relative):
    match = locator.locate(protected / relative)

    assert not match.is_found
    assert match.error


def test_views_for_action(locator, protected):
    """
    Given: actionContact renders the 'form' partial and the 'contact' view
    When: Listing the views of the action
    Then: Both resolve, in source order, and the commented render is skipped
    """
    controller = protected / "controllers/SiteController.php"
    offset = controller.read_text().index("actionContact")

    resolved = locator.views_for_action(controller, offset)

    assert [r.existing_path for r in resolved] == [
        protected / "views/site/_form.php",
        protected / "views/site/contact.php",
    ]


def test_views_for_offset_outside_actions(locator, protected):
    controller = protected / "controllers/SiteController.php"

    assert locator.views_for_action(controller, 0) == []
    assert locator.views_for_action(protected / "controllers/GoneController.php", 0) == []
