"""
Lexical Scanner Tests
=====================
Comment stripping, brace matching and reference extraction.
"""
import pytest

from yiinav.navigator.utils.resolution.references import ReferenceKind
from yiinav.navigator.utils.resolution.scanner import (
    NOT_FOUND,
    TextIndex,
    extract_class,
    find_action_at,
    find_action_by_name,
    find_all_action_methods,
    find_behavior_class_entries,
    find_brace_delimited_body,
    find_import_calls,
    find_layout_assignments,
    find_method_offset,
    find_render_calls,
    find_route_building_calls,
    scan_references,
    strip_comments_and_preserve_strings,
)

pytestmark = pytest.mark.scanner


def test_strip_comments_keeps_comment_markers_inside_strings():
    """
    Given: A string literal containing // and /* */ and real comments around it
    When: Stripping comments
    Then: Only the real comments disappear
    """
    text = "$a = 'http://x/* y */'; // trailing\n/* block */$b = \"//not\";"

    result = strip_comments_and_preserve_strings(text)

    assert result == "$a = 'http://x/* y */'; \n$b = \"//not\";"


def test_strip_comments_with_layout_keeps_offsets():
    """
    Given: Text with a multi-line block comment
    When: Stripping comments with keep_layout
    Then: Length and newlines are unchanged
    """
    text = "a /* one\ntwo */ b // c\nd"

    result = strip_comments_and_preserve_strings(text, keep_layout=True)

    assert len(result) == len(text)
    assert result.count("\n") == text.count("\n")
    assert result.index("b") == text.index("b")
    assert "one" not in result


def test_apostrophe_in_inline_html_does_not_hide_comments():
    """
    Given: A view with an apostrophe in markup and a commented-out render
    When: Extracting render calls
    Then: Only the live render is found
    """
    text = (
        "<p>Don't panic</p>\n"
        "<?php // $this->render('hidden'); ?>\n"
        "<p>It's fine</p>\n"
        "<?php $this->renderPartial('_row'); /* $this->render('gone') */ ?>\n"
    )

    assert [c.value for c in find_render_calls(text)] == ["_row"]


def test_line_comment_ends_at_closing_tag():
    text = "<?php // note ?><b>Don't</b><?php $this->render('index'); ?>"

    stripped = strip_comments_and_preserve_strings(text, keep_layout=True)

    assert len(stripped) == len(text)
    assert "note" not in stripped
    assert [c.value for c in find_render_calls(text)] == ["index"]


def test_brace_body_ignores_braces_in_strings_and_comments():
    """
    Given: A method body containing braces inside strings and comments
    When: Finding the end of the body
    Then: The offset is just past the real closing brace
    """
    text = "function x() { $s = '}'; $t = \"{\\\"}\"; // }\n # }\n /* } */ if (1) { } }tail"

    end = find_brace_delimited_body(text, 0)

    assert text[end:] == "tail"


def test_brace_body_escaped_quote_parity():
    """
    Given: A string ending in an escaped backslash before the closing quote
    When: Finding the end of the body
    Then: The quote after two backslashes closes the string
    """
    text = "{ $s = 'a\\\\'; }rest"

    end = find_brace_delimited_body(text, 0)

    assert text[end:] == "rest"


def test_brace_body_unterminated_returns_not_found():
    assert find_brace_delimited_body("function x() { if (1) { }", 0) == NOT_FOUND
    assert find_brace_delimited_body("no braces at all", 0) == NOT_FOUND


def test_brace_body_skips_leading_closing_brace():
    text = "} { x }end"
    assert text[find_brace_delimited_body(text, 0):] == "end"


def test_brace_body_large_input_is_linear():
    """
    Given: A multi-megabyte body
    When: Finding its end
    Then: The scan completes and finds the final brace
    """
    body = "$x = 'a{b}c'; if ($y) { $z = \"}\"; }\n" * 100000
    text = "function big() {\n" + body + "}"

    assert find_brace_delimited_body(text, 0) == len(text)


def test_find_all_action_methods_excludes_actions_map(php):
    """
    Given: A controller with actions() and two action methods
    When: Listing action methods
    Then: Only actionXxx methods are returned with their body spans
    """
    text = php("""
        class A {
            public function actions() { return array(); }
            public function actionIndex() { $this->render('index'); }
            // public function actionGone() {}
            public function actionView($id) {
                if ($id) { echo '}'; }
            }
        }
    """)

    actions = find_all_action_methods(text)

    assert [a.name for a in actions] == ["actionIndex", "actionView"]
    index_action, view_action = actions
    assert text[index_action.body_start_offset] == "{"
    assert text[index_action.body_end_offset - 1] == "}"
    assert view_action.line == 4
    assert view_action.action_id == "view"


def test_find_action_at_unterminated_body_extends_to_end(php):
    text = php("""
        class A {
            public function actionIndex() {
                $this->render('index');
    """)

    action = find_action_at(text, text.index("render"))

    assert action is not None
    assert action.name == "actionIndex"
    assert action.body_end_offset == NOT_FOUND


def test_find_action_at_outside_any_action(php):
    text = php("""
        class A {
            public $layout = 'main';
            public function actionIndex() { }
        }
    """)

    assert find_action_at(text, text.index("layout")) is None


def test_find_action_by_name_ignores_case(php):
    text = php("""
        class A {
            public function actionLoadAll() { }
        }
    """)

    assert find_action_by_name(text, "actionloadall").name == "actionLoadAll"
    assert find_action_by_name(text, "actionMissing") is None


def test_find_render_calls(php):
    """
    Given: render and renderPartial calls, one in a comment
    When: Extracting render calls
    Then: Commented calls are skipped and partial calls are flagged
    """
    text = php("""
        $this->render('index', array());
        $this->renderPartial("_form");
        // $this->render('hidden');
        /* $this->render('hidden2'); */
        $controller::render ( 'static' );
    """)

    calls = find_render_calls(text)

    assert [(c.value, c.is_partial, c.quote) for c in calls] == [
        ("index", False, "'"),
        ("_form", True, '"'),
        ("static", False, "'"),
    ]
    assert text[calls[0].offset:calls[0].end_offset] == "index"


def test_find_import_route_layout_literals(php):
    text = php("""
        Yii::import('application.components.*');
        Yii :: import("zii.widgets.CMenu");
        $a = $this->createUrl('site/index');
        $b = Yii::app()->createAbsoluteUrl(array('admin/user/update', 'id' => 1));
        $c = $this->createUrl(['post/view']);
        $this->layout = '//layouts/column2';
        public $layout = 'main';
    """)

    assert [c.value for c in find_import_calls(text)] == ["application.components.*", "zii.widgets.CMenu"]
    assert [c.value for c in find_route_building_calls(text)] == [
        "site/index", "admin/user/update", "post/view",
    ]
    assert [c.value for c in find_layout_assignments(text)] == ["//layouts/column2", "main"]


def test_behavior_class_entries_scoped_to_behaviors_method(php):
    """
    Given: class entries inside behaviors() and inside another method
    When: Extracting behavior class entries
    Then: Only entries inside behaviors() are returned
    """
    text = php("""
        class Post {
            public function actions() {
                return array('captcha' => array('class' => 'CCaptchaAction'));
            }
            public function behaviors() {
                return array(
                    'ts' => array('class' => 'TimestampBehavior'),
                    'tree' => array("class" => "zii.behaviors.CTreeBehavior"),
                );
            }
        }
    """)

    entries = find_behavior_class_entries(text)

    assert [e.value for e in entries] == ["TimestampBehavior", "zii.behaviors.CTreeBehavior"]


def test_behavior_entries_unterminated_body_scans_to_end(php):
    text = php("""
        public function behaviors() {
            return array('a' => array('class' => 'ABehavior'),
    """)

    assert [e.value for e in find_behavior_class_entries(text)] == ["ABehavior"]


def test_extract_class_record(php):
    text = php("""
        <?php
        /* class Fake extends Nothing { } */
        abstract class BaseBehavior extends CActiveRecordBehavior implements IBehavior
        {
            public $owner;
            private static $registry = array();
            public function attach($owner) { }
            protected static function helper() { }
        }
    """)

    record = extract_class(text, "/x/BaseBehavior.php")

    assert record.name == "BaseBehavior"
    assert record.parent_class_name == "CActiveRecordBehavior"
    assert record.is_abstract is True
    assert record.method_names == frozenset({"attach", "helper"})
    assert record.property_names == frozenset({"owner", "registry"})
    assert str(record.file_path) == "/x/BaseBehavior.php"


def test_extract_class_without_class():
    assert extract_class("<?php echo 'class Foo {';") is None


def test_find_method_offset_is_case_insensitive(php):
    text = php("""
        class A {
            public function ActionLoadAll() { }
        }
    """)

    assert find_method_offset(text, "actionloadall") == text.index("function")
    assert find_method_offset(text, "actionMissing") == NOT_FOUND


def test_text_index_positions():
    index = TextIndex("ab\ncd\n\nef")

    assert (index.position(0).line, index.position(0).column) == (0, 0)
    assert (index.position(4).line, index.position(4).column) == (1, 1)
    assert index.line_of(7) == 3


def test_scan_references_orders_by_offset_and_sets_kinds(php):
    text = php("""
        Yii::import('application.models.*');
        class SiteController {
            public $layout = 'main';
            public function actionIndex() {
                $this->renderPartial('_item');
                $this->render('index');
            }
        }
    """)

    references = scan_references(text, "/ws/protected/controllers/SiteController.php")

    assert [(r.kind, r.raw_text) for r in references] == [
        (ReferenceKind.IMPORT, "application.models.*"),
        (ReferenceKind.LAYOUT, "main"),
        (ReferenceKind.PARTIAL_VIEW, "_item"),
        (ReferenceKind.VIEW, "index"),
    ]
    layout = references[1]
    assert layout.source_range.start.line == 2
    assert text[layout.source_offset:layout.source_offset + 4] == "main"
