"""
Shared fixtures for yiinav tests.

Builds a miniature Yii 1.1 application under tmp_path:

    ws/
      index.php
      framework/Yii.php, framework/zii/widgets/CMenu.php, framework/web/CController.php
      protected/config/main.php
      protected/components/Controller.php
      protected/components/behaviors/TimestampBehavior.php
      protected/extensions/behaviors/AuditBehavior.php
      protected/controllers/SiteController.php, SowInfoController.php
      protected/models/Post.php
      protected/views/layouts/main.php, column1.php
      protected/views/site/index.php, _form.php, contact.php
      protected/views/sowInfo/index.php
      protected/modules/admin/controllers/UserController.php
      protected/modules/admin/views/user/update.php, _grid.php
      protected/modules/admin/views/layouts/admin.php
"""
from pathlib import Path
from textwrap import dedent

import pytest

from yiinav.navigator.utils.resolution.resolver import ResolverRegistry


SITE_CONTROLLER = """\
<?php
class SiteController extends Controller
{
    public $layout = '//layouts/column1';

    public function actions()
    {
        return array(
            'captcha' => array('class' => 'CCaptchaAction'),
        );
    }

    public function actionIndex()
    {
        $this->render('index');
    }

    public function actionContact()
    {
        // $this->render('commented_out');
        $this->renderPartial('form');
        $url = $this->createUrl('site/index');
        $this->render('contact', array('url' => $url));
    }

    public function actionAbout()
    {
        $this->render('about');
    }
}
"""

SOW_INFO_CONTROLLER = """\
<?php
class SowInfoController extends Controller
{
    public function actionIndex()
    {
        $this->render('index');
    }

    public function actionLoadAll()
    {
        echo CJSON::encode(array());
    }
}
"""

USER_CONTROLLER = """\
<?php
class UserController extends Controller
{
    public $layout = 'admin';

    public function actionUpdate($id)
    {
        $this->render('update', array('id' => $id));
    }

    public function actionDelete($id)
    {
        $this->redirect($this->createUrl('user/update', array('id' => $id)));
    }
}
"""

POST_MODEL = """\
<?php
Yii::import('application.models.*');

class Post extends CActiveRecord
{
    public $title;
    protected static $cache;

    public function behaviors()
    {
        return array(
            'timestamp' => array(
                'class' => 'TimestampBehavior',
            ),
            'audit' => array(
                'class' => 'AuditBehavior',
            ),
            'ghost' => array(
                'class' => 'GhostBehavior',
            ),
        );
    }

    public function tableName()
    {
        return 'post';
    }
}
"""

MAIN_CONFIG = """\
<?php
// main application configuration
return array(
    'basePath' => dirname(__FILE__) . DIRECTORY_SEPARATOR . '..',
    'name' => 'Test Application',
    'import' => array(
        'application.models.*',
        'application.components.*',
        // 'application.extensions.*',
        "zii.widgets.CMenu",
    ),
    'modules' => array('admin'),
);
"""

FILES = {
    "index.php": "<?php\n$yii = dirname(__FILE__) . '/framework/yii.php';\nrequire_once($yii);\nYii::createWebApplication($config)->run();\n",
    "framework/Yii.php": "<?php\nclass Yii extends YiiBase {}\n",
    "framework/zii/widgets/CMenu.php": "<?php\nclass CMenu extends CWidget {}\n",
    "framework/web/CController.php": "<?php\nclass CController extends CBaseController {}\n",
    "protected/config/main.php": MAIN_CONFIG,
    "protected/components/Controller.php": "<?php\nclass Controller extends CController\n{\n    public $layout = '//layouts/column1';\n}\n",
    "protected/components/behaviors/TimestampBehavior.php": (
        "<?php\nclass TimestampBehavior extends CActiveRecordBehavior\n{\n"
        "    public $createAttribute = 'created_at';\n\n"
        "    public function beforeSave($event)\n    {\n        return true;\n    }\n}\n"
    ),
    "protected/extensions/behaviors/AuditBehavior.php": (
        "<?php\nclass AuditBehavior extends CActiveRecordBehavior\n{\n}\n"
    ),
    "protected/controllers/SiteController.php": SITE_CONTROLLER,
    "protected/controllers/SowInfoController.php": SOW_INFO_CONTROLLER,
    "protected/models/Post.php": POST_MODEL,
    "protected/views/layouts/main.php": "<html><?php echo $content; ?></html>\n",
    "protected/views/layouts/column1.php": "<?php $this->beginContent('//layouts/main'); ?>\n<?php $this->endContent(); ?>\n",
    "protected/views/site/index.php": "<h1>Index</h1>\n<?php $this->renderPartial('_form'); ?>\n",
    "protected/views/site/_form.php": "<form></form>\n",
    "protected/views/site/contact.php": "<?php $this->renderPartial('form'); ?>\n<a href=\"<?php echo $this->createUrl('site/about'); ?>\">About</a>\n",
    "protected/views/sowInfo/index.php": "<p>sow info</p>\n",
    "protected/modules/admin/controllers/UserController.php": USER_CONTROLLER,
    "protected/modules/admin/views/user/update.php": "<?php $this->renderPartial('grid'); ?>\n",
    "protected/modules/admin/views/user/_grid.php": "<table></table>\n",
    "protected/modules/admin/views/layouts/admin.php": "<div><?php echo $content; ?></div>\n",
}


def write_file(root: Path, relative: str, content: str = "") -> Path:
    """Write a file below root, creating parent directories."""
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path) -> Path:
    """Miniature Yii application root."""
    root = tmp_path / "ws"
    for relative, content in FILES.items():
        write_file(root, relative, content)
    return root


@pytest.fixture
def protected(workspace) -> Path:
    return workspace / "protected"


@pytest.fixture
def registry(workspace) -> ResolverRegistry:
    """Resolver registry bound to the miniature application."""
    return ResolverRegistry(workspace)


@pytest.fixture
def php():
    """Dedent inline PHP snippets."""
    return lambda text: dedent(text).lstrip("\n")
