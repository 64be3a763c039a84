"""yiinav - convention-based navigation for Yii 1.1 projects."""

__version__ = "0.4.0"
