"""
Path resolution engine for Yii 1.1 conventions.

Modules:
- references: reference kinds, notation styles and result records
- scanner: lexical extraction of symbolic references from PHP text
- context: module/controller context derived from a document path
- resolver: per-kind resolvers and the dispatching registry
- indexer: lazy class/behavior index with cache invalidation
- main_config: import list of protected/config/main.php
- diagnostics: document checker and diagnostic report
- locator: view template to controller action lookup
"""
