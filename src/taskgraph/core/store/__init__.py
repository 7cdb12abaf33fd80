"""
Tag store: persistence of the tasks file and tag partition management.

Sub-modules:
    migrations  - versioned schema migrations applied at load time
    io          - find_tasks_file, load_store, save_store, backups
    tags        - create_tag, rename_tag, delete_tag, copy_tag, list_tags
"""

from taskgraph.core.store.io import (  # noqa: F401
    DEFAULT_MAX_BACKUPS,
    backup_store,
    find_tasks_file,
    list_backups,
    load_store,
    save_store,
    validate_store_data,
)
from taskgraph.core.store.migrations import (  # noqa: F401
    CURRENT_SCHEMA_VERSION,
    MigrationError,
    migrate_store_data,
)
from taskgraph.core.store.tags import (  # noqa: F401
    DEFAULT_TAG_NAME,
    TagResult,
    copy_tag,
    create_tag,
    delete_tag,
    list_tags,
    normalize_tag_name,
    rename_tag,
)

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "DEFAULT_MAX_BACKUPS",
    "DEFAULT_TAG_NAME",
    "MigrationError",
    "TagResult",
    "backup_store",
    "copy_tag",
    "create_tag",
    "delete_tag",
    "find_tasks_file",
    "list_backups",
    "list_tags",
    "load_store",
    "migrate_store_data",
    "normalize_tag_name",
    "rename_tag",
    "save_store",
    "validate_store_data",
]
