"""Core task graph operations for taskgraph.

The operation surface: every function takes a TagStore and returns a result
carrying a new store snapshot.
"""

from taskgraph.core.identity import TaskRef, format_task_id, parse_task_ids, resolve_task_id
from taskgraph.core.models import Subtask, Tag, TagMetadata, TagStore, Task
from taskgraph.core.store import (
    copy_tag,
    create_tag,
    delete_tag,
    find_tasks_file,
    list_tags,
    load_store,
    rename_tag,
    save_store,
)
from taskgraph.core.task import (
    add_dependency,
    add_subtask,
    add_task,
    clear_subtasks,
    move_cross_tag,
    move_tasks_within_tag,
    move_within_tag,
    promote_subtask,
    remove_dependency,
    remove_task,
)
from taskgraph.core.validation import fix_dependencies, fix_tasks, validate_tags, validate_tasks

__all__ = [
    "Subtask",
    "Tag",
    "TagMetadata",
    "TagStore",
    "Task",
    "TaskRef",
    "add_dependency",
    "add_subtask",
    "add_task",
    "clear_subtasks",
    "copy_tag",
    "create_tag",
    "delete_tag",
    "find_tasks_file",
    "fix_dependencies",
    "fix_tasks",
    "format_task_id",
    "list_tags",
    "load_store",
    "move_cross_tag",
    "move_tasks_within_tag",
    "move_within_tag",
    "parse_task_ids",
    "promote_subtask",
    "remove_dependency",
    "remove_task",
    "rename_tag",
    "resolve_task_id",
    "save_store",
    "validate_tags",
    "validate_tasks",
]
