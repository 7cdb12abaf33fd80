"""Task operations package.

Re-exports the public API::

    from taskgraph.core.task import move_within_tag, move_cross_tag, ...

Sub-modules:
- ``_helpers``: Shared result type and reference rewriting
- ``mutations``: Add, remove, promote and dependency edits
- ``move``: Within-tag relabel/swap and batch moves
- ``cross_tag``: Cross-tag moves with conflict resolution
"""

from taskgraph.core.task._helpers import TaskMutationResult
from taskgraph.core.task.cross_tag import (
    CrossingEdge,
    CrossTagMoveResult,
    dependency_closure,
    find_crossing_edges,
    move_cross_tag,
)
from taskgraph.core.task.move import (
    MOVE_NOOP,
    MOVE_RELABEL,
    MOVE_SWAP,
    BatchMoveResult,
    MoveResult,
    move_tasks_within_tag,
    move_within_tag,
)
from taskgraph.core.task.mutations import (
    add_dependency,
    add_subtask,
    add_task,
    clear_subtasks,
    promote_subtask,
    remove_dependency,
    remove_task,
)

__all__ = [
    "MOVE_NOOP",
    "MOVE_RELABEL",
    "MOVE_SWAP",
    "BatchMoveResult",
    "CrossTagMoveResult",
    "CrossingEdge",
    "MoveResult",
    "TaskMutationResult",
    "add_dependency",
    "add_subtask",
    "add_task",
    "clear_subtasks",
    "dependency_closure",
    "find_crossing_edges",
    "move_cross_tag",
    "move_tasks_within_tag",
    "move_within_tag",
    "promote_subtask",
    "remove_dependency",
    "remove_task",
]
