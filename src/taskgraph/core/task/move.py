"""
Within-tag moves: relabel a task id or swap two tasks.

``move_within_tag`` relabels ``from_id`` to ``to_id`` when ``to_id`` is free
(re-inserting the task in ascending id order) and swaps the two tasks when it
is taken. Either way every reference in the tag is rewritten to match.
Subtasks cannot be moved directly; promote them first.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from taskgraph.core.errors.graph import BatchSizeMismatchError, SubtaskMoveError, TaskGraphError
from taskgraph.core.identity import TaskIdLike, parse_task_ids, resolve_task_id
from taskgraph.core.models import TagStore
from taskgraph.core.store.tags import normalize_tag_name
from taskgraph.core.task._helpers import (
    check_integrity,
    index_of,
    insert_sorted,
    reject_dangling_adoption,
    relabel_references,
    require_task,
)
from taskgraph.core.validation.rules import validate_tasks

logger = logging.getLogger(__name__)

MOVE_NOOP = "noop"
MOVE_RELABEL = "relabel"
MOVE_SWAP = "swap"


@dataclass
class MoveResult:
    """Outcome of a single within-tag move."""

    store: TagStore
    tag: str
    from_id: int
    to_id: int
    action: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "from_id": self.from_id,
            "to_id": self.to_id,
            "action": self.action,
        }


@dataclass
class BatchMoveResult:
    """Outcome of sequential within-tag moves; failures do not roll back earlier pairs."""

    store: TagStore
    tag: str
    moved: List[MoveResult] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "moved": [m.to_dict() for m in self.moved],
            "failed": list(self.failed),
            "moved_count": len(self.moved),
            "failed_count": len(self.failed),
        }


def move_within_tag(store: TagStore, tag: str, from_id: TaskIdLike, to_id: TaskIdLike) -> MoveResult:
    """
    Relabel or swap a task inside one tag.

    Args:
        store: Store snapshot (not mutated)
        tag: Tag holding the task
        from_id: Current id of the task
        to_id: Desired id

    Returns:
        MoveResult whose ``action`` is noop, relabel or swap

    Raises:
        SubtaskMoveError: If either id is a subtask address
        TaskNotFoundError: If ``from_id`` is not in the tag
        DanglingReferenceError: If a free ``to_id`` is named by an unresolved entry
        IntegrityError: If the move would introduce a violation
    """
    name = normalize_tag_name(tag)
    source_ref = resolve_task_id(from_id)
    dest_ref = resolve_task_id(to_id)

    subtasks = [str(r) for r in (source_ref, dest_ref) if r.is_subtask]
    if subtasks:
        raise SubtaskMoveError(subtasks)

    source_id = source_ref.task_id
    dest_id = dest_ref.task_id

    new_store = store.copy()
    target = new_store.get_tag(name)
    task = require_task(target, name, source_id)

    if source_id == dest_id:
        target.touch()
        return MoveResult(store=new_store, tag=name, from_id=source_id, to_id=dest_id, action=MOVE_NOOP)

    before = validate_tasks(target.tasks)
    other = target.find_task(dest_id)

    if other is None:
        reject_dangling_adoption(target.tasks, [dest_id], name)
        relabel_references(target.tasks, {source_id: dest_id})
        task.id = dest_id
        target.tasks.pop(index_of(target.tasks, task))
        insert_sorted(target.tasks, task)
        action = MOVE_RELABEL
    else:
        relabel_references(target.tasks, {source_id: dest_id, dest_id: source_id})
        task.id, other.id = dest_id, source_id
        i, j = index_of(target.tasks, task), index_of(target.tasks, other)
        target.tasks[i], target.tasks[j] = target.tasks[j], target.tasks[i]
        action = MOVE_SWAP

    target.touch()
    check_integrity(before, target.tasks, name)

    logger.info("Moved task %d to %d in tag '%s' (%s)", source_id, dest_id, name, action)
    return MoveResult(store=new_store, tag=name, from_id=source_id, to_id=dest_id, action=action)


def move_tasks_within_tag(
    store: TagStore,
    tag: str,
    from_ids: Union[str, List[TaskIdLike]],
    to_ids: Union[str, List[TaskIdLike]],
) -> BatchMoveResult:
    """
    Apply ``from_ids[i] -> to_ids[i]`` moves in order.

    Ids may be lists or comma-separated strings. A failing pair is recorded
    with its error and the batch continues from the last good snapshot.

    Raises:
        InvalidTaskIdError: If any id is malformed (nothing is applied)
        BatchSizeMismatchError: If the two lists differ in length
    """
    name = normalize_tag_name(tag)
    sources = parse_task_ids(from_ids)
    destinations = parse_task_ids(to_ids)
    if len(sources) != len(destinations):
        raise BatchSizeMismatchError(len(sources), len(destinations))

    # Fail fast on an unknown tag before any pair runs
    store.get_tag(name)

    result = BatchMoveResult(store=store, tag=name)
    for source, destination in zip(sources, destinations):
        try:
            moved = move_within_tag(result.store, name, str(source), str(destination))
        except TaskGraphError as exc:
            logger.warning("Move %s -> %s in tag '%s' failed: %s", source, destination, name, exc)
            result.failed.append({"from_id": str(source), "to_id": str(destination), "error": exc.to_dict()})
            continue
        result.store = moved.store
        result.moved.append(moved)

    return result
