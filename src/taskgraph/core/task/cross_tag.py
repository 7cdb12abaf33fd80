"""
Cross-tag moves with dependency-edge reconciliation.

Moving tasks to another tag may split dependency edges across the two
graphs. Such edges are reported as conflicts unless the caller picks a
resolution:

- ``with_dependencies``: also move everything the tasks depend on
- ``ignore_dependencies``: move anyway and drop each crossing edge

Subtasks always travel with their parent task; a bare subtask address is
rejected. Unresolved entries on the moving tasks are dropped with a tip so
that they cannot start resolving in the target tag.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Set, Tuple, Union

from taskgraph.core.errors.graph import (
    CrossTagDependencyConflictError,
    SameTagMoveError,
    SubtaskMoveError,
    TaskIdCollisionError,
    TaskNotFoundError,
)
from taskgraph.core.identity import TaskIdLike, parse_task_ids
from taskgraph.core.models import Tag, Task, TagStore
from taskgraph.core.store.tags import normalize_tag_name
from taskgraph.core.task._helpers import check_integrity, reject_dangling_adoption
from taskgraph.core.validation.rules import (
    DEP_MISSING,
    DEP_OK,
    GraphIndex,
    Node,
    classify_dependency,
    iter_dependency_owners,
    node_label,
    validate_tasks,
)

logger = logging.getLogger(__name__)

DEPENDENT = "dependent"
DEPENDENCY = "dependency"
UNRESOLVED = "unresolved"


class CrossingEdge(NamedTuple):
    """A dependency edge with exactly one end in the move set."""

    owner: Node
    target: Node
    direction: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": node_label(self.owner),
            "dependency_id": node_label(self.target),
            "direction": self.direction,
        }


@dataclass
class CrossTagMoveResult:
    """Outcome of a committed cross-tag move."""

    store: TagStore
    source_tag: str
    target_tag: str
    requested_ids: List[int]
    moved_ids: List[int]
    dropped_edges: List[Dict[str, Any]] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_tag": self.source_tag,
            "target_tag": self.target_tag,
            "requested_ids": list(self.requested_ids),
            "moved_ids": list(self.moved_ids),
            "moved_count": len(self.moved_ids),
            "dropped_edges": list(self.dropped_edges),
            "tips": list(self.tips),
        }


def _resolved_edges(tasks: List[Task]):
    """Yield ``(owner, raw, target)`` for every resolvable dependency entry."""
    index = GraphIndex(tasks)
    for node, item in iter_dependency_owners(tasks):
        for raw in item.dependencies:
            status, target = classify_dependency(index, node, raw)
            if status == DEP_OK:
                yield node, raw, target


def find_crossing_edges(tasks: List[Task], move_set: Set[int]) -> List[CrossingEdge]:
    """
    Edges between the move set and the rest of the tag.

    A subtask belongs to the move set when its parent does. ``dependent``
    edges point into the move set from a staying task; ``dependency`` edges
    point out of it to a staying task.
    """
    edges: List[CrossingEdge] = []
    for owner, _raw, target in _resolved_edges(tasks):
        owner_moves = owner[0] in move_set
        target_moves = target[0] in move_set
        if owner_moves and not target_moves:
            edges.append(CrossingEdge(owner, target, DEPENDENCY))
        elif target_moves and not owner_moves:
            edges.append(CrossingEdge(owner, target, DEPENDENT))
    return edges


def dependency_closure(tasks: List[Task], move_set: Set[int]) -> Set[int]:
    """Grow ``move_set`` with every task it transitively depends on."""
    edges: Dict[int, Set[int]] = {}
    for owner, _raw, target in _resolved_edges(tasks):
        edges.setdefault(owner[0], set()).add(target[0])

    closure = set(move_set)
    frontier = list(move_set)
    while frontier:
        current = frontier.pop()
        for dep in edges.get(current, ()):
            if dep not in closure:
                closure.add(dep)
                frontier.append(dep)
    return closure


def _check_collisions(dest: Tag, move_set: Set[int], source_tag: str, target_tag: str) -> None:
    collisions = sorted(i for i in move_set if dest.find_task(i) is not None)
    if collisions:
        raise TaskIdCollisionError(collisions, source_tag=source_tag, target_tag=target_tag)


def _drop_unresolved(tasks: List[Task], move_set: Set[int]) -> List[Tuple[Node, Union[int, str]]]:
    """
    Strip unresolved entries from moving tasks and their subtasks.

    Left in place they could start resolving against the destination tag.
    Returns the ``(owner, raw)`` pairs removed.
    """
    index = GraphIndex(tasks)
    removed: List[Tuple[Node, Union[int, str]]] = []
    for node, item in iter_dependency_owners(tasks):
        if node[0] not in move_set:
            continue
        kept = []
        for raw in item.dependencies:
            status, _target = classify_dependency(index, node, raw)
            if status == DEP_MISSING:
                removed.append((node, raw))
            else:
                kept.append(raw)
        if len(kept) != len(item.dependencies):
            item.dependencies = kept
    return removed


def _drop_edges(tasks: List[Task], edges: List[CrossingEdge]) -> None:
    drop: Set[Tuple[Node, Node]] = {(e.owner, e.target) for e in edges}
    index = GraphIndex(tasks)
    for node, item in iter_dependency_owners(tasks):
        kept = []
        for raw in item.dependencies:
            status, target = classify_dependency(index, node, raw)
            if status == DEP_OK and (node, target) in drop:
                continue
            kept.append(raw)
        if len(kept) != len(item.dependencies):
            item.dependencies = kept


def move_cross_tag(
    store: TagStore,
    source_tag: str,
    target_tag: str,
    task_ids: Union[str, List[TaskIdLike]],
    with_dependencies: bool = False,
    ignore_dependencies: bool = False,
) -> CrossTagMoveResult:
    """
    Move top-level tasks (with their subtasks) from one tag to another.

    Args:
        store: Store snapshot (not mutated)
        source_tag: Tag the tasks are in
        target_tag: Tag to move them to
        task_ids: Ids as a list or comma-separated string
        with_dependencies: Also move every task the moved tasks depend on
        ignore_dependencies: Drop dependency edges that would cross tags

    Returns:
        CrossTagMoveResult; ``moved_ids`` lists tasks in source order

    Raises:
        SameTagMoveError: If source and target are the same tag
        SubtaskMoveError: If any id is a subtask address
        TagNotFoundError: If either tag does not exist
        TaskNotFoundError: If a requested id is not in the source tag
        TaskIdCollisionError: If a moving id already exists in the target tag
        DanglingReferenceError: If an unresolved entry in the target tag
            names a moving id
        CrossTagDependencyConflictError: If edges would cross tags and no
            resolution covers them
    """
    source_name = normalize_tag_name(source_tag)
    target_name = normalize_tag_name(target_tag)
    if source_name == target_name:
        raise SameTagMoveError(source_name)

    refs = parse_task_ids(task_ids)
    subtasks = [str(r) for r in refs if r.is_subtask]
    if subtasks:
        raise SubtaskMoveError(subtasks)

    source = store.get_tag(source_name)
    dest = store.get_tag(target_name)

    requested: List[int] = []
    for ref in refs:
        if ref.task_id not in requested:
            requested.append(ref.task_id)

    missing = [str(i) for i in requested if source.find_task(i) is None]
    if missing:
        raise TaskNotFoundError(missing, tag=source_name)

    move_set = set(requested)
    _check_collisions(dest, move_set, source_name, target_name)

    crossing = find_crossing_edges(source.tasks, move_set)
    if crossing and not (with_dependencies or ignore_dependencies):
        raise CrossTagDependencyConflictError(
            [e.to_dict() for e in crossing],
            source_tag=source_name,
            target_tag=target_name,
            task_ids=requested,
        )

    if with_dependencies:
        move_set = dependency_closure(source.tasks, move_set)
        _check_collisions(dest, move_set, source_name, target_name)
        crossing = find_crossing_edges(source.tasks, move_set)
        if crossing and not ignore_dependencies:
            # Only tasks that stay behind and depend on the moved ones remain
            raise CrossTagDependencyConflictError(
                [e.to_dict() for e in crossing],
                source_tag=source_name,
                target_tag=target_name,
                task_ids=sorted(move_set),
            )

    reject_dangling_adoption(dest.tasks, move_set, target_name)

    new_store = store.copy()
    new_source = new_store.get_tag(source_name)
    new_dest = new_store.get_tag(target_name)
    before_source = validate_tasks(new_source.tasks)
    before_dest = validate_tasks(new_dest.tasks)

    tips: List[str] = []
    dropped_edges = [e.to_dict() for e in crossing]
    for owner, raw in _drop_unresolved(new_source.tasks, move_set):
        tip = (
            f"Removed unresolved dependency {node_label(owner)} -> {raw}: "
            f"it does not exist in tag '{source_name}'"
        )
        logger.warning("%s", tip)
        tips.append(tip)
        dropped_edges.append(
            {"task_id": node_label(owner), "dependency_id": str(raw), "direction": UNRESOLVED}
        )

    if crossing:
        _drop_edges(new_source.tasks, crossing)
        for edge in crossing:
            moved_end = edge.owner if edge.direction == DEPENDENCY else edge.target
            tip = (
                f"Removed dependency {node_label(edge.owner)} -> {node_label(edge.target)}: "
                f"task {moved_end[0]} moved to tag '{target_name}'"
            )
            logger.warning("%s", tip)
            tips.append(tip)

    moving = [t for t in new_source.tasks if t.id in move_set]
    new_source.tasks = [t for t in new_source.tasks if t.id not in move_set]
    new_dest.tasks.extend(moving)
    new_source.touch()
    new_dest.touch()

    check_integrity(before_source, new_source.tasks, source_name)
    check_integrity(before_dest, new_dest.tasks, target_name)

    moved_ids = [t.id for t in moving]
    logger.info(
        "Moved task(s) %s from tag '%s' to '%s'",
        ", ".join(str(i) for i in moved_ids),
        source_name,
        target_name,
    )
    return CrossTagMoveResult(
        store=new_store,
        source_tag=source_name,
        target_tag=target_name,
        requested_ids=requested,
        moved_ids=moved_ids,
        dropped_edges=dropped_edges,
        tips=tips,
    )
