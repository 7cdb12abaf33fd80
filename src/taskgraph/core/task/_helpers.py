"""Shared helpers used by mutations and the move engine."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from taskgraph.core.errors.graph import (
    DanglingReferenceError,
    DependencyError,
    IntegrityError,
    TaskNotFoundError,
)
from taskgraph.core.identity import format_task_id, is_subtask_address, resolve_task_id
from taskgraph.core.models import Tag, Task, TagStore
from taskgraph.core.validation.models import ValidationResult
from taskgraph.core.validation.rules import (
    DEP_MISSING,
    DEP_OK,
    GraphIndex,
    Node,
    classify_dependency,
    introduced_violations,
    iter_dependency_owners,
    node_label,
    validate_tasks,
)


@dataclass
class TaskMutationResult:
    """Outcome of a single-task edit (add, remove, promote, dependency change)."""

    store: TagStore
    tag: str
    operation: str
    task_id: str
    warnings: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "operation": self.operation,
            "tag": self.tag,
            "task_id": self.task_id,
        }
        payload.update(self.details)
        return payload


def require_task(tag: Tag, tag_name: str, task_id: int) -> Task:
    task = tag.find_task(task_id)
    if task is None:
        raise TaskNotFoundError([str(task_id)], tag=tag_name)
    return task


def dangling_task_refs(tasks: List[Task]) -> Dict[int, List[str]]:
    """
    Map each task id named by an unresolved dependency entry to the owners
    holding such entries.

    A task created under one of these ids would silently satisfy the entry.
    """
    index = GraphIndex(tasks)
    named: Dict[int, List[str]] = {}
    for node, item in iter_dependency_owners(tasks):
        for raw in item.dependencies:
            status, target = classify_dependency(index, node, raw)
            if status == DEP_MISSING:
                owners = named.setdefault(target[0], [])
                if node_label(node) not in owners:
                    owners.append(node_label(node))
    return named


def reject_dangling_adoption(tasks: List[Task], task_ids: Iterable[int], tag_name: str) -> None:
    """
    Raise if any of ``task_ids`` would turn an unresolved entry into an edge.

    Raises:
        DanglingReferenceError: Listing the ids and the entries naming them
    """
    named = dangling_task_refs(tasks)
    hits = {task_id: named[task_id] for task_id in sorted(set(task_ids)) if task_id in named}
    if hits:
        raise DanglingReferenceError(hits, tag=tag_name)


def next_task_id(tag: Tag) -> int:
    """Highest task id in the tag plus one, skipping ids named by unresolved entries."""
    named = dangling_task_refs(tag.tasks)
    candidate = max(tag.task_ids(), default=0) + 1
    while candidate in named:
        candidate += 1
    return candidate


def next_subtask_id(tasks: List[Task], parent: Task) -> int:
    """
    Next free subtask id under ``parent``.

    Skips ids named by an unresolved ``"parent.M"`` entry anywhere in the tag
    and ids a sibling's int entry names, since a new sibling with that id
    would capture the entry.
    """
    index = GraphIndex(tasks)
    reserved: Set[int] = set()
    for node, item in iter_dependency_owners(tasks):
        for raw in item.dependencies:
            status, target = classify_dependency(index, node, raw)
            if target is None:
                continue
            if status == DEP_MISSING and target[0] == parent.id and target[1]:
                reserved.add(target[1])
            elif node[0] == parent.id and node[1] and target[1] == 0 and not is_subtask_address(raw):
                reserved.add(target[0])

    candidate = max((s.id for s in parent.subtasks), default=0) + 1
    while candidate in reserved:
        candidate += 1
    return candidate


def insert_sorted(tasks: List[Task], task: Task) -> None:
    """Insert ``task`` before the first task with a larger id."""
    for position, existing in enumerate(tasks):
        if existing.id > task.id:
            tasks.insert(position, task)
            return
    tasks.append(task)


def index_of(tasks: List[Task], task: Task) -> int:
    """Position of ``task`` by identity."""
    for position, existing in enumerate(tasks):
        if existing is task:
            return position
    raise ValueError("task is not in the list")


def relabel_references(tasks: List[Task], mapping: Dict[int, int]) -> None:
    """
    Rewrite every reference to top-level task ids according to ``mapping``.

    Covers task dependencies, subtask dependencies (ints resolving to a
    top-level task and ``"N.M"`` addresses) and ``parentTaskId``. Resolution
    uses the ids as they were before the relabel, so apply this before
    changing the tasks' own ids.

    Raises:
        DependencyError: If a subtask's int dependency would become
            indistinguishable from one of its sibling subtask ids
    """
    index = GraphIndex(tasks)

    for task in tasks:
        task.dependencies = [mapping.get(dep, dep) for dep in task.dependencies]
        if task.parent_task_id is not None:
            task.parent_task_id = mapping.get(task.parent_task_id, task.parent_task_id)

        siblings = index.subtask_ids.get(task.id, set())
        for subtask in task.subtasks:
            rewritten = []
            for raw in subtask.dependencies:
                if is_subtask_address(raw):
                    ref = resolve_task_id(raw)
                    rewritten.append(
                        format_task_id(mapping.get(ref.task_id, ref.task_id), ref.subtask_id)
                    )
                    continue

                status, target = classify_dependency(index, (task.id, subtask.id), raw)
                if status == DEP_OK and target[1] == 0 and target[0] in mapping:
                    new_id = mapping[target[0]]
                    if new_id in siblings:
                        raise DependencyError(
                            f"Subtask {format_task_id(task.id, subtask.id)} depends on task {target[0]}; "
                            f"renumbering it to {new_id} would collide with sibling subtask {new_id}",
                            task_id=format_task_id(task.id, subtask.id),
                            dependency_id=str(target[0]),
                        )
                    rewritten.append(new_id)
                else:
                    rewritten.append(raw)
            subtask.dependencies = rewritten


def drop_references(tasks: List[Task], removed: Set[Node], reason: str) -> List[str]:
    """
    Remove dependency entries that resolve to any node in ``removed``.

    Returns a warning line per dropped edge.
    """
    index = GraphIndex(tasks)
    warnings = []
    for node, item in iter_dependency_owners(tasks):
        if node in removed:
            continue
        kept = []
        for raw in item.dependencies:
            status, target = classify_dependency(index, node, raw)
            if status == DEP_OK and target in removed:
                warnings.append(f"Removed dependency {node_label(node)} -> {node_label(target)} ({reason})")
            else:
                kept.append(raw)
        if len(kept) != len(item.dependencies):
            item.dependencies = kept
    return warnings


def check_integrity(before: ValidationResult, tasks: List[Task], tag_name: str) -> ValidationResult:
    """
    Re-validate after a mutation and reject newly introduced violations.

    Pre-existing violations are tolerated; only ones the operation created
    abort it.

    Raises:
        IntegrityError: Listing the introduced violations
    """
    after = validate_tasks(tasks, tag=tag_name)
    introduced = introduced_violations(before, after)
    if introduced:
        raise IntegrityError(
            f"Operation would introduce {len(introduced)} violation(s) in tag '{tag_name}'",
            tag=tag_name,
            violations=[v.to_dict() for v in introduced],
        )
    return after
