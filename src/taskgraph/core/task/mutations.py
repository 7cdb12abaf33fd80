"""
Task mutations: add, remove, promote, subtask clearing and dependency edits.

Every function takes a TagStore, works on a copy and returns a
TaskMutationResult carrying the new snapshot. Validation runs before the
edit and again before it is handed back; an edit that would introduce a
new violation raises IntegrityError and leaves the input untouched.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from taskgraph.core.errors.graph import (
    CircularDependencyError,
    DependencyError,
    InvalidTaskIdError,
    TaskIdCollisionError,
    TaskNotFoundError,
)
from taskgraph.core.identity import TaskIdLike, TaskRef, format_task_id, parse_task_ids, resolve_task_id
from taskgraph.core.models import Subtask, Task, TagStore
from taskgraph.core.store.tags import normalize_tag_name
from taskgraph.core.task._helpers import (
    TaskMutationResult,
    check_integrity,
    drop_references,
    insert_sorted,
    next_subtask_id,
    next_task_id,
    reject_dangling_adoption,
    require_task,
)
from taskgraph.core.validation.rules import (
    DEP_INVALID,
    DEP_OK,
    GraphIndex,
    build_dependency_graph,
    classify_dependency,
    find_path,
    iter_dependency_owners,
    node_label,
    validate_tasks,
)

logger = logging.getLogger(__name__)


def add_task(
    store: TagStore,
    tag: str,
    title: str,
    description: str = "",
    dependencies: Optional[List[TaskIdLike]] = None,
    priority: str = "medium",
    status: str = "pending",
    details: Optional[str] = None,
    test_strategy: Optional[str] = None,
    task_id: Optional[int] = None,
) -> TaskMutationResult:
    """
    Add a top-level task to a tag.

    Args:
        store: Store snapshot
        tag: Tag to add to
        title: Task title
        description: Task description
        dependencies: Ids of existing top-level tasks in the same tag
        priority: high, medium or low
        status: Initial status
        details: Optional implementation details
        test_strategy: Optional test strategy
        task_id: Explicit id (defaults to the highest id plus one, skipping
            ids that unresolved dependency entries name)

    Returns:
        TaskMutationResult with the new task id

    Raises:
        TaskIdCollisionError: If ``task_id`` is already used in the tag
        DanglingReferenceError: If ``task_id`` is named by an unresolved entry
        TaskNotFoundError: If a dependency does not exist
        pydantic.ValidationError: For an empty title or unknown status/priority
    """
    name = normalize_tag_name(tag)
    target = store.get_tag(name)

    deps: List[int] = []
    for dep in dependencies or []:
        ref = resolve_task_id(dep)
        if ref.is_subtask:
            raise DependencyError(
                f"Top-level tasks can only depend on tasks, not subtask {ref}",
                task_id=str(task_id or "new"),
                dependency_id=str(ref),
            )
        deps.append(ref.task_id)

    missing = [str(d) for d in deps if target.find_task(d) is None]
    if missing:
        raise TaskNotFoundError(missing, tag=name)

    if task_id is not None:
        new_id = resolve_task_id(task_id).task_id
        if target.find_task(new_id) is not None:
            raise TaskIdCollisionError([new_id], source_tag=name, target_tag=name)
        reject_dangling_adoption(target.tasks, [new_id], name)
    else:
        new_id = next_task_id(target)

    task = Task(
        id=new_id,
        title=title,
        description=description,
        status=status,
        priority=priority,
        details=details,
        test_strategy=test_strategy,
        dependencies=deps,
    )

    new_store = store.copy()
    new_tag = new_store.get_tag(name)
    before = validate_tasks(new_tag.tasks)
    insert_sorted(new_tag.tasks, task)
    new_tag.touch()
    check_integrity(before, new_tag.tasks, name)

    logger.info("Added task %d to tag '%s'", new_id, name)
    return TaskMutationResult(
        store=new_store,
        tag=name,
        operation="add",
        task_id=str(new_id),
        details={"title": task.title, "dependencies": list(deps)},
    )


def add_subtask(
    store: TagStore,
    tag: str,
    parent_id: TaskIdLike,
    title: str,
    description: str = "",
    dependencies: Optional[List[TaskIdLike]] = None,
    status: str = "pending",
    details: Optional[str] = None,
) -> TaskMutationResult:
    """
    Append a subtask to a parent task.

    ``dependencies`` entries follow subtask resolution: an int names a
    sibling subtask (else a top-level task), ``"N.M"`` any subtask.
    """
    name = normalize_tag_name(tag)
    parent_ref = resolve_task_id(parent_id)
    if parent_ref.is_subtask:
        raise InvalidTaskIdError(parent_id, reason="subtasks cannot have subtasks")

    new_store = store.copy()
    new_tag = new_store.get_tag(name)
    parent = require_task(new_tag, name, parent_ref.task_id)
    before = validate_tasks(new_tag.tasks)

    deps: List[Any] = []
    for dep in dependencies or []:
        ref = resolve_task_id(dep)
        deps.append(str(ref) if ref.is_subtask else ref.task_id)

    subtask_id = next_subtask_id(new_tag.tasks, parent)
    parent.subtasks.append(
        Subtask(
            id=subtask_id,
            title=title,
            description=description,
            status=status,
            details=details,
            dependencies=deps,
        )
    )
    new_tag.touch()
    check_integrity(before, new_tag.tasks, name)

    address = format_task_id(parent.id, subtask_id)
    logger.info("Added subtask %s to tag '%s'", address, name)
    return TaskMutationResult(
        store=new_store,
        tag=name,
        operation="add-subtask",
        task_id=address,
        details={"title": title, "dependencies": deps},
    )


def remove_task(store: TagStore, tag: str, task_id: TaskIdLike) -> TaskMutationResult:
    """
    Remove a task (with its subtasks) or a single subtask.

    Dependents lose the removed id from their dependency lists; each dropped
    edge is logged and returned as a warning.

    Raises:
        TaskNotFoundError: If the task or subtask does not exist
    """
    name = normalize_tag_name(tag)
    ref = resolve_task_id(task_id)

    new_store = store.copy()
    new_tag = new_store.get_tag(name)
    parent = require_task(new_tag, name, ref.task_id)
    before = validate_tasks(new_tag.tasks)

    if ref.is_subtask:
        subtask = parent.find_subtask(ref.subtask_id)
        if subtask is None:
            raise TaskNotFoundError([str(ref)], tag=name)
        removed = {(ref.task_id, ref.subtask_id)}
    else:
        removed = {(ref.task_id, 0)} | {(ref.task_id, s.id) for s in parent.subtasks}

    warnings = drop_references(new_tag.tasks, removed, reason=f"{ref} removed")
    for warning in warnings:
        logger.warning("%s in tag '%s'", warning, name)

    if ref.is_subtask:
        parent.subtasks = [s for s in parent.subtasks if s.id != ref.subtask_id]
    else:
        new_tag.tasks = [t for t in new_tag.tasks if t is not parent]
    new_tag.touch()
    check_integrity(before, new_tag.tasks, name)

    logger.info("Removed %s from tag '%s'", ref, name)
    return TaskMutationResult(
        store=new_store,
        tag=name,
        operation="remove",
        task_id=str(ref),
        warnings=warnings,
        details={"removed_dependencies": len(warnings)},
    )


def promote_subtask(store: TagStore, tag: str, subtask_address: TaskIdLike) -> TaskMutationResult:
    """
    Turn subtask ``N.M`` into a top-level task with id ``max + 1``, or the
    next id after it that no unresolved entry names.

    The new task keeps its top-level dependencies; sibling dependencies
    cannot be expressed by a task and are dropped with a warning. References
    to the subtask elsewhere in the tag are rewritten to the new id.

    Raises:
        InvalidTaskIdError: If the address is not ``N.M``
        TaskNotFoundError: If the parent or subtask does not exist
    """
    name = normalize_tag_name(tag)
    ref = resolve_task_id(subtask_address)
    if not ref.is_subtask:
        raise InvalidTaskIdError(subtask_address, reason="expected a subtask address 'N.M'")

    new_store = store.copy()
    new_tag = new_store.get_tag(name)
    parent = require_task(new_tag, name, ref.task_id)
    subtask = parent.find_subtask(ref.subtask_id)
    if subtask is None:
        raise TaskNotFoundError([str(ref)], tag=name)

    before = validate_tasks(new_tag.tasks)
    index = GraphIndex(new_tag.tasks)
    old_node = (ref.task_id, ref.subtask_id)
    new_id = next_task_id(new_tag)
    warnings: List[str] = []

    deps: List[int] = []
    for raw in subtask.dependencies:
        status, target = classify_dependency(index, old_node, raw)
        if status == DEP_OK and target[1] == 0:
            deps.append(target[0])
        else:
            warnings.append(f"Dropped dependency {ref} -> {raw} (tasks can only depend on tasks)")

    for node, item in iter_dependency_owners(new_tag.tasks):
        if node == old_node or node[1] == 0:
            continue
        rewritten: List[Any] = []
        for raw in item.dependencies:
            status, target = classify_dependency(index, node, raw)
            if status != DEP_OK or target != old_node:
                rewritten.append(raw)
            elif new_id in index.subtask_ids.get(node[0], ()):
                warnings.append(
                    f"Dropped dependency {node_label(node)} -> {ref} "
                    f"(new task id {new_id} is ambiguous with a sibling subtask)"
                )
            else:
                rewritten.append(new_id)
        item.dependencies = rewritten

    data: Dict[str, Any] = subtask.to_dict()
    data.update(id=new_id, dependencies=deps, parentTaskId=parent.id)
    parent.subtasks = [s for s in parent.subtasks if s is not subtask]
    new_tag.tasks.append(Task.model_validate(data))
    new_tag.touch()

    for warning in warnings:
        logger.warning("%s in tag '%s'", warning, name)
    check_integrity(before, new_tag.tasks, name)

    logger.info("Promoted subtask %s to task %d in tag '%s'", ref, new_id, name)
    return TaskMutationResult(
        store=new_store,
        tag=name,
        operation="promote",
        task_id=str(new_id),
        warnings=warnings,
        details={"previous_id": str(ref), "parent_task_id": parent.id, "dependencies": deps},
    )


def _dependency_entry(owner: TaskRef, dependency: TaskRef, index: GraphIndex) -> Any:
    """Raw list entry that makes ``owner`` depend on ``dependency``."""
    if not owner.is_subtask:
        if dependency.is_subtask:
            raise DependencyError(
                f"Task {owner} can only depend on tasks, not subtask {dependency}",
                task_id=str(owner),
                dependency_id=str(dependency),
            )
        return dependency.task_id

    if dependency.is_subtask:
        if dependency.task_id == owner.task_id:
            return dependency.subtask_id
        return str(dependency)

    if dependency.task_id in index.subtask_ids.get(owner.task_id, ()):
        raise DependencyError(
            f"Subtask {owner} cannot reference task {dependency}: a sibling subtask has the same id",
            task_id=str(owner),
            dependency_id=str(dependency),
        )
    return dependency.task_id


def add_dependency(
    store: TagStore,
    tag: str,
    task_id: TaskIdLike,
    dependency_id: TaskIdLike,
) -> TaskMutationResult:
    """
    Make ``task_id`` depend on ``dependency_id`` within one tag.

    Raises:
        TaskNotFoundError: If either end does not exist
        DependencyError: For self-references, duplicates or task -> subtask edges
        CircularDependencyError: If the edge would close a cycle
    """
    name = normalize_tag_name(tag)
    owner = resolve_task_id(task_id)
    dependency = resolve_task_id(dependency_id)
    owner_node = (owner.task_id, owner.subtask_id or 0)
    dep_node = (dependency.task_id, dependency.subtask_id or 0)

    if owner_node == dep_node:
        raise DependencyError(f"Task {owner} cannot depend on itself", task_id=str(owner), dependency_id=str(dependency))

    target = store.get_tag(name)
    index = GraphIndex(target.tasks)
    missing = [str(r) for r, n in ((owner, owner_node), (dependency, dep_node)) if not index.has_node(n)]
    if missing:
        raise TaskNotFoundError(missing, tag=name)

    graph = build_dependency_graph(target.tasks, index)
    if dep_node in graph.get(owner_node, []):
        raise DependencyError(
            f"Task {owner} already depends on {dependency}",
            task_id=str(owner),
            dependency_id=str(dependency),
        )

    entry = _dependency_entry(owner, dependency, index)

    path = find_path(graph, dep_node, owner_node)
    if path is not None:
        raise CircularDependencyError(
            str(owner),
            str(dependency),
            cycle_path=[str(owner)] + [node_label(n) for n in path],
        )

    new_store = store.copy()
    new_tag = new_store.get_tag(name)
    before = validate_tasks(new_tag.tasks)
    for node, item in iter_dependency_owners(new_tag.tasks):
        if node == owner_node:
            item.dependencies = list(item.dependencies) + [entry]
            break
    new_tag.touch()
    check_integrity(before, new_tag.tasks, name)

    logger.info("Added dependency %s -> %s in tag '%s'", owner, dependency, name)
    return TaskMutationResult(
        store=new_store,
        tag=name,
        operation="add-dependency",
        task_id=str(owner),
        details={"dependency_id": str(dependency)},
    )


def remove_dependency(
    store: TagStore,
    tag: str,
    task_id: TaskIdLike,
    dependency_id: TaskIdLike,
) -> TaskMutationResult:
    """
    Remove the edge ``task_id -> dependency_id``.

    Raises:
        TaskNotFoundError: If ``task_id`` does not exist
        DependencyError: If the edge does not exist
    """
    name = normalize_tag_name(tag)
    owner = resolve_task_id(task_id)
    dependency = resolve_task_id(dependency_id)
    owner_node = (owner.task_id, owner.subtask_id or 0)
    dep_node = (dependency.task_id, dependency.subtask_id or 0)

    new_store = store.copy()
    new_tag = new_store.get_tag(name)
    index = GraphIndex(new_tag.tasks)
    if not index.has_node(owner_node):
        raise TaskNotFoundError([str(owner)], tag=name)

    removed = False
    for node, item in iter_dependency_owners(new_tag.tasks):
        if node != owner_node:
            continue
        kept = []
        for raw in item.dependencies:
            status, target = classify_dependency(index, node, raw)
            # Dangling entries are matched by their literal id
            if target == dep_node and status != DEP_INVALID:
                removed = True
            else:
                kept.append(raw)
        item.dependencies = kept
        break

    if not removed:
        raise DependencyError(
            f"Task {owner} does not depend on {dependency}",
            task_id=str(owner),
            dependency_id=str(dependency),
        )

    new_tag.touch()
    logger.info("Removed dependency %s -> %s in tag '%s'", owner, dependency, name)
    return TaskMutationResult(
        store=new_store,
        tag=name,
        operation="remove-dependency",
        task_id=str(owner),
        details={"dependency_id": str(dependency)},
    )


def clear_subtasks(
    store: TagStore,
    tag: str,
    task_ids: Optional[Union[str, List[TaskIdLike]]] = None,
) -> TaskMutationResult:
    """
    Remove every subtask of the given tasks, or of every task in the tag.

    Entries elsewhere that pointed at a cleared subtask are dropped and
    returned as warnings, as with :func:`remove_task`.

    Raises:
        InvalidTaskIdError: If an id is a subtask address
        TaskNotFoundError: If a task does not exist
    """
    name = normalize_tag_name(tag)
    new_store = store.copy()
    new_tag = new_store.get_tag(name)

    if task_ids is None:
        parents = list(new_tag.tasks)
    else:
        refs = parse_task_ids(task_ids)
        for ref in refs:
            if ref.is_subtask:
                raise InvalidTaskIdError(str(ref), reason="expected a task id, not a subtask address")
        missing = [str(r) for r in refs if new_tag.find_task(r.task_id) is None]
        if missing:
            raise TaskNotFoundError(missing, tag=name)
        parents = []
        for ref in refs:
            if all(p.id != ref.task_id for p in parents):
                parents.append(new_tag.find_task(ref.task_id))

    before = validate_tasks(new_tag.tasks)
    removed = {(p.id, s.id) for p in parents for s in p.subtasks}
    warnings = drop_references(new_tag.tasks, removed, reason="subtasks cleared")
    for warning in warnings:
        logger.warning("%s in tag '%s'", warning, name)

    cleared: Dict[str, int] = {}
    for parent in parents:
        if parent.subtasks:
            cleared[str(parent.id)] = len(parent.subtasks)
            parent.subtasks = []
    if cleared:
        new_tag.touch()
    check_integrity(before, new_tag.tasks, name)

    logger.info("Cleared %d subtask(s) from %d task(s) in tag '%s'", len(removed), len(cleared), name)
    return TaskMutationResult(
        store=new_store,
        tag=name,
        operation="clear-subtasks",
        task_id=",".join(str(p.id) for p in parents),
        warnings=warnings,
        details={"cleared": cleared, "removed_count": len(removed), "removed_dependencies": len(warnings)},
    )
