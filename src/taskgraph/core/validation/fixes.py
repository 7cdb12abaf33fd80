"""
Dependency repair for task graphs.

The fixer only removes dependency entries; it never deletes tasks. Dangling,
self-referencing and malformed entries are dropped in one pass, then cycles
are broken one edge per loop and re-validated until clean or out of
iterations.
"""

import logging
from typing import List, Optional, Set, Tuple

from taskgraph.core.models import Task, TagStore
from taskgraph.core.store.tags import normalize_tag_name
from taskgraph.core.validation.constants import (
    DEFAULT_FIX_MAX_ITERATIONS,
    REASON_CYCLE,
    REASON_INVALID,
    REASON_MISSING,
    REASON_SELF,
)
from taskgraph.core.validation.models import Change, FixResult, TaskFixOutcome
from taskgraph.core.validation.rules import (
    DEP_INVALID,
    DEP_MISSING,
    DEP_OK,
    DEP_SELF,
    Graph,
    GraphIndex,
    Node,
    build_dependency_graph,
    classify_dependency,
    find_cycles,
    iter_dependency_owners,
    node_label,
    validate_tasks,
)

logger = logging.getLogger(__name__)

_REASONS = {
    DEP_MISSING: REASON_MISSING,
    DEP_SELF: REASON_SELF,
    DEP_INVALID: REASON_INVALID,
}


def _drop_unresolvable(tasks: List[Task], index: GraphIndex) -> List[Change]:
    changes: List[Change] = []
    for node, item in iter_dependency_owners(tasks):
        kept = []
        for raw in item.dependencies:
            status, _ = classify_dependency(index, node, raw)
            if status == DEP_OK:
                kept.append(raw)
            else:
                changes.append(Change(task_id=node_label(node), dependency_id=str(raw), reason=_REASONS[status]))
        if len(kept) != len(item.dependencies):
            item.dependencies = kept
    return changes


def _choose_edge(cycle: List[Node], graph: Graph) -> Tuple[Node, Node]:
    """Highest node -> lowest node if that edge exists, else the loop edge leaving the highest node."""
    highest = max(cycle)
    lowest = min(cycle)
    if lowest in graph.get(highest, []):
        return highest, lowest
    position = cycle.index(highest)
    return highest, cycle[(position + 1) % len(cycle)]


def _remove_edge(tasks: List[Task], index: GraphIndex, owner: Node, target: Node) -> None:
    for node, item in iter_dependency_owners(tasks):
        if node != owner:
            continue
        item.dependencies = [
            raw
            for raw in item.dependencies
            if classify_dependency(index, node, raw) != (DEP_OK, target)
        ]


def fix_tasks(tasks: List[Task], max_iterations: int = DEFAULT_FIX_MAX_ITERATIONS) -> TaskFixOutcome:
    """
    Repair a task list's dependency entries.

    Args:
        tasks: The tag's tasks (not mutated)
        max_iterations: Upper bound on cycle-breaking rounds

    Returns:
        TaskFixOutcome with the repaired copy, the changes applied and any
        violations the fixer cannot resolve (duplicate ids, leftover cycles)
    """
    working = [task.model_copy(deep=True) for task in tasks]
    index = GraphIndex(working)
    changes = _drop_unresolvable(working, index)

    iterations = 0
    while iterations < max_iterations:
        graph = build_dependency_graph(working, index)
        cycles = find_cycles(graph)
        if not cycles:
            break
        iterations += 1

        removed: Set[Tuple[Node, Node]] = set()
        for cycle in cycles:
            loop_edges = set(zip(cycle, cycle[1:] + cycle[:1]))
            if loop_edges & removed:
                continue
            owner, target = _choose_edge(cycle, graph)
            if (owner, target) in removed:
                continue
            _remove_edge(working, index, owner, target)
            removed.add((owner, target))
            changes.append(
                Change(task_id=node_label(owner), dependency_id=node_label(target), reason=REASON_CYCLE)
            )

    unfixable = validate_tasks(working).violations
    return TaskFixOutcome(tasks=working, changes=changes, unfixable=unfixable, iterations=iterations)


def fix_dependencies(
    store: TagStore,
    tag: str,
    max_iterations: Optional[int] = None,
) -> FixResult:
    """
    Run the fixer on one tag and return a new store snapshot.

    Raises:
        TagNotFoundError: If the tag does not exist
    """
    name = normalize_tag_name(tag)
    new_store = store.copy()
    target = new_store.get_tag(name)

    outcome = fix_tasks(
        target.tasks,
        max_iterations=DEFAULT_FIX_MAX_ITERATIONS if max_iterations is None else max_iterations,
    )

    if outcome.changes:
        target.tasks = outcome.tasks
        target.touch()
        for change in outcome.changes:
            logger.warning(
                "Removed dependency %s -> %s in tag '%s' (%s)",
                change.task_id,
                change.dependency_id,
                name,
                change.reason,
            )

    if outcome.unfixable:
        logger.warning("%d violation(s) in tag '%s' could not be fixed", len(outcome.unfixable), name)

    return FixResult(
        tag=name,
        store=new_store,
        changes=outcome.changes,
        unfixable=outcome.unfixable,
        iterations=outcome.iterations,
    )
