"""
Task graph validation rules and checks.

Nodes of the dependency graph are ``(task_id, subtask_id)`` tuples, with
``subtask_id == 0`` for top-level tasks. An edge ``a -> b`` means "a depends
on b". Subtask dependency entries resolve as follows:

- int ``k``: sibling subtask ``k`` if the parent has one, else top-level task ``k``
- ``"N.M"``: subtask ``M`` of task ``N`` anywhere in the tag
"""

from collections import deque
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from taskgraph.core.errors.graph import InvalidTaskIdError
from taskgraph.core.identity import format_task_id, resolve_task_id
from taskgraph.core.models import Task, TagStore
from taskgraph.core.store.tags import normalize_tag_name
from taskgraph.core.validation.constants import (
    CYCLE,
    DUPLICATE_ID,
    INVALID_SUBTASK_ID,
    MISSING_DEPENDENCY,
    SELF_DEPENDENCY,
)
from taskgraph.core.validation.models import (
    StoreValidationResult,
    ValidationResult,
    Violation,
)

Node = Tuple[int, int]
Graph = Dict[Node, List[Node]]

# classify_dependency outcomes
DEP_OK = "ok"
DEP_MISSING = "missing"
DEP_SELF = "self"
DEP_INVALID = "invalid"


def node_label(node: Node) -> str:
    """Format a graph node as ``"N"`` or ``"N.M"``."""
    return format_task_id(node[0], node[1] or None)


def parse_node(label: Union[int, str]) -> Node:
    """Inverse of :func:`node_label`."""
    ref = resolve_task_id(label)
    return (ref.task_id, ref.subtask_id or 0)


class GraphIndex:
    """Id lookup for one tag's task list (first occurrence wins on duplicates)."""

    def __init__(self, tasks: Iterable[Task]):
        self.subtask_ids: Dict[int, Set[int]] = {}
        for task in tasks:
            if task.id not in self.subtask_ids:
                self.subtask_ids[task.id] = {s.id for s in task.subtasks}

    @property
    def task_ids(self) -> Set[int]:
        return set(self.subtask_ids)

    def has_node(self, node: Node) -> bool:
        task_id, subtask_id = node
        if task_id not in self.subtask_ids:
            return False
        return subtask_id == 0 or subtask_id in self.subtask_ids[task_id]


def classify_dependency(
    index: GraphIndex,
    owner: Node,
    raw: Union[int, str],
) -> Tuple[str, Optional[Node]]:
    """
    Resolve a raw dependency entry of ``owner``.

    Returns:
        ``(status, target)`` where status is one of DEP_OK, DEP_MISSING,
        DEP_SELF or DEP_INVALID and target is the resolved node when known
    """
    if isinstance(raw, bool):
        return DEP_INVALID, None

    if isinstance(raw, str):
        try:
            ref = resolve_task_id(raw)
        except InvalidTaskIdError:
            return DEP_INVALID, None
        if ref.is_subtask:
            target: Node = (ref.task_id, ref.subtask_id)
            if target == owner:
                return DEP_SELF, target
            return (DEP_OK if index.has_node(target) else DEP_MISSING), target
        raw = ref.task_id

    if not isinstance(raw, int) or raw <= 0:
        return DEP_INVALID, None

    parent_id, subtask_id = owner
    if subtask_id and raw in index.subtask_ids.get(parent_id, ()):
        target = (parent_id, raw)
    else:
        target = (raw, 0)

    if target == owner:
        return DEP_SELF, target
    return (DEP_OK if index.has_node(target) else DEP_MISSING), target


def iter_dependency_owners(tasks: Iterable[Task]):
    """Yield ``(node, item)`` for every task and subtask, in list order."""
    for task in tasks:
        yield (task.id, 0), task
        for subtask in task.subtasks:
            yield (task.id, subtask.id), subtask


def build_dependency_graph(tasks: List[Task], index: Optional[GraphIndex] = None) -> Graph:
    """
    Build the adjacency map of resolvable edges.

    Every task and subtask is a key; missing, self and malformed entries are
    left out. Neighbours keep dependency-list order without repeats.
    """
    if index is None:
        index = GraphIndex(tasks)

    graph: Graph = {}
    for node, item in iter_dependency_owners(tasks):
        edges = graph.setdefault(node, [])
        for raw in item.dependencies:
            status, target = classify_dependency(index, node, raw)
            if status == DEP_OK and target not in edges:
                edges.append(target)
    return graph


def find_cycles(graph: Graph) -> List[List[Node]]:
    """
    Depth-first cycle search with white/gray/black coloring.

    Start nodes are visited in ascending order and neighbours in list order,
    so output is deterministic. Each back-edge yields one loop, listed from
    the re-entered node to the node holding the back-edge.
    """
    white, gray, black = 0, 1, 2
    color = {node: white for node in graph}
    cycles: List[List[Node]] = []

    for start in sorted(graph):
        if color[start] != white:
            continue

        color[start] = gray
        path = [start]
        stack = [iter(graph[start])]
        while stack:
            neighbour = next(stack[-1], None)
            if neighbour is None:
                color[path.pop()] = black
                stack.pop()
                continue

            state = color.get(neighbour, black)
            if state == white:
                color[neighbour] = gray
                path.append(neighbour)
                stack.append(iter(graph[neighbour]))
            elif state == gray:
                cycles.append(path[path.index(neighbour):])

    return cycles


def find_path(graph: Graph, start: Node, target: Node) -> Optional[List[Node]]:
    """
    Return a dependency chain from ``start`` to ``target`` or None.

    Uses BFS to traverse the dependency graph.
    """
    parents: Dict[Node, Optional[Node]] = {start: None}
    queue = deque([start])

    while queue:
        current = queue.popleft()
        if current == target:
            chain = []
            node: Optional[Node] = current
            while node is not None:
                chain.append(node)
                node = parents[node]
            return list(reversed(chain))

        for next_node in graph.get(current, []):
            if next_node not in parents:
                parents[next_node] = current
                queue.append(next_node)

    return None


def _format_cycle(labels: List[str]) -> str:
    return " -> ".join(labels + labels[:1])


def validate_tasks(tasks: List[Task], tag: Optional[str] = None) -> ValidationResult:
    """
    Validate one tag's task list and return structured violations.

    Checks, in order: duplicate top-level ids, dependency existence,
    self-dependency, subtask ids and subtask references, cycles.
    The input is never mutated.

    Args:
        tasks: The tag's tasks
        tag: Optional tag name recorded on the result

    Returns:
        ValidationResult with all violations
    """
    result = ValidationResult(valid=True, tag=tag)
    index = GraphIndex(tasks)

    _validate_unique_ids(tasks, result)
    _validate_task_dependencies(tasks, index, result)
    _validate_subtasks(tasks, index, result)
    _validate_acyclic(tasks, index, result)

    result.valid = not any(v.severity == "error" for v in result.violations)
    return result


def _validate_unique_ids(tasks: List[Task], result: ValidationResult) -> None:
    seen: Set[int] = set()
    reported: Set[int] = set()
    for task in tasks:
        if task.id in seen and task.id not in reported:
            reported.add(task.id)
            result.violations.append(
                Violation(
                    kind=DUPLICATE_ID,
                    path=[str(task.id)],
                    message=f"Task id {task.id} is used more than once",
                )
            )
        seen.add(task.id)


def _validate_task_dependencies(tasks: List[Task], index: GraphIndex, result: ValidationResult) -> None:
    """Existence first, then self-reference, for top-level tasks."""
    classified = [
        (task, dep, classify_dependency(index, (task.id, 0), dep)[0])
        for task in tasks
        for dep in task.dependencies
    ]

    for task, dep, status in classified:
        if status in (DEP_MISSING, DEP_INVALID):
            result.violations.append(
                Violation(
                    kind=MISSING_DEPENDENCY,
                    path=[str(task.id), str(dep)],
                    message=f"Task {task.id} depends on non-existent task {dep}",
                    value=dep,
                )
            )

    for task, dep, status in classified:
        if status == DEP_SELF:
            result.violations.append(
                Violation(
                    kind=SELF_DEPENDENCY,
                    path=[str(task.id), str(dep)],
                    message=f"Task {task.id} depends on itself",
                    value=dep,
                )
            )


def _validate_subtasks(tasks: List[Task], index: GraphIndex, result: ValidationResult) -> None:
    for task in tasks:
        seen: Set[int] = set()
        for subtask in task.subtasks:
            label = format_task_id(task.id, subtask.id)
            if subtask.id in seen:
                result.violations.append(
                    Violation(
                        kind=INVALID_SUBTASK_ID,
                        path=[label],
                        message=f"Subtask id {subtask.id} is used more than once under task {task.id}",
                    )
                )
            seen.add(subtask.id)

            for dep in subtask.dependencies:
                status, _ = classify_dependency(index, (task.id, subtask.id), dep)
                if status == DEP_INVALID:
                    result.violations.append(
                        Violation(
                            kind=INVALID_SUBTASK_ID,
                            path=[label, str(dep)],
                            message=f"Subtask {label} has malformed dependency {dep!r}",
                            value=dep,
                        )
                    )
                elif status == DEP_MISSING:
                    result.violations.append(
                        Violation(
                            kind=MISSING_DEPENDENCY,
                            path=[label, str(dep)],
                            message=f"Subtask {label} depends on non-existent task or subtask {dep}",
                            value=dep,
                        )
                    )
                elif status == DEP_SELF:
                    result.violations.append(
                        Violation(
                            kind=SELF_DEPENDENCY,
                            path=[label, str(dep)],
                            message=f"Subtask {label} depends on itself",
                            value=dep,
                        )
                    )


def _validate_acyclic(tasks: List[Task], index: GraphIndex, result: ValidationResult) -> None:
    graph = build_dependency_graph(tasks, index)
    for cycle in find_cycles(graph):
        labels = [node_label(node) for node in cycle]
        result.cycles.append(labels)
        result.violations.append(
            Violation(
                kind=CYCLE,
                path=labels,
                message=f"Circular dependency: {_format_cycle(labels)}",
            )
        )


def validate_tags(store: TagStore, tag: Optional[str] = None) -> StoreValidationResult:
    """
    Validate one tag, or every tag when ``tag`` is None.

    Raises:
        TagNotFoundError: If ``tag`` is given and does not exist
    """
    if tag is not None:
        name = normalize_tag_name(tag)
        return StoreValidationResult(results={name: validate_tasks(store.get_tag(name).tasks, tag=name)})

    return StoreValidationResult(
        results={name: validate_tasks(t.tasks, tag=name) for name, t in store.tags.items()}
    )


def introduced_violations(before: ValidationResult, after: ValidationResult) -> List[Violation]:
    """
    Violations present after an operation that were not there before.

    Kinds are compared by count so that relabeled ids in pre-existing
    findings are not reported as new.
    """
    before_counts = before.counts
    before_keys = {(v.kind, tuple(v.path)) for v in before.violations}

    introduced: List[Violation] = []
    for kind, count in after.counts.items():
        if count <= before_counts.get(kind, 0):
            continue
        of_kind = after.by_kind(kind)
        fresh = [v for v in of_kind if (v.kind, tuple(v.path)) not in before_keys]
        introduced.extend(fresh or of_kind)
    return introduced
