"""Task graph, tag store and move error classes.

Every error carries a machine-readable ``code``, a ``details`` mapping with
the complete diagnostic data (offending ids, edges or violations) and an
optional ``remediation`` hint for the caller.
"""

from typing import Any, Dict, List, Optional, Sequence


class TaskGraphError(Exception):
    """Base class for all task graph errors."""

    code = "TASK_GRAPH_ERROR"

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        remediation: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.remediation = remediation

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        if self.remediation:
            payload["remediation"] = self.remediation
        return payload


# ---------------------------------------------------------------------------
# Schema / format errors
# ---------------------------------------------------------------------------


class InvalidTaskIdError(TaskGraphError):
    """Raised when a task or subtask identifier is malformed."""

    code = "INVALID_TASK_ID"

    def __init__(self, value: Any, *, reason: str) -> None:
        super().__init__(
            f"Invalid task id {value!r}: {reason}",
            details={"value": value if isinstance(value, (int, str)) else repr(value), "reason": reason},
            remediation="Use a positive integer ('5') or a subtask address ('5.2')",
        )
        self.value = value
        self.reason = reason


class InvalidTagNameError(TaskGraphError):
    """Raised when a tag name is empty or not a string."""

    code = "INVALID_TAG_NAME"

    def __init__(self, name: Any, *, reason: str = "tag name must be a non-empty string") -> None:
        super().__init__(
            f"Invalid tag name {name!r}: {reason}",
            details={"tag": name if isinstance(name, str) else repr(name), "reason": reason},
        )
        self.name = name


class StoreSchemaError(TaskGraphError):
    """Raised when a tasks file does not match the persisted schema."""

    code = "STORE_SCHEMA_ERROR"

    def __init__(self, message: str, *, errors: Optional[List[Dict[str, Any]]] = None, path: Optional[str] = None) -> None:
        details: Dict[str, Any] = {"errors": list(errors or [])}
        if path:
            details["path"] = path
        super().__init__(
            message,
            details=details,
            remediation="Run 'taskgraph validate' for a full report or restore a backup",
        )
        self.errors = list(errors or [])


class BatchSizeMismatchError(TaskGraphError):
    """Raised when parallel from/to id lists differ in length."""

    code = "BATCH_SIZE_MISMATCH"

    def __init__(self, from_count: int, to_count: int) -> None:
        super().__init__(
            f"Batch move needs the same number of source and destination ids ({from_count} != {to_count})",
            details={"from_count": from_count, "to_count": to_count},
        )


# ---------------------------------------------------------------------------
# Not-found errors
# ---------------------------------------------------------------------------


class TagNotFoundError(TaskGraphError):
    """Raised when a tag does not exist in the store."""

    code = "TAG_NOT_FOUND"

    def __init__(self, tag: str, *, available: Optional[Sequence[str]] = None) -> None:
        super().__init__(
            f"Tag '{tag}' not found",
            details={"tag": tag, "available_tags": sorted(available or [])},
            remediation="Run 'taskgraph tags list' to see existing tags",
        )
        self.tag = tag


class TaskNotFoundError(TaskGraphError):
    """Raised when a task or subtask is absent from a tag."""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_ids: Sequence[str], *, tag: str) -> None:
        ids = [str(t) for t in task_ids]
        noun = "Task" if len(ids) == 1 else "Tasks"
        super().__init__(
            f"{noun} {', '.join(ids)} not found in tag '{tag}'",
            details={"task_ids": ids, "tag": tag},
        )
        self.task_ids = ids
        self.tag = tag


# ---------------------------------------------------------------------------
# Tag state errors
# ---------------------------------------------------------------------------


class TagExistsError(TaskGraphError):
    """Raised when creating or renaming onto an existing tag name."""

    code = "TAG_EXISTS"

    def __init__(self, tag: str) -> None:
        super().__init__(
            f"Tag '{tag}' already exists",
            details={"tag": tag},
            remediation="Choose a different tag name",
        )
        self.tag = tag


class ProtectedTagError(TaskGraphError):
    """Raised when deleting or renaming the default tag."""

    code = "PROTECTED_TAG"

    def __init__(self, tag: str, *, operation: str) -> None:
        super().__init__(
            f"Cannot {operation} the protected tag '{tag}'",
            details={"tag": tag, "operation": operation},
        )
        self.tag = tag


# ---------------------------------------------------------------------------
# Integrity errors
# ---------------------------------------------------------------------------


class IntegrityError(TaskGraphError):
    """Raised when an operation would commit a graph with new violations."""

    code = "INTEGRITY_VIOLATION"

    def __init__(self, message: str, *, tag: str, violations: List[Dict[str, Any]]) -> None:
        super().__init__(
            message,
            details={"tag": tag, "violations": violations},
            remediation="Run 'taskgraph validate' and 'taskgraph fix' on the tag",
        )
        self.tag = tag
        self.violations = violations


class CircularDependencyError(TaskGraphError):
    """Raised when adding a dependency edge would close a cycle."""

    code = "CIRCULAR_DEPENDENCY"

    def __init__(self, task_id: str, dependency_id: str, *, cycle_path: Sequence[str]) -> None:
        super().__init__(
            f"Circular dependency detected: {task_id} cannot depend on {dependency_id}",
            details={
                "task_id": task_id,
                "dependency_id": dependency_id,
                "cycle_path": list(cycle_path),
            },
            remediation="Remove an existing dependency to break the cycle before adding this one.",
        )


class DependencyError(TaskGraphError):
    """Raised for invalid dependency edits (self-reference, duplicates, absent edge)."""

    code = "INVALID_DEPENDENCY"

    def __init__(self, message: str, *, task_id: str, dependency_id: str) -> None:
        super().__init__(message, details={"task_id": task_id, "dependency_id": dependency_id})


# ---------------------------------------------------------------------------
# Move conflicts
# ---------------------------------------------------------------------------


class SameTagMoveError(TaskGraphError):
    """Raised when a cross-tag move names the same source and destination."""

    code = "SAME_SOURCE_TARGET_TAG"

    def __init__(self, tag: str) -> None:
        super().__init__(
            f"Source and destination tags are the same ('{tag}')",
            details={"source_tag": tag, "target_tag": tag},
            remediation="Use a within-tag move to renumber tasks inside one tag",
        )


class SubtaskMoveError(TaskGraphError):
    """Raised when a bare subtask address is given to a move operation."""

    code = "SUBTASK_MOVE_NOT_SUPPORTED"

    def __init__(self, task_ids: Sequence[str]) -> None:
        ids = [str(t) for t in task_ids]
        super().__init__(
            f"Cannot move subtask(s) {', '.join(ids)} directly",
            details={"task_ids": ids},
            remediation="Promote the subtask to a task first, then move the new task",
        )
        self.task_ids = ids


class TaskIdCollisionError(TaskGraphError):
    """Raised when moved task ids already exist in the destination tag."""

    code = "TASK_ID_COLLISION"

    def __init__(self, task_ids: Sequence[int], *, source_tag: str, target_tag: str) -> None:
        ids = sorted(int(t) for t in task_ids)
        super().__init__(
            f"Task id(s) {', '.join(str(i) for i in ids)} already exist in tag '{target_tag}'",
            details={"task_ids": ids, "source_tag": source_tag, "target_tag": target_tag},
            remediation=(
                "Renumber the conflicting tasks with a within-tag move in either tag, "
                "then retry the cross-tag move"
            ),
        )
        self.task_ids = ids


class DanglingReferenceError(TaskGraphError):
    """Raised when a new or relabelled id would satisfy an unresolved dependency entry."""

    code = "DANGLING_REFERENCE"

    def __init__(self, references: Dict[int, List[str]], *, tag: str) -> None:
        described = "; ".join(f"{task_id} (named by {', '.join(owners)})" for task_id, owners in references.items())
        super().__init__(
            f"Task id(s) would silently satisfy unresolved dependencies in tag '{tag}': {described}",
            details={
                "tag": tag,
                "references": [{"task_id": task_id, "owners": owners} for task_id, owners in references.items()],
            },
            remediation="Run 'taskgraph fix' on the tag or pick a different id",
        )
        self.references = references


class CrossTagDependencyConflictError(TaskGraphError):
    """Raised when a cross-tag move would split dependency edges across tags."""

    code = "CROSS_TAG_DEPENDENCY_CONFLICTS"

    def __init__(
        self,
        conflicts: List[Dict[str, Any]],
        *,
        source_tag: str,
        target_tag: str,
        task_ids: Sequence[int],
    ) -> None:
        edges = ", ".join(f"{c['task_id']}->{c['dependency_id']}" for c in conflicts)
        super().__init__(
            f"Moving task(s) {', '.join(str(t) for t in task_ids)} from '{source_tag}' "
            f"to '{target_tag}' would break {len(conflicts)} dependency edge(s): {edges}",
            details={
                "source_tag": source_tag,
                "target_tag": target_tag,
                "task_ids": list(task_ids),
                "conflicts": conflicts,
                "resolution_options": [
                    "with_dependencies: move the tasks together with everything they depend on",
                    "ignore_dependencies: move the tasks and drop the cross-tag edges",
                ],
            },
            remediation="Retry with with_dependencies or ignore_dependencies",
        )
        self.conflicts = conflicts
