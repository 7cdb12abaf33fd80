"""
Task identity parsing and formatting.

Tasks are addressed by a positive integer (``"7"``); subtasks by the
parent-qualified form ``"<parentId>.<subtaskId>"`` (``"7.2"``).
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from taskgraph.core.errors.graph import InvalidTaskIdError

_TASK_ID_PATTERN = re.compile(r"^[0-9]+$")
_SUBTASK_ID_PATTERN = re.compile(r"^([0-9]+)\.([0-9]+)$")

TaskIdLike = Union[int, str]


@dataclass(frozen=True)
class TaskRef:
    """Resolved reference to a task or a subtask."""

    is_subtask: bool
    task_id: int
    subtask_id: Optional[int] = None

    def __str__(self) -> str:
        return format_task_id(self.task_id, self.subtask_id)


def _positive(component: str, raw: Any) -> int:
    value = int(component)
    if value <= 0:
        raise InvalidTaskIdError(
            raw, reason="id components must be positive integers"
        )
    return value


def resolve_task_id(value: TaskIdLike) -> TaskRef:
    """
    Parse a task or subtask identifier.

    Args:
        value: An int, a numeric string (``"5"``) or a subtask address (``"5.2"``)

    Returns:
        TaskRef describing the address

    Raises:
        InvalidTaskIdError: For booleans, zero/negative numbers, or anything
            that is not ``N`` or ``N.M``
    """
    # bool is an int subclass; True is never a meaningful id
    if isinstance(value, bool):
        raise InvalidTaskIdError(value, reason="boolean is not a task id")

    if isinstance(value, int):
        if value <= 0:
            raise InvalidTaskIdError(value, reason="task id must be a positive integer")
        return TaskRef(is_subtask=False, task_id=value)

    if not isinstance(value, str):
        raise InvalidTaskIdError(value, reason=f"unsupported type {type(value).__name__}")

    text = value.strip()
    if _TASK_ID_PATTERN.match(text):
        return TaskRef(is_subtask=False, task_id=_positive(text, value))

    match = _SUBTASK_ID_PATTERN.match(text)
    if match:
        return TaskRef(
            is_subtask=True,
            task_id=_positive(match.group(1), value),
            subtask_id=_positive(match.group(2), value),
        )

    raise InvalidTaskIdError(value, reason="expected 'N' or 'N.M' with positive integers")


def format_task_id(task_id: int, subtask_id: Optional[int] = None) -> str:
    """Inverse of :func:`resolve_task_id`."""
    if subtask_id is None:
        return str(task_id)
    return f"{task_id}.{subtask_id}"


def parse_task_ids(value: Union[str, List[TaskIdLike]]) -> List[TaskRef]:
    """
    Parse a comma-separated id list (``"1, 2,3.1"``) or a list of ids.

    Empty entries are skipped; every other entry must resolve.
    """
    if isinstance(value, str):
        items: List[TaskIdLike] = [part for part in value.split(",") if part.strip()]
    else:
        items = list(value)

    if not items:
        raise InvalidTaskIdError(value, reason="no task ids given")

    return [resolve_task_id(item) for item in items]


def is_subtask_address(value: Any) -> bool:
    """Return True if *value* is a well-formed ``N.M`` subtask address."""
    return isinstance(value, str) and bool(_SUBTASK_ID_PATTERN.match(value.strip()))
