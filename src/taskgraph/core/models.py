"""Persisted data model: tasks, subtasks, tags and the tag store.

The JSON file maps tag name to ``{"tasks": [...], "metadata": {...}}``.
Field names are snake_case in Python and camelCase on disk (``testStrategy``,
``parentTaskId``, ``schemaVersion``); always dump with ``by_alias=True``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

from taskgraph.core.errors.graph import TagNotFoundError

TaskStatus = Literal["pending", "in-progress", "done", "review", "deferred", "cancelled"]
TaskPriority = Literal["high", "medium", "low"]

VALID_STATUSES: Tuple[str, ...] = ("pending", "in-progress", "done", "review", "deferred", "cancelled")
VALID_PRIORITIES: Tuple[str, ...] = ("high", "medium", "low")

SubtaskDependency = Union[int, str]


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def is_iso8601(value: str) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return False
    return True


def _dedupe(values: List[Any]) -> List[Any]:
    seen = set()
    result = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


class _TaskFields(BaseModel):
    """Fields shared by tasks and subtasks."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: PositiveInt
    title: str = Field(..., min_length=1)
    description: str = ""
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    details: Optional[str] = None
    test_strategy: Optional[str] = Field(None, alias="testStrategy")
    parent_task_id: Optional[PositiveInt] = Field(None, alias="parentTaskId")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title cannot be blank")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Subtask(_TaskFields):
    """A task-like item owned by a parent task, addressed as ``parent.sub``.

    ``dependencies`` holds ints (sibling subtask id, else top-level task id)
    or explicit ``"N.M"`` subtask addresses.
    """

    dependencies: List[SubtaskDependency] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def reject_nested_subtasks(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("subtasks"):
            raise ValueError("subtasks cannot have their own subtasks")
        return data

    @field_validator("dependencies")
    @classmethod
    def collapse_duplicates(cls, v: List[SubtaskDependency]) -> List[SubtaskDependency]:
        return _dedupe(v)


class Task(_TaskFields):
    """A top-level work item with an id unique within its tag."""

    dependencies: List[int] = Field(default_factory=list)
    subtasks: List[Subtask] = Field(default_factory=list)

    @field_validator("dependencies")
    @classmethod
    def collapse_duplicates(cls, v: List[int]) -> List[int]:
        return _dedupe(v)

    def find_subtask(self, subtask_id: int) -> Optional[Subtask]:
        for subtask in self.subtasks:
            if subtask.id == subtask_id:
                return subtask
        return None


class TagMetadata(BaseModel):
    """Timestamps and description of a tag."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    created: str = Field(default_factory=utc_now_iso)
    updated: str = Field(default_factory=utc_now_iso)
    description: str = ""
    schema_version: Optional[int] = Field(None, alias="schemaVersion")

    @field_validator("created", "updated")
    @classmethod
    def validate_timestamp(cls, v: str) -> str:
        if not is_iso8601(v):
            raise ValueError(f"invalid ISO-8601 timestamp: {v!r}")
        return v


class Tag(BaseModel):
    """A named, isolated partition of the task graph."""

    model_config = ConfigDict(extra="forbid")

    tasks: List[Task] = Field(default_factory=list)
    metadata: TagMetadata = Field(default_factory=TagMetadata)

    def touch(self) -> None:
        """Refresh ``metadata.updated``; call whenever the task list changes."""
        self.metadata.updated = utc_now_iso()

    def task_ids(self) -> List[int]:
        return [task.id for task in self.tasks]

    def find_task(self, task_id: int) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def iter_subtasks(self) -> Iterator[Tuple[Task, Subtask]]:
        for task in self.tasks:
            for subtask in task.subtasks:
                yield task, subtask

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass
class TagStore:
    """In-memory snapshot of the whole tasks file.

    Operations never mutate a store they are given; they work on
    :meth:`copy` and hand the new snapshot back in their result.
    """

    tags: Dict[str, Tag] = field(default_factory=dict)
    path: Optional[Path] = None

    def has_tag(self, name: str) -> bool:
        return name in self.tags

    def get_tag(self, name: str) -> Tag:
        """Return the tag or raise :class:`TagNotFoundError`."""
        tag = self.tags.get(name)
        if tag is None:
            raise TagNotFoundError(name, available=list(self.tags))
        return tag

    def tag_names(self) -> List[str]:
        return list(self.tags)

    def copy(self) -> "TagStore":
        return TagStore(
            tags={name: tag.model_copy(deep=True) for name, tag in self.tags.items()},
            path=self.path,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {name: tag.to_dict() for name, tag in self.tags.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: Optional[Path] = None) -> "TagStore":
        """Build a store from already-migrated data; raises pydantic ValidationError."""
        return cls(
            tags={name: Tag.model_validate(copy.deepcopy(raw)) for name, raw in data.items()},
            path=path,
        )
