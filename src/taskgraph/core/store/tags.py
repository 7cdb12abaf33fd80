"""
Tag partition management: create, rename, delete, copy and list tags.

Each operation takes a TagStore and returns a TagResult holding a new store
snapshot; the input store is never mutated.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from taskgraph.core.errors.graph import (
    InvalidTagNameError,
    ProtectedTagError,
    TagExistsError,
)
from taskgraph.core.models import Tag, TagMetadata, TagStore, utc_now_iso
from taskgraph.core.store.migrations import CURRENT_SCHEMA_VERSION

logger = logging.getLogger(__name__)

DEFAULT_TAG_NAME = "master"


@dataclass
class TagResult:
    """Outcome of a tag operation."""

    store: TagStore
    operation: str
    tag: str
    task_count: int = 0
    source_tag: Optional[str] = None
    previous_name: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "operation": self.operation,
            "tag": self.tag,
            "task_count": self.task_count,
        }
        if self.source_tag is not None:
            payload["source_tag"] = self.source_tag
        if self.previous_name is not None:
            payload["previous_name"] = self.previous_name
        return payload


def normalize_tag_name(name: Any) -> str:
    """Strip a tag name, rejecting non-strings and blank names."""
    if not isinstance(name, str):
        raise InvalidTagNameError(name, reason="tag name must be a string")
    stripped = name.strip()
    if not stripped:
        raise InvalidTagNameError(name)
    return stripped


def _ensure_absent(store: TagStore, name: str) -> None:
    if store.has_tag(name):
        raise TagExistsError(name)


def create_tag(
    store: TagStore,
    name: str,
    copy_from_tag: Optional[str] = None,
    description: Optional[str] = None,
) -> TagResult:
    """
    Create a new tag, optionally seeded with a deep copy of another tag's tasks.

    Raises:
        InvalidTagNameError: If ``name`` is empty or whitespace
        TagExistsError: If ``name`` already exists
        TagNotFoundError: If ``copy_from_tag`` does not exist
    """
    tag_name = normalize_tag_name(name)
    _ensure_absent(store, tag_name)

    source_name = normalize_tag_name(copy_from_tag) if copy_from_tag is not None else None
    new_store = store.copy()

    tasks = []
    if source_name is not None:
        tasks = [task.model_copy(deep=True) for task in new_store.get_tag(source_name).tasks]

    if description is None:
        description = (
            f"Copy of '{source_name}'" if source_name is not None else f"Tag created on {utc_now_iso()[:10]}"
        )

    now = utc_now_iso()
    new_store.tags[tag_name] = Tag(
        tasks=tasks,
        metadata=TagMetadata(
            created=now, updated=now, description=description, schema_version=CURRENT_SCHEMA_VERSION
        ),
    )
    logger.info("Created tag '%s' with %d task(s)", tag_name, len(tasks))

    return TagResult(
        store=new_store,
        operation="create",
        tag=tag_name,
        task_count=len(tasks),
        source_tag=source_name,
    )


def copy_tag(
    store: TagStore,
    source: str,
    target: str,
    description: Optional[str] = None,
) -> TagResult:
    """Deep-copy every task of ``source`` into a new tag ``target``."""
    source_name = normalize_tag_name(source)
    # Existence of the source is checked before the target name
    store.get_tag(source_name)
    result = create_tag(store, target, copy_from_tag=source_name, description=description)
    result.operation = "copy"
    return result


def rename_tag(store: TagStore, old_name: str, new_name: str, protected_tag: str = DEFAULT_TAG_NAME) -> TagResult:
    """
    Rename a tag, keeping its position in the store.

    Raises:
        ProtectedTagError: When renaming the default tag
        TagNotFoundError: If ``old_name`` does not exist
        TagExistsError: If ``new_name`` is already taken
    """
    old = normalize_tag_name(old_name)
    new = normalize_tag_name(new_name)

    if old == protected_tag:
        raise ProtectedTagError(old, operation="rename")

    store.get_tag(old)
    if old != new:
        _ensure_absent(store, new)

    new_store = store.copy()
    # Rebuild the mapping so insertion order is preserved
    new_store.tags = {(new if name == old else name): tag for name, tag in new_store.tags.items()}
    renamed = new_store.tags[new]
    renamed.touch()
    logger.info("Renamed tag '%s' to '%s'", old, new)

    return TagResult(
        store=new_store,
        operation="rename",
        tag=new,
        task_count=len(renamed.tasks),
        previous_name=old,
    )


def delete_tag(store: TagStore, name: str, protected_tag: str = DEFAULT_TAG_NAME) -> TagResult:
    """
    Delete a tag and every task in it. Irreversible once saved.

    Raises:
        ProtectedTagError: When deleting the default tag
        TagNotFoundError: If the tag does not exist
    """
    tag_name = normalize_tag_name(name)
    if tag_name == protected_tag:
        raise ProtectedTagError(tag_name, operation="delete")

    removed = store.get_tag(tag_name)
    new_store = store.copy()
    del new_store.tags[tag_name]

    warnings = []
    if removed.tasks:
        warnings.append(f"Deleted {len(removed.tasks)} task(s) along with tag '{tag_name}'")
    logger.warning("Deleted tag '%s' (%d task(s))", tag_name, len(removed.tasks))

    return TagResult(
        store=new_store,
        operation="delete",
        tag=tag_name,
        task_count=len(removed.tasks),
        warnings=warnings,
    )


def list_tags(store: TagStore, current_tag: Optional[str] = None) -> List[Dict[str, Any]]:
    """Summarize every tag: name, task counts by status, metadata."""
    summaries = []
    for name, tag in store.tags.items():
        status_counts: Dict[str, int] = {}
        for task in tag.tasks:
            status_counts[task.status] = status_counts.get(task.status, 0) + 1
        summaries.append(
            {
                "name": name,
                "is_current": name == current_tag,
                "task_count": len(tag.tasks),
                "subtask_count": sum(len(task.subtasks) for task in tag.tasks),
                "completed_tasks": status_counts.get("done", 0),
                "status_counts": status_counts,
                "created": tag.metadata.created,
                "updated": tag.metadata.updated,
                "description": tag.metadata.description,
            }
        )
    return summaries
