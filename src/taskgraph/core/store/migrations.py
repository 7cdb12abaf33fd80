"""Schema migrations for the tasks file.

Provides versioned schema migrations applied once at load time so the rest
of the code only ever sees the current layout.

Schema Versions:
    v0: Legacy single-list file ``{"tasks": [...], "metadata": {...}}``
    v1: Tagged file ``{"<tag>": {"tasks": [...], "metadata": {...}}}``
    v2: Tagged file with normalized tasks and ``metadata.schemaVersion = 2``
        on every tag (current)

Migration Strategy:
    - Each version bump has a dedicated migration function
    - Migrations are applied sequentially (v0 -> v1 -> v2)
    - The version of a tagged file is the lowest ``schemaVersion`` across its
      tags (missing means v1)

Usage:
    from taskgraph.core.store.migrations import migrate_store_data

    migrated, warnings = migrate_store_data(raw)
    store = TagStore.from_dict(migrated)
"""

import logging
from copy import deepcopy
from typing import Any, Callable, Dict, List, Optional, Tuple

from taskgraph.core.models import utc_now_iso

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2

SCHEMA_VERSION_KEY = "schemaVersion"

# Tag that receives the tasks of a legacy single-list file
LEGACY_TAG_NAME = "master"


class MigrationError(Exception):
    """Raised when a tasks file cannot be migrated."""

    pass


class MigrationWarning:
    """Structured warning for migration issues.

    Attributes:
        code: Warning code (e.g., LEGACY_FORMAT_MIGRATED)
        severity: Warning severity (info, warning, error)
        message: Human-readable warning message
        context: Additional context about the warning
    """

    def __init__(
        self,
        code: str,
        severity: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.severity = severity
        self.message = message
        self.context = context or {}


def _is_legacy_format(data: Dict[str, Any]) -> bool:
    return isinstance(data.get("tasks"), list)


def get_schema_version(data: Dict[str, Any]) -> int:
    """Return the schema version of raw tasks-file data."""
    if _is_legacy_format(data):
        return 0

    versions = []
    for tag in data.values():
        metadata = tag.get("metadata") if isinstance(tag, dict) else None
        version = metadata.get(SCHEMA_VERSION_KEY) if isinstance(metadata, dict) else None
        versions.append(version if isinstance(version, int) else 1)
    return min(versions) if versions else CURRENT_SCHEMA_VERSION


# =============================================================================
# Migration Functions
# =============================================================================

# Registry of migration functions: (from_version, to_version) -> migration_fn
MIGRATIONS: Dict[Tuple[int, int], Callable[[Dict[str, Any]], Dict[str, Any]]] = {}


def migrate_v0_to_v1(data: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a legacy single-list file into the ``master`` tag."""
    metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
    now = utc_now_iso()
    tag_metadata = {
        "created": metadata.get("created", now),
        "updated": metadata.get("updated", metadata.get("created", now)),
        "description": metadata.get("description", "Tasks for master context"),
    }
    return {LEGACY_TAG_NAME: {"tasks": deepcopy(data["tasks"]), "metadata": tag_metadata}}


MIGRATIONS[(0, 1)] = migrate_v0_to_v1


def _coerce_dependency(value: Any) -> Any:
    """Turn numeric strings into ints; leave everything else to validation."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


def _normalize_task(task: Dict[str, Any], *, is_subtask: bool) -> None:
    deps = task.get("dependencies")
    if deps is None:
        task["dependencies"] = []
    elif isinstance(deps, list):
        task["dependencies"] = [_coerce_dependency(d) for d in deps]

    if task.get("priority") is None:
        task["priority"] = "medium"
    if task.get("description") is None:
        task["description"] = ""

    if is_subtask:
        return

    subtasks = task.get("subtasks")
    if subtasks is None:
        task["subtasks"] = []
    elif isinstance(subtasks, list):
        for subtask in subtasks:
            if isinstance(subtask, dict):
                _normalize_task(subtask, is_subtask=True)


def migrate_v1_to_v2(data: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize task fields and stamp every tag with the schema version.

    Fills missing metadata, defaults ``priority``/``description``/``subtasks``
    and converts numeric-string dependency ids to ints.
    """
    migrated = deepcopy(data)
    now = utc_now_iso()

    for tag in migrated.values():
        if not isinstance(tag, dict):
            continue
        tasks = tag.setdefault("tasks", [])
        if isinstance(tasks, list):
            for task in tasks:
                if isinstance(task, dict):
                    _normalize_task(task, is_subtask=False)

        metadata = tag.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
            tag["metadata"] = metadata
        metadata.setdefault("created", now)
        metadata.setdefault("updated", metadata["created"])
        metadata.setdefault("description", "")
        metadata[SCHEMA_VERSION_KEY] = 2

    return migrated


MIGRATIONS[(1, 2)] = migrate_v1_to_v2


# =============================================================================
# Main Migration Entry Point
# =============================================================================


def migrate_store_data(
    data: Dict[str, Any],
    target_version: Optional[int] = None,
) -> Tuple[Dict[str, Any], List[MigrationWarning]]:
    """Migrate raw tasks-file data to the target schema version.

    Args:
        data: Raw parsed JSON (any schema version)
        target_version: Target schema version (defaults to CURRENT_SCHEMA_VERSION)

    Returns:
        Tuple of (migrated_data, warnings)

    Raises:
        MigrationError: If the data is not an object or no migration path exists
    """
    if not isinstance(data, dict):
        raise MigrationError(f"Tasks file must contain a JSON object, got {type(data).__name__}")

    if target_version is None:
        target_version = CURRENT_SCHEMA_VERSION

    warnings: List[MigrationWarning] = []
    current_version = get_schema_version(data)

    if current_version == target_version:
        return data, warnings

    if current_version > target_version:
        raise MigrationError(
            f"Cannot downgrade tasks file from v{current_version} to v{target_version}"
        )

    migrated = data
    version = current_version
    while version < target_version:
        migration_key = (version, version + 1)
        if migration_key not in MIGRATIONS:
            raise MigrationError(f"No migration path from v{version} to v{version + 1}")

        migrated = MIGRATIONS[migration_key](migrated)
        version += 1
        logger.info("Migrated tasks file to schema v%d", version)

    if current_version == 0:
        warnings.append(
            MigrationWarning(
                code="LEGACY_FORMAT_MIGRATED",
                severity="info",
                message=f"Legacy single-list tasks file moved into tag '{LEGACY_TAG_NAME}'",
                context={"original_version": current_version, "target_version": target_version},
            )
        )

    return migrated, warnings
