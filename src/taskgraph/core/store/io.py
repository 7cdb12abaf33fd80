"""
Tasks file I/O: discovery, loading, saving and backups.

All file-system interactions for the tag store live here. Loading applies
schema migrations and pydantic validation; saving is atomic (temp file in
the same directory, fsync, rename).
"""

import json
import logging
import os
import shutil
import stat
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from taskgraph.core.errors.graph import StoreSchemaError
from taskgraph.core.models import TagStore
from taskgraph.core.store.migrations import MigrationError, MigrationWarning, migrate_store_data

logger = logging.getLogger(__name__)

DEFAULT_TASKS_FILENAME = "tasks.json"
DEFAULT_MAX_BACKUPS = 10
BACKUPS_DIRNAME = ".backups"

# Relative locations searched (from cwd upwards) when no path is given
_SEARCH_LOCATIONS = (
    Path(".taskmaster") / "tasks" / DEFAULT_TASKS_FILENAME,
    Path("tasks") / DEFAULT_TASKS_FILENAME,
    Path(DEFAULT_TASKS_FILENAME),
)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def find_tasks_file(provided_path: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """
    Discover the tasks file.

    Args:
        provided_path: Optional explicit file path, or a directory to search from

    Returns:
        Absolute Path to an existing tasks file, or None if not found
    """
    if provided_path:
        path = Path(provided_path).expanduser().resolve()
        if path.is_file():
            return path
        if not path.is_dir():
            return None
        start = path
    else:
        start = Path.cwd()

    for directory in [start, *list(start.parents)[:5]]:
        for candidate in _SEARCH_LOCATIONS:
            p = directory / candidate
            if p.is_file():
                return p.resolve()
    return None


# ---------------------------------------------------------------------------
# Loading / validation
# ---------------------------------------------------------------------------


def _format_validation_errors(exc: ValidationError, tag: Optional[str] = None) -> List[Dict[str, Any]]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if tag is not None:
            loc.insert(0, tag)
        errors.append({"loc": ".".join(loc), "msg": err.get("msg", ""), "type": err.get("type", "")})
    return errors


def validate_store_data(
    raw: Any,
    path: Optional[Path] = None,
) -> Tuple[TagStore, List[MigrationWarning]]:
    """
    Migrate and validate raw tasks-file data.

    Args:
        raw: Parsed JSON content
        path: Source path recorded on the resulting store

    Returns:
        Tuple of (store, migration warnings)

    Raises:
        StoreSchemaError: If the data cannot be migrated or fails validation
    """
    path_str = str(path) if path else None
    try:
        migrated, warnings = migrate_store_data(raw)
    except MigrationError as exc:
        raise StoreSchemaError(str(exc), path=path_str) from exc

    errors: List[Dict[str, Any]] = []
    for name, tag in migrated.items():
        if not isinstance(name, str) or not name.strip():
            errors.append({"loc": repr(name), "msg": "tag name must be a non-empty string", "type": "value_error"})
        if not isinstance(tag, dict):
            errors.append({"loc": str(name), "msg": "tag must be an object", "type": "dict_type"})
    if errors:
        raise StoreSchemaError("Tasks file does not match the expected schema", errors=errors, path=path_str)

    try:
        store = TagStore.from_dict(migrated, path=path)
    except ValidationError as exc:
        raise StoreSchemaError(
            "Tasks file does not match the expected schema",
            errors=_format_validation_errors(exc),
            path=path_str,
        ) from exc

    return store, warnings


def load_store(path: Union[str, Path]) -> TagStore:
    """
    Load, migrate and validate the tasks file.

    Args:
        path: Path to the tasks JSON file

    Returns:
        TagStore snapshot bound to ``path``

    Raises:
        FileNotFoundError: If the file does not exist
        StoreSchemaError: If the file is not valid JSON or fails validation
    """
    file_path = Path(path)
    try:
        with open(file_path, "r") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise StoreSchemaError(
            f"Tasks file is not valid JSON: {exc.msg} (line {exc.lineno})",
            errors=[{"loc": f"line {exc.lineno}", "msg": exc.msg, "type": "json_invalid"}],
            path=str(file_path),
        ) from exc

    store, warnings = validate_store_data(raw, path=file_path)
    for warning in warnings:
        logger.info("%s: %s", warning.code, warning.message)
    logger.debug("Loaded %d tag(s) from %s", len(store.tags), file_path)
    return store


# ---------------------------------------------------------------------------
# Saving
# ---------------------------------------------------------------------------


def _file_mode(target: Path) -> int:
    """Permission bits for a rewrite: the existing file's, else 0o666 less the umask."""
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def save_store(
    store: TagStore,
    path: Optional[Union[str, Path]] = None,
    backup: bool = False,
    max_backups: int = DEFAULT_MAX_BACKUPS,
) -> Path:
    """
    Persist the store with an atomic write.

    The data is written to a temp file in the destination directory, fsynced
    and renamed over the target, so readers see either the old or the new file.

    Args:
        store: Store snapshot to write
        path: Destination (defaults to ``store.path``)
        backup: Copy the current file into the backups directory first
        max_backups: Backups retained per file (0 keeps all)

    Returns:
        The path written

    Raises:
        ValueError: If neither ``path`` nor ``store.path`` is set
        OSError: If the write fails (the original file is left untouched)
    """
    target = Path(path) if path is not None else store.path
    if target is None:
        raise ValueError("No path given and the store has no source path")

    target.parent.mkdir(parents=True, exist_ok=True)
    if backup and target.exists():
        backup_store(target, max_backups=max_backups)

    data = store.to_dict()
    fd, temp_path = tempfile.mkstemp(
        dir=target.parent,
        prefix=f".{target.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        os.chmod(temp_path, _file_mode(target))
        os.replace(temp_path, target)
        logger.debug("Saved %d tag(s) to %s", len(store.tags), target)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise

    store.path = target
    return target


# ---------------------------------------------------------------------------
# Backup / retention
# ---------------------------------------------------------------------------


def backup_store(
    path: Union[str, Path],
    max_backups: int = DEFAULT_MAX_BACKUPS,
) -> Path:
    """
    Create a timestamped backup of the tasks file.

    Directory structure::

        <dir>/.backups/<file stem>/
            2026-01-05T10-20-13.456789.json
            latest.json

    Args:
        path: Tasks file to back up
        max_backups: Maximum number of versioned backups to retain (0 = unlimited)

    Returns:
        Path to the backup file
    """
    source = Path(path)
    backups_dir = source.parent / BACKUPS_DIRNAME / source.stem
    backups_dir.mkdir(parents=True, exist_ok=True)

    # Full microseconds so rapid successive saves get distinct names
    now = datetime.now(timezone.utc)
    backup_file = backups_dir / f"{now.strftime('%Y-%m-%dT%H-%M-%S')}.{now.strftime('%f')}.json"

    shutil.copy2(source, backup_file)
    shutil.copy2(backup_file, backups_dir / "latest.json")

    if max_backups > 0:
        _apply_backup_retention(backups_dir, max_backups)

    return backup_file


def list_backups(path: Union[str, Path]) -> List[Path]:
    """Return versioned backups of a tasks file, oldest first."""
    source = Path(path)
    backups_dir = source.parent / BACKUPS_DIRNAME / source.stem
    if not backups_dir.is_dir():
        return []
    return sorted(
        (f for f in backups_dir.glob("*.json") if f.name != "latest.json" and f.is_file()),
        key=lambda p: p.name,
    )


def _apply_backup_retention(backups_dir: Path, max_backups: int) -> int:
    """Remove the oldest backups beyond ``max_backups``; returns the count deleted."""
    backup_files = sorted(
        [f for f in backups_dir.glob("*.json") if f.name != "latest.json" and f.is_file()],
        key=lambda p: p.name,
    )

    deleted_count = 0
    while len(backup_files) > max_backups:
        oldest = backup_files.pop(0)
        try:
            oldest.unlink()
            deleted_count += 1
        except OSError as exc:
            logger.warning("Could not remove old backup %s: %s", oldest, exc)
    return deleted_count
