"""Per-invocation CLI context: config, tasks file location and dry-run flag."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import click

from taskgraph.cli.output import emit_error
from taskgraph.config import TaskGraphConfig
from taskgraph.core.models import Tag, TagMetadata, TagStore
from taskgraph.core.store import CURRENT_SCHEMA_VERSION, find_tasks_file, load_store, save_store


@dataclass
class CLIContext:
    """State shared by all commands of one invocation."""

    config: TaskGraphConfig
    tasks_file: Optional[Path] = None
    dry_run: bool = False

    def resolve_tag(self, tag: Optional[str]) -> str:
        return tag if tag is not None else self.config.default_tag

    def require_tasks_file(self) -> Path:
        path = self.tasks_file or self.config.tasks_file
        found = find_tasks_file(path)
        if found is None:
            emit_error(
                "No tasks file found",
                code="NOT_FOUND",
                error_type="not_found",
                remediation="Use --tasks-file or set TASKGRAPH_TASKS_FILE",
                details={"tasks_file": str(path) if path else None},
            )
        return found

    def load(self, create: bool = False) -> TagStore:
        """Load the tasks file; with ``create``, start an empty store at an explicit missing path."""
        path = self.tasks_file or self.config.tasks_file
        if create and path is not None and not Path(path).exists():
            tag = Tag(metadata=TagMetadata(schema_version=CURRENT_SCHEMA_VERSION))
            return TagStore(tags={self.config.default_tag: tag}, path=Path(path))
        return load_store(self.require_tasks_file())

    def commit(self, store: TagStore) -> Dict[str, Any]:
        """Persist ``store`` unless this is a dry run; returns envelope fields."""
        if self.dry_run:
            return {"dry_run": True, "saved": False}
        path = save_store(
            store,
            backup=self.config.backup_on_save,
            max_backups=self.config.max_backups,
        )
        return {"dry_run": False, "saved": True, "tasks_file": str(path)}


def get_context(ctx: click.Context) -> CLIContext:
    """Return the CLIContext stored on the root click context."""
    cli_ctx = ctx.find_object(CLIContext)
    if cli_ctx is None:
        raise click.UsageError("CLI context not initialized")
    return cli_ctx
