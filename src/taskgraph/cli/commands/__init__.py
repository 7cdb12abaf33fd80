"""CLI command groups."""

from taskgraph.cli.commands.tags import tags
from taskgraph.cli.commands.tasks import tasks
from taskgraph.cli.commands.validate import fix_cmd, validate_cmd

__all__ = [
    "fix_cmd",
    "tags",
    "tasks",
    "validate_cmd",
]
