"""Entry point for the ``taskgraph`` command."""

from pathlib import Path
from typing import Optional

import click

from taskgraph.cli.commands import fix_cmd, tags, tasks, validate_cmd
from taskgraph.cli.registry import CLIContext
from taskgraph.config import TaskGraphConfig, _PACKAGE_VERSION


@click.group()
@click.option(
    "--tasks-file",
    type=click.Path(dir_okay=True, path_type=Path),
    envvar="TASKGRAPH_TASKS_FILE",
    help="Tasks JSON file (or a directory to search from).",
)
@click.option("--config", "config_file", type=click.Path(dir_okay=False), help="TOML config file.")
@click.option("--dry-run", is_flag=True, help="Run the operation without saving.")
@click.version_option(_PACKAGE_VERSION, prog_name="taskgraph")
@click.pass_context
def cli(ctx: click.Context, tasks_file: Optional[Path], config_file: Optional[str], dry_run: bool) -> None:
    """Manage tag-partitioned task dependency graphs."""
    config = TaskGraphConfig.from_env(config_file)
    config.setup_logging()
    ctx.obj = CLIContext(config=config, tasks_file=tasks_file, dry_run=dry_run)


cli.add_command(tags)
cli.add_command(tasks)
cli.add_command(validate_cmd)
cli.add_command(fix_cmd)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
