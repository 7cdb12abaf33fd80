"""Task commands: add, remove, promote, clear subtasks, move and dependency edits."""

from typing import List, Optional

import click

from taskgraph.cli.logging import cli_command, get_cli_logger
from taskgraph.cli.output import emit_error, emit_success
from taskgraph.cli.registry import get_context
from taskgraph.core.identity import parse_task_ids
from taskgraph.core.models import VALID_PRIORITIES, VALID_STATUSES
from taskgraph.core.task import (
    add_dependency,
    add_subtask,
    add_task,
    clear_subtasks,
    move_cross_tag,
    move_tasks_within_tag,
    move_within_tag,
    promote_subtask,
    remove_dependency,
    remove_task,
)

logger = get_cli_logger()

tag_option = click.option("--tag", help="Tag to operate on (defaults to the configured default tag).")


def _id_list(value: Optional[str]) -> List[str]:
    return [str(ref) for ref in parse_task_ids(value)] if value else []


@click.group("tasks")
def tasks() -> None:
    """Add, remove, promote and move tasks."""


@tasks.command("add")
@click.argument("title")
@tag_option
@click.option("--description", default="", help="Task description.")
@click.option("--dependencies", help="Comma-separated ids this task depends on.")
@click.option("--priority", type=click.Choice(VALID_PRIORITIES), default="medium", show_default=True)
@click.option("--status", type=click.Choice(VALID_STATUSES), default="pending", show_default=True)
@click.option("--details", help="Implementation details.")
@click.option("--test-strategy", help="How the task will be verified.")
@click.pass_context
@cli_command("tasks-add")
def add_cmd(
    ctx: click.Context,
    title: str,
    tag: Optional[str],
    description: str,
    dependencies: Optional[str],
    priority: str,
    status: str,
    details: Optional[str],
    test_strategy: Optional[str],
) -> None:
    """Add a task titled TITLE."""
    cli_ctx = get_context(ctx)
    result = add_task(
        cli_ctx.load(create=True),
        cli_ctx.resolve_tag(tag),
        title,
        description=description,
        dependencies=_id_list(dependencies),
        priority=priority,
        status=status,
        details=details,
        test_strategy=test_strategy,
    )
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)})


@tasks.command("add-subtask")
@click.argument("parent_id")
@click.argument("title")
@tag_option
@click.option("--description", default="", help="Subtask description.")
@click.option("--dependencies", help="Comma-separated ids: sibling subtask ids, task ids or N.M addresses.")
@click.pass_context
@cli_command("tasks-add-subtask")
def add_subtask_cmd(
    ctx: click.Context,
    parent_id: str,
    title: str,
    tag: Optional[str],
    description: str,
    dependencies: Optional[str],
) -> None:
    """Add a subtask titled TITLE under PARENT_ID."""
    cli_ctx = get_context(ctx)
    result = add_subtask(
        cli_ctx.load(),
        cli_ctx.resolve_tag(tag),
        parent_id,
        title,
        description=description,
        dependencies=_id_list(dependencies),
    )
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)})


@tasks.command("remove")
@click.argument("task_id")
@tag_option
@click.pass_context
@cli_command("tasks-remove")
def remove_cmd(ctx: click.Context, task_id: str, tag: Optional[str]) -> None:
    """Remove TASK_ID (a task or an N.M subtask); dependents lose the edge."""
    cli_ctx = get_context(ctx)
    result = remove_task(cli_ctx.load(), cli_ctx.resolve_tag(tag), task_id)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)}, warnings=result.warnings)


@tasks.command("promote")
@click.argument("subtask_id")
@tag_option
@click.pass_context
@cli_command("tasks-promote")
def promote_cmd(ctx: click.Context, subtask_id: str, tag: Optional[str]) -> None:
    """Promote subtask SUBTASK_ID (N.M) to a top-level task."""
    cli_ctx = get_context(ctx)
    result = promote_subtask(cli_ctx.load(), cli_ctx.resolve_tag(tag), subtask_id)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)}, warnings=result.warnings)


@tasks.command("clear-subtasks")
@click.option("--id", "task_ids", help="Comma-separated task ids whose subtasks are removed.")
@click.option("--all", "all_tasks", is_flag=True, help="Clear subtasks of every task in the tag.")
@tag_option
@click.pass_context
@cli_command("tasks-clear-subtasks")
def clear_subtasks_cmd(ctx: click.Context, task_ids: Optional[str], all_tasks: bool, tag: Optional[str]) -> None:
    """Remove all subtasks from the given tasks."""
    cli_ctx = get_context(ctx)
    if bool(task_ids) == all_tasks:
        emit_error(
            "Pass exactly one of --id or --all",
            code="VALIDATION_ERROR",
            error_type="validation",
            remediation="Name the tasks with --id 1,2 or clear every task with --all",
        )

    result = clear_subtasks(cli_ctx.load(), cli_ctx.resolve_tag(tag), None if all_tasks else task_ids)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)}, warnings=result.warnings)


@tasks.command("move")
@click.option("--from", "from_ids", required=True, help="Id or comma-separated ids to move.")
@click.option("--to", "to_ids", required=True, help="Destination id(s), paired with --from.")
@tag_option
@click.pass_context
@cli_command("tasks-move")
def move_cmd(ctx: click.Context, from_ids: str, to_ids: str, tag: Optional[str]) -> None:
    """Relabel or swap task ids within one tag."""
    cli_ctx = get_context(ctx)
    store = cli_ctx.load()
    tag_name = cli_ctx.resolve_tag(tag)

    sources = _id_list(from_ids)
    destinations = _id_list(to_ids)
    if len(sources) == 1 and len(destinations) == 1:
        result = move_within_tag(store, tag_name, sources[0], destinations[0])
        emit_success({**result.to_dict(), **cli_ctx.commit(result.store)})
        return

    batch = move_tasks_within_tag(store, tag_name, sources, destinations)
    if batch.failed:
        logger.info("%d of %d moves failed", len(batch.failed), len(sources))
    warnings = [f"Move {f['from_id']} -> {f['to_id']} failed: {f['error']['message']}" for f in batch.failed]
    saved = cli_ctx.commit(batch.store) if batch.moved else {"dry_run": cli_ctx.dry_run, "saved": False}
    emit_success({**batch.to_dict(), **saved}, warnings=warnings)


@tasks.command("move-cross")
@click.argument("task_ids")
@click.option("--from-tag", required=True, help="Tag the tasks are in.")
@click.option("--to-tag", required=True, help="Tag to move them to.")
@click.option("--with-dependencies", is_flag=True, help="Also move every task they depend on.")
@click.option("--ignore-dependencies", is_flag=True, help="Drop dependency edges that would cross tags.")
@click.pass_context
@cli_command("tasks-move-cross")
def move_cross_cmd(
    ctx: click.Context,
    task_ids: str,
    from_tag: str,
    to_tag: str,
    with_dependencies: bool,
    ignore_dependencies: bool,
) -> None:
    """Move TASK_IDS (comma-separated) from one tag to another."""
    cli_ctx = get_context(ctx)
    result = move_cross_tag(
        cli_ctx.load(),
        from_tag,
        to_tag,
        task_ids,
        with_dependencies=with_dependencies,
        ignore_dependencies=ignore_dependencies,
    )
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)}, warnings=result.tips)


@tasks.command("add-dep")
@click.argument("task_id")
@click.argument("dependency_id")
@tag_option
@click.pass_context
@cli_command("tasks-add-dep")
def add_dep_cmd(ctx: click.Context, task_id: str, dependency_id: str, tag: Optional[str]) -> None:
    """Make TASK_ID depend on DEPENDENCY_ID."""
    cli_ctx = get_context(ctx)
    result = add_dependency(cli_ctx.load(), cli_ctx.resolve_tag(tag), task_id, dependency_id)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)})


@tasks.command("remove-dep")
@click.argument("task_id")
@click.argument("dependency_id")
@tag_option
@click.pass_context
@cli_command("tasks-remove-dep")
def remove_dep_cmd(ctx: click.Context, task_id: str, dependency_id: str, tag: Optional[str]) -> None:
    """Remove the dependency TASK_ID -> DEPENDENCY_ID."""
    cli_ctx = get_context(ctx)
    result = remove_dependency(cli_ctx.load(), cli_ctx.resolve_tag(tag), task_id, dependency_id)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)})
