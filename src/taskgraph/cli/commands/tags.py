"""Tag management commands."""

from typing import Optional

import click

from taskgraph.cli.logging import cli_command, get_cli_logger
from taskgraph.cli.output import emit_error, emit_success
from taskgraph.cli.registry import get_context
from taskgraph.core.store import copy_tag, create_tag, delete_tag, list_tags, rename_tag

logger = get_cli_logger()


@click.group("tags")
def tags() -> None:
    """Create, rename, copy, delete and list tags."""


@tags.command("list")
@click.pass_context
@cli_command("tags-list")
def list_cmd(ctx: click.Context) -> None:
    """List every tag with task counts."""
    cli_ctx = get_context(ctx)
    store = cli_ctx.load()
    summaries = list_tags(store, current_tag=cli_ctx.config.default_tag)
    emit_success({"tags": summaries, "count": len(summaries)})


@tags.command("create")
@click.argument("name")
@click.option("--copy-from", "copy_from", help="Seed the new tag with a copy of this tag's tasks.")
@click.option("--description", help="Tag description.")
@click.pass_context
@cli_command("tags-create")
def create_cmd(ctx: click.Context, name: str, copy_from: Optional[str], description: Optional[str]) -> None:
    """Create tag NAME."""
    cli_ctx = get_context(ctx)
    result = create_tag(cli_ctx.load(create=True), name, copy_from_tag=copy_from, description=description)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)})


@tags.command("rename")
@click.argument("old_name")
@click.argument("new_name")
@click.pass_context
@cli_command("tags-rename")
def rename_cmd(ctx: click.Context, old_name: str, new_name: str) -> None:
    """Rename tag OLD_NAME to NEW_NAME."""
    cli_ctx = get_context(ctx)
    result = rename_tag(cli_ctx.load(), old_name, new_name, protected_tag=cli_ctx.config.default_tag)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)})


@tags.command("copy")
@click.argument("source")
@click.argument("target")
@click.option("--description", help="Description for the new tag.")
@click.pass_context
@cli_command("tags-copy")
def copy_cmd(ctx: click.Context, source: str, target: str, description: Optional[str]) -> None:
    """Copy tag SOURCE (with all tasks) to a new tag TARGET."""
    cli_ctx = get_context(ctx)
    result = copy_tag(cli_ctx.load(), source, target, description=description)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)})


@tags.command("delete")
@click.argument("name")
@click.option("--yes", is_flag=True, help="Confirm deleting the tag and all of its tasks.")
@click.pass_context
@cli_command("tags-delete")
def delete_cmd(ctx: click.Context, name: str, yes: bool) -> None:
    """Delete tag NAME and every task in it."""
    cli_ctx = get_context(ctx)
    if not yes:
        emit_error(
            f"Deleting tag '{name}' is irreversible",
            code="VALIDATION_ERROR",
            error_type="validation",
            remediation="Re-run with --yes to confirm",
            details={"tag": name},
        )

    logger.info("Deleting tag '%s'", name)
    result = delete_tag(cli_ctx.load(), name, protected_tag=cli_ctx.config.default_tag)
    emit_success({**result.to_dict(), **cli_ctx.commit(result.store)}, warnings=result.warnings)
