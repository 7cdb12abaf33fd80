"""Graph validation and repair commands."""

from typing import Optional

import click

from taskgraph.cli.logging import cli_command, get_cli_logger
from taskgraph.cli.output import emit_success
from taskgraph.cli.registry import get_context
from taskgraph.core.validation import fix_dependencies, validate_tags

logger = get_cli_logger()


@click.command("validate")
@click.option("--tag", help="Validate only this tag (default: every tag).")
@click.pass_context
@cli_command("validate")
def validate_cmd(ctx: click.Context, tag: Optional[str]) -> None:
    """Report duplicate ids, dangling or self dependencies and cycles."""
    cli_ctx = get_context(ctx)
    result = validate_tags(cli_ctx.load(), tag)
    if not result.valid:
        logger.info("Validation found %d violation(s)", result.violation_count)
    emit_success(result.to_dict())


@click.command("fix")
@click.option("--tag", help="Tag to repair (defaults to the configured default tag).")
@click.option("--max-iterations", type=click.IntRange(min=0), help="Upper bound on cycle-breaking rounds.")
@click.pass_context
@cli_command("fix")
def fix_cmd(ctx: click.Context, tag: Optional[str], max_iterations: Optional[int]) -> None:
    """Remove dangling, self and cycle-closing dependency entries from a tag."""
    cli_ctx = get_context(ctx)
    result = fix_dependencies(
        cli_ctx.load(),
        cli_ctx.resolve_tag(tag),
        max_iterations=cli_ctx.config.fix_max_iterations if max_iterations is None else max_iterations,
    )
    saved = cli_ctx.commit(result.store) if result.changes else {"dry_run": cli_ctx.dry_run, "saved": False}
    warnings = [v.message for v in result.unfixable]
    emit_success({**result.to_dict(), **saved}, warnings=warnings)
