"""CLI logging helpers and the ``cli_command`` decorator."""

import functools
import logging
from typing import Any, Callable, TypeVar

from pydantic import ValidationError

from taskgraph.cli.output import emit_error, emit_response
from taskgraph.core.context import correlation_context
from taskgraph.core.errors import TaskGraphError, error_to_response

F = TypeVar("F", bound=Callable[..., Any])


def get_cli_logger() -> logging.Logger:
    """Logger shared by all CLI commands."""
    return logging.getLogger("taskgraph.cli")


def cli_command(name: str) -> Callable[[F], F]:
    """
    Wrap a command with a correlation id, start/finish logging and
    conversion of domain errors into error envelopes.
    """
    logger = get_cli_logger()

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with correlation_context(prefix="cli") as correlation_id:
                logger.debug("Command %s started (%s)", name, correlation_id)
                try:
                    result = func(*args, **kwargs)
                except TaskGraphError as exc:
                    logger.debug("Command %s failed: %s", name, exc.code)
                    response = error_to_response(exc)
                    if response is None:
                        emit_error(str(exc), code=exc.code, error_type="validation", details=exc.details)
                    emit_response(response)
                except ValidationError as exc:
                    emit_error(
                        "Invalid input",
                        code="VALIDATION_ERROR",
                        error_type="validation",
                        details={"errors": [{"loc": list(e["loc"]), "msg": e["msg"]} for e in exc.errors()]},
                    )
                except OSError as exc:
                    emit_error(
                        f"File operation failed: {exc}",
                        code="IO_ERROR",
                        error_type="internal",
                        remediation="Check the tasks file path and permissions",
                    )
                logger.debug("Command %s finished (%s)", name, correlation_id)
                return result

        return wrapper  # type: ignore[return-value]

    return decorator
