"""Shared helpers for unified tool routers.

Request ids, validation-error envelopes, store loading/persisting and the
dispatch wrapper that turns exceptions into error envelopes.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from taskgraph.config import TaskGraphConfig
from taskgraph.core.context import (
    correlation_context,
    generate_correlation_id,
    get_correlation_id,
)
from taskgraph.core.errors import TaskGraphError, error_to_response
from taskgraph.core.errors.execution import ActionRouterError
from taskgraph.core.models import TagStore
from taskgraph.core.responses.builders import error_response
from taskgraph.core.responses.types import ErrorCode, ErrorType
from taskgraph.core.store import find_tasks_file, load_store, save_store
from taskgraph.tools.unified.router import ActionRouter

logger = logging.getLogger(__name__)


def build_request_id(tool_name: str) -> str:
    """Return an existing correlation ID or generate one with *tool_name* prefix."""
    return get_correlation_id() or generate_correlation_id(prefix=tool_name)


def make_validation_error_fn(
    tool_name: str,
    *,
    default_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
) -> Callable[..., dict]:
    """Return a validation-error builder pre-bound to *tool_name*."""

    def _validation_error(
        *,
        field: str,
        action: str,
        message: str,
        code: ErrorCode = default_code,
        remediation: Optional[str] = None,
    ) -> dict:
        return asdict(
            error_response(
                f"Invalid field '{field}' for {tool_name}.{action}: {message}",
                error_code=code,
                error_type=ErrorType.VALIDATION,
                remediation=remediation or f"Provide a valid '{field}' value",
                details={"field": field, "action": f"{tool_name}.{action}"},
                request_id=build_request_id(tool_name),
            )
        )

    return _validation_error


def load_tool_store(
    config: TaskGraphConfig, tasks_file: Optional[str] = None
) -> Tuple[Optional[TagStore], Optional[dict]]:
    """Load the tasks file named by the call or the config.

    Returns ``(store, None)`` on success or ``(None, error_dict)`` when no
    tasks file can be found.
    """
    hint = Path(tasks_file) if tasks_file else config.tasks_file
    path = find_tasks_file(hint)
    if path is None:
        return None, asdict(
            error_response(
                "No tasks file found",
                error_code=ErrorCode.NOT_FOUND,
                error_type=ErrorType.NOT_FOUND,
                remediation="Pass tasks_file or set TASKGRAPH_TASKS_FILE",
                details={"tasks_file": str(hint) if hint else None},
            )
        )
    return load_store(path), None


def persist_tool_store(config: TaskGraphConfig, store: TagStore, dry_run: bool) -> Dict[str, Any]:
    """Save ``store`` unless ``dry_run``; returns envelope fields."""
    if dry_run:
        return {"dry_run": True, "saved": False}
    path = save_store(store, backup=config.backup_on_save, max_backups=config.max_backups)
    return {"dry_run": False, "saved": True, "tasks_file": str(path)}


def dispatch_with_standard_errors(
    router: ActionRouter,
    tool_name: str,
    action: str,
    /,
    **kwargs: Any,
) -> dict:
    """Dispatch *action* through *router*, converting exceptions to envelopes.

    Unsupported actions become VALIDATION_ERROR, ``TaskGraphError`` goes
    through ``error_to_response`` and anything else becomes INTERNAL_ERROR.
    """
    with correlation_context(prefix=tool_name) as request_id:
        try:
            return router.dispatch(action=action, **kwargs)
        except ActionRouterError as exc:
            allowed = ", ".join(exc.allowed_actions)
            return asdict(
                error_response(
                    f"Unsupported {tool_name} action '{action}'. Allowed actions: {allowed}",
                    error_code=ErrorCode.VALIDATION_ERROR,
                    error_type=ErrorType.VALIDATION,
                    remediation=f"Use one of: {allowed}",
                    details={"action": action, "allowed_actions": list(exc.allowed_actions)},
                    request_id=request_id,
                )
            )
        except TaskGraphError as exc:
            response = error_to_response(exc)
            if response is not None:
                logger.info("%s action '%s' rejected: %s", tool_name.capitalize(), action, exc)
                return response
            return _internal_error(tool_name, action, exc, request_id)
        except Exception as exc:
            return _internal_error(tool_name, action, exc, request_id)


def _internal_error(tool_name: str, action: str, exc: Exception, request_id: str) -> dict:
    logger.exception("%s action '%s' failed with unexpected error: %s", tool_name.capitalize(), action, exc)
    error_msg = str(exc) if str(exc) else exc.__class__.__name__
    return asdict(
        error_response(
            f"{tool_name.capitalize()} action '{action}' failed: {error_msg}",
            error_code=ErrorCode.INTERNAL_ERROR,
            error_type=ErrorType.INTERNAL,
            remediation="Check configuration and logs for details.",
            details={"action": action, "error_type": exc.__class__.__name__},
            request_id=request_id,
        )
    )
