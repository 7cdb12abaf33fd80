"""JSON envelope output for CLI commands.

Every command prints exactly one ToolResponse envelope to stdout. Errors
exit with status 1.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, Mapping, NoReturn, Optional, Sequence

import click

from taskgraph.core.responses import error_response, success_response


def _emit(payload: Mapping[str, Any]) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def emit_success(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
) -> None:
    """Print a success envelope."""
    _emit(asdict(success_response(data, warnings=warnings)))


def emit_error(
    message: str,
    *,
    code: str = "INTERNAL_ERROR",
    error_type: str = "internal",
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Print an error envelope and exit with status 1."""
    _emit(
        asdict(
            error_response(
                message,
                error_code=code,
                error_type=error_type,
                remediation=remediation,
                details=details,
            )
        )
    )
    sys.exit(1)


def emit_response(response: Mapping[str, Any]) -> NoReturn:
    """Print a prebuilt error envelope dict and exit with status 1."""
    _emit(response)
    sys.exit(1)
