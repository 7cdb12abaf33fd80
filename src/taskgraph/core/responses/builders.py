"""
Constructors for ``ToolResponse`` envelopes.

``success_response`` wraps an operation's ``to_dict()`` payload;
``error_response`` is what ``error_to_response`` and the CLI error path
call with a ``TaskGraphError``'s code, type, remediation and details.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from taskgraph.core.responses.types import (
    ErrorCode,
    ErrorType,
    ToolResponse,
    _build_meta,
)


def _enum_value(value: Union[Enum, str]) -> str:
    return value.value if isinstance(value, Enum) else value


def success_response(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
    **fields: Any,
) -> ToolResponse:
    """Envelope for a completed operation.

    ``warnings`` (dropped edges, move tips) go to ``meta.warnings``; keyword
    ``fields`` are merged over ``data``.

    Example:
        >>> success_response(
        ...     {"moved_ids": [1, 2]},
        ...     warnings=["Removed dependency 3 -> 2: task 2 moved to tag 'feature'"],
        ... )
    """
    payload: Dict[str, Any] = dict(data or {})
    payload.update(fields)
    return ToolResponse(
        success=True,
        data=payload,
        error=None,
        meta=_build_meta(request_id=request_id, warnings=warnings, extra=meta),
    )


def error_response(
    message: str,
    *,
    data: Optional[Mapping[str, Any]] = None,
    error_code: Optional[Union[ErrorCode, str]] = None,
    error_type: Optional[Union[ErrorType, str]] = None,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Envelope for a failed operation.

    Args:
        message: Becomes ``error``
        data: Extra payload; its own ``error_code`` etc. win over the arguments
        error_code: Defaults to INTERNAL_ERROR
        error_type: Defaults to internal
        remediation: Next step for the user, e.g. which flag resolves a conflict
        details: Conflicting edges, colliding ids, schema errors
        request_id: Overrides the bound correlation id
        meta: Merged into ``meta``

    Example:
        >>> error_response(
        ...     "Tag 'feature' not found",
        ...     error_code=ErrorCode.TAG_NOT_FOUND,
        ...     error_type=ErrorType.NOT_FOUND,
        ...     remediation="Run 'taskgraph tags list' to see existing tags",
        ... )
    """
    payload: Dict[str, Any] = dict(data or {})
    payload.setdefault("error_code", _enum_value(error_code if error_code is not None else ErrorCode.INTERNAL_ERROR))
    payload.setdefault("error_type", _enum_value(error_type if error_type is not None else ErrorType.INTERNAL))
    if remediation is not None:
        payload.setdefault("remediation", remediation)
    if details:
        payload.setdefault("details", dict(details))

    return ToolResponse(
        success=False,
        data=payload,
        error=message,
        meta=_build_meta(request_id=request_id, extra=meta),
    )
