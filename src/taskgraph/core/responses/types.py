"""
Envelope types shared by the CLI and the MCP ``tasks`` tool.

Every command and tool action answers with one ``ToolResponse``: ``data``
carries the operation result (or ``error_code``/``error_type`` on failure)
and ``meta`` carries the envelope version, the correlation id and any
dropped-edge or migration warnings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence

from taskgraph.core.context import get_correlation_id

RESPONSE_VERSION = "response-v2"


class ErrorCode(str, Enum):
    """Value of ``data.error_code`` in a failed envelope.

    Each ``TaskGraphError`` subclass maps to one of these through
    ``ERROR_MAPPINGS``; the grouping below mirrors that table.
    """

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_REQUIRED = "MISSING_REQUIRED"
    INVALID_TASK_ID = "INVALID_TASK_ID"
    INVALID_TAG_NAME = "INVALID_TAG_NAME"
    INVALID_DEPENDENCY = "INVALID_DEPENDENCY"
    STORE_SCHEMA_ERROR = "STORE_SCHEMA_ERROR"
    BATCH_SIZE_MISMATCH = "BATCH_SIZE_MISMATCH"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    TAG_EXISTS = "TAG_EXISTS"
    PROTECTED_TAG = "PROTECTED_TAG"
    CONFLICT = "CONFLICT"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
    INTEGRITY_VIOLATION = "INTEGRITY_VIOLATION"

    # Move conflicts
    CROSS_TAG_DEPENDENCY_CONFLICTS = "CROSS_TAG_DEPENDENCY_CONFLICTS"
    TASK_ID_COLLISION = "TASK_ID_COLLISION"
    DANGLING_REFERENCE = "DANGLING_REFERENCE"
    SAME_SOURCE_TARGET_TAG = "SAME_SOURCE_TARGET_TAG"
    SUBTASK_MOVE_NOT_SUPPORTED = "SUBTASK_MOVE_NOT_SUPPORTED"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    IO_ERROR = "IO_ERROR"


class ErrorType(str, Enum):
    """How a client should react to a failed envelope."""

    VALIDATION = "validation"  # bad id, tag name or file contents
    NOT_FOUND = "not_found"  # tag or task missing
    CONFLICT = "conflict"  # pick a resolution flag or another id
    INTERNAL = "internal"  # I/O or unexpected failure


@dataclass
class ToolResponse:
    """
    One CLI or tool answer.

    Attributes:
        success: False when the operation raised
        data: Operation result, or error code, type, remediation and details
        error: The failure message, None on success
        meta: Envelope version, ``request_id`` and ``warnings``
    """

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": RESPONSE_VERSION})


def _build_meta(
    *,
    request_id: Optional[str] = None,
    warnings: Optional[Sequence[str]] = None,
    extra: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Assemble ``meta`` for an envelope.

    Without an explicit ``request_id`` the correlation id bound by the
    running CLI command or tool call is used, if any.
    """
    meta: Dict[str, Any] = {"version": RESPONSE_VERSION}

    effective_request_id = request_id
    if effective_request_id is None:
        effective_request_id = get_correlation_id() or None

    if effective_request_id:
        meta["request_id"] = effective_request_id
    if warnings:
        meta["warnings"] = list(warnings)
    if extra:
        meta.update(dict(extra))

    return meta
