"""Error-to-ErrorCode mapping registry.

Provides a centralized mapping from exception types to (ErrorCode, ErrorType) tuples,
enabling consistent error response generation across the codebase.

Usage:
    from taskgraph.core.errors.base import error_to_response

    try:
        do_something()
    except Exception as e:
        result = error_to_response(e)
        if result is not None:
            return result
        raise  # Unknown error, re-raise
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Type

from taskgraph.core.errors.graph import (
    BatchSizeMismatchError,
    CircularDependencyError,
    CrossTagDependencyConflictError,
    DanglingReferenceError,
    DependencyError,
    IntegrityError,
    InvalidTagNameError,
    InvalidTaskIdError,
    ProtectedTagError,
    SameTagMoveError,
    StoreSchemaError,
    SubtaskMoveError,
    TagExistsError,
    TagNotFoundError,
    TaskGraphError,
    TaskIdCollisionError,
    TaskNotFoundError,
)
from taskgraph.core.responses.types import (
    ErrorCode,
    ErrorType,
)

ERROR_MAPPINGS: Dict[Type[Exception], Tuple[ErrorCode, ErrorType]] = {
    # --- Schema / format errors ---
    InvalidTaskIdError: (ErrorCode.INVALID_TASK_ID, ErrorType.VALIDATION),
    InvalidTagNameError: (ErrorCode.INVALID_TAG_NAME, ErrorType.VALIDATION),
    StoreSchemaError: (ErrorCode.STORE_SCHEMA_ERROR, ErrorType.VALIDATION),
    BatchSizeMismatchError: (ErrorCode.BATCH_SIZE_MISMATCH, ErrorType.VALIDATION),
    DependencyError: (ErrorCode.INVALID_DEPENDENCY, ErrorType.VALIDATION),
    # --- Not found ---
    TagNotFoundError: (ErrorCode.TAG_NOT_FOUND, ErrorType.NOT_FOUND),
    TaskNotFoundError: (ErrorCode.TASK_NOT_FOUND, ErrorType.NOT_FOUND),
    # --- Tag state ---
    TagExistsError: (ErrorCode.TAG_EXISTS, ErrorType.CONFLICT),
    ProtectedTagError: (ErrorCode.PROTECTED_TAG, ErrorType.VALIDATION),
    # --- Integrity ---
    IntegrityError: (ErrorCode.INTEGRITY_VIOLATION, ErrorType.CONFLICT),
    CircularDependencyError: (ErrorCode.CIRCULAR_DEPENDENCY, ErrorType.CONFLICT),
    # --- Move conflicts ---
    CrossTagDependencyConflictError: (ErrorCode.CROSS_TAG_DEPENDENCY_CONFLICTS, ErrorType.CONFLICT),
    TaskIdCollisionError: (ErrorCode.TASK_ID_COLLISION, ErrorType.CONFLICT),
    DanglingReferenceError: (ErrorCode.DANGLING_REFERENCE, ErrorType.CONFLICT),
    SameTagMoveError: (ErrorCode.SAME_SOURCE_TARGET_TAG, ErrorType.VALIDATION),
    SubtaskMoveError: (ErrorCode.SUBTASK_MOVE_NOT_SUPPORTED, ErrorType.VALIDATION),
}


def error_to_response(exc: Exception) -> Optional[dict]:
    """Convert a known exception to a standard error_response dict, or None if unknown.

    Looks up the exception's *exact* type in ERROR_MAPPINGS and, if found,
    generates a standardized error response using the mapped ErrorCode and ErrorType.
    Task graph errors contribute their ``details`` and ``remediation``.

    Args:
        exc: The exception to convert.

    Returns:
        A dict suitable for a tool response, or None if the exception type
        is not registered in ERROR_MAPPINGS.
    """
    mapping = ERROR_MAPPINGS.get(type(exc))
    if mapping is None:
        return None

    from dataclasses import asdict

    from taskgraph.core.responses.builders import error_response

    code, error_type = mapping
    details = exc.details if isinstance(exc, TaskGraphError) else None
    remediation = exc.remediation if isinstance(exc, TaskGraphError) else None
    return asdict(
        error_response(
            str(exc),
            error_code=code,
            error_type=error_type,
            details=details,
            remediation=remediation,
        )
    )
