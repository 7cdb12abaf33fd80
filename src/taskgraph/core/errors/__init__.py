"""Unified error hierarchy for taskgraph.

All custom exception classes are defined in ``graph``; the ``base`` module
maps them to response codes. This __init__.py re-exports everything for
convenient access.

Usage:
    from taskgraph.core.errors import TagNotFoundError, error_to_response
"""

from taskgraph.core.errors.base import ERROR_MAPPINGS, error_to_response
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

__all__ = [
    "ERROR_MAPPINGS",
    "error_to_response",
    "BatchSizeMismatchError",
    "CircularDependencyError",
    "CrossTagDependencyConflictError",
    "DanglingReferenceError",
    "DependencyError",
    "IntegrityError",
    "InvalidTagNameError",
    "InvalidTaskIdError",
    "ProtectedTagError",
    "SameTagMoveError",
    "StoreSchemaError",
    "SubtaskMoveError",
    "TagExistsError",
    "TagNotFoundError",
    "TaskGraphError",
    "TaskIdCollisionError",
    "TaskNotFoundError",
]
