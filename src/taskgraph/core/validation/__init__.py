"""
Task graph validation and repair.

Sub-modules:
    constants   - violation kinds and fixer defaults
    models      - Violation, ValidationResult, StoreValidationResult, Change, FixResult
    rules       - validate_tasks, validate_tags, graph building and cycle search
    fixes       - fix_tasks, fix_dependencies
"""

from taskgraph.core.validation.constants import (  # noqa: F401
    CYCLE,
    DEFAULT_FIX_MAX_ITERATIONS,
    DUPLICATE_ID,
    INVALID_SUBTASK_ID,
    MISSING_DEPENDENCY,
    SELF_DEPENDENCY,
    VIOLATION_KINDS,
)
from taskgraph.core.validation.fixes import fix_dependencies, fix_tasks  # noqa: F401
from taskgraph.core.validation.models import (  # noqa: F401
    Change,
    FixResult,
    StoreValidationResult,
    TaskFixOutcome,
    ValidationResult,
    Violation,
)
from taskgraph.core.validation.rules import (  # noqa: F401
    GraphIndex,
    build_dependency_graph,
    find_cycles,
    find_path,
    introduced_violations,
    node_label,
    parse_node,
    validate_tags,
    validate_tasks,
)

__all__ = [
    "CYCLE",
    "Change",
    "DEFAULT_FIX_MAX_ITERATIONS",
    "DUPLICATE_ID",
    "FixResult",
    "GraphIndex",
    "INVALID_SUBTASK_ID",
    "MISSING_DEPENDENCY",
    "SELF_DEPENDENCY",
    "StoreValidationResult",
    "TaskFixOutcome",
    "VIOLATION_KINDS",
    "ValidationResult",
    "Violation",
    "build_dependency_graph",
    "find_cycles",
    "find_path",
    "fix_dependencies",
    "fix_tasks",
    "introduced_violations",
    "node_label",
    "parse_node",
    "validate_tags",
    "validate_tasks",
]
