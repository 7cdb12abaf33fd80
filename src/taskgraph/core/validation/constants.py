"""Validation constants for task graphs."""

# Violation kinds, in the order the validator checks them
DUPLICATE_ID = "duplicate-id"
MISSING_DEPENDENCY = "missing-dependency"
SELF_DEPENDENCY = "self-dependency"
INVALID_SUBTASK_ID = "invalid-subtask-id"
CYCLE = "cycle"

VIOLATION_KINDS = (
    DUPLICATE_ID,
    MISSING_DEPENDENCY,
    SELF_DEPENDENCY,
    INVALID_SUBTASK_ID,
    CYCLE,
)

# Fixer
DEFAULT_FIX_MAX_ITERATIONS = 25
REMOVED_DEPENDENCY = "removed-dependency"

# Reasons attached to removed-dependency changes
REASON_MISSING = "missing"
REASON_SELF = "self"
REASON_INVALID = "invalid-reference"
REASON_CYCLE = "cycle"
