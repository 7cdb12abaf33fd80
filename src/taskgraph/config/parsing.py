"""Parsing and normalization helpers for configuration values."""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _try_parse_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in {"true", "1", "yes", "on"}:
        return True
    if normalized in {"false", "0", "no", "off"}:
        return False
    return None


def _parse_non_negative_int(value: Any, *, name: str, default: int) -> int:
    """Parse an int setting, falling back to ``default`` with a warning."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid value for %s: %r. Using %d.", name, value, default)
        return default
    if parsed < 0:
        logger.warning("%s must be >= 0, got %d. Using %d.", name, parsed, default)
        return default
    return parsed


def _normalize_log_level(value: Any, default: str = "INFO") -> str:
    level = str(value).strip().upper()
    if level not in _VALID_LOG_LEVELS:
        logger.warning(
            "Invalid log level '%s'. Falling back to '%s'. Valid options: %s",
            value,
            default,
            ", ".join(sorted(_VALID_LOG_LEVELS)),
        )
        return default
    return level
