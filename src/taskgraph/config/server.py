"""TaskGraphConfig dataclass and global configuration state.

Loading logic lives in the ``_TaskGraphConfigLoader`` mixin (``loader.py``)
which ``TaskGraphConfig`` inherits from.
"""

import logging
import sys
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_package_version
from pathlib import Path
from typing import Optional

from taskgraph.config.loader import _TaskGraphConfigLoader
from taskgraph.core.store.io import DEFAULT_MAX_BACKUPS
from taskgraph.core.store.tags import DEFAULT_TAG_NAME
from taskgraph.core.validation.constants import DEFAULT_FIX_MAX_ITERATIONS

_HANDLER_NAME = "taskgraph"


def _get_version() -> str:
    """Get package version from metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("taskgraph-mcp")
    except PackageNotFoundError:
        return "0.1.0"  # Fallback for dev without install


_PACKAGE_VERSION = _get_version()


@dataclass
class TaskGraphConfig(_TaskGraphConfigLoader):
    """Configuration with support for env vars and TOML overrides."""

    # Store configuration
    tasks_file: Optional[Path] = None
    default_tag: str = DEFAULT_TAG_NAME
    backup_on_save: bool = True
    max_backups: int = DEFAULT_MAX_BACKUPS

    # Fixer configuration
    fix_max_iterations: int = DEFAULT_FIX_MAX_ITERATIONS

    # Logging configuration
    log_level: str = "INFO"
    structured_logging: bool = False

    server_name: str = "taskgraph"
    server_version: str = _PACKAGE_VERSION

    def setup_logging(self) -> None:
        """Configure the ``taskgraph`` logger based on settings."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.structured_logging:
            # JSON-style structured logging
            formatter = logging.Formatter(
                '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
            )
        else:
            formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

        root_logger = logging.getLogger("taskgraph")
        root_logger.setLevel(level)

        handler = next((h for h in root_logger.handlers if h.get_name() == _HANDLER_NAME), None)
        if handler is None:
            handler = logging.StreamHandler()
            handler.set_name(_HANDLER_NAME)
            root_logger.addHandler(handler)
        else:
            handler.setStream(sys.stderr)
        handler.setFormatter(formatter)


# Global configuration instance
_config: Optional[TaskGraphConfig] = None


def get_config() -> TaskGraphConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = TaskGraphConfig.from_env()
    return _config


def set_config(config: Optional[TaskGraphConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
