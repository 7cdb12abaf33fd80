"""TaskGraphConfig loading logic.

Provides ``_TaskGraphConfigLoader``, a mixin class whose methods are inherited
by ``TaskGraphConfig`` (defined in ``server.py``).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, cast

if TYPE_CHECKING:
    from taskgraph.config.server import TaskGraphConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from taskgraph.config.parsing import (
    _normalize_log_level,
    _parse_bool,
    _parse_non_negative_int,
    _try_parse_bool,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "TASKGRAPH_"
PROJECT_CONFIG_NAME = "taskgraph.toml"


class _TaskGraphConfigLoader:
    """Mixin providing config-loading methods for ``TaskGraphConfig``."""

    if TYPE_CHECKING:
        tasks_file: Optional[Path]
        default_tag: str
        log_level: str
        structured_logging: bool
        backup_on_save: bool
        max_backups: int
        fix_max_iterations: int

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "TaskGraphConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables (``TASKGRAPH_*``)
        2. Project TOML config (./taskgraph.toml)
        3. XDG config (~/.config/taskgraph/config.toml)
        4. Default values
        """
        config = cls()

        toml_path = config_file or os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "taskgraph" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug("Loaded XDG config from %s", xdg_config)

            project_config = Path(PROJECT_CONFIG_NAME)
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug("Loaded project config from %s", project_config)

        config._load_env()
        return cast("TaskGraphConfig", config)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from a TOML file.

        Recognized tables: ``[store]`` (tasks_file, default_tag,
        backup_on_save, max_backups), ``[logging]`` (level, structured) and
        ``[fixer]`` (max_iterations).
        """
        if not path.exists():
            logger.warning("Config file not found: %s", path)
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.error("Failed to parse config file %s: %s", path, e)
            return

        store: Dict[str, Any] = data.get("store", {})
        if "tasks_file" in store:
            self.tasks_file = Path(store["tasks_file"])
        if "default_tag" in store:
            self.default_tag = str(store["default_tag"]).strip() or self.default_tag
        if "backup_on_save" in store:
            self.backup_on_save = _parse_bool(store["backup_on_save"])
        if "max_backups" in store:
            self.max_backups = _parse_non_negative_int(
                store["max_backups"], name="store.max_backups", default=self.max_backups
            )

        log: Dict[str, Any] = data.get("logging", {})
        if "level" in log:
            self.log_level = _normalize_log_level(log["level"], default=self.log_level)
        if "structured" in log:
            self.structured_logging = _parse_bool(log["structured"])

        fixer: Dict[str, Any] = data.get("fixer", {})
        if "max_iterations" in fixer:
            self.fix_max_iterations = _parse_non_negative_int(
                fixer["max_iterations"], name="fixer.max_iterations", default=self.fix_max_iterations
            )

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if tasks_file := os.environ.get(f"{ENV_PREFIX}TASKS_FILE"):
            self.tasks_file = Path(tasks_file)

        if default_tag := os.environ.get(f"{ENV_PREFIX}DEFAULT_TAG"):
            self.default_tag = default_tag.strip() or self.default_tag

        if level := os.environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
            self.log_level = _normalize_log_level(level, default=self.log_level)

        if structured := os.environ.get(f"{ENV_PREFIX}STRUCTURED_LOGGING"):
            parsed = _try_parse_bool(structured)
            if parsed is not None:
                self.structured_logging = parsed

        if backup := os.environ.get(f"{ENV_PREFIX}BACKUP_ON_SAVE"):
            parsed = _try_parse_bool(backup)
            if parsed is not None:
                self.backup_on_save = parsed

        if max_backups := os.environ.get(f"{ENV_PREFIX}MAX_BACKUPS"):
            self.max_backups = _parse_non_negative_int(
                max_backups, name=f"{ENV_PREFIX}MAX_BACKUPS", default=self.max_backups
            )

        if iterations := os.environ.get(f"{ENV_PREFIX}FIX_MAX_ITERATIONS"):
            self.fix_max_iterations = _parse_non_negative_int(
                iterations, name=f"{ENV_PREFIX}FIX_MAX_ITERATIONS", default=self.fix_max_iterations
            )
