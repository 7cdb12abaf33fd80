"""Configuration package for taskgraph.

Sub-modules:
    parsing    - Boolean/int/log-level parsing helpers
    server     - TaskGraphConfig dataclass, get_config/set_config globals
    loader     - TaskGraphConfig loading mixin (_TaskGraphConfigLoader)
"""

from taskgraph.config.parsing import (  # noqa: F401
    _parse_bool,
    _try_parse_bool,
)
from taskgraph.config.server import (  # noqa: F401
    _PACKAGE_VERSION,
    TaskGraphConfig,
    get_config,
    set_config,
)

__all__ = [
    "TaskGraphConfig",
    "get_config",
    "set_config",
]
