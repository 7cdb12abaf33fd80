"""taskgraph: tag-partitioned task dependency graphs with a CLI and MCP tool."""

from taskgraph.config.server import _PACKAGE_VERSION as __version__

__all__ = ["__version__"]
