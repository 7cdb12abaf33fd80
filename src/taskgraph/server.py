"""MCP server entry point.

Builds a FastMCP server exposing the unified ``tasks`` tool and runs it over
stdio.
"""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from taskgraph.config import TaskGraphConfig, get_config
from taskgraph.tools.unified import register_unified_tools

logger = logging.getLogger(__name__)


def create_server(config: Optional[TaskGraphConfig] = None) -> FastMCP:
    """Create and configure the FastMCP server.

    Args:
        config: Server configuration; the global config is used when omitted.

    Returns:
        FastMCP server with every unified tool registered
    """
    config = config or get_config()
    config.setup_logging()

    mcp = FastMCP(name=config.server_name)
    register_unified_tools(mcp, config)

    logger.info("Created %s server v%s", config.server_name, config.server_version)
    return mcp


def main() -> None:
    """Run the server over stdio."""
    server = create_server()
    server.run()


if __name__ == "__main__":
    main()
