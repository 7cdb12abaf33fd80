"""Consolidated (action-routed) MCP tools."""

from mcp.server.fastmcp import FastMCP

from taskgraph.config import TaskGraphConfig
from taskgraph.tools.unified.tasks import register_unified_tasks_tool


def register_unified_tools(mcp: FastMCP, config: TaskGraphConfig) -> None:
    """Register every unified tool on ``mcp``."""
    register_unified_tasks_tool(mcp, config)


__all__ = ["register_unified_tools", "register_unified_tasks_tool"]
