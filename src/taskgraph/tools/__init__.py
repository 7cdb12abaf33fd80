"""MCP tool surface for taskgraph."""
