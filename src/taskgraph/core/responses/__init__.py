"""
JSON envelopes returned by every CLI command and MCP tool action.

Sub-modules:
    types           - ErrorCode, ErrorType, ToolResponse, _build_meta
    builders        - success_response, error_response
"""

from taskgraph.core.responses.builders import (  # noqa: F401
    error_response,
    success_response,
)
from taskgraph.core.responses.types import (  # noqa: F401
    ErrorCode,
    ErrorType,
    ToolResponse,
    _build_meta,
)

__all__ = [
    "ErrorCode",
    "ErrorType",
    "ToolResponse",
    "error_response",
    "success_response",
]
