"""Exceptions raised by tool dispatch and server lifecycle.

Per-request errors (tool/resource lookup, argument validation, execution) are
returned to the MCP client as error results and leave the server running.
``TeardownError`` is lifecycle-level: the watchdog logs it and exits with
status 1.
"""

from __future__ import annotations

__all__ = [
    'ToolNotFoundError',
    'ToolArgumentsError',
    'ToolExecutionError',
    'ResourceNotFoundError',
    'ResourceReadError',
    'TeardownError',
]

import fastmcp.exceptions
import pydantic


class ToolNotFoundError(fastmcp.exceptions.ToolError):
    """No tool with this name in the active registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Tool not found: {name}')


class ToolArgumentsError(fastmcp.exceptions.ValidationError):
    """Tool arguments failed schema validation; the action was not invoked."""

    def __init__(self, name: str, error: pydantic.ValidationError) -> None:
        self.name = name
        self.error = error
        details = '; '.join(
            f'{".".join(str(part) for part in e["loc"]) or "arguments"}: {e["msg"]}' for e in error.errors()
        )
        super().__init__(f'Invalid arguments for {name}: {details}')


class ToolExecutionError(fastmcp.exceptions.ToolError):
    """The tool's browser action failed."""

    def __init__(self, name: str, cause: Exception) -> None:
        self.name = name
        super().__init__(f'Tool {name} failed: {type(cause).__name__}: {cause}')


class ResourceNotFoundError(fastmcp.exceptions.ResourceError):
    """No resource with this URI in the active registry."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f'Resource not found: {uri}')


class ResourceReadError(fastmcp.exceptions.ResourceError):
    """Reading the resource content failed."""

    def __init__(self, uri: str, cause: Exception) -> None:
        self.uri = uri
        super().__init__(f'Resource {uri} failed: {type(cause).__name__}: {cause}')


class TeardownError(fastmcp.exceptions.FastMCPError):
    """Releasing the capability provider failed."""
