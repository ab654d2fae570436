"""Session server: tool dispatch and capability provider lifecycle.

Architecture:
    MCP client ─[stdio]─> mcp.server.lowlevel.Server ─> SessionServer.call_tool
                                                      ─> Tool.action(provider, args)

The registry is fixed for the process lifetime. Dispatch failures are
per-request (returned to the client as error results); ``stop()`` is the only
way the provider is released, and the lifecycle watchdog is its only caller
in production.
"""

from __future__ import annotations

__all__ = [
    'SessionServer',
    'SERVER_NAME',
]

import asyncio
import logging
import typing
from collections.abc import AsyncIterable, Callable, Iterable

import mcp.server.lowlevel
import mcp.server.stdio
import mcp.types
import pydantic
from mcp.server.lowlevel.helper_types import ReadResourceContents

from browser_mcp import __version__
from browser_mcp.errors import (
    ResourceNotFoundError,
    ResourceReadError,
    TeardownError,
    ToolArgumentsError,
    ToolExecutionError,
    ToolNotFoundError,
)
from browser_mcp.models import LaunchOptions
from browser_mcp.provider import BrowserProvider, CapabilityProvider
from browser_mcp.registry import Registry
from browser_mcp.tools.base import Content
from browser_mcp.utils import DualLogger, Timer

logger = logging.getLogger(__name__)

SERVER_NAME = 'Playwright'


class SessionServer:
    """Owns one capability provider and routes named requests to the active registry."""

    def __init__(
        self,
        registry: Registry,
        launch_options: LaunchOptions,
        *,
        provider: CapabilityProvider | None = None,
        name: str = SERVER_NAME,
        version: str = __version__,
    ) -> None:
        self.registry = registry
        self.provider: CapabilityProvider = provider if provider is not None else BrowserProvider(launch_options)

        self._activity_listeners: list[Callable[[], None]] = []
        self._client_log_level: mcp.types.LoggingLevel = 'info'
        self._started = False
        self._stop_task: asyncio.Task[None] | None = None

        self._mcp: mcp.server.lowlevel.Server[typing.Any, typing.Any] = mcp.server.lowlevel.Server(
            name, version=version
        )
        self._register_handlers()

    # -- Liveness --

    def add_activity_listener(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` on every dispatch (idle-timer reset)."""
        self._activity_listeners.append(listener)

    def _notify_activity(self) -> None:
        for listener in self._activity_listeners:
            listener()

    @property
    def stopping(self) -> bool:
        return self._stop_task is not None

    # -- Dispatch --

    def list_tools(self) -> list[mcp.types.Tool]:
        return [tool.to_mcp() for tool in self.registry.tools]

    def list_resources(self) -> list[mcp.types.Resource]:
        return [resource.to_mcp() for resource in self.registry.resources]

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, typing.Any] | None,
        log: DualLogger | None = None,
    ) -> list[Content]:
        """Resolve, validate and run a tool.

        Raises:
            ToolNotFoundError: name is not in the active registry
            ToolArgumentsError: arguments do not match the tool's schema
            ToolExecutionError: the browser action failed
        """
        self._notify_activity()
        log = log or DualLogger(logger)

        tool = self.registry.tool(name)
        if tool is None:
            await log.warning(f'Unknown tool requested: {name}')
            raise ToolNotFoundError(name)

        try:
            args = tool.arguments.model_validate(arguments or {})
        except pydantic.ValidationError as e:
            raise ToolArgumentsError(name, e) from e

        await log.info(f'Calling {name}')
        timer = Timer()
        try:
            result = await tool.action(self.provider, args)
        except Exception as e:
            await log.error(f'{name} failed after {timer.elapsed_ms()}ms: {type(e).__name__}: {e}')
            raise ToolExecutionError(name, e) from e
        finally:
            # Long-running actions count as activity until they finish
            self._notify_activity()

        await log.debug(f'{name} completed in {timer.elapsed_ms()}ms')
        return result

    async def read_resource(self, uri: str) -> ReadResourceContents:
        """Read a resource by URI into content tagged with its MIME type.

        Raises:
            ResourceNotFoundError: URI is not in the active registry
            ResourceReadError: producing the content failed
        """
        self._notify_activity()

        resource = self.registry.resource(uri)
        if resource is None:
            raise ResourceNotFoundError(uri)

        try:
            content = await resource.read(self.provider)
        except Exception as e:
            raise ResourceReadError(uri, e) from e
        return ReadResourceContents(content=content, mime_type=resource.mime_type)

    def _register_handlers(self) -> None:
        """Bind the registry to the MCP low-level server via closures."""
        server = self._mcp

        @server.list_tools()
        async def list_tools() -> list[mcp.types.Tool]:
            return self.list_tools()

        # Arguments are validated against the pydantic models in call_tool
        @server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict[str, typing.Any]) -> list[Content]:
            log = DualLogger(logger, server.request_context.session, self._client_log_level)
            return await self.call_tool(name, arguments, log)

        @server.list_resources()
        async def list_resources() -> list[mcp.types.Resource]:
            return self.list_resources()

        @server.read_resource()
        async def read_resource(uri: pydantic.AnyUrl) -> Iterable[ReadResourceContents]:
            return [await self.read_resource(str(uri))]

        @server.set_logging_level()
        async def set_logging_level(level: mcp.types.LoggingLevel) -> None:
            self._client_log_level = level

    # -- Lifecycle --

    async def start(self, stdin: AsyncIterable[str] | None = None) -> None:
        """Serve MCP over stdio until the input stream ends.

        Args:
            stdin: Line source replacing the process stdin (an ActivityStream in production)
        """
        if self._started:
            raise RuntimeError('SessionServer.start() may only be called once')
        self._started = True

        logger.info(f'Serving {len(self.registry.tools)} tools in {self.registry.mode} mode over stdio')
        # stdio_server only iterates stdin line by line
        async with mcp.server.stdio.stdio_server(stdin=stdin) as (read_stream, write_stream):  # type: ignore[arg-type]
            await self._mcp.run(read_stream, write_stream, self._mcp.create_initialization_options())
        logger.info('MCP session ended')

    async def stop(self) -> None:
        """Release the capability provider. Idempotent.

        The first caller runs the single teardown and sees its failure as
        TeardownError. Concurrent and later callers wait for that same
        teardown and return without raising. Cancelling a caller does not
        cancel the teardown.
        """
        if self._stop_task is None:
            self._stop_task = asyncio.get_running_loop().create_task(self._teardown(), name='session-teardown')
            await asyncio.shield(self._stop_task)
            return

        await asyncio.wait([self._stop_task])

    async def _teardown(self) -> None:
        logger.info('Releasing browser session')
        try:
            await self.provider.close()
        except Exception as e:
            raise TeardownError(f'Failed to close browser: {type(e).__name__}: {e}') from e
        finally:
            self.provider.cleanup()
        logger.info('Browser session released')
