"""Command-line entry point.

Builds the mode-selected registry, constructs the session server, arms the
lifecycle watchdog and serves MCP over stdio:

    browser-mcp --headless --idle-timeout 120

Every option can also come from a ``BROWSER_MCP_*`` environment variable;
command-line flags take precedence.
"""

from __future__ import annotations

__all__ = [
    'app',
    'main',
    'serve',
]

import asyncio
import functools
import logging

import pydantic
import typer

from browser_mcp import __version__
from browser_mcp.models import (
    DEFAULT_FORCE_EXIT_TIMEOUT,
    DEFAULT_IDLE_TIMEOUT,
    DEFAULT_MAX_LIFETIME,
    LaunchOptions,
    ServerConfig,
)
from browser_mcp.registry import build_registry
from browser_mcp.server import SessionServer
from browser_mcp.transport import ActivityStream, process_stdin
from browser_mcp.utils import configure_logging
from browser_mcp.watchdog import LifecycleWatchdog

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help='Playwright browser automation MCP server (stdio).')


async def serve(config: ServerConfig) -> int:
    """Run one server process. Returns only if the watchdog's exit function returns."""
    registry = build_registry(vision=config.vision)
    server = SessionServer(registry, config.launch)
    watchdog = LifecycleWatchdog(
        server,
        max_lifetime=config.max_lifetime,
        idle_timeout=config.idle_timeout,
        force_exit_timeout=config.force_exit_timeout,
    )
    watchdog.arm()
    server.add_activity_listener(watchdog.touch)

    stdin = ActivityStream(
        process_stdin(),
        on_activity=watchdog.touch,
        on_close=functools.partial(watchdog.trigger, 'input stream closed'),
    )

    try:
        await server.start(stdin)
    except Exception:
        logger.exception('MCP session failed')
        watchdog.trigger('session error')
    else:
        watchdog.trigger('session ended')

    return await watchdog.wait()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f'browser-mcp {__version__}')
        raise typer.Exit()


@app.command()
def main(
    headless: bool = typer.Option(
        False, '--headless', envvar='BROWSER_MCP_HEADLESS', help='Run browser in headless mode, headed by default.'
    ),
    vision: bool = typer.Option(
        False,
        '--vision',
        envvar='BROWSER_MCP_VISION',
        help='Run server that uses screenshots (ARIA snapshots are used by default).',
    ),
    max_lifetime: int = typer.Option(
        DEFAULT_MAX_LIFETIME,
        '--max-lifetime',
        envvar='BROWSER_MCP_MAX_LIFETIME',
        min=1,
        help='Shut down this many seconds after start, regardless of activity.',
    ),
    idle_timeout: int = typer.Option(
        DEFAULT_IDLE_TIMEOUT,
        '--idle-timeout',
        envvar='BROWSER_MCP_IDLE_TIMEOUT',
        min=1,
        help='Shut down after this many seconds without input.',
    ),
    force_exit_timeout: float = typer.Option(
        DEFAULT_FORCE_EXIT_TIMEOUT,
        '--force-exit-timeout',
        envvar='BROWSER_MCP_FORCE_EXIT_TIMEOUT',
        help='Seconds graceful shutdown may take before the process is killed.',
    ),
    log_level: str = typer.Option('INFO', '--log-level', envvar='BROWSER_MCP_LOG_LEVEL', help='stderr log level.'),
    version: bool = typer.Option(
        False, '--version', callback=_version_callback, is_eager=True, help='Show version and exit.'
    ),
) -> None:
    """Serve Playwright browser tools over MCP stdio."""
    try:
        config = ServerConfig(
            launch=LaunchOptions(headless=headless),
            vision=vision,
            max_lifetime=max_lifetime,
            idle_timeout=idle_timeout,
            force_exit_timeout=force_exit_timeout,
            log_level=log_level,
        )
    except pydantic.ValidationError as e:
        raise typer.BadParameter(str(e)) from e

    configure_logging(config.log_level)
    logger.info(f'Starting browser-mcp {__version__} ({config.mode} mode, headless={config.launch.headless})')

    raise typer.Exit(asyncio.run(serve(config)))
