"""Shared utilities: logging setup, client-mirrored logging, timing."""

from __future__ import annotations

__all__ = [
    'DualLogger',
    'Timer',
    'configure_logging',
    'humanize_seconds',
    'LOG_FORMAT',
]

import logging
import sys
import time
import typing

import mcp.types

if typing.TYPE_CHECKING:
    from mcp.server.session import ServerSession

LOG_FORMAT = '%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s'

# MCP logging levels, least to most severe
_CLIENT_LEVELS: tuple[mcp.types.LoggingLevel, ...] = (
    'debug',
    'info',
    'notice',
    'warning',
    'error',
    'critical',
    'alert',
    'emergency',
)


def configure_logging(level: str) -> None:
    """Log to stderr with timestamps. stdout carries the MCP protocol."""
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt='%H:%M:%S',
        stream=sys.stderr,
    )
    # Silence noisy third-party loggers
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('mcp').setLevel(logging.WARNING)


class DualLogger:
    """Logs messages to both the server log and the MCP client session."""

    def __init__(
        self,
        logger: logging.Logger,
        session: ServerSession | None = None,
        client_level: mcp.types.LoggingLevel = 'info',
    ) -> None:
        self._logger = logger
        self._session = session
        self._min_index = _CLIENT_LEVELS.index(client_level)

    async def _send(self, level: mcp.types.LoggingLevel, msg: str) -> None:
        if self._session is None or _CLIENT_LEVELS.index(level) < self._min_index:
            return
        await self._session.send_log_message(level=level, data=msg, logger=self._logger.name)

    async def debug(self, msg: str) -> None:
        self._logger.debug(msg)
        await self._send('debug', msg)

    async def info(self, msg: str) -> None:
        self._logger.info(msg)
        await self._send('info', msg)

    async def warning(self, msg: str) -> None:
        self._logger.warning(msg)
        await self._send('warning', msg)

    async def error(self, msg: str) -> None:
        self._logger.error(msg)
        await self._send('error', msg)


class Timer:
    """Simple stopwatch-style timer for measuring elapsed time."""

    def __init__(self) -> None:
        self._start = time.perf_counter()

    def elapsed(self) -> float:
        """Return elapsed time in seconds."""
        return time.perf_counter() - self._start

    def elapsed_ms(self) -> int:
        """Return elapsed time in milliseconds."""
        return int(self.elapsed() * 1000)


def humanize_seconds(seconds: float) -> str:
    """Convert seconds to a terse duration: 45 sec, 1.5 min, 2.5 hr, 3 d."""
    intervals = [
        ('d', 86400),
        ('hr', 3600),
        ('min', 60),
        ('sec', 1),
    ]

    for unit, count in intervals:
        if seconds >= count:
            value = seconds / count
            value_str = f'{value:.1f}'.rstrip('0').rstrip('.')
            return f'{value_str} {unit}'

    # Sub-second values (test timeouts)
    return f'{seconds * 1000:.0f} ms'
