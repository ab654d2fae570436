"""Lifecycle watchdog: decides when the server process ends, and ends it.

State machine::

    ARMED ──trigger(reason)──> SHUTTING_DOWN ──stop() done / force exit──> TERMINATED

Triggers (first one wins, the rest are no-ops):

- max lifetime: absolute deadline from ``arm()``
- idle timeout: rolling deadline, re-armed by ``touch()``
- SIGINT / SIGTERM
- input stream closed (wired by the entry point)
- unhandled exception reaching the event loop's exception handler

Everything runs on one asyncio loop: timer callbacks, signal callbacks and
request handling never run concurrently, so the state check at the top of
``trigger()`` is the whole guard. It is set before the first ``await``.

Entering SHUTTING_DOWN arms a force-exit timer; if ``server.stop()`` has not
finished when it fires, the process exits with status 1 regardless.
"""

from __future__ import annotations

__all__ = [
    'LifecycleWatchdog',
    'Stoppable',
    'WatchdogState',
    'hard_exit',
]

import asyncio
import enum
import logging
import os
import signal
import sys
import typing
from collections.abc import Callable

from browser_mcp.models import DEFAULT_FORCE_EXIT_TIMEOUT
from browser_mcp.utils import humanize_seconds

logger = logging.getLogger(__name__)

type ExceptionHandler = Callable[[asyncio.AbstractEventLoop, dict[str, typing.Any]], object]


class WatchdogState(enum.Enum):
    ARMED = 'armed'
    SHUTTING_DOWN = 'shutting_down'
    TERMINATED = 'terminated'


class Stoppable(typing.Protocol):
    async def stop(self) -> None: ...


def hard_exit(code: int) -> None:
    """Exit immediately.

    sys.exit() is not enough: the stdin reader runs in a worker thread that
    stays blocked in readline(), and interpreter shutdown would wait for it.
    """
    sys.stderr.flush()
    os._exit(code)


class LifecycleWatchdog:
    """Timer- and signal-driven shutdown state machine for one server."""

    def __init__(
        self,
        server: Stoppable,
        *,
        max_lifetime: float,
        idle_timeout: float,
        force_exit_timeout: float = DEFAULT_FORCE_EXIT_TIMEOUT,
        exit: Callable[[int], None] = hard_exit,
        handle_signals: bool = True,
    ) -> None:
        if max_lifetime <= 0 or idle_timeout <= 0 or force_exit_timeout <= 0:
            raise ValueError('Watchdog timeouts must be positive')

        self._server = server
        self.max_lifetime = max_lifetime
        self.idle_timeout = idle_timeout
        self.force_exit_timeout = force_exit_timeout
        self._exit = exit
        self._handle_signals = handle_signals

        self.state = WatchdogState.ARMED
        self.reason: str | None = None
        self.exit_code: int | None = None
        self.terminated = asyncio.Event()

        self._loop: asyncio.AbstractEventLoop | None = None
        self._lifetime_timer: asyncio.TimerHandle | None = None
        self._idle_timer: asyncio.TimerHandle | None = None
        self._force_exit_timer: asyncio.TimerHandle | None = None
        self._shutdown_task: asyncio.Task[None] | None = None
        self._signals: list[signal.Signals] = []
        self._previous_exception_handler: ExceptionHandler | None = None

    # -- Arming --

    def arm(self) -> None:
        """Start the lifetime and idle timers and install signal/exception hooks."""
        if self._loop is not None:
            raise RuntimeError('Watchdog already armed')
        loop = asyncio.get_running_loop()
        self._loop = loop

        self._lifetime_timer = loop.call_later(self.max_lifetime, self.trigger, 'max lifetime reached')
        self._reset_idle_timer()

        if self._handle_signals:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.trigger, f'received {sig.name}')
                self._signals.append(sig)

        self._previous_exception_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._on_unhandled_exception)

        logger.info(
            f'Watchdog armed: max lifetime {humanize_seconds(self.max_lifetime)}, '
            f'idle timeout {humanize_seconds(self.idle_timeout)}'
        )

    def touch(self) -> None:
        """Activity signal: re-arm the idle timer. Ignored once shutdown began."""
        if self.state is not WatchdogState.ARMED or self._loop is None:
            return
        self._reset_idle_timer()

    def _reset_idle_timer(self) -> None:
        assert self._loop is not None
        if self._idle_timer is not None:
            self._idle_timer.cancel()
        self._idle_timer = self._loop.call_later(self.idle_timeout, self.trigger, 'idle timeout')

    # -- Transition --

    def trigger(self, reason: str) -> None:
        """Begin shutdown. Every trigger source calls this; only the first call acts."""
        if self.state is not WatchdogState.ARMED:
            logger.debug(f'Ignoring shutdown trigger ({reason}): already {self.state.value}')
            return
        if self._loop is None:
            raise RuntimeError('Watchdog not armed')

        self.state = WatchdogState.SHUTTING_DOWN
        self.reason = reason
        logger.info(f'Server shutting down gracefully ({reason})...')

        for timer in (self._lifetime_timer, self._idle_timer):
            if timer is not None:
                timer.cancel()
        self._lifetime_timer = None
        self._idle_timer = None

        if self._force_exit_timer is not None:
            self._force_exit_timer.cancel()
        self._force_exit_timer = self._loop.call_later(self.force_exit_timeout, self._force_exit)

        self._shutdown_task = self._loop.create_task(self._shutdown(), name='watchdog-shutdown')

    async def _shutdown(self) -> None:
        try:
            await self._server.stop()
        except Exception:
            logger.exception('Error during server shutdown')
            self._terminate(1)
            return

        logger.info('Server stopped successfully')
        self._terminate(0)

    def _force_exit(self) -> None:
        logger.error(f'Forcing exit: server did not stop within {humanize_seconds(self.force_exit_timeout)}')
        self._terminate(1)

    def _on_unhandled_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, typing.Any]) -> None:
        exc = context.get('exception')
        logger.error(
            f'Unhandled exception: {context.get("message", "unknown error")}',
            exc_info=(type(exc), exc, exc.__traceback__) if exc is not None else None,
        )
        self.trigger('unhandled exception')

    # -- Termination --

    def _terminate(self, code: int) -> None:
        if self.state is WatchdogState.TERMINATED:
            return
        self.state = WatchdogState.TERMINATED
        self.exit_code = code

        self._cleanup()
        self.terminated.set()

        for handler in logging.getLogger().handlers:
            handler.flush()
        self._exit(code)

    def _cleanup(self) -> None:
        """Cancel every outstanding timer and remove process hooks."""
        for timer in (self._lifetime_timer, self._idle_timer, self._force_exit_timer):
            if timer is not None:
                timer.cancel()
        self._lifetime_timer = None
        self._idle_timer = None
        self._force_exit_timer = None

        task = self._shutdown_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

        if self._loop is not None:
            for sig in self._signals:
                self._loop.remove_signal_handler(sig)
            self._signals.clear()
            self._loop.set_exception_handler(self._previous_exception_handler)

    async def wait(self) -> int:
        """Block until the watchdog has terminated; return the exit status."""
        await self.terminated.wait()
        assert self.exit_code is not None
        return self.exit_code
