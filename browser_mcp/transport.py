"""stdin wrapper that reports inbound activity and end-of-stream.

``mcp.server.stdio.stdio_server`` consumes stdin with ``async for line in
stdin``. The wrapper reads raw byte chunks instead of lines, so the lifecycle
watchdog sees data as soon as it arrives: a request still being written, or
bytes with no newline yet, count as activity before any line is complete.
Chunks are then decoded and split into the lines the SDK expects.
"""

from __future__ import annotations

__all__ = [
    'ActivityStream',
    'CHUNK_SIZE',
    'process_stdin',
    'read_chunks',
]

import codecs
import logging
import sys
from collections.abc import AsyncIterable, AsyncIterator, Callable

import anyio

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


class ActivityStream:
    """Async line iterator over a byte-chunk source.

    Calls ``on_activity`` once per chunk received and ``on_close`` once at EOF.
    """

    def __init__(
        self,
        source: AsyncIterable[bytes],
        on_activity: Callable[[], None],
        on_close: Callable[[], None],
    ) -> None:
        self._source = source
        self._on_activity = on_activity
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[str]:
        return self._lines()

    async def _lines(self) -> AsyncIterator[str]:
        decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        pending = ''

        async for chunk in self._source:
            self._on_activity()
            pending += decoder.decode(chunk)
            # Split on '\n' only: JSON strings may carry U+2028 and friends
            while (end := pending.find('\n')) != -1:
                line, pending = pending[: end + 1], pending[end + 1 :]
                yield line

        # Only a real EOF lands here; cancellation unwinds past it
        pending += decoder.decode(b'', final=True)
        if pending:
            yield pending

        if not self._closed:
            self._closed = True
            logger.info('Input stream closed')
            self._on_close()


async def read_chunks(file: anyio.AsyncFile[bytes], size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield whatever bytes are available, one read at a time, until EOF."""
    while chunk := await file.read1(size):
        yield chunk


def process_stdin() -> AsyncIterator[bytes]:
    """The process stdin as raw byte chunks."""
    return read_chunks(anyio.wrap_file(sys.stdin.buffer))
