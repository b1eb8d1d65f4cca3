"""Ordered output sequence of resolved files."""

import asyncio
from typing import AsyncIterator, List, Optional

from .dependency import ResolvedFile

_CLOSED = object()


class StreamClosedError(RuntimeError):
    """Raised when writing to a stream that was already closed."""


class ResolvedFileStream:
    """
    Single-writer, async-iterable sequence of ``ResolvedFile`` records.

    Files come out in the order they were written. Iteration ends once the
    writer calls ``close()``; a stream is closed at most once.
    """

    def __init__(self):
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()
        self._closed = False
        self.written = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, resolved_file: ResolvedFile) -> None:
        if self._closed:
            raise StreamClosedError("cannot write to a closed stream")
        self._queue.put_nowait(resolved_file)
        self.written += 1

    def close(self) -> None:
        """Mark the end of the sequence. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def read(self) -> Optional[ResolvedFile]:
        """Next file, or None once the stream is closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            # keep the marker for any other reader
            self._queue.put_nowait(_CLOSED)
            return None
        return item  # type: ignore[return-value]

    def __aiter__(self) -> AsyncIterator[ResolvedFile]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ResolvedFile]:
        while True:
            item = await self.read()
            if item is None:
                return
            yield item

    async def collect(self) -> List[ResolvedFile]:
        """Drain the stream into a list."""
        return [item async for item in self]
