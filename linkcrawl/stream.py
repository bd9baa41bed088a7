from __future__ import annotations

import asyncio

from linkcrawl.exceptions import StreamClosedError

_CLOSED = object()


class OutputStream:
    """Multi-producer channel of visited keys with a single close event.

    ``maxsize`` > 0 bounds the number of unread keys: producers then wait at
    ``put`` until the consumer catches up. ``close`` never waits, so the
    close marker can be queued from a task done-callback.

    Usage:
        stream = OutputStream()
        async for key in stream:
            print(key)
    """

    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._slots = asyncio.Semaphore(maxsize) if maxsize > 0 else None
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, key: str) -> None:
        if self._closed:
            raise StreamClosedError(f"put on closed stream: {key}")
        if self._slots is not None:
            await self._slots.acquire()
            if self._closed:
                self._slots.release()
                raise StreamClosedError(f"put on closed stream: {key}")
        self._queue.put_nowait(key)

    def close(self) -> None:
        if self._closed:
            raise StreamClosedError("stream already closed")
        self._closed = True
        # close marker 排在所有已送出的 key 後面
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> str:
        """Next key; raises StreamClosedError once the close marker is reached."""
        if self._drained:
            raise StreamClosedError("read from drained stream")
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            raise StreamClosedError("stream closed")
        if self._slots is not None:
            self._slots.release()
        return item  # type: ignore[return-value]

    def __aiter__(self) -> OutputStream:
        return self

    async def __anext__(self) -> str:
        try:
            return await self.get()
        except StreamClosedError:
            raise StopAsyncIteration from None
