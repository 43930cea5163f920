"""
Bounded async channel tied to the background task that fills it.

The producer coroutine receives the channel and pushes items with ``send``.
A full channel suspends the producer until the consumer drains it. Closing the
channel (``aclose`` or leaving ``async with``) cancels the producer task, so
work stops as soon as nobody is listening.

An exception raised by the producer is re-raised to the consumer once every
item sent before it has been delivered.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_CAPACITY = 100

_END = object()


class StreamChannel(Generic[T]):
    def __init__(self, capacity: int = DEFAULT_CAPACITY, name: str = "stream"):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.name = name
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self._task: asyncio.Task | None = None
        self._closed = False
        self._finished = False
        self._error: BaseException | None = None
        self.sent = 0

    @property
    def closed(self) -> bool:
        """True once the consumer has detached."""
        return self._closed

    @property
    def error(self) -> BaseException | None:
        return self._error

    def start(self, producer: Callable[["StreamChannel[T]"], Awaitable[None]]) -> "StreamChannel[T]":
        if self._task is not None:
            raise RuntimeError(f"{self.name} channel already started")
        self._task = asyncio.create_task(self._run(producer), name=f"{self.name}-producer")
        return self

    async def _run(self, producer: Callable[["StreamChannel[T]"], Awaitable[None]]) -> None:
        try:
            await producer(self)
        except asyncio.CancelledError:
            self._closed = True
            logger.debug(f"{self.name} producer cancelled after {self.sent} items")
            raise
        except Exception as e:
            self._error = e
            logger.warning(
                f"{self.name} producer failed after {self.sent} items: {e}",
                extra={"extra_fields": {"channel": self.name, "sent": self.sent}},
            )
        if not self._closed:
            await self._queue.put(_END)

    async def send(self, item: T) -> bool:
        """
        Push one item, waiting while the channel is full.

        Returns False when the consumer has detached; the producer should stop.
        """
        if self._closed:
            return False
        await self._queue.put(item)
        self.sent += 1
        return True

    def __aiter__(self) -> "StreamChannel[T]":
        return self

    async def __anext__(self) -> T:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END:
            self._finished = True
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item

    async def aclose(self) -> None:
        """Detach the consumer and cancel the producer if it is still running."""
        self._closed = True
        self._finished = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def __aenter__(self) -> "StreamChannel[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
