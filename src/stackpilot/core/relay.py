"""
Relay — a single-slot channel with one producer and one consumer.

The producer blocks while the slot is occupied, so a slow UI throttles the
deployment task instead of letting messages pile up.  Items are delivered
in the order they were sent.

Usage::

    relay: Relay[LogNotice] = Relay("log")
    await relay.send(LogNotice("Running refresh..."))   # producer
    notice = await relay.receive()                       # consumer

Engine callbacks run on a thread the event loop does not own; they use
``send_threadsafe`` which blocks that thread until the item is accepted.
Once the consumer is gone, ``close()`` makes further thread-side sends
return immediately so the engine thread is never left blocked.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")

_POLL_SECONDS = 0.25


class Relay(Generic[T]):
    """Capacity-1 asyncio channel."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=1)
        self._closed = False

    def __repr__(self) -> str:
        return f"Relay({self.name!r}, pending={self._queue.qsize()}, closed={self._closed})"

    @property
    def pending(self) -> bool:
        """True while an item sits in the slot waiting to be received."""
        return self._queue.full()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop accepting thread-side sends; the consumer has gone away."""
        self._closed = True

    async def send(self, item: T) -> None:
        """Place ``item`` in the slot, waiting until the slot is free."""
        await self._queue.put(item)

    async def receive(self) -> T:
        """Wait for the next item and take it out of the slot."""
        item = await self._queue.get()
        self._queue.task_done()
        return item

    async def join(self) -> None:
        """Wait until every item sent so far has been received."""
        await self._queue.join()

    def send_threadsafe(self, item: T, loop: asyncio.AbstractEventLoop) -> bool:
        """
        Blocking send from a foreign thread.

        Returns True once the item is in the slot, False if it was dropped
        because the relay was closed or the loop went away.  Must never be
        called from the thread running ``loop``.
        """
        if self._closed:
            return False
        try:
            future = asyncio.run_coroutine_threadsafe(self.send(item), loop)
        except RuntimeError:
            # loop already closed
            logger.debug("relay_send_dropped", relay=self.name, reason="loop_closed")
            return False

        while True:
            try:
                future.result(timeout=_POLL_SECONDS)
                return True
            except concurrent.futures.TimeoutError:
                if self._closed or loop.is_closed():
                    future.cancel()
                    logger.debug("relay_send_dropped", relay=self.name, reason="closed")
                    return False
            except concurrent.futures.CancelledError:
                logger.debug("relay_send_dropped", relay=self.name, reason="cancelled")
                return False
