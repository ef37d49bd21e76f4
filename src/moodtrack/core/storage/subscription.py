"""Cancelable listen handles for the record store.

A :class:`Subscription` is what ``RecordStore.listen_latest`` hands back: an
async iterator of snapshots that the consumer owns and releases when it is no
longer interested.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """Async iterator over successive snapshots of a query.

    The first item is the state at subscription time (possibly ``None``);
    each later item is pushed by the store when a matching write lands.

    Usage::

        async with store.listen_latest(user_id, "moods") as sub:
            async for record in sub:
                ...
    """

    def __init__(
        self,
        initial: Any = None,
        *,
        transform: Callable[[Any], Any] | None = None,
        on_cancel: Callable[[Subscription], None] | None = None,
    ) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._transform = transform
        self._on_cancel = on_cancel
        self._cancelled = False
        self._queue.put_nowait(initial)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def push(self, snapshot: Any) -> None:
        """Deliver a new snapshot. Ignored once cancelled."""
        if self._cancelled:
            return
        self._queue.put_nowait(snapshot)

    def map(self, transform: Callable[[Any], Any]) -> Subscription:
        """Apply ``transform`` to every snapshot yielded from now on."""
        previous = self._transform
        if previous is None:
            self._transform = transform
        else:
            self._transform = lambda snapshot: transform(previous(snapshot))
        return self

    def cancel(self) -> None:
        """Stop listening. Pending iteration ends after queued snapshots drain."""
        if self._cancelled:
            return
        self._cancelled = True
        self._queue.put_nowait(_CLOSED)
        if self._on_cancel is not None:
            self._on_cancel(self)
        logger.debug("Subscription %x cancelled", id(self))

    async def next(self) -> Any:
        """Wait for the next snapshot.

        Raises:
            StopAsyncIteration: Once the subscription has been cancelled.
        """
        item = await self._queue.get()
        if item is _CLOSED:
            self._queue.put_nowait(_CLOSED)
            raise StopAsyncIteration
        return self._transform(item) if self._transform is not None else item

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Any:
        return await self.next()

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *args) -> None:
        self.cancel()
