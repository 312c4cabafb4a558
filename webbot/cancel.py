"""Cooperative cancellation threaded through every suspension point."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Optional, TypeVar

from .errors import CrawlCancelled

T = TypeVar("T")


class CancellationToken:
    """Cancellation signal for one crawl run.

    Every network call and delay of the run is awaited through
    :meth:`guard` or :meth:`sleep`. Once :meth:`cancel` is called, the
    pending operation is cancelled and awaited, then
    :class:`~webbot.errors.CrawlCancelled` is raised to the caller.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CrawlCancelled(self.reason or "cancelled")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the token fires first."""
        operation = asyncio.ensure_future(awaitable)
        if self._event.is_set():
            operation.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await operation
            self.raise_if_cancelled()

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait(
                {operation, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            waiter.cancel()
            if not operation.done():
                operation.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await operation

        if operation.cancelled():
            self.raise_if_cancelled()
            raise asyncio.CancelledError()
        return operation.result()

    async def sleep(self, seconds: float) -> None:
        """Wait *seconds*, returning early with CrawlCancelled on cancel."""
        if seconds <= 0:
            self.raise_if_cancelled()
            await asyncio.sleep(0)
            self.raise_if_cancelled()
            return
        await self.guard(asyncio.sleep(seconds))
