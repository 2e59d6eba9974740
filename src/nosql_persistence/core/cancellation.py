"""Cooperative cancellation for repository operations.

A CancellationToken is handed to repository calls. Once cancelled, the
in-flight provider call is abandoned and the operation raises
OperationCanceledError instead of returning a partial result.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Optional, TypeVar

from .exceptions import OperationCanceledError

T = TypeVar("T")

logger = logging.getLogger(__name__)


class CancellationToken:
    """Single-use cancellation signal shared between a caller and operations."""

    def __init__(self):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._timer: Optional[asyncio.TimerHandle] = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Signal cancellation. Calling it again has no effect."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel_after(self, delay: float) -> None:
        """Cancel automatically after ``delay`` seconds (needs a running loop)."""
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(delay, self.cancel, f"timed out after {delay}s")

    def raise_if_cancelled(self, operation: str) -> None:
        if self._event.is_set():
            raise OperationCanceledError(operation)

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T], operation: str) -> T:
        """Await ``awaitable`` unless the token fires first.

        When cancellation wins the race the pending work is cancelled and
        OperationCanceledError is raised.
        """
        if self._event.is_set():
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCanceledError(operation)

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not work.done():
                work.cancel()

        if work.done() and not work.cancelled():
            return work.result()

        logger.debug(f"Abandoned '{operation}' after cancellation: {self._reason}")
        try:
            await work
        except asyncio.CancelledError:
            pass
        raise OperationCanceledError(operation)


async def run_cancellable(
    awaitable: Awaitable[T],
    cancellation: Optional[CancellationToken],
    operation: str
) -> T:
    """Await ``awaitable`` under an optional cancellation token."""
    if cancellation is None:
        return await awaitable
    return await cancellation.run(awaitable, operation)


def check_cancelled(cancellation: Optional[CancellationToken], operation: str) -> None:
    """Raise OperationCanceledError when ``cancellation`` has fired."""
    if cancellation is not None:
        cancellation.raise_if_cancelled(operation)


__all__ = ["CancellationToken", "run_cancellable", "check_cancelled"]
