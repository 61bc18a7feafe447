from __future__ import annotations

"""Cooperative cancellation for a single agent run.

Model calls and tool executions are awaited through ``CancellationToken.guard``,
which races the awaitable against the token's cancel event and an optional
timeout. Whichever finishes first wins; the losing awaitable is cancelled and
awaited so nothing keeps running in the background.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RunCancelledError(Exception):
    """Raised from ``guard`` when the run was cancelled while awaiting."""


class GuardTimeoutError(TimeoutError):
    """Raised from ``guard`` when its own timeout elapsed first.

    Distinct from any ``TimeoutError`` raised by the guarded awaitable itself.
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"timed out after {timeout:g}s")


class CancellationToken:
    """One-shot cancel flag shared between the engine and its awaits."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def guard(self, aw: Awaitable[T], *, timeout: Optional[float] = None) -> T:
        """Await ``aw`` unless the token is cancelled or ``timeout`` elapses first.

        Raises:
            RunCancelledError: The token was cancelled before ``aw`` finished.
            GuardTimeoutError: ``timeout`` seconds elapsed before ``aw`` finished.
        """
        task = asyncio.ensure_future(aw)
        if self.cancelled:
            await self._discard(task)
            raise RunCancelledError("run cancelled")

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            waiter.cancel()
            await self._discard(task)
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        await self._discard(task)
        if waiter in done:
            raise RunCancelledError("run cancelled")
        waiter.cancel()
        raise GuardTimeoutError(timeout)

    @staticmethod
    async def _discard(task: "asyncio.Future[T]") -> None:
        if task.done():
            if not task.cancelled() and task.exception() is not None:
                logger.debug(f"discarded awaitable had failed: {task.exception()!r}")
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"discarded awaitable raised while cancelling: {e!r}")
