"""Cooperative cancellation for a single build."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from launch_forge.core.exceptions import BuildCancelledError


class CancellationToken:
    """Set once by the caller, checked by the sequencer and the invoker.

    Checks happen at phase boundaries and before every remote attempt; a
    pending retry delay is cut short when the token fires.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = "Build cancelled"

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        if reason:
            self._reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise BuildCancelledError(self._reason)

    async def wait_or_sleep(
        self,
        seconds: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Sleep for *seconds* unless cancellation arrives first.

        Raises:
            BuildCancelledError: If the token fired before or during the wait.
        """
        self.raise_if_cancelled()
        sleeper = asyncio.ensure_future(sleep(seconds))
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
        self.raise_if_cancelled()
