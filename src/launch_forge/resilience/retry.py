"""Fixed-delay retry policy for text-generation calls."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable

from pydantic import BaseModel, Field

from launch_forge.core.exceptions import ForgeError

if TYPE_CHECKING:
    from launch_forge.resilience.cancellation import CancellationToken

SleepFn = Callable[[float], Awaitable[None]]


class RetryPolicy(BaseModel):
    """How many times an invocation is attempted and how long to wait between.

    The delay is constant: there is no exponential backoff and no jitter.

    Attributes:
        max_retries: Total number of attempts per invocation (the first call
            counts as one).
        delay: Seconds to wait between two attempts.
    """

    max_retries: int = Field(default=3, ge=1, le=10)
    delay: float = Field(default=2.0, ge=0.0)

    def should_retry(self, exc: Exception, attempt: int) -> bool:
        """Whether another attempt may follow a failure on *attempt* (1-indexed).

        Errors that declare ``is_retryable = False`` (authentication failures)
        stop the loop early. Everything else is retried until the attempt
        budget is spent.
        """
        if attempt >= self.max_retries:
            return False
        if isinstance(exc, ForgeError):
            return exc.is_retryable
        return True

    async def pause(
        self,
        sleep: SleepFn = asyncio.sleep,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Wait :attr:`delay` seconds, returning early if the build is cancelled."""
        if self.delay <= 0:
            return
        if cancel_token is None:
            await sleep(self.delay)
            return
        await cancel_token.wait_or_sleep(self.delay, sleep)
