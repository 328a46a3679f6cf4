"""Retrying budget backend calls through rate limiting."""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar
from monobudget.exceptions import BudgetRateLimitError

logger = logging.getLogger(__name__)

T = TypeVar("T")

WaitListener = Callable[[float], Awaitable[None]]


class RetryWithRateLimit:
    """
    Runs a backend operation, waiting out every rate-limit cool-down.

    Only BudgetRateLimitError is retried, once per cool-down and with no
    upper bound; every other error propagates on the first occurrence.
    """

    def __init__(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self._sleep = sleep

    async def __call__(
        self,
        operation: Callable[[], Awaitable[T]],
        on_wait: Optional[WaitListener] = None,
    ) -> T:
        while True:
            try:
                return await operation()
            except BudgetRateLimitError as e:
                logger.warning("Budget backend rate limited, retrying in %.0f s", e.retry_after)
                if on_wait is not None:
                    await on_wait(e.retry_after)
                await self._sleep(e.retry_after)
