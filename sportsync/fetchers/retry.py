"""Configurable retry policy wrapped around any source fetcher."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, Field

from .base import SourceFetcher
from .. import config

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """How many times to try a fetch and how long to wait in between."""

    max_attempts: int = Field(default=3, ge=1)
    delay_seconds: float = Field(default=5.0, ge=0)
    backoff_factor: float = Field(default=1.0, ge=1.0)
    max_delay_seconds: Optional[float] = Field(default=None, ge=0)

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        """Build the policy from REFRESH_RETRY_* settings."""
        return cls(
            max_attempts=max(1, config.REFRESH_RETRY_ATTEMPTS),
            delay_seconds=max(0.0, config.REFRESH_RETRY_DELAY_SECONDS),
            backoff_factor=max(1.0, config.REFRESH_RETRY_BACKOFF),
        )

    def delays(self) -> List[float]:
        """Waits between consecutive attempts (one fewer than max_attempts)."""
        waits = []
        delay = self.delay_seconds
        for _ in range(self.max_attempts - 1):
            if self.max_delay_seconds is not None:
                delay = min(delay, self.max_delay_seconds)
            waits.append(delay)
            delay *= self.backoff_factor
        return waits


class RetryingFetcher(SourceFetcher[T]):
    """Retries the wrapped fetcher according to a RetryPolicy.

    Only the final outcome reaches the caller: the last exception is
    re-raised once every attempt has failed.
    """

    def __init__(
        self,
        fetcher: SourceFetcher[T],
        policy: Optional[RetryPolicy] = None,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetcher = fetcher
        self.policy = policy or RetryPolicy.from_config()
        self.retry_on = retry_on
        self._sleep = sleep

    async def fetch(self, source_key: str) -> Sequence[T]:
        waits: List[Optional[float]] = [*self.policy.delays(), None]
        for attempt, wait in enumerate(waits, start=1):
            try:
                return await self.fetcher.fetch(source_key)
            except self.retry_on as e:
                if wait is None:
                    logger.warning(
                        f"Fetch for {source_key} failed after {attempt} attempts: {e}"
                    )
                    raise
                logger.info(
                    f"Fetch for {source_key} failed, retry {attempt}/"
                    f"{self.policy.max_attempts - 1} in {wait}s ({e})"
                )
                await self._sleep(wait)

    async def aclose(self) -> None:
        await self.fetcher.aclose()
