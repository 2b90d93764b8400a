"""Tests for the retry policy and retrying fetcher."""

import pytest
from unittest.mock import patch

from pydantic import ValidationError

from sportsync import config
from sportsync.fetchers import FetchError, RetryingFetcher, RetryPolicy
from tests.conftest import StubFetcher


class FlakyFetcher(StubFetcher):
    """Fails a fixed number of times before succeeding."""

    def __init__(self, failures: int, exc: Exception = None):
        super().__init__({"NFL": ["record"]})
        self.failures = failures
        self.exc = exc or RuntimeError("upstream 502")

    async def fetch(self, source_key):
        if len(self.calls) < self.failures:
            self.calls.append(source_key)
            raise self.exc
        return await super().fetch(source_key)


class RecordingSleep:
    """Async sleep replacement that records requested waits."""

    def __init__(self):
        self.waits = []

    async def __call__(self, seconds):
        self.waits.append(seconds)


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self):
        """Three attempts five seconds apart."""
        policy = RetryPolicy()

        assert policy.max_attempts == 3
        assert policy.delays() == [5.0, 5.0]

    def test_single_attempt_has_no_delays(self):
        """One attempt means no waits."""
        assert RetryPolicy(max_attempts=1).delays() == []

    def test_backoff(self):
        """Delays grow by backoff_factor."""
        policy = RetryPolicy(max_attempts=4, delay_seconds=1, backoff_factor=2)

        assert policy.delays() == [1, 2, 4]

    def test_max_delay_caps_backoff(self):
        """max_delay_seconds caps each wait."""
        policy = RetryPolicy(max_attempts=5, delay_seconds=1, backoff_factor=3, max_delay_seconds=5)

        assert policy.delays() == [1, 3, 5, 5]

    def test_rejects_zero_attempts(self):
        """max_attempts must be at least one."""
        with pytest.raises(ValidationError):
            RetryPolicy(max_attempts=0)

    def test_from_config(self):
        """Policy is built from REFRESH_RETRY_* settings."""
        with patch.object(config, 'REFRESH_RETRY_ATTEMPTS', 5), \
                patch.object(config, 'REFRESH_RETRY_DELAY_SECONDS', 0.5), \
                patch.object(config, 'REFRESH_RETRY_BACKOFF', 2.0):
            policy = RetryPolicy.from_config()

        assert policy.max_attempts == 5
        assert policy.delays() == [0.5, 1.0, 2.0, 4.0]

    def test_from_config_clamps_bad_values(self):
        """Out-of-range settings fall back to the minimums."""
        with patch.object(config, 'REFRESH_RETRY_ATTEMPTS', 0), \
                patch.object(config, 'REFRESH_RETRY_DELAY_SECONDS', -1.0):
            policy = RetryPolicy.from_config()

        assert policy.max_attempts == 1
        assert policy.delay_seconds == 0.0


class TestRetryingFetcher:
    """Tests for RetryingFetcher."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        """No retries and no sleeps when the first attempt succeeds."""
        inner = FlakyFetcher(failures=0)
        sleep = RecordingSleep()
        fetcher = RetryingFetcher(inner, RetryPolicy(), sleep=sleep)

        assert await fetcher.fetch("NFL") == ["record"]
        assert inner.calls == ["NFL"]
        assert sleep.waits == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self):
        """Succeeds on the last allowed attempt."""
        inner = FlakyFetcher(failures=2)
        sleep = RecordingSleep()
        fetcher = RetryingFetcher(inner, RetryPolicy(max_attempts=3, delay_seconds=5), sleep=sleep)

        assert await fetcher.fetch("NFL") == ["record"]
        assert len(inner.calls) == 3
        assert sleep.waits == [5, 5]

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self):
        """The final exception reaches the caller."""
        inner = FlakyFetcher(failures=10, exc=FetchError("quota exceeded"))
        sleep = RecordingSleep()
        fetcher = RetryingFetcher(inner, RetryPolicy(max_attempts=3, delay_seconds=1), sleep=sleep)

        with pytest.raises(FetchError, match="quota exceeded"):
            await fetcher.fetch("NFL")

        assert len(inner.calls) == 3
        assert sleep.waits == [1, 1]

    @pytest.mark.asyncio
    async def test_non_retryable_error_raises_immediately(self):
        """Errors outside retry_on are not retried."""
        inner = FlakyFetcher(failures=10, exc=ValueError("bad payload"))
        sleep = RecordingSleep()
        fetcher = RetryingFetcher(inner, RetryPolicy(), retry_on=(FetchError,), sleep=sleep)

        with pytest.raises(ValueError):
            await fetcher.fetch("NFL")

        assert len(inner.calls) == 1
        assert sleep.waits == []

    @pytest.mark.asyncio
    async def test_aclose_delegates(self):
        """aclose closes the wrapped fetcher."""
        inner = FlakyFetcher(failures=0)

        await RetryingFetcher(inner, RetryPolicy()).aclose()

        assert inner.closed is True
