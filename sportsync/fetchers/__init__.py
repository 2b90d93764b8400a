"""Source fetcher contract and retry policy."""

from .base import SourceFetcher, FetchError, InvalidResponseError
from .retry import RetryPolicy, RetryingFetcher

__all__ = [
    "SourceFetcher",
    "FetchError",
    "InvalidResponseError",
    "RetryPolicy",
    "RetryingFetcher",
]
