"""Source fetcher contract used by the refresh orchestrator."""

from abc import ABC, abstractmethod
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


class FetchError(Exception):
    """A source could not be fetched."""
    pass


class InvalidResponseError(FetchError):
    """The source answered with a payload we cannot use."""
    pass


class SourceFetcher(ABC, Generic[T]):
    """
    Fetches the complete current record set for a source key.

    Implementations either return every record for the key or raise;
    the orchestrator never applies a partial result.
    """

    @abstractmethod
    async def fetch(self, source_key: str) -> Sequence[T]:
        """
        Fetch all records for a source key.

        Raises:
            Exception: Any failure; the orchestrator records it as a failed attempt
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the fetcher."""
        pass
