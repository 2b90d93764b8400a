"""HTTP clients acting as source fetchers."""

from .api_sports import ApiSportsFetcher
from .sync_server import SyncServerFetcher

__all__ = ["ApiSportsFetcher", "SyncServerFetcher"]
