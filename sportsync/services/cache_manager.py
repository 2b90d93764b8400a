"""
Client-side cache manager.

Keeps a local copy of league data fetched from the sportsync server and
refreshes it through its own orchestrator, independent of the server's.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

import httpx

from ..clients.sync_server import SyncServerFetcher
from ..fetchers.retry import RetryingFetcher, RetryPolicy
from ..models.freshness import DataStatus
from ..models.records import Game, SportsRecord, Team
from ..models.result import RefreshResult
from ..storage import FreshnessStore, MemoryFreshnessStore
from ..utils.clock import Clock, utcnow
from .cache import CacheStore, all_of, by_kind, by_season
from .refresh import RefreshOrchestrator
from .. import config

logger = logging.getLogger(__name__)


class CacheManager:
    """Local league cache refreshed from the server."""

    def __init__(
        self,
        server: Optional[SyncServerFetcher] = None,
        freshness: Optional[FreshnessStore] = None,
        max_age: Optional[timedelta] = None,
        retry_policy: Optional[RetryPolicy] = None,
        leagues: Optional[List[str]] = None,
        clock: Optional[Clock] = None,
    ):
        self.clock: Clock = clock or utcnow
        self.server = server or SyncServerFetcher()
        self.freshness = freshness or MemoryFreshnessStore(clock=self.clock)
        self.cache: CacheStore[SportsRecord] = CacheStore(clock=self.clock)
        self.leagues = list(leagues if leagues is not None else config.REFRESH_LEAGUES)

        fetcher = RetryingFetcher(self.server, retry_policy) if retry_policy else self.server
        self.orchestrator: RefreshOrchestrator[SportsRecord] = RefreshOrchestrator(
            fetcher=fetcher,
            cache=self.cache,
            freshness=self.freshness,
            max_age=max_age if max_age is not None else timedelta(minutes=config.CLIENT_MAX_AGE_MINUTES),
        )

    # =========================================================================
    # REFRESH
    # =========================================================================

    async def refresh_data_if_needed(self, league_id: str) -> RefreshResult:
        """Refresh a league from the server if the local copy is stale."""
        return await self.orchestrator.refresh_if_stale(league_id)

    async def force_refresh_data(self, league_id: str) -> RefreshResult:
        """Refresh a league from the server even if the local copy is fresh."""
        return await self.orchestrator.force_refresh(league_id)

    async def refresh_all_data(self, league_ids: Optional[Iterable[str]] = None) -> List[RefreshResult]:
        """Refresh every known league, one at a time."""
        keys = list(league_ids) if league_ids is not None else self.leagues
        logger.info("Refreshing all cached data")
        return await self.orchestrator.refresh_all(keys, force=True)

    async def manual_refresh(self, league_id: str) -> bool:
        """
        Ask the server to refresh from its upstream, then reload locally.

        Returns:
            True if both the server refresh and the local reload succeeded
        """
        try:
            server_result = await self.server.request_server_refresh(league_id)
        except httpx.HTTPError as e:
            logger.error(f"Manual refresh failed: {e}")
            return False

        if not server_result.success:
            logger.warning(f"Server refresh failed: {server_result.message}")
            return False

        local_result = await self.force_refresh_data(league_id)
        return local_result.success

    # =========================================================================
    # LOCAL DATA
    # =========================================================================

    def get_games(self, league_id: str, season: Optional[str] = None) -> List[Game]:
        """Get cached games of a league, optionally for one season."""
        games = self.cache.read(
            league_id,
            all_of(by_kind(Game.kind), by_season(season) if season else None)
        )
        logger.debug(f"Returning {len(games)} cached games for {league_id}")
        return games

    def get_teams(self, league_id: str) -> List[Team]:
        """Get cached teams of a league."""
        return self.cache.read(league_id, by_kind(Team.kind))

    def get_last_update_time(self, league_id: str) -> Optional[datetime]:
        """Get when a league was last fetched successfully."""
        return self.orchestrator.get_last_update_time(league_id)

    def get_data_status(self, league_id: str) -> DataStatus:
        """Classify the local copy of a league as fresh, stale or empty."""
        return self.orchestrator.get_data_status(league_id)

    def clear_data(self, league_id: str) -> None:
        """Evict one league from the local cache."""
        self.orchestrator.clear_source_data(league_id)

    def clear_all_data(self) -> None:
        """Evict every league from the local cache."""
        self.cache.clear_all()
        self.freshness.clear_all()
        logger.info("Cleared all cached data")

    def get_stats(self) -> Dict[str, int]:
        """Counts of cached games, teams and leagues."""
        keys = self.cache.keys()
        return {
            "games": sum(len(self.cache.read(k, by_kind(Game.kind))) for k in keys),
            "teams": sum(len(self.cache.read(k, by_kind(Team.kind))) for k in keys),
            "leagues": len(keys),
        }
