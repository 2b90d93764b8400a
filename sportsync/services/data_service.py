"""
Data Service - server-side access to league data.

Wires the freshness store, the snapshot cache and the upstream fetcher
into a refresh orchestrator, and provides query methods for leagues,
teams and games on top of it.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from ..clients.api_sports import ApiSportsFetcher
from ..fetchers.base import SourceFetcher
from ..fetchers.retry import RetryingFetcher, RetryPolicy
from ..models.freshness import DataStatus, FreshnessRecord
from ..models.records import Game, League, SportsRecord, Team
from ..models.result import RefreshResult
from ..storage import FreshnessStore, get_freshness_store
from ..utils.clock import Clock, utcnow
from .cache import CacheStore, all_of, by_kind, by_season
from .refresh import RefreshOrchestrator
from .. import config

logger = logging.getLogger(__name__)


class DataService:
    """
    Service layer for league data on the server.
    Reads go through the cache; stale leagues are refreshed from the
    upstream provider first.
    """

    def __init__(
        self,
        fetcher: Optional[SourceFetcher[SportsRecord]] = None,
        freshness: Optional[FreshnessStore] = None,
        max_age: Optional[timedelta] = None,
        leagues: Optional[List[str]] = None,
        clock: Optional[Clock] = None,
    ):
        self.clock: Clock = clock or utcnow
        self.freshness = freshness or get_freshness_store()
        self.cache: CacheStore[SportsRecord] = CacheStore(clock=self.clock)
        self.fetcher = fetcher or RetryingFetcher(ApiSportsFetcher(), RetryPolicy.from_config())
        self.leagues = list(leagues if leagues is not None else config.REFRESH_LEAGUES)

        self.orchestrator: RefreshOrchestrator[SportsRecord] = RefreshOrchestrator(
            fetcher=self.fetcher,
            cache=self.cache,
            freshness=self.freshness,
            max_age=max_age if max_age is not None else timedelta(minutes=config.DATA_MAX_AGE_MINUTES),
        )

        # Background refresh state
        self._background_task: Optional[asyncio.Task] = None
        self._last_results: Optional[List[RefreshResult]] = None

    # =========================================================================
    # REFRESH
    # =========================================================================

    async def ensure_fresh(self, league_id: str) -> RefreshResult:
        """
        Refresh a league if it is stale.

        A league with freshness bookkeeping but no cached snapshot (e.g. after
        a restart with a persistent freshness store) is fetched regardless.
        """
        if self.cache.get_entry(league_id) is None:
            return await self.orchestrator.force_refresh(league_id)
        return await self.orchestrator.refresh_if_stale(league_id)

    async def refresh(self, league_id: str, force: bool = False) -> RefreshResult:
        """Refresh one league, bypassing the freshness check when force is set."""
        if force:
            return await self.orchestrator.force_refresh(league_id)
        return await self.orchestrator.refresh_if_stale(league_id)

    async def refresh_all(self, force: bool = False) -> List[RefreshResult]:
        """Refresh every configured league, one at a time."""
        logger.info(f"Starting refresh for leagues: {', '.join(self.leagues)}")
        results = await self.orchestrator.refresh_all(self.leagues, force=force)
        self._last_results = results
        return results

    def start_background_refresh(self, force: bool = False) -> bool:
        """
        Start refresh_all as a background task on the running loop.

        Returns:
            True if started, False if a refresh is already running
        """
        if self.is_refreshing():
            return False

        self._background_task = asyncio.get_running_loop().create_task(
            self.refresh_all(force=force)
        )
        self._background_task.add_done_callback(self._on_background_done)
        return True

    def _on_background_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("Background refresh was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background refresh failed: {error}")

    def is_refreshing(self) -> bool:
        """Check if a refresh is currently in progress."""
        background_running = self._background_task is not None and not self._background_task.done()
        return background_running or self.orchestrator.is_refreshing()

    # =========================================================================
    # DATA ACCESS METHODS (read through the cache)
    # =========================================================================

    async def get_league(self, league_id: str) -> Optional[League]:
        """Get league info, refreshing first if stale."""
        await self.ensure_fresh(league_id)
        leagues = self.cache.read(league_id, by_kind(League.kind))
        return leagues[0] if leagues else None

    async def get_teams(self, league_id: str) -> List[Team]:
        """Get all teams of a league, refreshing first if stale."""
        await self.ensure_fresh(league_id)
        return self.cache.read(league_id, by_kind(Team.kind))

    async def get_games(self, league_id: str, season: Optional[str] = None) -> List[Game]:
        """
        Get games of a league, refreshing first if stale.

        Args:
            league_id: The league key
            season: Only return games of this season

        Returns:
            Games ordered by game time
        """
        await self.ensure_fresh(league_id)
        games = self.cache.read(
            league_id,
            all_of(by_kind(Game.kind), by_season(season) if season else None)
        )
        return sorted(games, key=lambda g: g.game_time)

    # =========================================================================
    # STATUS
    # =========================================================================

    def has_league(self, league_id: str) -> bool:
        """Check whether a league is served by this instance."""
        return league_id in self.leagues

    def get_freshness(self, league_id: str) -> Optional[FreshnessRecord]:
        """Get the freshness record of a league."""
        return self.orchestrator.get_freshness(league_id)

    def get_data_status(self, league_id: str) -> DataStatus:
        return self.orchestrator.get_data_status(league_id)

    def get_refresh_status(self) -> Dict[str, Any]:
        """Refresh state, cache statistics and the last refresh-all outcome."""
        status = self.orchestrator.get_status()
        status["is_refreshing"] = self.is_refreshing()
        status["leagues"] = list(self.leagues)
        status["last_results"] = (
            [r.model_dump(by_alias=True) for r in self._last_results]
            if self._last_results is not None else None
        )
        return status

    def clear_league_data(self, league_id: str) -> None:
        """Drop cached data and freshness bookkeeping for a league."""
        self.orchestrator.clear_source_data(league_id)

    def _upstream_client(self) -> Optional[ApiSportsFetcher]:
        fetcher = self.fetcher.fetcher if isinstance(self.fetcher, RetryingFetcher) else self.fetcher
        return fetcher if isinstance(fetcher, ApiSportsFetcher) else None

    async def test_api_connection(self) -> Dict[str, Any]:
        """Test the upstream connection when the fetcher supports it."""
        client = self._upstream_client()
        if client is None:
            return {"success": False, "message": "Fetcher has no connection test"}
        return await client.test_connection()

    async def get_upstream_usage(self) -> Optional[Any]:
        """
        Get upstream request quota usage.

        Returns:
            The provider's status payload, or None when the fetcher is not
            the API-Sports client

        Raises:
            httpx.HTTPError: If the provider cannot be reached
        """
        client = self._upstream_client()
        if client is None:
            return None
        return await client.get_usage_stats()

    async def close(self) -> None:
        """Release fetcher resources and wait for a background refresh to end."""
        if self._background_task is not None and not self._background_task.done():
            await asyncio.gather(self._background_task, return_exceptions=True)
        await self.fetcher.aclose()
