"""HTTP client for the sportsync server, used as the client-side fetcher."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .. import config
from ..fetchers.base import InvalidResponseError, SourceFetcher
from ..models.records import Game, SportsRecord, Team
from ..models.result import RefreshResult

logger = logging.getLogger(__name__)


class SyncServerFetcher(SourceFetcher[SportsRecord]):
    """Async client for this project's REST API.

    A fetch for a league key returns the league's teams followed by its
    games, narrowed to the league's current season when one is configured.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        seasons: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or config.SERVER_URL).rstrip("/")
        self.seasons = seasons or {}
        self.timeout = config.API_TIMEOUT_SECONDS
        self.headers = {"Accept": "application/json"}
        self._transport = transport

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None
    ) -> Any:
        """Make an async HTTP request to the server.

        Raises:
            httpx.HTTPError: If request fails
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(method, endpoint, params=params)
            response.raise_for_status()
            return response.json()

    async def _get_list(self, endpoint: str, params: Optional[dict] = None) -> List[Dict[str, Any]]:
        data = await self._request("GET", endpoint, params)
        if not isinstance(data, list):
            raise InvalidResponseError(f"Expected a list from {endpoint}")
        return data

    async def fetch(self, source_key: str) -> Sequence[SportsRecord]:
        """Fetch teams and games for a league from the server."""
        teams = await self.fetch_teams(source_key)
        games = await self.fetch_games(source_key, self.seasons.get(source_key))
        return [*teams, *games]

    async def fetch_teams(self, league_id: str) -> List[Team]:
        """Fetch the teams of a league."""
        items = await self._get_list(f"/api/leagues/{league_id}/teams")
        return [Team.model_validate(item) for item in items]

    async def fetch_games(self, league_id: str, season: Optional[str] = None) -> List[Game]:
        """Fetch the games of a league, optionally for one season."""
        params = {"season": season} if season else None
        items = await self._get_list(f"/api/leagues/{league_id}/games", params)
        logger.debug(f"Fetched {len(items)} games for {league_id}")
        return [Game.model_validate(item) for item in items]

    async def request_server_refresh(self, league_id: str) -> RefreshResult:
        """Ask the server to force-refresh a league from its upstream."""
        data = await self._request("POST", f"/api/leagues/{league_id}/refresh")
        return RefreshResult.model_validate(data)
