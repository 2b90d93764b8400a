"""API-Sports client used as the server-side source fetcher."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import httpx
from cachetools import TTLCache

from .. import config
from ..fetchers.base import FetchError, InvalidResponseError, SourceFetcher
from ..models.records import Game, League, SportsRecord, Team
from ..utils.clock import Clock, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

LIVE_STATUSES = {"Q1", "Q2", "Q3", "Q4", "OT", "HT", "LIVE"}
FINISHED_STATUSES = {"FT", "AOT", "FINISHED"}


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class ApiSportsFetcher(SourceFetcher[SportsRecord]):
    """Async client for the API-Sports american-football API.

    A fetch for a league key returns the league itself, every team and
    every game of the configured season.
    """

    def __init__(
        self,
        season: Optional[str] = None,
        leagues: Optional[Dict[str, Dict[str, Any]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.base_url = config.API_SPORTS_BASE_URL
        self.season = season or config.DEFAULT_SEASON
        self.leagues = leagues if leagues is not None else config.LEAGUES
        self.timeout = config.API_TIMEOUT_SECONDS
        self.headers = {
            "Accept": "application/json",
            "X-RapidAPI-Host": config.API_SPORTS_HOST,
        }
        if config.API_SPORTS_KEY:
            self.headers["X-RapidAPI-Key"] = config.API_SPORTS_KEY
        self._transport = transport
        self._clock: Clock = clock or utcnow
        self._status_cache: TTLCache = TTLCache(maxsize=1, ttl=60)

    async def _request(self, endpoint: str, params: Optional[dict] = None) -> Any:
        """Make an async GET request and return the decoded JSON body.

        Raises:
            httpx.HTTPError: If the request fails
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.get(endpoint, params=params)
            response.raise_for_status()
            return response.json()

    async def _request_items(self, endpoint: str, params: dict) -> List[Dict[str, Any]]:
        """Request an endpoint whose payload lives under "response"."""
        data = await self._request(endpoint, params)
        items = data.get("response") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.debug(f"Unexpected payload from {endpoint}: {data!r}")
            raise InvalidResponseError(f"Invalid response format from API-Sports ({endpoint})")
        return items

    def _league_info(self, source_key: str) -> Dict[str, Any]:
        league = self.leagues.get(source_key)
        if league is None:
            raise FetchError(f"Unknown league: {source_key}")
        return league

    async def fetch(self, source_key: str) -> Sequence[SportsRecord]:
        """Fetch the league, its teams and its games for the season."""
        info = self._league_info(source_key)
        upstream_id = info["upstream_id"]

        teams = await self.fetch_teams(source_key, upstream_id)
        games = await self.fetch_games(source_key, upstream_id)

        league = League(
            id=source_key,
            name=info.get("name", source_key),
            abbreviation=info.get("abbreviation", source_key),
            sport=info.get("sport", ""),
            level=info.get("level", ""),
            season=self.season,
            is_active=True,
        )
        return [league, *teams, *games]

    async def fetch_teams(self, source_key: str, upstream_id: str) -> List[Team]:
        """Fetch all teams of a league (teams are not season-scoped)."""
        logger.info(f"Fetching {source_key} teams")
        items = await self._request_items("/teams", {"league": upstream_id})
        teams = [self._parse_team(item, source_key) for item in items]
        logger.info(f"Fetched {len(teams)} {source_key} teams")
        return teams

    async def fetch_games(
        self,
        source_key: str,
        upstream_id: str,
        week: Optional[str] = None
    ) -> List[Game]:
        """Fetch the games of a league for the configured season."""
        logger.info(
            f"Fetching {source_key} games for season {self.season}"
            f"{f', week {week}' if week else ''}"
        )
        params = {"league": upstream_id, "season": self.season}
        if week:
            params["week"] = week
        items = await self._request_items("/games", params)
        games = [self._parse_game(item, source_key) for item in items]
        logger.info(f"Fetched {len(games)} {source_key} games")
        return games

    def _parse_team(self, item: Dict[str, Any], league_id: str) -> Team:
        team = item.get("team", item)
        if team.get("id") is None or not team.get("name"):
            raise InvalidResponseError(f"Team without id or name: {team!r}")
        name = team["name"]
        return Team(
            id=str(team["id"]),
            name=name,
            city=team.get("city") or name,
            abbreviation=team.get("code") or team.get("abbreviation") or name,
            logo_url=team.get("logo"),
            league_id=league_id,
            conference=team.get("conference"),
            division=team.get("division"),
        )

    def _parse_game(self, item: Dict[str, Any], league_id: str) -> Game:
        game = item.get("game") or {}
        teams = item.get("teams") or {}
        home = teams.get("home") or {}
        away = teams.get("away") or {}
        if game.get("id") is None or home.get("id") is None or away.get("id") is None:
            raise InvalidResponseError(f"Game without id or teams: {item!r}")

        venue = game.get("venue") or {}
        status = game.get("status") or {}
        short_status = status.get("short")
        scores = item.get("scores") or {}
        home_scores = scores.get("home") or {}
        away_scores = scores.get("away") or {}
        quarters = home_scores.get("quarter")

        return Game(
            id=str(game["id"]),
            home_team_id=str(home["id"]),
            away_team_id=str(away["id"]),
            league_id=league_id,
            season=self.season,
            week=_optional_str(game.get("week")),
            game_time=self._parse_game_time(game),
            venue=venue.get("name") or "Unknown",
            city=venue.get("city") or "Unknown",
            state=venue.get("state") or "Unknown",
            country=venue.get("country") or "USA",
            status=short_status,
            home_score=home_scores.get("total"),
            away_score=away_scores.get("total"),
            quarter=len(quarters) if isinstance(quarters, list) else None,
            time_remaining=_optional_str(status.get("timer")),
            is_live=(short_status or "").upper() in LIVE_STATUSES,
            is_completed=(short_status or "").upper() in FINISHED_STATUSES,
        )

    def _parse_game_time(self, game: Dict[str, Any]) -> datetime:
        """Parse the game date, falling back to now when it is missing or invalid."""
        raw = game.get("date")
        try:
            if isinstance(raw, dict):
                if raw.get("timestamp") is not None:
                    return datetime.fromtimestamp(int(raw["timestamp"]), tz=timezone.utc)
                if raw.get("date"):
                    return parse_timestamp(f"{raw['date']}T{raw.get('time') or '00:00'}")
            elif isinstance(raw, str) and raw:
                return parse_timestamp(raw)
        except (TypeError, ValueError):
            logger.warning(f"Invalid date for game {game.get('id')}: {raw}")
            return self._clock()

        logger.warning(f"No date for game {game.get('id')}")
        return self._clock()

    async def test_connection(self) -> Dict[str, Any]:
        """Check that the upstream API answers."""
        try:
            data = await self._request("/status")
            return {"success": True, "message": "API connection successful", "data": data}
        except httpx.HTTPError as e:
            return {"success": False, "message": "API connection failed", "error": str(e)}

    async def get_usage_stats(self) -> Any:
        """Get upstream quota usage; cached for a minute."""
        cached = self._status_cache.get("status")
        if cached is not None:
            logger.debug("Returning cached API usage stats")
            return cached

        data = await self._request("/status")
        self._status_cache["status"] = data
        return data
