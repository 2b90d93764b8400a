"""
sportsync - FastAPI Application

Serves league teams and games from the freshness-gated cache and exposes
refresh controls for the upstream sync.
"""

import logging
import math
import threading
import time
from contextlib import asynccontextmanager
from typing import Callable, Dict, Optional, Tuple

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .models.result import RefreshResult
from .services.data_service import DataService
from . import config

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

data_service = DataService()


# ============================================================================
# RATE LIMITING
# ============================================================================

ALL_LEAGUES = "*"


class RateLimiter:
    """Per-league cooldown for the refresh endpoints.

    Each key (a league id, or ALL_LEAGUES for a full refresh) has its own
    window, so refreshing NFL does not hold back a refresh of NBA.
    """

    def __init__(
        self,
        cooldown_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            cooldown_seconds: Minimum seconds between allowed requests per key
            clock: Monotonic seconds source
        """
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._last_request: Dict[str, float] = {}
        self._lock = threading.Lock()

    def try_acquire(self, key: str = ALL_LEAGUES) -> Tuple[bool, int]:
        """
        Try to claim the refresh slot for a key.

        Returns:
            Tuple of (allowed, wait_seconds); wait_seconds is 0 when allowed,
            otherwise the remaining cooldown rounded up to whole seconds
        """
        with self._lock:
            now = self._clock()
            last = self._last_request.get(key)
            if last is not None:
                remaining = self.cooldown_seconds - (now - last)
                if remaining > 0:
                    return False, math.ceil(remaining)

            self._last_request[key] = now
            return True, 0

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key's last request, or every key's."""
        with self._lock:
            if key is None:
                self._last_request.clear()
            else:
                self._last_request.pop(key, None)


# Rate limiter for the refresh endpoints, keyed by league
refresh_rate_limiter = RateLimiter(cooldown_seconds=config.REFRESH_COOLDOWN_SECONDS)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    if config.FETCH_ON_STARTUP:
        logger.info("Starting initial background refresh...")
        data_service.start_background_refresh()
    else:
        logger.info("Skipping initial refresh (FETCH_ON_STARTUP is off)")

    logger.info("App is ready.")

    yield

    logger.info("Shutting down...")
    await data_service.close()


app = FastAPI(
    title="sportsync",
    description="Freshness-gated sports data for leagues, teams and games",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _require_league(league_id: str) -> None:
    if not data_service.has_league(league_id):
        raise HTTPException(status_code=404, detail=f"League '{league_id}' not found")


@app.get("/api/leagues")
async def list_leagues():
    """List served leagues with their data status."""
    try:
        return [
            {
                "id": league_id,
                "status": data_service.get_data_status(league_id).value,
            }
            for league_id in data_service.leagues
        ]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/leagues/{league_id}")
async def get_league(league_id: str):
    """Get league info."""
    _require_league(league_id)
    try:
        league = await data_service.get_league(league_id)
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    if league is None:
        raise HTTPException(status_code=404, detail=f"No data for league '{league_id}'")
    return league.model_dump(mode="json", by_alias=True)


@app.get("/api/leagues/{league_id}/teams")
async def get_teams(league_id: str):
    """Get all teams of a league."""
    _require_league(league_id)
    try:
        teams = await data_service.get_teams(league_id)
        return [t.model_dump(mode="json", by_alias=True) for t in teams]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/leagues/{league_id}/games")
async def get_games(
    league_id: str,
    season: Optional[str] = Query(None, description="Season filter"),
):
    """Get games of a league, optionally for one season."""
    _require_league(league_id)
    try:
        games = await data_service.get_games(league_id, season=season)
        return [g.model_dump(mode="json", by_alias=True) for g in games]
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/leagues/{league_id}/freshness")
async def get_freshness(league_id: str):
    """Get fetch bookkeeping for a league."""
    _require_league(league_id)
    try:
        record = data_service.get_freshness(league_id)
        return {
            "league": league_id,
            "status": data_service.get_data_status(league_id).value,
            "freshness": record.model_dump(mode="json", by_alias=True) if record else None,
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/leagues/{league_id}/refresh")
async def refresh_league(league_id: str):
    """
    Force a refresh of one league and wait for the outcome.

    Rate limited to once per cooldown window per league.
    """
    _require_league(league_id)

    if data_service.is_refreshing():
        return RefreshResult.busy(league_id).model_dump(mode="json", by_alias=True)

    allowed, wait_seconds = refresh_rate_limiter.try_acquire(league_id)
    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"Please wait {wait_seconds} seconds before refreshing again",
            headers={"Retry-After": str(wait_seconds)},
        )

    try:
        result = await data_service.refresh(league_id, force=True)
        return result.model_dump(mode="json", by_alias=True)
    except Exception as e:
        logger.exception(f"Error in /api/leagues/{league_id}/refresh: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/refresh")
async def refresh_all():
    """
    Start a background refresh of every league.

    Rate limited to once per cooldown window.
    """
    try:
        if data_service.is_refreshing():
            return {
                "status": "in_progress",
                "message": "Refresh already in progress"
            }

        allowed, wait_seconds = refresh_rate_limiter.try_acquire(ALL_LEAGUES)
        if not allowed:
            return {
                "status": "rate_limited",
                "message": f"Please wait {wait_seconds} seconds before refreshing again",
                "retry_after": wait_seconds
            }

        if data_service.start_background_refresh(force=True):
            return {
                "status": "started",
                "message": "Data refresh started in background."
            }
        return {
            "status": "in_progress",
            "message": "Refresh already in progress"
        }

    except Exception as e:
        logger.exception(f"Error in /api/refresh: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@app.get("/api/refresh-status")
async def refresh_status():
    """Check refresh state, cache contents and last results."""
    return data_service.get_refresh_status()


@app.get("/api/status/upstream")
async def upstream_status():
    """Test the upstream provider connection."""
    return await data_service.test_api_connection()


@app.get("/api/status/usage")
async def upstream_usage():
    """Get upstream request quota usage."""
    try:
        usage = await data_service.get_upstream_usage()
    except Exception as e:
        raise HTTPException(status_code=502, detail=str(e))
    if usage is None:
        raise HTTPException(status_code=404, detail="Upstream fetcher does not report usage")
    return {"usage": usage}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "is_refreshing": data_service.is_refreshing(),
        "freshness_store": data_service.freshness.health_check(),
        "cache": data_service.cache.stats(),
        "database_size_mb": round(
            data_service.freshness.get_database_size() / (1024 * 1024), 2
        ),
    }


# Run with: uvicorn sportsync.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
