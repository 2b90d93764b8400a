"""
Shared test fixtures and configuration.

Provides reusable fixtures for all test files including a controllable
clock, freshness stores, stub fetchers, sample records and upstream
payloads.
"""

import asyncio
import os
import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from sportsync.fetchers.base import SourceFetcher
from sportsync.models import Game, League, Team
from sportsync.services.cache import CacheStore
from sportsync.storage import MemoryFreshnessStore, SQLiteFreshnessStore


T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# TIME
# =============================================================================

class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Provide a clock frozen at T0."""
    return FakeClock()


# =============================================================================
# STORE FIXTURES
# =============================================================================

@pytest.fixture
def test_data_dir():
    """Provide a temporary directory for test data."""
    temp_dir = tempfile.mkdtemp(prefix="sportsync_test_")
    yield temp_dir

    # Cleanup
    if os.path.exists(temp_dir):
        try:
            shutil.rmtree(temp_dir)
        except PermissionError:
            pass  # Windows file locking, ignore


@pytest.fixture
def memory_store(clock):
    """Provide an in-memory freshness store on the fake clock."""
    return MemoryFreshnessStore(clock=clock)


@pytest.fixture
def sqlite_store(test_data_dir, clock):
    """Provide a fresh SQLite freshness store on the fake clock."""
    store = SQLiteFreshnessStore(db_path=os.path.join(test_data_dir, "fresh.db"), clock=clock)
    store.initialize()
    yield store
    store.close()


@pytest.fixture(params=["memory", "sqlite"])
def freshness_store(request, clock, test_data_dir):
    """Provide each freshness store backend in turn."""
    if request.param == "memory":
        yield MemoryFreshnessStore(clock=clock)
        return
    store = SQLiteFreshnessStore(db_path=os.path.join(test_data_dir, "fresh.db"), clock=clock)
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def cache(clock) -> CacheStore:
    """Provide an empty cache store on the fake clock."""
    return CacheStore(clock=clock)


# =============================================================================
# FETCHER FIXTURES
# =============================================================================

class StubFetcher(SourceFetcher):
    """
    Fetcher returning canned records per key.

    Set errors[key] to make a key fail. Set gate to an asyncio.Event to
    hold every fetch until the test releases it; started is set as soon
    as a fetch is waiting on the gate.
    """

    def __init__(self, records: Optional[Dict[str, Sequence[Any]]] = None):
        self.records: Dict[str, Sequence[Any]] = dict(records or {})
        self.errors: Dict[str, BaseException] = {}
        self.calls: List[str] = []
        self.gate: Optional[asyncio.Event] = None
        self.started: Optional[asyncio.Event] = None
        self.active = 0
        self.max_active = 0
        self.closed = False

    def hold(self) -> None:
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    async def fetch(self, source_key: str) -> Sequence[Any]:
        self.calls.append(source_key)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                self.started.set()
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            if source_key in self.errors:
                raise self.errors[source_key]
            return list(self.records.get(source_key, []))
        finally:
            self.active -= 1

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def stub_fetcher():
    """Provide a stub fetcher with no records."""
    return StubFetcher()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

def make_team(team_id: str, name: str, league_id: str = "NFL") -> Team:
    return Team(id=team_id, name=name, league_id=league_id)


def make_game(
    game_id: str,
    home: str,
    away: str,
    season: str = "2023",
    league_id: str = "NFL",
    game_time: datetime = T0,
) -> Game:
    return Game(
        id=game_id,
        home_team_id=home,
        away_team_id=away,
        league_id=league_id,
        season=season,
        game_time=game_time,
    )


@pytest.fixture
def sample_teams() -> List[Team]:
    """Provide sample teams."""
    return [
        make_team("1", "Las Vegas Raiders"),
        make_team("2", "Jacksonville Jaguars"),
        make_team("3", "New England Patriots"),
    ]


@pytest.fixture
def sample_games() -> List[Game]:
    """Provide sample games across two seasons."""
    return [
        make_game("100", "1", "2", season="2023", game_time=T0 + timedelta(days=2)),
        make_game("101", "3", "1", season="2023", game_time=T0 + timedelta(days=1)),
        make_game("200", "2", "3", season="2024", game_time=T0 + timedelta(days=400)),
    ]


@pytest.fixture
def sample_league() -> League:
    """Provide the sample league record."""
    return League(id="NFL", name="NFL", abbreviation="NFL", sport="football", season="2023")


@pytest.fixture
def league_records(sample_league, sample_teams, sample_games) -> List[Any]:
    """Provide one league's complete record set."""
    return [sample_league, *sample_teams, *sample_games]


@pytest.fixture
def upstream_teams_payload() -> Dict[str, Any]:
    """Provide an API-Sports /teams response."""
    return {
        "get": "teams",
        "results": 2,
        "response": [
            {
                "id": 1,
                "name": "Las Vegas Raiders",
                "code": "LV",
                "city": "Las Vegas",
                "logo": "https://media.api-sports.io/american-football/teams/1.png",
            },
            {
                "id": 2,
                "name": "Jacksonville Jaguars",
                "code": None,
                "city": None,
                "logo": None,
            },
        ],
    }


@pytest.fixture
def upstream_games_payload() -> Dict[str, Any]:
    """Provide an API-Sports /games response."""
    return {
        "get": "games",
        "results": 2,
        "response": [
            {
                "game": {
                    "id": 7532,
                    "week": "Week 1",
                    "date": {"timezone": "UTC", "date": "2023-09-08", "time": "00:20",
                             "timestamp": 1694132400},
                    "venue": {"name": "Arrowhead Stadium", "city": "Kansas City"},
                    "status": {"short": "FT", "long": "Finished", "timer": None},
                },
                "teams": {"home": {"id": 1}, "away": {"id": 2}},
                "scores": {"home": {"total": 20}, "away": {"total": 21}},
            },
            {
                "game": {
                    "id": 7533,
                    "week": "Week 1",
                    "date": None,
                    "venue": {},
                    "status": {"short": "NS", "timer": None},
                },
                "teams": {"home": {"id": 2}, "away": {"id": 1}},
                "scores": {"home": {"total": None}, "away": {"total": None}},
            },
        ],
    }
