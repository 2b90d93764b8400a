"""Data models for the sportsync application."""

from sportsync.models.freshness import FreshnessRecord, DataStatus
from sportsync.models.records import SportsRecord, League, Team, Game
from sportsync.models.result import RefreshResult, RefreshReason

__all__ = [
    "FreshnessRecord",
    "DataStatus",
    "SportsRecord",
    "League",
    "Team",
    "Game",
    "RefreshResult",
    "RefreshReason",
]
