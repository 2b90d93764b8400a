"""Typed sports records held in the cache store."""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, Field


class SportsRecord(BaseModel):
    """Base for every record cached per league."""

    kind: ClassVar[str] = "record"

    id: str

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @property
    def record_id(self) -> str:
        """Cache identity, unique across record kinds."""
        return f"{self.kind}:{self.id}"


class League(SportsRecord):
    """Represents a league (the unit of refresh)."""

    kind: ClassVar[str] = "league"

    name: str
    abbreviation: str = ""
    logo_url: Optional[str] = Field(default=None, alias="logoURL")
    sport: str = ""
    level: str = ""
    season: Optional[str] = None
    is_active: bool = Field(default=True, alias="isActive")


class Team(SportsRecord):
    """Represents a team in a league."""

    kind: ClassVar[str] = "team"

    name: str
    city: Optional[str] = None
    abbreviation: Optional[str] = None
    logo_url: Optional[str] = Field(default=None, alias="logoURL")
    league_id: str = Field(..., alias="leagueId")
    conference: Optional[str] = None
    division: Optional[str] = None


class Game(SportsRecord):
    """Represents a scheduled, live or finished game."""

    kind: ClassVar[str] = "game"

    home_team_id: str = Field(..., alias="homeTeamId")
    away_team_id: str = Field(..., alias="awayTeamId")
    league_id: str = Field(..., alias="leagueId")
    season: str
    week: Optional[str] = None
    game_time: datetime = Field(..., alias="gameTime")
    venue: str = "Unknown"
    city: str = "Unknown"
    state: str = "Unknown"
    country: str = "USA"
    status: Optional[str] = None
    home_score: Optional[int] = Field(default=None, alias="homeScore")
    away_score: Optional[int] = Field(default=None, alias="awayScore")
    quarter: Optional[int] = None
    time_remaining: Optional[str] = Field(default=None, alias="timeRemaining")
    is_live: bool = Field(default=False, alias="isLive")
    is_completed: bool = Field(default=False, alias="isCompleted")
