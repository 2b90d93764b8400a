"""Freshness bookkeeping model."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DataStatus(str, Enum):
    """Freshness status of a source key as seen by callers."""

    FRESH = "fresh"
    STALE = "stale"
    EMPTY = "empty"


class FreshnessRecord(BaseModel):
    """Per-source fetch outcome bookkeeping."""

    source_key: str = Field(..., alias="sourceKey")
    last_updated: datetime = Field(..., alias="lastUpdated")
    last_successful_fetch: Optional[datetime] = Field(default=None, alias="lastSuccessfulFetch")
    fetch_attempts: int = Field(default=0, ge=0, alias="fetchAttempts")
    last_error: Optional[str] = Field(default=None, alias="lastError")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    def is_fresh_at(self, now: datetime, max_age: timedelta) -> bool:
        """Check whether the last successful fetch is younger than max_age."""
        if self.last_successful_fetch is None:
            return False
        return (now - self.last_successful_fetch) < max_age
