"""Refresh outcome returned by the orchestrator."""

from typing import Optional

from pydantic import BaseModel, Field


class RefreshReason:
    """Reason codes carried by RefreshResult."""

    FRESH = "fresh"
    IN_PROGRESS = "in_progress"
    REFRESHED = "refreshed"
    FAILED = "failed"


class RefreshResult(BaseModel):
    """Outcome of a single refresh request for one source key."""

    source_key: str = Field(..., alias="sourceKey")
    success: bool
    skipped: bool = False
    reason: str
    error: Optional[str] = None
    record_count: Optional[int] = Field(default=None, alias="recordCount")
    message: str = ""

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @property
    def in_progress(self) -> bool:
        """True when the request was rejected by the single-flight guard."""
        return self.reason == RefreshReason.IN_PROGRESS

    @classmethod
    def fresh(cls, source_key: str) -> "RefreshResult":
        return cls(
            source_key=source_key,
            success=True,
            skipped=True,
            reason=RefreshReason.FRESH,
            message="Data is already fresh",
        )

    @classmethod
    def busy(cls, source_key: str) -> "RefreshResult":
        return cls(
            source_key=source_key,
            success=False,
            reason=RefreshReason.IN_PROGRESS,
            message="Refresh already in progress",
        )

    @classmethod
    def refreshed(cls, source_key: str, record_count: int) -> "RefreshResult":
        return cls(
            source_key=source_key,
            success=True,
            reason=RefreshReason.REFRESHED,
            record_count=record_count,
            message="Data refreshed successfully",
        )

    @classmethod
    def failed(cls, source_key: str, error: str) -> "RefreshResult":
        return cls(
            source_key=source_key,
            success=False,
            reason=RefreshReason.FAILED,
            error=error,
            message="Data refresh failed",
        )
