"""Tests for the background refresh scheduler."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import schedule

from sportsync import config
from sportsync.scheduler import create_scheduler, refresh_data
from sportsync.services import DataService


def make_service(stub_fetcher, memory_store, clock, leagues=("NFL", "NBA")):
    return DataService(
        fetcher=stub_fetcher,
        freshness=memory_store,
        max_age=timedelta(hours=24),
        leagues=list(leagues),
        clock=clock,
    )


class TestRefreshData:
    """Tests for the scheduled job body."""

    def test_refreshes_every_league(self, stub_fetcher, memory_store, clock):
        """One job run refreshes each configured league in order."""
        service = make_service(stub_fetcher, memory_store, clock)

        results = refresh_data(service)

        assert [r.source_key for r in results] == ["NFL", "NBA"]
        assert stub_fetcher.calls == ["NFL", "NBA"]
        assert stub_fetcher.max_active == 1

    def test_second_run_skips_fresh_leagues(self, stub_fetcher, memory_store, clock):
        """Fresh leagues are not refetched by the next run."""
        service = make_service(stub_fetcher, memory_store, clock)
        refresh_data(service)

        results = refresh_data(service)

        assert all(r.skipped for r in results)
        assert stub_fetcher.calls == ["NFL", "NBA"]

    def test_league_failure_is_reported(self, stub_fetcher, memory_store, clock):
        """A failing league shows up in the results; the run continues."""
        stub_fetcher.errors["NFL"] = RuntimeError("quota exceeded")
        service = make_service(stub_fetcher, memory_store, clock)

        results = refresh_data(service)

        assert results[0].success is False
        assert results[1].success is True

    def test_unexpected_error_returns_none(self, stub_fetcher, memory_store, clock):
        """An error escaping refresh_all is logged, not raised."""
        service = make_service(stub_fetcher, memory_store, clock)

        with patch.object(service, 'refresh_all', new=AsyncMock(side_effect=RuntimeError("boom"))):
            assert refresh_data(service) is None


class TestCreateScheduler:
    """Tests for job registration."""

    def test_registers_one_job(self, stub_fetcher, memory_store, clock):
        """A single refresh job runs at the given interval."""
        service = make_service(stub_fetcher, memory_store, clock)

        scheduler = create_scheduler(service, interval_minutes=30)

        assert len(scheduler.jobs) == 1
        job = scheduler.jobs[0]
        assert job.interval == 30
        assert job.unit == "minutes"
        assert job.job_func.func is refresh_data

    def test_default_interval_from_config(self, stub_fetcher, memory_store, clock):
        """Without an interval the configured one is used."""
        service = make_service(stub_fetcher, memory_store, clock)

        scheduler = create_scheduler(service, scheduler=schedule.Scheduler())

        assert scheduler.jobs[0].interval == config.REFRESH_INTERVAL_MINUTES

    def test_run_all_invokes_refresh(self, stub_fetcher, memory_store, clock):
        """Running the registered job refreshes data."""
        service = make_service(stub_fetcher, memory_store, clock, leagues=["NFL"])
        scheduler = create_scheduler(service, interval_minutes=5)

        scheduler.run_all()

        assert stub_fetcher.calls == ["NFL"]
