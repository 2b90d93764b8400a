"""
Background Scheduler for league data refresh.

Runs refresh_all on a fixed interval to keep cached data fresh.
"""

import asyncio
import logging
import time
from typing import List, Optional

import schedule

from .models.result import RefreshResult
from .services.data_service import DataService
from . import config

logger = logging.getLogger(__name__)


def refresh_data(service: DataService) -> Optional[List[RefreshResult]]:
    """Job body: refresh every configured league once."""
    logger.info("Starting scheduled data refresh...")
    try:
        results = asyncio.run(service.refresh_all())
    except Exception as e:
        logger.exception(f"Error during data refresh: {e}")
        return None

    for result in results:
        if result.skipped:
            logger.info(f"  - {result.source_key}: fresh, skipped")
        elif result.success:
            logger.info(f"  - {result.source_key}: {result.record_count} records")
        else:
            logger.warning(f"  - {result.source_key}: {result.error or result.message}")
    return results


def create_scheduler(
    service: DataService,
    interval_minutes: Optional[int] = None,
    scheduler: Optional[schedule.Scheduler] = None,
) -> schedule.Scheduler:
    """Register the refresh job on a scheduler and return it."""
    scheduler = scheduler or schedule.Scheduler()
    minutes = interval_minutes or config.REFRESH_INTERVAL_MINUTES
    scheduler.every(minutes).minutes.do(refresh_data, service)
    return scheduler


def main():
    """Main entry point for scheduler."""
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 50)
    print("sportsync - Background Refresh")
    print("=" * 50)

    service = DataService()

    # Run immediately on start
    print("\n[*] Running initial data refresh...")
    refresh_data(service)

    scheduler = create_scheduler(service)
    print(f"\n[*] Scheduled to run every {config.REFRESH_INTERVAL_MINUTES} minutes")
    print(f"[*] Leagues: {', '.join(service.leagues)}")
    print("[*] Press Ctrl+C to stop\n")

    try:
        while True:
            scheduler.run_pending()
            time.sleep(60)
    except KeyboardInterrupt:
        print("\n[*] Stopped")


if __name__ == '__main__':
    main()
