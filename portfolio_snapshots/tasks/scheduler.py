import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from portfolio_snapshots.config import get_settings
from portfolio_snapshots.database import AsyncSessionLocal
from portfolio_snapshots.services.market_data import MarketDataProvider
from portfolio_snapshots.services.tracker import TrackerService

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def refresh_position_prices(market_data: MarketDataProvider):
    """
    Scheduled task to fill missing fetched prices on positions.
    """
    logger.info("Starting scheduled position price refresh...")

    async with AsyncSessionLocal() as db:
        tracker = TrackerService(db, market_data)

        try:
            updated = await tracker.update_position_prices()
            logger.info(f"Updated prices for {updated} positions")
        except Exception as e:
            logger.error(f"Position price refresh failed: {e}", exc_info=True)


def start_scheduler(market_data: MarketDataProvider) -> Optional[AsyncIOScheduler]:
    """Start the APScheduler with the price refresh job, unless disabled."""
    settings = get_settings()
    interval = settings.price_refresh_interval_seconds

    if interval <= 0:
        logger.info("Price refresh job disabled")
        return None

    scheduler.add_job(
        refresh_position_prices,
        trigger=IntervalTrigger(seconds=interval),
        args=[market_data],
        id="position_price_refresh",
        name="Refresh missing position prices",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(f"Scheduler started with {interval}s refresh interval")
    return scheduler


def shutdown_scheduler():
    """Gracefully shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shutdown complete")
