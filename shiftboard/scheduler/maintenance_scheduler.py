"""Maintenance scheduler for periodic sweeps.

Nothing in the services depends on this job: expiry is still resolved
lazily on read. The sweep only keeps stored statuses and limiter memory
tidy between requests.
"""
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import logging

from shiftboard.database import SessionLocal
from shiftboard.services.lifecycle_service import ShiftLifecycleService
from shiftboard.services.rate_limiter import RateLimiter


# Configure logging
logger = logging.getLogger(__name__)


# Global scheduler instance
scheduler = AsyncIOScheduler()


def run_maintenance(limiter: RateLimiter):
    """
    Expire overdue assignments and drop elapsed rate limit buckets.

    Called by the scheduler on every interval. Errors are logged so one
    failed run does not stop later ones.

    Args:
        limiter: Process-wide rate limiter
    """
    logger.info("Starting maintenance sweep...")

    db = SessionLocal()
    try:
        expired = ShiftLifecycleService(db).expire_overdue_assignments()
        swept = limiter.sweep_expired()

        logger.info(f"Maintenance sweep completed. Expired {expired} assignments, dropped {swept} buckets.")

    except Exception as e:
        logger.error(f"Error during maintenance sweep: {str(e)}", exc_info=True)
    finally:
        db.close()


def start_scheduler(limiter: RateLimiter, interval_seconds: int):
    """
    Start the maintenance scheduler.

    Args:
        limiter: Process-wide rate limiter swept by the job
        interval_seconds: Seconds between runs
    """
    scheduler.add_job(
        run_maintenance,
        trigger=IntervalTrigger(seconds=interval_seconds),
        args=[limiter],
        id='maintenance_sweep',
        name='Maintenance Sweep',
        replace_existing=True
    )

    logger.info(f"Maintenance scheduler configured to run every {interval_seconds} seconds")

    scheduler.start()
    logger.info("Maintenance scheduler started")


def stop_scheduler():
    """Stop the maintenance scheduler if it is running."""
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Maintenance scheduler stopped")
    else:
        logger.info("Maintenance scheduler was not running")
