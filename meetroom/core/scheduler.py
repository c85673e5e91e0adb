"""Background job scheduler for expired room cleanup."""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from meetroom.core.config import settings
from meetroom.core.database import engine
from meetroom.scheduling.rooms import purge_expired_rooms
from meetroom.scheduling.store import retry_transient

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def purge_job(bind=None):
    """Background cleanup job."""
    try:
        with Session(bind or engine) as session:
            deleted = retry_transient(purge_expired_rooms, session)
            logger.info(f"Expired room cleanup completed: {deleted} removed")
    except Exception as e:
        logger.error(f"Expired room cleanup failed: {e}")


def start_scheduler():
    """Start the background scheduler."""
    scheduler.add_job(
        purge_job,
        trigger=IntervalTrigger(minutes=settings.cleanup_interval_minutes),
        id="room_cleanup",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, purging expired rooms every {settings.cleanup_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    scheduler.shutdown(wait=False)
    logger.info("Scheduler shut down")
