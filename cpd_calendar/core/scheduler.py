"""Background job scheduler for push notification retries."""
import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlmodel import Session

from cpd_calendar.calendar.notifications import ExpoPushSender, retry_failed_pushes
from cpd_calendar.core.config import settings
from cpd_calendar.core.database import engine

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def push_retry_job():
    """Background push retry job."""
    try:
        with Session(engine) as session:
            stats = await retry_failed_pushes(session, ExpoPushSender())
            logger.info(f"Push retry completed: {stats}")
    except Exception as e:
        logger.error(f"Push retry failed: {e}")


def start_scheduler():
    """Start the background scheduler."""
    scheduler.add_job(
        push_retry_job,
        trigger=IntervalTrigger(minutes=settings.push_retry_interval_minutes),
        id="push_retry",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started, retrying failed pushes every "
        f"{settings.push_retry_interval_minutes} minutes"
    )


def shutdown_scheduler():
    """Graceful shutdown."""
    scheduler.shutdown(wait=False)
    logger.info("Scheduler shut down")
