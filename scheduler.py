from typing import Awaitable, Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
import logging
import os

logger = logging.getLogger(__name__)

SCHEDULE_ENABLED = os.environ.get("COACHING_SCHEDULE_ENABLED", "true").lower() in ("1", "true", "yes")
SCHEDULE_DAY = os.environ.get("COACHING_SCHEDULE_DAY", "mon")
SCHEDULE_HOUR = int(os.environ.get("COACHING_SCHEDULE_HOUR", "5"))
SCHEDULE_MINUTE = int(os.environ.get("COACHING_SCHEDULE_MINUTE", "0"))


def init_scheduler(job: Callable[[], Awaitable[None]]) -> Optional[AsyncIOScheduler]:
    """Schedule the weekly coaching summary refresh. Returns None when disabled."""
    if not SCHEDULE_ENABLED:
        logger.info("Coaching schedule disabled")
        return None

    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        job,
        CronTrigger(day_of_week=SCHEDULE_DAY, hour=SCHEDULE_HOUR, minute=SCHEDULE_MINUTE),
        id='refresh_coaching_summary',
        name='Refresh weekly coaching summary',
        replace_existing=True
    )

    scheduler.start()
    logger.info(f"Scheduler initialized - coaching summary refreshes on {SCHEDULE_DAY} at {SCHEDULE_HOUR:02d}:{SCHEDULE_MINUTE:02d}")
    return scheduler
