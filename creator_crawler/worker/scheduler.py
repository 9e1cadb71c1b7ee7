"""APScheduler job definitions."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from creator_crawler.worker.tasks import task_runner
from creator_crawler.config import settings

logger = logging.getLogger(__name__)


def setup_scheduler() -> AsyncIOScheduler:
    """
    Setup and configure APScheduler.

    A single cron job crawls the catalog and writes the result at
    settings.crawl_cron (crontab syntax, default once a day at 12:10).

    Returns:
        Configured scheduler instance
    """
    scheduler = AsyncIOScheduler()

    scheduler.add_job(
        task_runner.scheduled_crawl,
        CronTrigger.from_crontab(settings.crawl_cron),
        id="creator_crawl",
        name="Crawl creator catalog and write to InfluxDB",
        max_instances=1,  # Prevent overlapping runs
        coalesce=True,
        misfire_grace_time=600,
        replace_existing=True,
    )

    logger.info(f"Scheduled creator crawl with cron '{settings.crawl_cron}'")
    return scheduler
