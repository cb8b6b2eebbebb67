"""Background scheduler for certificate polling.

Cycles run with a fixed delay: each run schedules the next one check_interval
after it finished, so two cycles never overlap.
"""

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler

from certwatch.config import get_settings

logger = logging.getLogger(__name__)

JOB_ID = "certificate_check"

_scheduler: BackgroundScheduler | None = None


def _schedule_next(run_date: datetime):
    if _scheduler is None:
        return
    _scheduler.add_job(
        _run_scheduled_check,
        "date",
        run_date=run_date,
        id=JOB_ID,
        name="Certificate Check",
        max_instances=1,
        replace_existing=True,
    )


def _run_scheduled_check():
    """Run one collection cycle, then queue the next one."""
    logger.debug("Scheduled certificate check triggered")
    try:
        from certwatch.services.collector import get_collector

        get_collector().run_cycle()
    except Exception as e:
        logger.error("Scheduled certificate check failed: %s", e, exc_info=True)
    finally:
        _schedule_next(datetime.now(timezone.utc) + get_settings().check_interval)


def start_scheduler():
    """Start the background scheduler; the first check runs immediately."""
    global _scheduler
    settings = get_settings()

    if not settings.scheduler_enabled:
        logger.info("Certificate scheduler disabled")
        return

    _scheduler = BackgroundScheduler(timezone=timezone.utc)
    _scheduler.start()
    _schedule_next(datetime.now(timezone.utc))
    logger.info("Scheduler started: checking certificates every %s", settings.check_interval)


def stop_scheduler():
    """Stop the background scheduler."""
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Scheduler stopped")
