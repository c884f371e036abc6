"""Daily scheduling of the configured check directions.

Each direction gets its own cron job in the configured time zone. Jobs run on
the asyncio loop and share one SlackAPI instance.
"""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .check_runner import run_check
from .config import Config
from .slack_client import SlackAPI

logger = logging.getLogger(__name__)


def job_id_for(label: str) -> str:
    return f"check-{label}"


def build_scheduler(cfg: Config, slack: SlackAPI) -> AsyncIOScheduler:
    """Create a scheduler with one daily job per check direction (not started)."""
    tz = cfg.tzinfo
    scheduler = AsyncIOScheduler(timezone=tz)

    for check in cfg.checks:
        hour, minute = check.run_hour_minute
        scheduler.add_job(
            run_check,
            trigger=CronTrigger(hour=hour, minute=minute, timezone=tz),
            args=[cfg, check, slack],
            id=job_id_for(check.label),
            name=f"{check.label} check",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
        )
        logger.info(
            "Scheduled %s check daily at %02d:%02d %s (cutoff %s, day offset %d)",
            check.label, hour, minute, cfg.timezone, check.cutoff_time, check.day_offset,
        )

    return scheduler
