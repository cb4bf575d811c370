"""APScheduler wiring for periodic jobs, started from the app lifespan."""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from config.settings import settings
from src.mp_common.database import session_scope
from src.mp_scheduler.application.sweeper import OrderExpirySweeper

logger = logging.getLogger(__name__)

_sweeper = OrderExpirySweeper()


async def run_expiry_sweep() -> None:
    try:
        async with session_scope() as db:
            await _sweeper.cancel_expired_orders(db)
    except Exception:
        logger.exception("Order expiry sweep failed")


async def run_auto_cancel_sweep() -> None:
    try:
        async with session_scope() as db:
            await _sweeper.auto_cancel_stale_orders(db)
    except Exception:
        logger.exception("Auto-cancel sweep failed")


def build_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler(
        job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 300},
        timezone="UTC",
    )
    scheduler.add_job(
        run_expiry_sweep,
        trigger=IntervalTrigger(minutes=settings.SWEEPER_INTERVAL_MINUTES),
        id="cancel_expired_orders",
        name="Cancel expired pending orders",
        replace_existing=True,
    )
    scheduler.add_job(
        run_auto_cancel_sweep,
        trigger=CronTrigger(hour=0, minute=0),
        id="auto_cancel_pending_orders",
        name="Auto-cancel stale pending orders",
        replace_existing=True,
    )
    return scheduler
