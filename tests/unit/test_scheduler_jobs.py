"""Unit tests for the APScheduler wiring of the expiry sweeper."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from src.mp_scheduler.infrastructure import scheduler as jobs


def test_build_scheduler_registers_both_sweeps() -> None:
    scheduler = jobs.build_scheduler()
    by_id = {job.id: job for job in scheduler.get_jobs()}

    assert set(by_id) == {"cancel_expired_orders", "auto_cancel_pending_orders"}
    assert isinstance(by_id["cancel_expired_orders"].trigger, IntervalTrigger)
    assert isinstance(by_id["auto_cancel_pending_orders"].trigger, CronTrigger)


def _fake_scope(db: AsyncMock):  # type: ignore[no-untyped-def]
    @asynccontextmanager
    async def scope():  # type: ignore[no-untyped-def]
        yield db

    return scope


async def test_expiry_job_runs_sweeper() -> None:
    db = AsyncMock()
    sweeper = AsyncMock()
    with patch.object(jobs, "session_scope", _fake_scope(db)), patch.object(jobs, "_sweeper", sweeper):
        await jobs.run_expiry_sweep()
    sweeper.cancel_expired_orders.assert_awaited_once_with(db)


async def test_job_failure_is_logged_not_raised() -> None:
    sweeper = AsyncMock()
    sweeper.auto_cancel_stale_orders.side_effect = RuntimeError("db down")
    with patch.object(jobs, "session_scope", _fake_scope(AsyncMock())), patch.object(jobs, "_sweeper", sweeper):
        await jobs.run_auto_cancel_sweep()
    sweeper.auto_cancel_stale_orders.assert_awaited_once()
