"""
Recurring background jobs
"""
from datetime import timedelta
from typing import Dict
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import settings
from app.core.scheduler import JobScheduler
from app.crud.warmup import warmup_crud
from app.services.ab_tests import auto_analyze
from app.services.compliance.service import run_compliance_checks

scheduler = JobScheduler(check_interval=settings.scheduler_check_interval)


async def advance_warmup_days(session_factory: async_sessionmaker) -> str:
    async with session_factory() as db:
        advanced = await warmup_crud.advance_all(db)
        await db.commit()
    return f"{advanced} warmup schedules advanced"


async def auto_analyze_ab_tests(session_factory: async_sessionmaker) -> Dict[str, int]:
    async with session_factory() as db:
        outcome = await auto_analyze(db)
        await db.commit()
    return outcome


async def daily_compliance_checks(session_factory: async_sessionmaker) -> Dict[str, int]:
    async with session_factory() as db:
        outcome = await run_compliance_checks(db)
        await db.commit()
    return outcome


def register_jobs(target: JobScheduler = scheduler) -> JobScheduler:
    target.register_task("warmup_advance_day", advance_warmup_days, timedelta(hours=24))
    target.register_task("ab_test_auto_analyze", auto_analyze_ab_tests, timedelta(hours=1))
    target.register_task("compliance_daily_check", daily_compliance_checks, timedelta(hours=24))
    return target


register_jobs()
