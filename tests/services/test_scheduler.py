"""
In-process job scheduler
"""
import asyncio
from datetime import timedelta

from app.core.scheduler import JobScheduler
from app.services.jobs import register_jobs


async def test_run_task_records_success():
    scheduler = JobScheduler(check_interval=1)
    seen = []

    async def job(session_factory):
        seen.append(session_factory)
        return "3 items processed"

    scheduler.register_task("demo", job, timedelta(hours=1))
    entry = await scheduler.run_task("demo", session_factory="factory")

    assert seen == ["factory"]
    assert entry["job"] == "demo"
    assert entry["status"] == "success"
    assert entry["message"] == "3 items processed"
    assert entry["duration_ms"] >= 0
    assert scheduler.get_status()["tasks"][0]["last_run"] is not None


async def test_failing_task_is_logged():
    scheduler = JobScheduler(check_interval=1)

    async def broken(session_factory):
        raise RuntimeError("boom")

    async def fine(session_factory):
        return None

    scheduler.register_task("broken", broken, timedelta(hours=1))
    scheduler.register_task("fine", fine, timedelta(hours=1))

    failed = await scheduler.run_task("broken")
    ok = await scheduler.run_task("fine")

    assert failed["status"] == "failed"
    assert failed["message"] == "boom"
    assert ok["status"] == "success"
    assert ok["message"] == "ok"
    # newest first
    assert [log["job"] for log in scheduler.get_logs()] == ["fine", "broken"]


async def test_loop_runs_due_tasks_and_stops():
    scheduler = JobScheduler(check_interval=0.01)
    calls = []

    async def job(session_factory):
        calls.append(1)

    scheduler.register_task("tick", job, timedelta(hours=1))
    scheduler.start(session_factory=None)
    assert scheduler.is_running
    await asyncio.sleep(0.05)
    await scheduler.stop()

    assert not scheduler.is_running
    # due once at start, then not again within the hour
    assert len(calls) == 1


async def test_log_buffer_is_bounded():
    scheduler = JobScheduler()

    async def job(session_factory):
        return None

    scheduler.register_task("job", job, timedelta(minutes=1))
    for _ in range(120):
        await scheduler.run_task("job")
    assert len(scheduler.get_logs()) == 100


def test_registered_jobs():
    scheduler = register_jobs(JobScheduler())
    tasks = {task["name"]: task["interval_seconds"] for task in scheduler.get_status()["tasks"]}
    assert tasks == {
        "warmup_advance_day": 86400,
        "ab_test_auto_analyze": 3600,
        "compliance_daily_check": 86400,
    }
