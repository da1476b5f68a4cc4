"""
In-process job scheduler

A single asyncio loop runs registered interval tasks. Each task gets a
session factory and opens its own sessions. A failing task is logged and
recorded, and the loop carries on.
"""
import asyncio
import time
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker
from loguru import logger

MAX_JOB_LOGS = 100

TaskFunc = Callable[[async_sessionmaker], Awaitable[Any]]


class JobScheduler:
    """Interval task coordinator"""

    def __init__(self, check_interval: float = 60):
        self.check_interval = check_interval
        self._tasks: Dict[str, Dict[str, Any]] = {}
        self._logs: Deque[Dict[str, Any]] = deque(maxlen=MAX_JOB_LOGS)
        self._loop_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._session_factory: Optional[async_sessionmaker] = None

    def register_task(self, name: str, func: TaskFunc, interval: timedelta) -> None:
        self._tasks[name] = {
            "func": func,
            "interval": interval,
            "last_run": None,
        }
        logger.info("Scheduled task registered: {} every {}s", name, interval.total_seconds())

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self, session_factory: async_sessionmaker) -> None:
        if self.is_running:
            logger.warning("Scheduler already running")
            return
        self._session_factory = session_factory
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run_loop(), name="job-scheduler")
        logger.info("Scheduler started with tasks: {}", list(self._tasks))

    async def stop(self) -> None:
        if not self.is_running:
            return
        logger.info("Scheduler stopping...")
        self._stop_event.set()
        try:
            await asyncio.wait_for(self._loop_task, timeout=10)
        except asyncio.TimeoutError:
            logger.warning("Scheduler loop did not stop in time, cancelling")
            self._loop_task.cancel()
        self._loop_task = None
        logger.info("Scheduler stopped")

    async def run_task(self, name: str, session_factory: Optional[async_sessionmaker] = None) -> Dict[str, Any]:
        """Run one task now and record the outcome"""
        task = self._tasks[name]
        factory = session_factory or self._session_factory
        started = datetime.now(timezone.utc)
        clock = time.perf_counter()
        try:
            result = await task["func"](factory)
            entry = {
                "job": name,
                "status": "success",
                "message": str(result) if result is not None else "ok",
            }
        except Exception as exc:
            logger.exception("Scheduled task failed: {}", name)
            entry = {"job": name, "status": "failed", "message": str(exc)}
        finally:
            task["last_run"] = datetime.now(timezone.utc)

        entry["started_at"] = started.isoformat()
        entry["duration_ms"] = round((time.perf_counter() - clock) * 1000, 1)
        self._logs.append(entry)
        logger.info("Scheduled task {} finished: {} ({}ms)", name, entry["status"], entry["duration_ms"])
        return entry

    def _due(self, now: datetime) -> List[str]:
        return [
            name for name, task in self._tasks.items()
            if task["last_run"] is None or now - task["last_run"] >= task["interval"]
        ]

    async def _run_loop(self) -> None:
        logger.debug("Scheduler loop started")
        while not self._stop_event.is_set():
            for name in self._due(datetime.now(timezone.utc)):
                await self.run_task(name)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.check_interval)
            except asyncio.TimeoutError:
                continue
        logger.debug("Scheduler loop ended")

    def get_logs(self, limit: int = MAX_JOB_LOGS) -> List[Dict[str, Any]]:
        """Newest first"""
        return list(reversed(self._logs))[:limit]

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "check_interval": self.check_interval,
            "tasks": [
                {
                    "name": name,
                    "interval_seconds": task["interval"].total_seconds(),
                    "last_run": task["last_run"].isoformat() if task["last_run"] else None,
                }
                for name, task in self._tasks.items()
            ],
        }
