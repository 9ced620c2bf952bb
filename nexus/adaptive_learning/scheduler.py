"""
Continuous Learning Scheduler

Runs the engine's periodic background work:
- Profile persistence
- Pattern re-analysis and adaptive weight updates
- Retraining trigger checks

Time comes from an injected clock. ``SystemClock`` is used in production;
``ManualClock`` lets tests advance time and call ``run_due_tasks()`` to
execute due work synchronously.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional

from ..utils.config import SchedulerConfig
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

TaskAction = Callable[[], Awaitable[None]]


class SystemClock:
    """Wall clock backed by the running event loop"""

    def now(self) -> datetime:
        return datetime.now()

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float):
        await asyncio.sleep(seconds)


class ManualClock:
    """Clock that only moves when ``advance`` is called"""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 1, 12, 0, 0)
        self._elapsed = 0.0
        self._advanced = asyncio.Event()

    def now(self) -> datetime:
        return self._now

    def monotonic(self) -> float:
        return self._elapsed

    def advance(self, seconds: float):
        self._elapsed += seconds
        self._now += timedelta(seconds=seconds)
        self._advanced.set()
        self._advanced = asyncio.Event()

    async def sleep(self, seconds: float):
        deadline = self._elapsed + seconds
        while self._elapsed < deadline:
            await self._advanced.wait()


@dataclass
class PeriodicTask:
    name: str
    interval: float
    action: TaskAction
    next_due: float = 0.0
    runs: int = 0
    failures: int = 0

    def is_due(self, now: float) -> bool:
        return now >= self.next_due


class ContinuousLearningScheduler:
    """
    Schedules persistence, re-analysis and retraining checks.

    Args:
        persist: Coroutine persisting every loaded profile
        reanalyze: Coroutine re-analysing recent patterns for every profile
        check_retraining: Coroutine firing retraining where due
        drain: Coroutine waiting for in-flight profile commands
        config: Interval configuration
        clock: Time source
    """

    def __init__(self, persist: TaskAction, reanalyze: TaskAction, check_retraining: TaskAction,
                 drain: TaskAction, config: Optional[SchedulerConfig] = None, clock=None):
        self.config = config or SchedulerConfig()
        self.clock = clock or SystemClock()
        self._persist = persist
        self._drain = drain

        start = self.clock.monotonic()
        self.tasks: List[PeriodicTask] = [
            PeriodicTask('persistence', self.config.persistence_interval_seconds, persist,
                         start + self.config.persistence_interval_seconds),
            PeriodicTask('pattern_reanalysis', self.config.reanalysis_interval_seconds, reanalyze,
                         start + self.config.reanalysis_interval_seconds),
            PeriodicTask('retraining_check', self.config.retrain_check_interval_seconds, check_retraining,
                         start + self.config.retrain_check_interval_seconds),
        ]

        self.running = False
        self._loop_task: Optional[asyncio.Task] = None
        self._run_lock = asyncio.Lock()

    def task(self, name: str) -> PeriodicTask:
        for task in self.tasks:
            if task.name == name:
                return task
        raise KeyError(name)

    def start(self):
        """Start the background timer loop on the running event loop"""
        if self.running:
            return
        self.running = True
        self._loop_task = asyncio.get_running_loop().create_task(self._timer_loop())
        logger.info("Continuous learning scheduler started")

    async def _timer_loop(self):
        while self.running:
            delay = min(task.next_due for task in self.tasks) - self.clock.monotonic()
            if delay > 0:
                await self.clock.sleep(delay)
            await self.run_due_tasks()

    async def run_due_tasks(self) -> List[str]:
        """Run every task whose time has come; returns the names that ran."""
        ran = []
        async with self._run_lock:
            for task in self.tasks:
                now = self.clock.monotonic()
                if not task.is_due(now):
                    continue
                await self._run_task(task)
                task.next_due = now + task.interval
                ran.append(task.name)
        return ran

    async def _run_task(self, task: PeriodicTask):
        try:
            await task.action()
            task.runs += 1
        except Exception as e:
            task.failures += 1
            logger.error(f"Scheduled task {task.name} failed: {e}")

    async def stop(self):
        """Cancel timers, drain in-flight profile commands, then persist once more."""
        self.running = False
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        await self._drain()
        await self._persist()
        logger.info("Continuous learning scheduler stopped")
