from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional

from newsdesk.core.logger import get_logger, log_error_with_context
from newsdesk.core.timeutils import iso, utcnow
from newsdesk.pipeline.ingest import CycleResult

log = get_logger("scheduler")


class CycleInProgress(Exception):
    """Raised when a cycle is requested while another one is running."""
    pass


@dataclass
class SchedulerStatus:
    running: bool = False
    runs: int = 0
    skipped: int = 0
    last_run: Optional[datetime] = None
    last_result: Optional[CycleResult] = None
    last_error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "running": self.running,
            "runs": self.runs,
            "skipped": self.skipped,
            "lastRun": iso(self.last_run) if self.last_run else None,
            "lastResult": self.last_result.to_dict() if self.last_result else None,
            "lastError": self.last_error,
        }


class IngestionScheduler:
    """Runs the ingestion cycle at start-up and then at a fixed rate.

    Two states: idle and running. Ticks land on ``start + k * interval`` so a
    cycle's own duration adds no drift. A tick that arrives while a cycle is
    still running (or while a manual run holds the lock) is skipped and logged.

    Usage:
        scheduler = IngestionScheduler(pipeline.run_cycle, interval=300)
        scheduler.start()       # inside a running event loop
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        run_cycle: Callable[[], Awaitable[CycleResult]],
        interval: float = 300.0,
        *,
        run_on_start: bool = True,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        self._run_cycle = run_cycle
        self.interval = interval
        self.run_on_start = run_on_start
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self._stopping = False
        self.status = SchedulerStatus()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run_now(self) -> CycleResult:
        """Run one cycle immediately.

        Raises:
            CycleInProgress: If a cycle is already running
        """
        if self._lock.locked():
            raise CycleInProgress("An ingestion cycle is already running")
        async with self._lock:
            self.status.running = True
            self.status.last_run = utcnow()
            try:
                result = await self._run_cycle()
            except Exception as e:
                self.status.last_error = str(e)
                raise
            finally:
                self.status.running = False
            self.status.runs += 1
            self.status.last_result = result
            self.status.last_error = None
            return result

    async def tick(self) -> Optional[CycleResult]:
        """Scheduled trigger: run if idle, otherwise skip. Never raises."""
        if self._lock.locked():
            self.status.skipped += 1
            log.warning("Previous ingestion cycle still running, skipping this tick")
            return None
        try:
            return await self.run_now()
        except CycleInProgress:
            self.status.skipped += 1
            return None
        except Exception as e:
            log_error_with_context(log, "Scheduled ingestion cycle failed", e)
            return None

    async def run_forever(self) -> None:
        next_at = self._clock()
        if not self.run_on_start:
            next_at += self.interval
            await self._sleep(self.interval)

        while not self._stopping:
            await self.tick()
            if self._stopping:
                break

            next_at += self.interval
            now = self._clock()
            if next_at <= now:
                missed = int((now - next_at) // self.interval) + 1
                next_at += missed * self.interval
                self.status.skipped += missed
                log.warning(f"Ingestion cycle overran the interval, skipped {missed} tick(s)")
            await self._sleep(next_at - now)

    def start(self) -> asyncio.Task:
        """Schedule ``run_forever`` on the running loop."""
        if self._task is None or self._task.done():
            self._stopping = False
            self._task = asyncio.create_task(self.run_forever(), name="ingestion-scheduler")
            log.info(f"Scheduler started: every {self.interval:g}s (run on start: {self.run_on_start})")
        return self._task

    async def stop(self) -> None:
        self._stopping = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        log.info("Scheduler stopped")
