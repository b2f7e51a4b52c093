"""Tests for the fixed-rate ingestion scheduler."""
import asyncio
from datetime import datetime, timezone

import pytest

from newsdesk.pipeline.ingest import CycleResult
from newsdesk.scheduler import CycleInProgress, IngestionScheduler


class FakeTime:
    """Virtual clock; ``sleep`` advances it instead of waiting."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _result() -> CycleResult:
    return CycleResult(started_at=datetime.now(timezone.utc))


def test_interval_must_be_positive():
    async def cycle():
        return _result()

    with pytest.raises(ValueError):
        IngestionScheduler(cycle, interval=0)


def test_runs_at_start_then_every_interval():
    fake = FakeTime()
    run_times: list[float] = []
    scheduler = None

    async def cycle():
        run_times.append(fake.now)
        fake.now += 12.0  # cycle duration
        if len(run_times) == 3:
            scheduler._stopping = True
        return _result()

    scheduler = IngestionScheduler(cycle, interval=300, clock=fake.clock, sleep=fake.sleep)
    asyncio.run(scheduler.run_forever())

    assert run_times == [0.0, 300.0, 600.0]
    assert fake.sleeps == [288.0, 288.0]
    assert scheduler.status.runs == 3
    assert scheduler.status.skipped == 0


def test_run_on_start_disabled_waits_one_interval():
    fake = FakeTime()
    run_times: list[float] = []
    scheduler = None

    async def cycle():
        run_times.append(fake.now)
        if len(run_times) == 2:
            scheduler._stopping = True
        return _result()

    scheduler = IngestionScheduler(cycle, interval=60, run_on_start=False, clock=fake.clock, sleep=fake.sleep)
    asyncio.run(scheduler.run_forever())

    assert run_times == [60.0, 120.0]


def test_overrun_skips_missed_ticks():
    fake = FakeTime()
    run_times: list[float] = []
    scheduler = None

    async def cycle():
        run_times.append(fake.now)
        if len(run_times) == 1:
            fake.now += 700.0
        else:
            scheduler._stopping = True
        return _result()

    scheduler = IngestionScheduler(cycle, interval=300, clock=fake.clock, sleep=fake.sleep)
    asyncio.run(scheduler.run_forever())

    # Ticks at 300 and 600 fell inside the first cycle
    assert run_times == [0.0, 900.0]
    assert scheduler.status.skipped == 2


def test_failed_cycle_does_not_stop_the_schedule():
    fake = FakeTime()
    calls = []
    scheduler = None

    async def cycle():
        calls.append(fake.now)
        if len(calls) == 1:
            raise RuntimeError("boom")
        scheduler._stopping = True
        return _result()

    scheduler = IngestionScheduler(cycle, interval=10, clock=fake.clock, sleep=fake.sleep)
    asyncio.run(scheduler.run_forever())

    assert calls == [0.0, 10.0]
    assert scheduler.status.runs == 1
    assert scheduler.status.last_error is None


def test_tick_and_manual_run_rejected_while_running():
    async def scenario():
        release = asyncio.Event()
        started = asyncio.Event()

        async def cycle():
            started.set()
            await release.wait()
            return _result()

        scheduler = IngestionScheduler(cycle, interval=300)
        first = asyncio.create_task(scheduler.run_now())
        await started.wait()

        assert scheduler.is_running
        assert scheduler.status.to_dict()["running"] is True
        assert await scheduler.tick() is None
        with pytest.raises(CycleInProgress):
            await scheduler.run_now()

        release.set()
        await first
        return scheduler

    scheduler = asyncio.run(scenario())

    assert not scheduler.is_running
    assert scheduler.status.runs == 1
    assert scheduler.status.skipped == 1


def test_run_now_records_error():
    async def cycle():
        raise RuntimeError("source exploded")

    scheduler = IngestionScheduler(cycle, interval=300)
    with pytest.raises(RuntimeError):
        asyncio.run(scheduler.run_now())

    assert scheduler.status.last_error == "source exploded"
    assert scheduler.status.running is False


def test_start_and_stop():
    async def scenario():
        ran = asyncio.Event()

        async def cycle():
            ran.set()
            return _result()

        scheduler = IngestionScheduler(cycle, interval=3600)
        scheduler.start()
        await asyncio.wait_for(ran.wait(), timeout=2)
        await scheduler.stop()
        return scheduler

    scheduler = asyncio.run(scenario())
    assert scheduler.status.runs == 1
    assert scheduler._task is None
