"""Tests for the fixed-interval scheduler."""

import asyncio

from rebase_bot.scheduler import Scheduler


class _Ticker:
    def __init__(self, fail=False):
        self.count = 0
        self.fail = fail

    async def __call__(self):
        self.count += 1
        if self.fail:
            raise RuntimeError("tick blew up")


class _YieldingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)
        await asyncio.sleep(0)


class TestScheduler:
    def test_first_tick_is_immediate(self):
        ticker = _Ticker()
        sleep = _YieldingSleep()
        scheduler = Scheduler(ticker, interval_sec=60, sleep=sleep)

        asyncio.run(scheduler.run(max_beats=1))

        assert ticker.count == 1
        assert sleep.calls == [60]

    def test_ticks_every_interval(self):
        ticker = _Ticker()
        sleep = _YieldingSleep()
        scheduler = Scheduler(ticker, interval_sec=60, sleep=sleep)

        asyncio.run(scheduler.run(max_beats=4))

        assert ticker.count == 4
        assert sleep.calls == [60, 60, 60, 60]
        assert scheduler.skipped == 0

    def test_paused_beats_are_dropped(self):
        ticker = _Ticker()
        scheduler = Scheduler(ticker, interval_sec=60)

        async def _go():
            scheduler.pause()
            assert scheduler.fire() is None
            assert scheduler.fire() is None
            scheduler.resume()
            await scheduler.fire()

        asyncio.run(_go())

        assert ticker.count == 1
        assert scheduler.skipped == 2
        assert scheduler.beats == 3

    def test_single_slot_drops_overlapping_beats(self):
        release = None
        started = []

        async def slow_tick():
            started.append(1)
            await release.wait()

        scheduler = Scheduler(slow_tick, interval_sec=60)

        async def _go():
            nonlocal release
            release = asyncio.Event()
            first = scheduler.fire()
            await asyncio.sleep(0)
            assert scheduler.busy
            assert scheduler.fire() is None
            release.set()
            await first
            assert not scheduler.busy

        asyncio.run(_go())

        assert started == [1]
        assert scheduler.skipped == 1

    def test_failing_tick_does_not_stop_the_loop(self):
        ticker = _Ticker(fail=True)
        scheduler = Scheduler(ticker, interval_sec=1, sleep=_YieldingSleep())

        asyncio.run(scheduler.run(max_beats=3))

        assert ticker.count == 3
