"""Tests for the scheduler supervisor."""

import asyncio
import logging
from datetime import UTC, datetime

import pytest

from biomed_bot.models import ChatIdentity
from biomed_bot.scheduler import (
    SchedulerProtocol,
    SchedulerSupervisor,
    create_scheduler,
    start_scheduler,
)
from biomed_bot.services.broadcast import DispatcherState
from conftest import BlockingClock, FakeClock, FakeTransport, InMemorySubscriberRepository


@pytest.fixture
def supervisor(tue_thu_rule, monday_morning) -> SchedulerSupervisor:
    return create_scheduler(
        InMemorySubscriberRepository([ChatIdentity(1)]),
        FakeTransport(),
        tue_thu_rule,
        "Live now",
        clock=BlockingClock(monday_morning),
    )


class TestSchedulerSupervisor:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, supervisor):
        assert not supervisor.running

        start_scheduler(supervisor)
        await asyncio.sleep(0)
        assert supervisor.running
        assert supervisor.dispatcher.state == DispatcherState.WAITING

        await supervisor.stop()

        assert not supervisor.running
        assert supervisor.dispatcher.state == DispatcherState.STOPPED

    @pytest.mark.asyncio
    async def test_second_start_is_noop(self, supervisor, caplog):
        caplog.set_level(logging.INFO)
        supervisor.start()
        first_task = supervisor._task
        supervisor.start()

        assert supervisor._task is first_task
        assert "already started" in caplog.text
        await supervisor.stop()

    def test_satisfies_scheduler_protocol(self, supervisor):
        assert isinstance(supervisor, SchedulerProtocol)

    @pytest.mark.asyncio
    async def test_stop_after_crash_does_not_raise(self, tue_thu_rule, monday_morning, caplog):
        class BrokenClock(FakeClock):
            def now(self):
                raise RuntimeError("clock broke")

        supervisor = create_scheduler(
            InMemorySubscriberRepository([ChatIdentity(1)]),
            FakeTransport(),
            tue_thu_rule,
            "Live now",
            clock=BrokenClock(monday_morning),
        )
        supervisor.start()
        for _ in range(10):
            await asyncio.sleep(0)
        assert not supervisor.running

        await supervisor.stop()

        crash_logs = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(crash_logs) == 1
        assert "crashed" in crash_logs[0].getMessage()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, supervisor):
        await supervisor.stop()
        assert not supervisor.running

    @pytest.mark.asyncio
    async def test_stop_falls_back_to_cancel(self, tue_thu_rule, caplog):
        caplog.set_level(logging.WARNING)
        clock = FakeClock(datetime(2024, 1, 2, 16, 59, 59, tzinfo=UTC))
        transport = FakeTransport(clock=clock)
        transport.gate = asyncio.Event()
        supervisor = create_scheduler(
            InMemorySubscriberRepository([ChatIdentity(1), ChatIdentity(2)]),
            transport,
            tue_thu_rule,
            "Live now",
            clock=clock,
        )
        supervisor.start()
        for _ in range(100):
            if supervisor.dispatcher.state == DispatcherState.FIRING:
                break
            await asyncio.sleep(0)

        # Deliveries are slower than the stop timeout
        asyncio.get_running_loop().call_later(0.1, transport.gate.set)
        await supervisor.stop(timeout=0.01)

        assert not supervisor.running
        assert "cancelling" in caplog.text
        assert sorted(c.id for c in transport.sent_chats) == [1, 2]
