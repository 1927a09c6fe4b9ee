"""
Broadcast dispatcher: waits for the next announcement slot, then sends the
announcement to every subscribed chat.

State machine:

    IDLE -> WAITING(until next slot) -> FIRING -> WAITING -> ... -> STOPPED

Stopping is cooperative (stop() sets an event): a stop seen while WAITING
ends the loop without firing; a stop seen while FIRING lets the current round
finish and then ends the loop. Time comes from an injected Clock so the loop
can be driven by a fake clock in tests.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Protocol

from biomed_bot.models import ChatIdentity, OccurrenceRule
from biomed_bot.repositories.subscribers import StorageError, SubscriberRepository
from biomed_bot.services.calendar import next_occurrence
from biomed_bot.services.transport import Transport, TransportError


logger = logging.getLogger(__name__)

# Long waits are split so wall-clock jumps (suspend, NTP) are noticed.
MAX_SLEEP_SECONDS = 300.0


class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant, timezone-aware."""
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class DispatcherState(str, enum.Enum):
    IDLE = "idle"
    WAITING = "waiting"
    FIRING = "firing"
    STOPPED = "stopped"


@dataclass
class FiringReport:
    """Outcome of one round of announcements."""

    started_at: datetime
    delivered: list[ChatIdentity] = field(default_factory=list)
    failed: dict[ChatIdentity, str] = field(default_factory=dict)
    skipped_reason: str | None = None

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)


class BroadcastDispatcher:
    """
    Sends `text` to all subscribers at every occurrence of `rule`.

    One failing chat never stops delivery to the others, and a failed round
    never stops the loop. Failed chats stay subscribed.
    """

    def __init__(
        self,
        store: SubscriberRepository,
        transport: Transport,
        rule: OccurrenceRule,
        text: str,
        *,
        clock: Clock | None = None,
        max_concurrency: int = 20,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._store = store
        self._transport = transport
        self._rule = rule
        self._text = text
        self._clock = clock or SystemClock()
        self._max_concurrency = max_concurrency
        self._stop = asyncio.Event()
        self._state = DispatcherState.IDLE
        self._next_fire_at: datetime | None = None
        self.last_report: FiringReport | None = None

    @property
    def state(self) -> DispatcherState:
        return self._state

    @property
    def next_fire_at(self) -> datetime | None:
        return self._next_fire_at

    @property
    def rule(self) -> OccurrenceRule:
        return self._rule

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Request the loop to end. Safe to call from any state, repeatedly."""
        self._stop.set()

    async def run(self) -> None:
        """Wait/fire loop. Returns once stop() has been observed."""
        logger.info("Broadcast dispatcher started: %s", self._rule.describe())
        try:
            while not self._stop.is_set():
                self._state = DispatcherState.WAITING
                # From the current time, not the previous slot: a slow round
                # must not shift the schedule.
                fire_at = next_occurrence(self._clock.now(), self._rule)
                self._next_fire_at = fire_at
                logger.info("Next announcement at %s", fire_at.isoformat())

                if not await self._wait_until(fire_at):
                    break

                self._state = DispatcherState.FIRING
                round_task = asyncio.ensure_future(self.fire_once())
                try:
                    await asyncio.shield(round_task)
                except asyncio.CancelledError:
                    logger.info("Cancelled while firing, finishing current round")
                    await round_task
                    raise
        finally:
            self._state = DispatcherState.STOPPED
            self._next_fire_at = None
            logger.info("Broadcast dispatcher stopped")

    async def fire_once(self) -> FiringReport:
        """Send the announcement to every current subscriber once."""
        report = FiringReport(started_at=self._clock.now())
        try:
            chats = await self._store.read_all()
        except StorageError as e:
            logger.error("Cannot load subscribers, skipping round: %s", e)
            report.skipped_reason = str(e)
            self.last_report = report
            return report

        logger.info("Sending announcement to %d chats", len(chats))
        semaphore = asyncio.Semaphore(self._max_concurrency)
        results = await asyncio.gather(*(self._deliver(chat, semaphore) for chat in chats))
        for chat, error in results:
            if error is None:
                report.delivered.append(chat)
            else:
                report.failed[chat] = error

        logger.info(
            "Announcement round done: %d delivered, %d failed",
            len(report.delivered),
            len(report.failed),
        )
        self.last_report = report
        return report

    async def _deliver(
        self,
        chat: ChatIdentity,
        semaphore: asyncio.Semaphore,
    ) -> tuple[ChatIdentity, str | None]:
        async with semaphore:
            try:
                await self._transport.send(chat, self._text)
            except TransportError as e:
                logger.error("Announcement to %s failed: %s", chat, e)
                return chat, str(e)
            except Exception as e:  # noqa: BLE001
                logger.exception("Unexpected error sending announcement to %s", chat)
                return chat, f"{type(e).__name__}: {e}"
        return chat, None

    async def _wait_until(self, deadline: datetime) -> bool:
        """Sleep until `deadline`. False if stop() was called first."""
        while not self._stop.is_set():
            remaining = (deadline - self._clock.now()).total_seconds()
            if remaining <= 0:
                return True
            await self._sleep_or_stop(min(remaining, MAX_SLEEP_SECONDS))
        return False

    async def _sleep_or_stop(self, seconds: float) -> None:
        sleeper = asyncio.ensure_future(self._clock.sleep(seconds))
        stopper = asyncio.ensure_future(self._stop.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, stopper):
                task.cancel()
            await asyncio.gather(sleeper, stopper, return_exceptions=True)
