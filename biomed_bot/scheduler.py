"""
Announcement scheduler supervisor.

Owns the lifecycle of the broadcast dispatcher: start it once as a background
task, stop it on shutdown. app.py only calls start_scheduler()/stop().
Process exit without stop() is acceptable: the loop holds no state that
needs flushing.
"""

# ⚠️ Infrastructure boundary: asyncio task management
# Handlers never import this module


from __future__ import annotations

import asyncio
import logging
from typing import Protocol, runtime_checkable

from biomed_bot.models import OccurrenceRule
from biomed_bot.repositories.subscribers import SubscriberRepository
from biomed_bot.services.broadcast import BroadcastDispatcher, Clock
from biomed_bot.services.transport import Transport


logger = logging.getLogger(__name__)


@runtime_checkable
class SchedulerProtocol(Protocol):
    """Scheduler interface. Swapping in an external worker means a new implementation."""

    @property
    def running(self) -> bool: ...

    def start(self) -> None: ...

    async def stop(self) -> None: ...


class SchedulerSupervisor:
    """
    Runs exactly one BroadcastDispatcher per supervisor.

    start() is idempotent; stop() requests cooperative cancellation and waits
    for the loop to end (an in-flight round is allowed to finish).
    """

    def __init__(self, dispatcher: BroadcastDispatcher) -> None:
        self._dispatcher = dispatcher
        self._task: asyncio.Task[None] | None = None

    @property
    def dispatcher(self) -> BroadcastDispatcher:
        return self._dispatcher

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the dispatcher loop in the background. Needs a running event loop."""
        if self._task is not None:
            logger.info("Scheduler already started, skipping second start")
            return
        logger.info("Starting announcement scheduler...")
        self._task = asyncio.create_task(self._dispatcher.run(), name="broadcast-dispatcher")
        self._task.add_done_callback(self._on_done)

    async def stop(self, timeout: float | None = 30.0) -> None:
        """Stop the loop. Falls back to hard cancellation after `timeout` seconds."""
        if self._task is None:
            return
        self._dispatcher.stop()
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout)
        except asyncio.TimeoutError:
            logger.warning("Scheduler did not stop within %ss, cancelling", timeout)
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception:  # noqa: BLE001
                logger.info("Scheduler ended with an error after cancel (reported above)")
        except Exception:  # noqa: BLE001
            # _on_done already logged the traceback
            logger.info("Scheduler had already stopped with an error")

    @staticmethod
    def _on_done(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Announcement scheduler crashed", exc_info=exc)


def create_scheduler(
    store: SubscriberRepository,
    transport: Transport,
    rule: OccurrenceRule,
    text: str,
    *,
    clock: Clock | None = None,
) -> SchedulerSupervisor:
    """Builds the dispatcher and its supervisor (not started yet)."""
    dispatcher = BroadcastDispatcher(store, transport, rule, text, clock=clock)
    return SchedulerSupervisor(dispatcher)


def start_scheduler(scheduler: SchedulerSupervisor) -> SchedulerSupervisor:
    """Starts the scheduler and returns it, so the caller keeps the handle."""
    scheduler.start()
    return scheduler
