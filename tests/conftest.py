"""Shared test fixtures and fakes."""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, time, timedelta
from pathlib import Path

import pytest

from biomed_bot.models import ChatIdentity, OccurrenceRule
from biomed_bot.repositories.subscribers import FileSubscriberRepository, StorageError
from biomed_bot.services.transport import TransportError

# =============================================================================
# Fakes
# =============================================================================


class InMemorySubscriberRepository:
    """Subscriber store kept in a list; optional failure injection."""

    def __init__(self, chats: list[ChatIdentity] | None = None) -> None:
        self.chats: list[ChatIdentity] = list(chats or [])
        self.fail_with: StorageError | None = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def read_all(self) -> list[ChatIdentity]:
        self._check()
        return list(self.chats)

    async def contains(self, chat: ChatIdentity) -> bool:
        self._check()
        return chat in self.chats

    async def append(self, chat: ChatIdentity) -> bool:
        self._check()
        if chat in self.chats:
            return False
        self.chats.append(chat)
        return True

    async def remove(self, chat: ChatIdentity) -> bool:
        self._check()
        if chat not in self.chats:
            return False
        self.chats.remove(chat)
        return True


class FakeClock:
    """Clock whose sleep() advances time instantly."""

    def __init__(self, start: datetime) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


class BlockingClock(FakeClock):
    """Clock whose sleep() never returns on its own."""

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        await asyncio.Event().wait()


class FakeTransport:
    """Records sends; chats in `failing` raise TransportError."""

    def __init__(
        self,
        clock: FakeClock | None = None,
        failing: set[ChatIdentity] | None = None,
        on_send: Callable[[ChatIdentity], None] | None = None,
    ) -> None:
        self.clock = clock
        self.failing = failing or set()
        self.on_send = on_send
        self.sent: list[tuple[ChatIdentity, str, datetime | None]] = []
        self.attempted: list[ChatIdentity] = []
        self.gate: asyncio.Event | None = None

    async def send(self, chat: ChatIdentity, text: str) -> None:
        self.attempted.append(chat)
        if self.gate is not None:
            await self.gate.wait()
        if chat in self.failing:
            raise TransportError(chat, "Forbidden: bot was blocked by the user")
        self.sent.append((chat, text, self.clock.now() if self.clock else None))
        if self.on_send is not None:
            self.on_send(chat)

    @property
    def sent_chats(self) -> list[ChatIdentity]:
        return [chat for chat, _, _ in self.sent]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def tue_thu_rule() -> OccurrenceRule:
    """Tuesday and Thursday at 17:00 UTC."""
    return OccurrenceRule(weekdays=frozenset({1, 3}), at=time(17, 0), timezone="UTC")


@pytest.fixture
def monday_morning() -> datetime:
    # 2024-01-01 is a Monday
    return datetime(2024, 1, 1, 10, 0, tzinfo=UTC)


@pytest.fixture
def subscribers_file(tmp_path: Path) -> Path:
    return tmp_path / "data" / "chats.txt"


@pytest.fixture
def file_store(subscribers_file: Path) -> FileSubscriberRepository:
    return FileSubscriberRepository(subscribers_file)


@pytest.fixture
def memory_store() -> InMemorySubscriberRepository:
    return InMemorySubscriberRepository()
