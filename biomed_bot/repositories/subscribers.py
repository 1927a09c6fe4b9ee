"""
Subscriber repository. ARCH: all reads/writes of the subscriber list live here.
Handlers and the broadcast dispatcher never touch the file; they use
SubscriberRepository.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable

from filelock import FileLock

from biomed_bot.models import ChatIdentity
from storage.files import atomic_write_text, read_text_or_none


logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The subscriber file could not be read, parsed or written."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


@runtime_checkable
class SubscriberRepository(Protocol):
    """Subscriber list interface. Set semantics: no chat is stored twice."""

    async def read_all(self) -> list[ChatIdentity]:
        ...

    async def contains(self, chat: ChatIdentity) -> bool:
        ...

    async def append(self, chat: ChatIdentity) -> bool:
        """True if the chat was added, False if it was already subscribed."""
        ...

    async def remove(self, chat: ChatIdentity) -> bool:
        """True if the chat was removed, False if it was not subscribed."""
        ...


class FileSubscriberRepository(SubscriberRepository):
    """
    Subscriber list stored as a text file, one chat id per line.

    Every read loads the whole file; every mutation rewrites the whole file
    via atomic replace, so concurrent readers never see a half-written list.
    Mutations hold a thread lock and a `<file>.lock` FileLock for the whole
    read-modify-write, so writers in this process and in other processes
    (scripts/subscribers.py) never overwrite each other. Blocking I/O runs
    in a worker thread.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._write_lock = threading.Lock()
        self._file_lock = FileLock(str(self._path) + ".lock")

    @property
    def path(self) -> Path:
        return self._path

    async def read_all(self) -> list[ChatIdentity]:
        return await asyncio.to_thread(self._load)

    async def contains(self, chat: ChatIdentity) -> bool:
        return chat in await self.read_all()

    async def append(self, chat: ChatIdentity) -> bool:
        return await asyncio.to_thread(self._append_sync, chat)

    async def remove(self, chat: ChatIdentity) -> bool:
        return await asyncio.to_thread(self._remove_sync, chat)

    def _append_sync(self, chat: ChatIdentity) -> bool:
        with self._locked():
            chats = self._load()
            if chat in chats:
                return False
            chats.append(chat)
            self._save(chats)
        logger.info("Chat %s subscribed (%d total)", chat, len(chats))
        return True

    def _remove_sync(self, chat: ChatIdentity) -> bool:
        with self._locked():
            chats = self._load()
            if chat not in chats:
                return False
            chats = [c for c in chats if c != chat]
            self._save(chats)
        logger.info("Chat %s unsubscribed (%d left)", chat, len(chats))
        return True

    @contextmanager
    def _locked(self) -> Iterator[None]:
        with self._write_lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._file_lock.acquire()
            except OSError as e:
                raise StorageError(f"Cannot lock {self._path}: {e}", path=self._path) from e
            try:
                yield
            finally:
                self._file_lock.release()

    def _load(self) -> list[ChatIdentity]:
        try:
            raw = read_text_or_none(self._path)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {self._path}: {e}", path=self._path) from e
        if raw is None:
            return []

        chats: list[ChatIdentity] = []
        seen: set[ChatIdentity] = set()
        for lineno, line in enumerate(raw.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                chat = ChatIdentity.parse(line)
            except ValueError as e:
                raise StorageError(
                    f"{self._path}:{lineno}: invalid chat id {line.strip()!r}",
                    path=self._path,
                ) from e
            # Hand-edited files may carry duplicates; callers still get a set.
            if chat in seen:
                continue
            seen.add(chat)
            chats.append(chat)
        return chats

    def _save(self, chats: list[ChatIdentity]) -> None:
        content = "".join(f"{chat.id}\n" for chat in chats)
        try:
            atomic_write_text(self._path, content)
        except OSError as e:
            raise StorageError(f"Cannot write {self._path}: {e}", path=self._path) from e
