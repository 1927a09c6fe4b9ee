"""
Storage bootstrap for the bot.

ARCH: factories only (get_subscriber_store). No business logic and no file
I/O here. Handlers and bot.py never open the subscriber file themselves.
"""

from pathlib import Path
from typing import Optional

from biomed_bot.repositories.subscribers import FileSubscriberRepository, SubscriberRepository

_store: Optional[SubscriberRepository] = None


def get_subscriber_store(path: str | Path | None = None) -> SubscriberRepository:
    """Process-wide subscriber store. The first call fixes the file path."""
    global _store
    if _store is None:
        if path is None:
            from config import SUBSCRIBERS_FILE

            path = SUBSCRIBERS_FILE
        _store = FileSubscriberRepository(Path(path))
    return _store


def reset_subscriber_store() -> None:
    """Forget the cached store (tests, re-bootstrap)."""
    global _store
    _store = None
