from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

_CHAT_ID_RE = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class ChatIdentity:
    """
    Telegram chat a subscription belongs to.

    Group chats have negative ids, so the sign is part of the identity.
    """

    id: int

    def __post_init__(self) -> None:
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise ValueError(f"chat id must be an integer, got {self.id!r}")

    @classmethod
    def parse(cls, raw: str) -> "ChatIdentity":
        text = raw.strip()
        if not _CHAT_ID_RE.match(text):
            raise ValueError(f"invalid chat id: {raw!r}")
        return cls(int(text))

    def __str__(self) -> str:
        return str(self.id)


@dataclass(frozen=True)
class OccurrenceRule:
    """
    Recurring slot: a set of weekdays at one time of day in a named zone.

    weekdays use datetime.weekday() numbering (Monday=0 ... Sunday=6).
    """

    weekdays: frozenset[int]
    at: time
    timezone: str = "UTC"

    def __post_init__(self) -> None:
        if not self.weekdays:
            raise ValueError("occurrence rule needs at least one weekday")
        bad = [d for d in self.weekdays if not 0 <= d <= 6]
        if bad:
            raise ValueError(f"weekday out of range 0..6: {sorted(bad)}")
        if self.at.tzinfo is not None:
            raise ValueError("time of day must be naive; use the timezone field")
        if self.at.microsecond:
            raise ValueError("time of day has one-second resolution, drop the fraction")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {self.timezone!r}") from e

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def cron_weekdays(self) -> str:
        """Weekdays as a cron day_of_week field, e.g. 'tue,thu'."""
        return ",".join(WEEKDAY_NAMES[d] for d in sorted(self.weekdays))

    @classmethod
    def parse(cls, weekdays: str, at: str, timezone: str = "UTC") -> "OccurrenceRule":
        """Build a rule from config strings: weekdays='tue,thu', at='17:00'."""
        days: set[int] = set()
        for name in weekdays.split(","):
            key = name.strip().lower()
            if not key:
                continue
            if key not in WEEKDAY_NAMES:
                raise ValueError(f"unknown weekday: {name.strip()!r}")
            days.add(WEEKDAY_NAMES.index(key))
        try:
            at_time = time.fromisoformat(at.strip())
        except ValueError as e:
            raise ValueError(f"invalid time of day: {at!r}") from e
        return cls(weekdays=frozenset(days), at=at_time, timezone=timezone.strip())

    def describe(self) -> str:
        days = ", ".join(WEEKDAY_NAMES[d].capitalize() for d in sorted(self.weekdays))
        return f"{days} at {self.at.strftime('%H:%M')} ({self.timezone})"


__all__ = ["ChatIdentity", "OccurrenceRule", "WEEKDAY_NAMES"]
