"""
Occurrence calendar: when does the next announcement go out.

Pure functions over an injected `now`; the broadcast loop owns the clock.
Cron matching is delegated to APScheduler's CronTrigger.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from apscheduler.triggers.cron import CronTrigger

from biomed_bot.models import OccurrenceRule


def build_trigger(rule: OccurrenceRule) -> CronTrigger:
    """CronTrigger equivalent of the rule, in the rule's own time zone."""
    return CronTrigger(
        day_of_week=rule.cron_weekdays,
        hour=rule.at.hour,
        minute=rule.at.minute,
        second=rule.at.second,
        timezone=rule.timezone,
    )


def next_occurrence(now: datetime, rule: OccurrenceRule) -> datetime:
    """
    Earliest instant strictly after `now` that matches `rule`.

    An instant equal to a slot counts as past, so a round that fires exactly
    on time never schedules itself again for the same slot.
    Result is timezone-aware, in the rule's zone. A slot that falls into a
    DST gap (e.g. 02:30 on the spring-forward night) is returned as the real
    instant CronTrigger picks for it, one hour later on the wall clock
    (03:30 in Europe/Zurich), with the offset that is valid at that instant.
    """
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be timezone-aware")

    # CronTrigger matches inclusively at one-second resolution.
    fire_time = build_trigger(rule).get_next_fire_time(None, now + timedelta(microseconds=1))
    if fire_time is None:
        raise RuntimeError(f"no future occurrence for rule {rule.describe()}")
    # CronTrigger may hand back a wall time that does not exist (DST gap);
    # a round trip through UTC yields the valid local representation.
    return fire_time.astimezone(timezone.utc).astimezone(rule.tzinfo)
