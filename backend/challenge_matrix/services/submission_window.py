from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Literal
from challenge_matrix.config import settings
from challenge_matrix.services.time_windows import (
    local_instant, local_midnight, next_day, parse_date, parse_time_of_day, to_local, weekday_indexes,
)

Phase = Literal["not_started", "active", "ended"]


@dataclass(frozen=True)
class SubmissionWindow:
    start: datetime
    end: datetime
    is_open: bool

    @property
    def countdown_target(self) -> datetime:
        return self.end if self.is_open else self.start


@dataclass(frozen=True)
class ChallengeState:
    phase: Phase
    now: datetime
    window: SubmissionWindow | None = None
    countdown_target: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.phase == "active" and self.window is not None and self.window.is_open


def next_window(
    now: datetime,
    start_t: time | str,
    end_t: time | str,
    tz_name: str | None = None,
    allowed_days: frozenset[int] | None = None,
) -> SubmissionWindow:
    """
    Next occurring daily window [start, end] at or after `now`.

    Today's window is built from the wall-clock times on `now`'s local date. Once
    today's end has passed, both boundaries move to the following day; a window
    whose end is before its start is never read as wrapping past midnight. Both
    ends are inclusive, so a zero-width window is open only at that instant.

    `allowed_days` (weekday integers, Monday=0) restricts which dates can carry a
    window; an empty/None set allows every day.

    Examples:
        >>> from datetime import datetime
        >>> w = next_window(datetime(2025, 1, 10, 9, 30), "09:00", "10:00", "UTC")
        >>> w.is_open, w.countdown_target.hour
        (True, 10)
    """
    tz_name = tz_name or settings.challenge_timezone
    start_t, end_t = parse_time_of_day(start_t), parse_time_of_day(end_t)
    now_local = to_local(now, tz_name)

    day = now_local.date()
    end = local_instant(day, end_t, tz_name)
    if now_local > end:
        day = next_day(day)
    if allowed_days:
        # at most six hops to reach an allowed weekday
        for _ in range(7):
            if day.weekday() in allowed_days:
                break
            day = next_day(day)

    start = local_instant(day, start_t, tz_name)
    end = local_instant(day, end_t, tz_name)
    return SubmissionWindow(start=start, end=end, is_open=start <= now_local <= end)


def challenge_phase(now: datetime, start_date: date, end_date: date, tz_name: str) -> Phase:
    """`start_date` opens at local midnight; `end_date` is inclusive through the whole local day."""
    now_local = to_local(now, tz_name)
    if now_local < local_midnight(start_date, tz_name):
        return "not_started"
    if now_local >= local_midnight(next_day(end_date), tz_name):
        return "ended"
    return "active"


def evaluate(challenge: Any, now: datetime, tz_name: str | None = None) -> ChallengeState:
    """
    Lifecycle phase and submission window of `challenge` at `now`.

    `challenge` is anything exposing start_date, end_date, submission_start,
    submission_end and (optionally) submission_days.
    """
    tz_name = tz_name or settings.challenge_timezone
    start_date = parse_date(challenge.start_date)
    end_date = parse_date(challenge.end_date)
    now_local = to_local(now, tz_name)

    phase = challenge_phase(now_local, start_date, end_date, tz_name)
    if phase == "not_started":
        return ChallengeState(phase=phase, now=now_local, countdown_target=local_midnight(start_date, tz_name))
    if phase == "ended":
        return ChallengeState(phase=phase, now=now_local)

    window = next_window(
        now_local,
        challenge.submission_start,
        challenge.submission_end,
        tz_name,
        weekday_indexes(getattr(challenge, "submission_days", None)),
    )
    if to_local(window.start, tz_name).date() > end_date:
        # last day, window already closed: nothing left to count down to
        return ChallengeState(phase=phase, now=now_local)
    return ChallengeState(phase=phase, now=now_local, window=window, countdown_target=window.countdown_target)
