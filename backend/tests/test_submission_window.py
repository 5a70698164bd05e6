from __future__ import annotations
from datetime import date, datetime, time, timedelta, timezone
from types import SimpleNamespace
import pytest
from challenge_matrix.services.submission_window import challenge_phase, evaluate, next_window
from challenge_matrix.services.time_windows import parse_time_of_day, weekday_indexes

UTC = "UTC"


def _challenge(**kw):
    base = dict(
        start_date=date(2025, 1, 6),
        end_date=date(2025, 1, 31),
        submission_start="09:00",
        submission_end="10:00",
        submission_days=[],
    )
    base.update(kw)
    return SimpleNamespace(**base)


def _at(h, m=0, s=0, us=0, day=10):
    return datetime(2025, 1, day, h, m, s, us, tzinfo=timezone.utc)


def test_phase_classification():
    ch = _challenge()
    assert evaluate(ch, datetime(2025, 1, 5, 23, 59, 59, tzinfo=timezone.utc), UTC).phase == "not_started"
    assert evaluate(ch, datetime(2025, 1, 6, 0, 0, tzinfo=timezone.utc), UTC).phase == "active"
    # end_date is inclusive through the whole local day
    assert evaluate(ch, datetime(2025, 1, 31, 23, 59, 59, tzinfo=timezone.utc), UTC).phase == "active"
    assert evaluate(ch, datetime(2025, 2, 1, 0, 0, tzinfo=timezone.utc), UTC).phase == "ended"


def test_not_started_counts_down_to_local_midnight_of_start_date():
    st = evaluate(_challenge(), datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc), "Europe/Paris")
    assert st.phase == "not_started"
    assert st.window is None and not st.is_open
    assert st.countdown_target == datetime(2025, 1, 5, 23, 0, tzinfo=timezone.utc)


def test_ended_has_no_window_or_countdown():
    st = evaluate(_challenge(), datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc), UTC)
    assert st.phase == "ended"
    assert st.window is None and st.countdown_target is None and not st.is_open


@pytest.mark.parametrize(
    "now,is_open,target",
    [
        (_at(9, 0, 0), True, _at(10, 0)),
        (_at(8, 59, 59), False, _at(9, 0)),
        (_at(10, 0, 0), True, _at(10, 0)),
        (_at(10, 0, 1), False, _at(9, 0, day=11)),
    ],
)
def test_window_boundaries_are_inclusive(now, is_open, target):
    st = evaluate(_challenge(), now, UTC)
    assert st.phase == "active"
    assert st.is_open is is_open
    assert st.countdown_target == target


def test_after_todays_end_compares_against_tomorrow():
    w = next_window(_at(23, 0), "09:00", "10:00", UTC)
    assert w.start == _at(9, 0, day=11)
    assert w.end == _at(10, 0, day=11)
    assert not w.is_open


def test_end_before_start_never_wraps_past_midnight():
    # 22:00-02:00 at 23:00: today's end (02:00) is past, so tomorrow's pair is used
    w = next_window(_at(23, 0), "22:00", "02:00", UTC)
    assert not w.is_open
    assert w.start == _at(22, 0, day=11)
    assert w.end == _at(2, 0, day=11)
    # before today's end the pair stays on today and is closed as well
    w = next_window(_at(1, 0), "22:00", "02:00", UTC)
    assert not w.is_open
    assert w.start == _at(22, 0)


def test_zero_width_window_open_only_at_its_instant():
    assert next_window(_at(12, 0), "12:00", "12:00", UTC).is_open
    later = next_window(_at(12, 0, 0, 1), "12:00", "12:00", UTC)
    assert not later.is_open
    assert later.start == _at(12, 0, day=11)


def test_submission_days_skip_to_next_allowed_weekday():
    days = weekday_indexes(["MONDAY", "SUNDAY"])
    # 2025-01-07 is a Tuesday
    w = next_window(datetime(2025, 1, 7, 9, 30, tzinfo=timezone.utc), "09:00", "10:00", UTC, days)
    assert not w.is_open
    assert w.start == datetime(2025, 1, 12, 9, 0, tzinfo=timezone.utc)
    # Monday inside the window
    w = next_window(datetime(2025, 1, 6, 9, 30, tzinfo=timezone.utc), "09:00", "10:00", UTC, days)
    assert w.is_open


def test_evaluate_applies_challenge_submission_days():
    ch = _challenge(submission_days=["SUNDAY"])
    st = evaluate(ch, _at(9, 30), UTC)  # Friday
    assert st.phase == "active" and not st.is_open
    assert st.countdown_target == datetime(2025, 1, 12, 9, 0, tzinfo=timezone.utc)


def test_window_follows_local_wall_clock_across_dst():
    # US DST starts 2026-03-08; 10:00-11:00 New York is 14:00-15:00Z afterwards
    now = datetime(2026, 3, 9, 14, 30, tzinfo=timezone.utc)
    w = next_window(now, time(10, 0), time(11, 0), "America/New_York")
    assert w.is_open
    assert w.start.utcoffset() == timedelta(hours=-4)
    before = next_window(datetime(2026, 3, 6, 14, 30, tzinfo=timezone.utc), time(10, 0), time(11, 0), "America/New_York")
    assert not before.is_open
    assert before.start.astimezone(timezone.utc).hour == 15


def test_naive_now_is_taken_as_local():
    assert challenge_phase(datetime(2025, 1, 6, 0, 0), date(2025, 1, 6), date(2025, 1, 6), "Asia/Tokyo") == "active"


def test_parsers_reject_bad_input():
    assert parse_time_of_day("17:05:30") == time(17, 5, 30)
    with pytest.raises(ValueError):
        parse_time_of_day("1705")
    with pytest.raises(ValueError):
        weekday_indexes(["FUNDAY"])


def test_last_day_after_window_closes_has_no_countdown():
    ch = _challenge(end_date=date(2025, 1, 31))
    st = evaluate(ch, datetime(2025, 1, 31, 12, 0, tzinfo=timezone.utc), UTC)
    assert st.phase == "active"
    assert not st.is_open
    assert st.window is None
    assert st.countdown_target is None

    # still counts down to today's window earlier on the last day
    st = evaluate(ch, datetime(2025, 1, 31, 8, 0, tzinfo=timezone.utc), UTC)
    assert st.countdown_target == datetime(2025, 1, 31, 9, 0, tzinfo=timezone.utc)


def test_next_allowed_day_past_end_date_has_no_countdown():
    # Friday end_date, only Mondays allowed
    ch = _challenge(end_date=date(2025, 1, 31), submission_days=["MONDAY"])
    st = evaluate(ch, datetime(2025, 1, 28, 12, 0, tzinfo=timezone.utc), UTC)
    assert st.phase == "active"
    assert st.countdown_target is None
