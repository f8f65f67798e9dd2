"""Tests for the release calendar arithmetic."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

import pytest

from aoctools.clock import (
    ChallengeClock,
    get_current_day,
    get_current_year,
    validate_day_and_year,
)
from aoctools.errors import OutOfSeasonError, ValidationError


def at(year, month, day, hour=0, minute=0, second=0) -> datetime:
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)


def clock_at(now: datetime) -> ChallengeClock:
    return ChallengeClock(now=lambda: now)


def test_challenge_start_time_is_five_utc_on_december_day() -> None:
    for year in (2015, 2020, 2024):
        starts = [ChallengeClock.challenge_start_time(year, day) for day in range(1, 26)]
        for day, start in enumerate(starts, start=1):
            assert start == at(year, 12, day, 5)
            assert start.utcoffset() == timedelta(0)
        assert starts == sorted(starts)
        assert len(set(starts)) == 25
        assert starts[-1] < ChallengeClock.challenge_start_time(year + 1, 1)


@pytest.mark.parametrize("day,year", [(0, 2020), (26, 2020), (-1, 2020), (1, 2014)])
def test_invalid_day_or_year_fails_validation(day, year) -> None:
    with pytest.raises(ValidationError):
        validate_day_and_year(day, year)
    with pytest.raises(ValidationError):
        ChallengeClock.challenge_start_time(year, day)


def test_next_start_just_before_release_is_that_release() -> None:
    release = at(2023, 12, 3, 5)
    clock = clock_at(release - timedelta(seconds=1))
    assert clock.next_challenge_start() == release


def test_next_start_just_after_release_is_following_day() -> None:
    release = at(2023, 12, 3, 5)
    clock = clock_at(release + timedelta(seconds=1))
    assert clock.next_challenge_start() == at(2023, 12, 4, 5)


def test_next_start_outside_season() -> None:
    assert clock_at(at(2023, 6, 1)).next_challenge_start() == at(2023, 12, 1, 5)
    assert clock_at(at(2023, 12, 1, 4, 59)).next_challenge_start() == at(2023, 12, 1, 5)
    assert clock_at(at(2023, 12, 25, 6)).next_challenge_start() == at(2024, 12, 1, 5)
    assert clock_at(at(2023, 12, 31, 23)).next_challenge_start() == at(2024, 12, 1, 5)


def test_next_start_exactly_at_last_release_rolls_to_day_26() -> None:
    assert clock_at(at(2023, 12, 25, 5)).next_challenge_start() == at(2023, 12, 26, 5)


def test_prev_start_within_season() -> None:
    assert clock_at(at(2023, 12, 3, 4, 59)).prev_challenge_start() == at(2023, 12, 2, 5)
    assert clock_at(at(2023, 12, 3, 5, 0, 1)).prev_challenge_start() == at(2023, 12, 3, 5)
    assert clock_at(at(2023, 12, 26)).prev_challenge_start() == at(2023, 12, 25, 5)


def test_prev_start_before_december_uses_following_year() -> None:
    assert clock_at(at(2023, 11, 30, 12)).prev_challenge_start() == at(2024, 12, 1, 5)


def test_current_start_within_margin_is_previous() -> None:
    release = at(2023, 12, 10, 5)
    clock = clock_at(release + timedelta(hours=22, minutes=59, seconds=59))
    assert clock.current_challenge_start_time() == release
    assert clock.current_challenge_start_time() == clock.prev_challenge_start()


def test_current_start_after_margin_is_next() -> None:
    release = at(2023, 12, 10, 5)
    clock = clock_at(release + timedelta(hours=23, seconds=1))
    assert clock.current_challenge_start_time() == at(2023, 12, 11, 5)
    assert clock.current_challenge_start_time() == clock.next_challenge_start()


def test_current_start_respects_custom_margin() -> None:
    release = at(2023, 12, 10, 5)
    clock = clock_at(release + timedelta(minutes=30))
    assert clock.current_challenge_start_time(margin=timedelta(minutes=31)) == release
    assert clock.current_challenge_start_time(margin=timedelta(minutes=29)) == at(2023, 12, 11, 5)


def test_explicit_now_is_converted_to_utc() -> None:
    plus_nine = timezone(timedelta(hours=9))
    # 13:59 in UTC+9 is 04:59 UTC, one minute before the day 3 release
    local = datetime(2023, 12, 3, 13, 59, tzinfo=plus_nine)
    assert ChallengeClock().next_challenge_start(local) == at(2023, 12, 3, 5)


def test_current_day_and_year() -> None:
    assert get_current_day(at(2023, 12, 7, 1)) == 7
    assert get_current_year(at(2023, 12, 7, 1)) == 2023
    with pytest.raises(OutOfSeasonError, match="not started"):
        get_current_day(at(2023, 11, 30))
    with pytest.raises(OutOfSeasonError, match="over"):
        get_current_day(at(2023, 12, 26))


@pytest.fixture
def local_time_ahead_of_utc(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "JST-9")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_naive_now_is_read_as_utc(local_time_ahead_of_utc) -> None:
    naive = datetime(2023, 12, 3, 4, 59)
    clock = ChallengeClock(now=lambda: naive)
    assert clock.now() == at(2023, 12, 3, 4, 59)
    assert clock.next_challenge_start() == at(2023, 12, 3, 5)
    assert clock.prev_challenge_start(naive) == at(2023, 12, 2, 5)
    assert get_current_day(datetime(2023, 12, 25, 23, 30)) == 25
    assert get_current_year(datetime(2023, 12, 31, 23, 30)) == 2023
