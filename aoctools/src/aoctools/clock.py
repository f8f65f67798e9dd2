"""
Challenge release calendar.

Puzzles unlock once a day at 05:00 UTC from December 1 to December 25.
:class:`ChallengeClock` answers "when is the next/previous/current
release?" relative to an injectable notion of *now*, which keeps the
date arithmetic testable without patching the system clock.  All
instants are timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .config import Settings
from .errors import OutOfSeasonError, ValidationError


RELEASE_HOUR = 5
FIRST_DAY = 1
LAST_DAY = 25
FIRST_YEAR = 2015
DECEMBER = 12


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _release(year: int, day: int) -> datetime:
    return datetime(year, DECEMBER, day, RELEASE_HOUR, tzinfo=timezone.utc)


def as_utc(now: datetime) -> datetime:
    """Convert ``now`` to UTC, reading naive datetimes as UTC rather than local time."""
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def validate_day_and_year(day: int, year: int) -> None:
    """Raise :class:`ValidationError` unless ``day`` is 1-25 and ``year`` >= 2015."""
    if day < FIRST_DAY or day > LAST_DAY:
        raise ValidationError("day must be between 1 and 25")
    if year < FIRST_YEAR:
        raise ValidationError("year must be 2015 or greater")


def get_current_year(now: Optional[datetime] = None) -> int:
    return as_utc(now or utc_now()).year


def get_current_day(now: Optional[datetime] = None) -> int:
    """Return today's puzzle day.

    Raises:
        OutOfSeasonError: if today (UTC) is not December 1-25.
    """
    now = as_utc(now or utc_now())
    if now.month != DECEMBER:
        raise OutOfSeasonError("Advent of Code has not started yet")
    if now.day > LAST_DAY:
        raise OutOfSeasonError("Advent of Code is over")
    return now.day


class ChallengeClock:
    """Compute release instants relative to the current time."""

    def __init__(
        self,
        now: Callable[[], datetime] = utc_now,
        settings: Optional[Settings] = None,
    ) -> None:
        self._now = now
        self.settings = settings or Settings()

    def now(self) -> datetime:
        return as_utc(self._now())

    def next_challenge_start(self, now: Optional[datetime] = None) -> datetime:
        """Return the earliest release that has not happened yet.

        Before December 1 this is December 1 of the current year; after
        the last release it is December 1 of the following year.
        """
        now = as_utc(now) if now else self.now()
        first = _release(now.year, FIRST_DAY)
        last = _release(now.year, LAST_DAY)
        if now < first:
            return first
        if now > last:
            return _release(now.year + 1, FIRST_DAY)
        today = _release(now.year, now.day)
        return today + timedelta(days=1) if now.hour >= RELEASE_HOUR else today

    def prev_challenge_start(self, now: Optional[datetime] = None) -> datetime:
        """Return the most recent release.

        Before December 1 this yields December 1 of *next* year rather than
        December 25 of last year; callers relying on
        :meth:`current_challenge_start_time` see that instant as current.
        """
        now = as_utc(now) if now else self.now()
        first = _release(now.year, FIRST_DAY)
        last = _release(now.year, LAST_DAY)
        if now < first:
            return _release(now.year + 1, FIRST_DAY)
        if now > last:
            return last
        today = _release(now.year, now.day)
        return today - timedelta(days=1) if now.hour < RELEASE_HOUR else today

    def current_challenge_start_time(
        self,
        margin: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> datetime:
        """Return the previous release while within ``margin`` of it, else the next one."""
        if margin is None:
            margin = self.settings.challenge_margin
        now = as_utc(now) if now else self.now()
        prev = self.prev_challenge_start(now)
        if now - prev < margin:
            return prev
        return self.next_challenge_start(now)

    @staticmethod
    def challenge_start_time(year: int, day: int) -> datetime:
        """Map a (year, day) pair to its release instant."""
        validate_day_and_year(day, year)
        return _release(year, day)


__all__ = [
    "ChallengeClock",
    "as_utc",
    "get_current_day",
    "get_current_year",
    "utc_now",
    "validate_day_and_year",
]
