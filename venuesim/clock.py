# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# clock.py
# -----------------------------------------------------------------------------
# Purpose:
#   Game-clock primitives: GameTime snapshots, a GameClock that advances in
#   fixed ticks, the minute-difference helper used by every timed state, and
#   the Event record handed to observers.
#
# Design notes:
#   - The clock advances minute by minute so hour/day/month/year rollover and
#     the weekday cycle (1 = Monday .. 7 = Sunday) stay consistent.
#   - minutes_between() adds a flat day whenever any higher unit increased.
#     It is NOT a calendar delta; waits spanning several days are understated.
#
# Usage:
#   from venuesim.clock import GameClock, GameTime, minutes_between
# -----------------------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional

_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_leap_year(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def days_in_month(month: int, year: int) -> int:
    if month == 2 and is_leap_year(year):
        return 29
    return _DAYS_IN_MONTH[month - 1]


@dataclass(frozen=True)
class GameTime:
    year: int = 2025
    month: int = 1
    day: int = 1
    hour: int = 8
    minute: int = 0
    day_of_week: int = 1   # 1 = Monday .. 7 = Sunday

    @classmethod
    def from_cfg(cls, d: Optional[dict]) -> "GameTime":
        d = d or {}
        return cls(
            year=int(d.get("year", 2025)),
            month=int(d.get("month", 1)),
            day=int(d.get("day", 1)),
            hour=int(d.get("hour", 8)),
            minute=int(d.get("minute", 0)),
            day_of_week=int(d.get("day_of_week", 1)),
        )

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d} {self.hour:02d}:{self.minute:02d}"


def minutes_between(start: Optional[GameTime], end: Optional[GameTime]) -> int:
    """Minutes from start to end, 0 if either snapshot is missing."""
    if start is None or end is None:
        return 0
    minutes = (end.hour - start.hour) * 60 + (end.minute - start.minute)
    if end.day > start.day or end.month > start.month or end.year > start.year:
        minutes += 24 * 60
    return minutes


def advance_time(t: GameTime, minutes: int) -> GameTime:
    """Return t moved forward by a whole number of minutes."""
    year, month, day = t.year, t.month, t.day
    hour, minute, dow = t.hour, t.minute, t.day_of_week
    for _ in range(int(minutes)):
        minute += 1
        if minute < 60:
            continue
        minute = 0
        hour += 1
        if hour < 24:
            continue
        hour = 0
        day += 1
        dow = dow % 7 + 1
        if day > days_in_month(month, year):
            day = 1
            month += 1
            if month > 12:
                month = 1
                year += 1
    return replace(t, year=year, month=month, day=day, hour=hour, minute=minute, day_of_week=dow)


class Event:
    """Notification emitted to observers (arrival, seated, paid, ...)."""
    __slots__ = ("t", "kind", "data")
    def __init__(self, t: GameTime, kind: str, data: dict):
        self.t = t; self.kind = kind; self.data = data

    def __repr__(self) -> str:
        return f"Event({self.t}, {self.kind!r})"


class GameClock:
    """Tick-driven game clock.

    Attributes
    ----------
    now : GameTime
        Current in-game timestamp.
    ticks : int
        Number of ticks advanced so far (0 before the first tick).
    tick_minutes : int
        Game minutes per tick.
    """
    def __init__(self, start: Optional[GameTime] = None, tick_minutes: int = 15):
        if tick_minutes <= 0:
            raise ValueError(f"tick_minutes must be positive, got {tick_minutes}")
        self.now: GameTime = start or GameTime()
        self.ticks: int = 0
        self.tick_minutes = int(tick_minutes)

    def tick(self) -> GameTime:
        self.now = advance_time(self.now, self.tick_minutes)
        self.ticks += 1
        return self.now

    def minutes_since(self, t: Optional[GameTime]) -> int:
        return minutes_between(t, self.now)
