"""Window definitions used to bucket events by time.

A window definition maps an instant to the keys of every window that
contains it. Fixed and sliding windows are aligned to the UNIX epoch and so
are independent of the display timezone; calendar windows follow local
midnight (or month/year start) in a named timezone.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

from tseventkit.core.errors import ConfigError
from tseventkit.time.keys import UTC, Duration, Index, duration, to_timestamp

CalendarUnit = Literal["day", "month", "year"]

_CALENDAR_FORMATS: dict[str, str] = {
    "day": "%Y-%m-%d",
    "month": "%Y-%m",
    "year": "%Y",
}


class WindowDef(ABC):
    """Strategy that assigns instants to window keys."""

    tz: str = UTC

    @abstractmethod
    def index_keys(self, ms: int) -> list[str]:
        """Keys of every window containing ``ms``, earliest first."""

    def to_index(self, key: str) -> Index:
        """Resolve a window key to its Index."""
        return Index(key, self.tz)

    def is_closed(self, key: str, ms: int) -> bool:
        """True once an event at ``ms`` can no longer fall in window ``key``.

        Events are visited in time order, so a window is closed as soon as
        the current instant reaches its end.
        """
        return self.to_index(key).end() <= ms


@dataclass(frozen=True)
class FixedWindow(WindowDef):
    """Tumbling windows of one duration, aligned to the epoch."""

    size: Duration

    def index_keys(self, ms: int) -> list[str]:
        return [f"{self.size}-{ms // self.size.ms}"]

    def __str__(self) -> str:
        return str(self.size)


@dataclass(frozen=True)
class SlidingWindow(WindowDef):
    """Windows of ``size`` starting every ``period``; they overlap when
    ``size > period``."""

    size: Duration
    period: Duration

    def index_keys(self, ms: int) -> list[str]:
        first = (ms - self.size.ms) // self.period.ms + 1
        last = ms // self.period.ms
        return [f"{self.size}@{self.period}-{k}" for k in range(first, last + 1)]

    def __str__(self) -> str:
        return f"{self.size}@{self.period}"


@dataclass(frozen=True)
class CalendarWindow(WindowDef):
    """Local calendar day, month or year in a timezone."""

    unit: CalendarUnit
    tz: str = UTC

    def __post_init__(self) -> None:
        if self.unit not in _CALENDAR_FORMATS:
            raise ConfigError(
                f"Invalid calendar window unit: {self.unit!r}",
                context={"unit": self.unit, "allowed": list(_CALENDAR_FORMATS)},
            )

    def index_keys(self, ms: int) -> list[str]:
        return [to_timestamp(ms, self.tz).strftime(_CALENDAR_FORMATS[self.unit])]

    def __str__(self) -> str:
        return f"{self.unit}({self.tz})"


def window(size: Duration | str | int, period: Duration | str | int | None = None) -> WindowDef:
    """Fixed window of ``size``, or a sliding one when ``period`` differs."""
    size_d = duration(size)
    if period is None:
        return FixedWindow(size_d)
    period_d = duration(period)
    if period_d.ms == size_d.ms:
        return FixedWindow(size_d)
    return SlidingWindow(size_d, period_d)


def daily(tz: str = UTC) -> CalendarWindow:
    return CalendarWindow("day", tz)


def monthly(tz: str = UTC) -> CalendarWindow:
    return CalendarWindow("month", tz)


def yearly(tz: str = UTC) -> CalendarWindow:
    return CalendarWindow("year", tz)


def resolve_window(value: WindowDef | Duration | str | int) -> WindowDef:
    """Accept a window definition or anything ``duration`` accepts."""
    if isinstance(value, WindowDef):
        return value
    return window(value)


__all__ = [
    "WindowDef",
    "FixedWindow",
    "SlidingWindow",
    "CalendarWindow",
    "window",
    "daily",
    "monthly",
    "yearly",
    "resolve_window",
]
