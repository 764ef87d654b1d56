"""Event keys: instants, time ranges and named indexes.

All instants are integer epoch milliseconds in UTC. Calendar arithmetic
(local days, months, years) is delegated to pandas so that DST transitions
are handled by the timezone database.
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import numpy as np
import pandas as pd

from tseventkit.core.errors import ConfigError
from tseventkit.core.types import KeyType

UTC = "Etc/UTC"

_UNIT_MS: dict[str, int] = {
    "w": 7 * 24 * 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "h": 60 * 60 * 1000,
    "m": 60 * 1000,
    "s": 1000,
    "ms": 1,
}

_DURATION_PATTERN = re.compile(r"^(\d+)(ms|s|m|h|d|w)$")
_WINDOW_INDEX_PATTERN = re.compile(
    r"^(\d+(?:ms|s|m|h|d|w))(?:@(\d+(?:ms|s|m|h|d|w)))?-(-?\d+)$"
)
_DAY_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")
_YEAR_PATTERN = re.compile(r"^(\d{4})$")


def to_ms(value: Any) -> int:
    """Coerce an instant to epoch milliseconds.

    Accepts ints (already milliseconds), floats, ``datetime``,
    ``pandas.Timestamp``, ``numpy.datetime64`` and ISO strings. Naive
    datetimes are taken to be UTC.

    Raises:
        ConfigError: If the value can not be read as an instant.
    """
    if isinstance(value, bool):
        raise ConfigError("instant must not be a bool", context={"value": value})
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        if math.isnan(value) or math.isinf(value):
            raise ConfigError("instant must be finite", context={"value": value})
        return int(value)
    if isinstance(value, (datetime, np.datetime64, str)):
        try:
            ts = pd.Timestamp(value)
        except ValueError as exc:
            raise ConfigError(
                f"Could not parse instant: {value!r}", context={"value": value}
            ) from exc
        if ts.tzinfo is None:
            ts = ts.tz_localize("UTC")
        return int(ts.value // 1_000_000)
    raise ConfigError(
        f"Unsupported instant type: {type(value).__name__}",
        context={"value": repr(value)},
    )


def to_timestamp(ms: int, tz: str = UTC) -> pd.Timestamp:
    """Return the instant as a timezone-aware pandas Timestamp."""
    return pd.Timestamp(ms, unit="ms", tz="UTC").tz_convert(_zone(tz))


def _zone(tz: str) -> str:
    # pandas knows Etc/UTC, but "UTC" keeps the output readable
    return "UTC" if tz in ("Etc/UTC", "UTC") else tz


def _localize(wall: pd.Timestamp, tz: str) -> pd.Timestamp:
    # Some zones skip or repeat local midnight; use the first instant of the day
    try:
        return wall.tz_localize(_zone(tz), ambiguous=True, nonexistent="shift_forward")
    except (KeyError, ValueError) as exc:
        raise ConfigError(
            f"Invalid calendar date or timezone: {wall.date()} {tz}",
            context={"tz": tz},
        ) from exc


def _calendar_bounds(start: pd.Timestamp, step: pd.DateOffset, tz: str) -> tuple[int, int]:
    begin = _localize(start, tz)
    end = _localize(start + step, tz)
    return int(begin.value // 1_000_000), int(end.value // 1_000_000)


@dataclass(frozen=True)
class Duration:
    """A positive length of time in milliseconds.

    Parsed from strings such as ``"30s"``, ``"5m"``, ``"1h"``, ``"1d"`` or
    ``"100ms"``; the original label is kept for window keys.
    """

    ms: int
    label: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if self.ms <= 0:
            raise ConfigError(
                f"duration must be positive, got {self.ms}ms",
                context={"duration": self.ms},
            )
        if not self.label:
            object.__setattr__(self, "label", _format_duration(self.ms))

    @classmethod
    def parse(cls, text: str) -> Duration:
        match = _DURATION_PATTERN.match(text.strip())
        if not match:
            raise ConfigError(
                f"Invalid duration string: {text!r}",
                context={"duration": text, "allowed_units": list(_UNIT_MS)},
                fix_hint="Use <n><unit> with unit one of ms, s, m, h, d, w",
            )
        count, unit = match.groups()
        return cls(int(count) * _UNIT_MS[unit], label=text.strip())

    def __str__(self) -> str:
        return self.label


def _format_duration(ms: int) -> str:
    for unit, size in _UNIT_MS.items():
        if ms % size == 0:
            return f"{ms // size}{unit}"
    return f"{ms}ms"


def duration(value: Duration | str | int) -> Duration:
    """Build a Duration from a string, a millisecond count or a Duration."""
    if isinstance(value, Duration):
        return value
    if isinstance(value, str):
        return Duration.parse(value)
    if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
        return Duration(int(value))
    raise ConfigError(
        f"Unsupported duration: {value!r}",
        context={"duration": repr(value)},
    )


class Key(ABC):
    """Capability surface shared by every key variant."""

    key_type: KeyType

    @abstractmethod
    def begin(self) -> int:
        """First instant covered by the key (epoch ms)."""

    @abstractmethod
    def end(self) -> int:
        """Last instant covered by the key (epoch ms)."""

    @abstractmethod
    def to_json(self) -> Any:
        """Wire-format representation of the key."""

    def timestamp(self) -> int:
        return self.begin()


@dataclass(frozen=True)
class Time(Key):
    """A single instant."""

    ms: int
    key_type = KeyType.TIME

    def begin(self) -> int:
        return self.ms

    def end(self) -> int:
        return self.ms

    def to_json(self) -> int:
        return self.ms

    def to_timestamp(self, tz: str = UTC) -> pd.Timestamp:
        return to_timestamp(self.ms, tz)

    def __str__(self) -> str:
        return str(self.ms)


@dataclass(frozen=True)
class TimeRange(Key):
    """A closed interval between two instants."""

    begin_ms: int
    end_ms: int
    key_type = KeyType.TIMERANGE

    def __post_init__(self) -> None:
        if self.begin_ms > self.end_ms:
            raise ConfigError(
                "timerange begin must not be after its end",
                context={"begin": self.begin_ms, "end": self.end_ms},
            )

    def begin(self) -> int:
        return self.begin_ms

    def end(self) -> int:
        return self.end_ms

    def duration(self) -> int:
        return self.end_ms - self.begin_ms

    def contains(self, t: Any) -> bool:
        ms = t if isinstance(t, int) else to_ms(t)
        return self.begin_ms <= ms <= self.end_ms

    def overlaps(self, other: Key) -> bool:
        return self.begin_ms <= other.end() and other.begin() <= self.end_ms

    def to_json(self) -> list[int]:
        return [self.begin_ms, self.end_ms]

    def __str__(self) -> str:
        return f"[{self.begin_ms}, {self.end_ms}]"


@dataclass(frozen=True)
class Index(Key):
    """A named interval such as ``"1d-16314"`` or ``"2017-01-31"``.

    Fixed and sliding window indexes are epoch aligned and ignore ``tz``;
    calendar indexes cover the local day, month or year in ``tz``.
    """

    value: str
    tz: str = UTC
    _begin: int = field(init=False, repr=False, compare=False)
    _end: int = field(init=False, repr=False, compare=False)
    key_type = KeyType.INDEX

    def __post_init__(self) -> None:
        if _WINDOW_INDEX_PATTERN.match(self.value):
            object.__setattr__(self, "tz", UTC)
        begin, end = _resolve_index(self.value, self.tz)
        object.__setattr__(self, "_begin", begin)
        object.__setattr__(self, "_end", end)

    def begin(self) -> int:
        return self._begin

    def end(self) -> int:
        return self._end

    def as_string(self) -> str:
        return self.value

    def as_timerange(self) -> TimeRange:
        return TimeRange(self._begin, self._end)

    def to_json(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


def _resolve_index(value: str, tz: str) -> tuple[int, int]:
    match = _WINDOW_INDEX_PATTERN.match(value)
    if match:
        size = Duration.parse(match.group(1))
        k = int(match.group(3))
        if match.group(2):
            period = Duration.parse(match.group(2))
            begin = k * period.ms
        else:
            begin = k * size.ms
        return begin, begin + size.ms

    match = _DAY_PATTERN.match(value)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _calendar_bounds(_wall(value, year, month, day), pd.DateOffset(days=1), tz)
    match = _MONTH_PATTERN.match(value)
    if match:
        start = _wall(value, int(match.group(1)), int(match.group(2)), 1)
        return _calendar_bounds(start, pd.DateOffset(months=1), tz)
    match = _YEAR_PATTERN.match(value)
    if match:
        return _calendar_bounds(_wall(value, int(match.group(1)), 1, 1), pd.DateOffset(years=1), tz)
    raise ConfigError(
        f"Invalid index string: {value!r}",
        context={"index": value},
        fix_hint='Use "1d-16314", "5m@1m-120", "2017-01-31", "2017-01" or "2017"',
    )


def _wall(value: str, year: int, month: int, day: int) -> pd.Timestamp:
    try:
        return pd.Timestamp(year=year, month=month, day=day)
    except ValueError as exc:
        raise ConfigError(f"Invalid calendar date: {value!r}", context={"index": value}) from exc


def time(value: Any) -> Time:
    """Build a Time key from any instant accepted by ``to_ms``."""
    if isinstance(value, Time):
        return value
    return Time(to_ms(value))


def timerange(begin: Any, end: Any) -> TimeRange:
    return TimeRange(to_ms(begin), to_ms(end))


def index(value: str | Index, tz: str = UTC) -> Index:
    if isinstance(value, Index):
        return value
    return Index(value, tz)


def key_from_json(key_type: str, value: Any, tz: str = UTC) -> Key:
    """Rebuild a key from its wire-format column name and value."""
    if key_type == KeyType.TIME:
        return time(value)
    if key_type == KeyType.TIMERANGE:
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise ConfigError(
                "timerange key must be a [begin, end] pair",
                context={"key": value},
            )
        return timerange(value[0], value[1])
    if key_type == KeyType.INDEX:
        return index(str(value), tz)
    raise ConfigError(
        f"Unknown key column: {key_type!r}",
        context={"key_column": key_type, "allowed": [k.value for k in KeyType]},
    )


__all__ = [
    "UTC",
    "Duration",
    "Key",
    "Time",
    "TimeRange",
    "Index",
    "duration",
    "time",
    "timerange",
    "index",
    "key_from_json",
    "to_ms",
    "to_timestamp",
]
