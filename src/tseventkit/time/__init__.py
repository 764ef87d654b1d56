"""Time keys, durations and window definitions."""

from .keys import (
    UTC,
    Duration,
    Index,
    Key,
    Time,
    TimeRange,
    duration,
    index,
    key_from_json,
    time,
    timerange,
    to_ms,
    to_timestamp,
)
from .window import (
    CalendarWindow,
    FixedWindow,
    SlidingWindow,
    WindowDef,
    daily,
    monthly,
    resolve_window,
    window,
    yearly,
)

__all__ = [
    # Keys
    "UTC",
    "Key",
    "Time",
    "TimeRange",
    "Index",
    "Duration",
    "duration",
    "time",
    "timerange",
    "index",
    "key_from_json",
    "to_ms",
    "to_timestamp",
    # Windows
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
