"""Rate engine: per-second first differences between consecutive events."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tseventkit.core.config import RateOptions
from tseventkit.event import Event, field_spec_paths, is_valid_number
from tseventkit.time.keys import TimeRange

logger = logging.getLogger(__name__)


def rate_events(events: Iterable[Event], options: RateOptions) -> list[Event]:
    """One TimeRange keyed event per consecutive pair of input events.

    Each output field holds ``(v2 - v1) / seconds`` under the same field
    path. Non-numeric values and pairs with no elapsed time give None, as
    do negative rates when ``allow_negative`` is False.
    """
    source = list(events)
    if len(source) < 2:
        return []

    paths = field_spec_paths(options.field_spec)
    rates: list[Event] = []
    stalled = 0
    for previous, current in zip(source, source[1:]):
        seconds = (current.begin() - previous.begin()) / 1000
        if seconds <= 0:
            stalled += 1
        values = {}
        for path in paths:
            v0 = previous.get(path)
            v1 = current.get(path)
            rate = None
            if seconds > 0 and is_valid_number(v0) and is_valid_number(v1):
                rate = (v1 - v0) / seconds
                if not options.allow_negative and rate < 0:
                    rate = None
            values[path] = rate
        key = TimeRange(previous.begin(), current.begin())
        rates.append(Event(key).with_fields(values))

    if stalled:
        logger.warning("%d event pairs share a timestamp; their rate is None", stalled)
    return rates


__all__ = ["rate_events"]
