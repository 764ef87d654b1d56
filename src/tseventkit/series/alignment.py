"""Align engine: resample irregular events onto a regular time grid.

Given events at arbitrary instants, emits one event on every ``period``
boundary (epoch aligned) between the first and last event. The value at a
boundary is interpolated from the two events that bracket it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tseventkit.core.config import AlignOptions
from tseventkit.core.errors import KeyTypeError
from tseventkit.core.types import AlignMethod, KeyType
from tseventkit.event import Event, field_spec_paths, is_valid_number
from tseventkit.time.keys import Time

logger = logging.getLogger(__name__)


def align_events(events: Iterable[Event], options: AlignOptions) -> list[Event]:
    """Return events on the ``options.period`` grid.

    Output events carry only the aligned fields. When two consecutive input
    events are more than ``limit`` boundaries apart, the boundaries between
    them get None instead of an interpolated value.

    Raises:
        KeyTypeError: If any event is not keyed by Time.
    """
    source = list(events)
    for e in source:
        if e.key_type is not KeyType.TIME:
            raise KeyTypeError(
                "Only time keyed series can be aligned",
                context={"key_type": str(e.key_type)},
            )

    period = options.period.ms
    paths = field_spec_paths(options.field_spec)
    aligned: list[Event] = []
    previous: Event | None = None
    for e in source:
        if previous is None:
            if e.begin() % period == 0:
                aligned.append(e.select(paths))
            previous = e
            continue

        boundaries = _boundaries(previous.begin(), e.begin(), period)
        bridged = options.limit is None or len(boundaries) <= options.limit
        for boundary in boundaries:
            if not bridged:
                values = {path: None for path in paths}
            elif options.method is AlignMethod.HOLD:
                values = {path: previous.get(path) for path in paths}
            else:
                values = {path: _interpolate(previous, e, boundary, path) for path in paths}
            aligned.append(Event(Time(boundary)).with_fields(values))
        previous = e

    logger.debug("Aligned %d events onto %d boundaries of %s", len(source), len(aligned), options.period)
    return aligned


def _boundaries(previous_ms: int, current_ms: int, period: int) -> list[int]:
    """Grid points ``b`` with ``previous_ms < b <= current_ms``."""
    first = previous_ms // period + 1
    last = current_ms // period
    return [k * period for k in range(first, last + 1)]


def _interpolate(previous: Event, current: Event, boundary: int, path: tuple[str, ...]):
    v0 = previous.get(path)
    v1 = current.get(path)
    if not (is_valid_number(v0) and is_valid_number(v1)):
        return None
    t0 = previous.begin()
    t1 = current.begin()
    f = (boundary - t0) / (t1 - t0)
    return v0 + f * (v1 - v0)


__all__ = ["align_events"]
