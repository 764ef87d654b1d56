"""Fill engine: repair missing values in selected fields.

A value is invalid when it is None, NaN or absent from the event. Each
field path is processed independently with its own run counter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from tseventkit.core.config import FillOptions
from tseventkit.core.types import FillMethod
from tseventkit.event import Event, field_spec_paths, is_missing, is_valid_number, path_name

logger = logging.getLogger(__name__)

_NOTHING = object()


def fill_events(events: Iterable[Event], options: FillOptions) -> list[Event]:
    """Return the events with invalid values repaired per ``options``."""
    result = list(events)
    for path in field_spec_paths(options.field_spec):
        if options.method is FillMethod.LINEAR:
            result = _fill_linear(result, path, options.limit)
        else:
            result = _fill_hold(result, path, options.method, options.limit)
    return result


def _fill_hold(
    events: list[Event],
    path: tuple[str, ...],
    method: FillMethod,
    limit: int | None,
) -> list[Event]:
    """Zero or pad fill in a single forward pass."""
    filled: list[Event] = []
    last_valid = _NOTHING
    run = 0
    repaired = 0
    for e in events:
        value = e.get(path)
        if not is_missing(value):
            last_valid = value
            run = 0
            filled.append(e)
            continue

        if limit is not None and run >= limit:
            filled.append(e)
            continue
        if method is FillMethod.ZERO:
            replacement = 0
        elif last_valid is _NOTHING:
            # pad with nothing seen yet
            filled.append(e)
            continue
        else:
            replacement = last_valid

        run += 1
        repaired += 1
        filled.append(e.with_field(path, replacement))

    logger.debug("%s fill repaired %d values in %s", method, repaired, path_name(path))
    return filled


def _fill_linear(
    events: list[Event],
    path: tuple[str, ...],
    limit: int | None,
) -> list[Event]:
    """Interpolate each run of invalid values between its two valid anchors.

    Runs with no anchor on either side are left untouched, as are runs
    whose anchors are not numbers.
    """
    filled = list(events)
    n = len(events)
    prev_idx: int | None = None
    repaired = 0
    i = 0
    while i < n:
        if not is_missing(events[i].get(path)):
            prev_idx = i
            i += 1
            continue

        run_start = i
        while i < n and is_missing(events[i].get(path)):
            i += 1
        if prev_idx is None or i == n:
            continue

        prev_value = events[prev_idx].get(path)
        next_value = events[i].get(path)
        if not (is_valid_number(prev_value) and is_valid_number(next_value)):
            continue

        run_length = i - run_start
        count = run_length if limit is None else min(limit, run_length)
        for k in range(count):
            frac = (k + 1) / (run_length + 1)
            value = prev_value + (next_value - prev_value) * frac
            filled[run_start + k] = events[run_start + k].with_field(path, value)
        repaired += count

    logger.debug("linear fill repaired %d values in %s", repaired, path_name(path))
    return filled


__all__ = ["fill_events"]
