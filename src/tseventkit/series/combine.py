"""Combine several series into one.

All three operations pool the events of every input series and hand the
pool to a list reducer:

- ``timeseries_list_merge`` joins events sharing a key (``Event.merger``)
- ``timeseries_list_reduce`` reduces their values (``Event.combiner``)
- ``timeseries_list_sum`` is ``timeseries_list_reduce`` with ``functions.sum()``

Meta for the result comes from the keyword arguments, never from the inputs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from tseventkit.core.errors import ConfigError
from tseventkit.core.types import FieldSpec, Reducer
from tseventkit.event import Event
from tseventkit.series import functions
from tseventkit.series.collection import SortedCollection
from tseventkit.series.timeseries import TimeSeries, build_metadata
from tseventkit.time.keys import UTC, Index

logger = logging.getLogger(__name__)

EventListReducer = Callable[[Iterable[Event]], list[Event]]


def _check_series_list(series_list: Any) -> None:
    if not isinstance(series_list, Sequence) or isinstance(series_list, (str, bytes)):
        raise ConfigError(
            "A list of TimeSeries must be supplied to reduce",
            context={"got": type(series_list).__name__},
        )
    if not series_list:
        raise ConfigError("A list of TimeSeries must be supplied to reduce", context={"size": 0})
    for pos, series in enumerate(series_list):
        if not isinstance(series, TimeSeries):
            raise ConfigError(
                "Every item of the list must be a TimeSeries",
                context={"pos": pos, "got": type(series).__name__},
            )


def timeseries_list_event_reduce(
    series_list: Sequence[TimeSeries],
    reducer: EventListReducer,
    name: str = "",
    tz: str = UTC,
    index: Index | str | None = None,
    meta: Mapping[str, Any] | None = None,
) -> TimeSeries:
    """Pool the events of ``series_list`` and apply a list reducer to them.

    Raises:
        ConfigError: If ``series_list`` is empty or not a list of series, or
            if ``reducer`` is not callable.
    """
    _check_series_list(series_list)
    if not callable(reducer):
        raise ConfigError(
            "reducer function must be supplied, for example Event.merger()",
            context={"reducer": repr(reducer)},
        )
    pool = [e for series in series_list for e in series.events()]
    events = reducer(pool)
    logger.debug("Reduced %d events from %d series to %d", len(pool), len(series_list), len(events))
    return TimeSeries(SortedCollection(events), build_metadata(name, tz, index, meta))


def timeseries_list_merge(
    series_list: Sequence[TimeSeries],
    deep: bool = False,
    name: str = "",
    tz: str = UTC,
    index: Index | str | None = None,
    meta: Mapping[str, Any] | None = None,
) -> TimeSeries:
    """Merge series whose events share keys into one series.

    Example:
        >>> merged = timeseries_list_merge([in_series, out_series], name="traffic")
        >>> merged.columns()
        ['in', 'out']
    """
    return timeseries_list_event_reduce(
        series_list, Event.merger(deep), name=name, tz=tz, index=index, meta=meta
    )


def timeseries_list_reduce(
    series_list: Sequence[TimeSeries],
    reducer: Reducer,
    field_spec: FieldSpec | None = None,
    name: str = "",
    tz: str = UTC,
    index: Index | str | None = None,
    meta: Mapping[str, Any] | None = None,
) -> TimeSeries:
    """Reduce the values of events that share a key across series."""
    return timeseries_list_event_reduce(
        series_list, Event.combiner(field_spec, reducer), name=name, tz=tz, index=index, meta=meta
    )


def timeseries_list_sum(
    series_list: Sequence[TimeSeries],
    field_spec: FieldSpec | None = None,
    name: str = "",
    tz: str = UTC,
    index: Index | str | None = None,
    meta: Mapping[str, Any] | None = None,
) -> TimeSeries:
    return timeseries_list_reduce(
        series_list, functions.sum(), field_spec, name=name, tz=tz, index=index, meta=meta
    )


__all__ = [
    "timeseries_list_event_reduce",
    "timeseries_list_merge",
    "timeseries_list_reduce",
    "timeseries_list_sum",
]
