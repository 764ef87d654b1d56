"""TimeSeries: a SortedCollection plus metadata.

A TimeSeries is immutable. Every operation that changes events or meta
returns a new TimeSeries; operations that only change meta share the same
collection object, and ``slice`` over the whole series returns a series
that is ``TimeSeries.equal`` to the original.

Construction goes through named factories rather than an option bag:

- ``timeseries(wire)`` dispatches on ``columns[0]`` of a wire dict
- ``time_series`` / ``timerange_series`` / ``indexed_series`` parse one
  key variant each
- ``from_events`` / ``from_collection`` build from events in memory
- ``copy_series`` shares the collection and meta of another series
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from tseventkit.contracts.wire import WireFormat, is_known_key_column
from tseventkit.core.config import (
    AlignOptions,
    FillOptions,
    RateOptions,
    RollupOptions,
)
from tseventkit.core.errors import ConfigError, DataError
from tseventkit.core.types import (
    AlignMethod,
    FieldPath,
    FieldSpec,
    FillMethod,
    InterpolationType,
    KeyType,
    Reducer,
    Trigger,
    ValueFilter,
)
from tseventkit.event import DEFAULT_FIELD, Event
from tseventkit.series.collection import SortedCollection
from tseventkit.time.keys import UTC, Index, Key, TimeRange, key_from_json
from tseventkit.time.window import WindowDef, daily, monthly, yearly
from tseventkit.time.window import window as fixed_window

logger = logging.getLogger(__name__)

_RESERVED_META = ("name", "tz", "index")


def build_metadata(
    name: str | None = "",
    tz: str | None = UTC,
    index: Index | str | None = None,
    extra: Mapping[str, Any] | None = None,
) -> MappingProxyType:
    """Normalize series metadata.

    ``name`` defaults to "" and ``tz`` to "Etc/UTC". An ``index`` is
    validated and stored as its string form.
    """
    meta = {k: v for k, v in (extra or {}).items() if k not in _RESERVED_META}
    meta["name"] = name if isinstance(name, str) else ""
    meta["tz"] = tz if isinstance(tz, str) and tz else UTC
    if index is not None:
        idx = index if isinstance(index, Index) else Index(str(index), meta["tz"])
        meta["index"] = idx.as_string()
    return MappingProxyType(meta)


def _meta_from_mapping(meta: Mapping[str, Any] | None) -> MappingProxyType:
    if isinstance(meta, MappingProxyType):
        return meta
    meta = dict(meta or {})
    return build_metadata(meta.get("name", ""), meta.get("tz", UTC), meta.get("index"), meta)


class TimeSeries:
    """An immutable series of events with a name, timezone and other meta.

    Args:
        collection: Events, sorted on construction if needed
        meta: Metadata mapping; see ``build_metadata``
    """

    __slots__ = ("_collection", "_meta")

    def __init__(
        self,
        collection: SortedCollection | Iterable[Event] | None = None,
        meta: Mapping[str, Any] | None = None,
    ) -> None:
        if not isinstance(collection, SortedCollection):
            collection = SortedCollection(collection)
        self._collection = collection
        self._meta = _meta_from_mapping(meta)

    # Serialization

    def to_json(self) -> dict[str, Any]:
        """Wire form: meta plus ``columns`` and ``points``."""
        first = self._collection.first()
        if first is None:
            return {**self._meta, "columns": [], "points": []}
        columns = self.columns()
        return {
            **self._meta,
            "columns": [str(first.key_type), *columns],
            "points": [e.to_point(columns) for e in self._collection],
        }

    def to_string(self) -> str:
        return json.dumps(self.to_json(), default=str)

    def to_dataframe(self):
        """Events as a pandas DataFrame; see ``tseventkit.series.frame``."""
        from tseventkit.series.frame import to_dataframe

        return to_dataframe(self)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"TimeSeries(name={self.name()!r}, size={self.size()}, timerange={self.timerange()})"

    # Range and access

    def timerange(self) -> TimeRange | None:
        return self._collection.timerange()

    def range(self) -> TimeRange | None:
        return self.timerange()

    def begin(self) -> int | None:
        tr = self.timerange()
        return tr.begin() if tr is not None else None

    def end(self) -> int | None:
        tr = self.timerange()
        return tr.end() if tr is not None else None

    def at(self, pos: int) -> Event:
        return self._collection.at(pos)

    def at_time(self, t: Any) -> Event | None:
        """The event containing or most closely preceding ``t``."""
        pos = self._collection.bisect(t)
        if pos is None:
            return None
        if pos >= self.size():
            return self._collection.last()
        return self._collection.at(pos)

    def at_first(self) -> Event | None:
        return self._collection.first()

    def at_last(self) -> Event | None:
        return self._collection.last()

    def bisect(self, t: Any, from_index: int = 0) -> int | None:
        return self._collection.bisect(t, from_index)

    def slice(self, begin: int | None = None, end: int | None = None) -> TimeSeries:
        return self.set_collection(self._collection.slice(begin, end))

    def crop(self, tr: TimeRange) -> TimeSeries:
        return self.set_collection(self._collection.crop(tr))

    def events(self) -> Iterator[Event]:
        return self._collection.events()

    def event_list(self) -> list[Event]:
        return self._collection.event_list()

    def collection(self) -> SortedCollection:
        return self._collection

    def set_collection(self, collection: SortedCollection | Iterable[Event]) -> TimeSeries:
        """New series over ``collection`` sharing this series' meta."""
        return TimeSeries(collection, self._meta)

    def columns(self) -> list[str]:
        return self._collection.columns()

    def size(self) -> int:
        return self._collection.size()

    def count(self) -> int:
        return self.size()

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Event]:
        return iter(self._collection)

    def size_valid(self, field_spec: FieldSpec = DEFAULT_FIELD) -> int:
        return self._collection.size_valid(field_spec)

    # Metadata

    def name(self) -> str:
        return self._meta["name"]

    def set_name(self, name: str) -> TimeSeries:
        return self.set_meta("name", name)

    def index(self) -> Index | None:
        value = self._meta.get("index")
        return Index(value, self.timezone()) if value is not None else None

    def index_as_string(self) -> str | None:
        idx = self.index()
        return idx.as_string() if idx is not None else None

    def index_as_range(self) -> TimeRange | None:
        idx = self.index()
        return idx.as_timerange() if idx is not None else None

    def timezone(self) -> str:
        return self._meta["tz"]

    def is_utc(self) -> bool:
        return self.timezone() in (UTC, "UTC")

    def meta(self, key: str | None = None) -> Any:
        """The whole meta mapping, or one value when ``key`` is given."""
        if key is None:
            return dict(self._meta)
        return self._meta.get(key)

    def set_meta(self, key: str, value: Any) -> TimeSeries:
        meta = dict(self._meta)
        meta[key] = value
        return TimeSeries(self._collection, _meta_from_mapping(meta))

    # Transforms

    def for_each(self, side_effect: Callable[[Event], Any]) -> int:
        return self._collection.for_each(side_effect)

    def map(self, mapper: Callable[[Event], Event]) -> TimeSeries:
        return self.set_collection(self._collection.map(mapper))

    def flat_map(self, mapper: Callable[[Event], Iterable[Event]]) -> TimeSeries:
        return self.set_collection(self._collection.flat_map(mapper))

    def filter(self, predicate: Callable[[Event], bool]) -> TimeSeries:
        return self.set_collection(self._collection.filter(predicate))

    def select(self, fields: FieldSpec) -> TimeSeries:
        return self.set_collection(self._collection.select(fields))

    def collapse(
        self,
        field_spec_list: FieldSpec,
        name: str,
        reducer: Reducer,
        append: bool = False,
    ) -> TimeSeries:
        """Reduce several fields of each event into a new field ``name``.

        Example:
            >>> ts.collapse(["in", "out"], "total", functions.sum(), append=True)
        """
        return self.set_collection(
            self._collection.collapse(field_spec_list, name, reducer, append)
        )

    def rename_columns(self, rename_map: Mapping[str, str]) -> TimeSeries:
        return self.set_collection(self._collection.rename_columns(rename_map))

    def fill(
        self,
        field_spec: FieldSpec = DEFAULT_FIELD,
        method: FillMethod | str = FillMethod.ZERO,
        limit: int | None = None,
    ) -> TimeSeries:
        options = FillOptions(field_spec=field_spec, method=method, limit=limit)
        return self.set_collection(self._collection.fill(options))

    def align(
        self,
        field_spec: FieldSpec = DEFAULT_FIELD,
        period: Any = "5m",
        method: AlignMethod | str = AlignMethod.LINEAR,
        limit: int | None = None,
    ) -> TimeSeries:
        options = AlignOptions(field_spec=field_spec, period=period, method=method, limit=limit)
        return self.set_collection(self._collection.align(options))

    def rate(
        self,
        field_spec: FieldSpec = DEFAULT_FIELD,
        allow_negative: bool = True,
    ) -> TimeSeries:
        options = RateOptions(field_spec=field_spec, allow_negative=allow_negative)
        return self.set_collection(self._collection.rate(options))

    # Statistics

    def aggregate(self, func: Reducer, field_spec: FieldSpec | None = DEFAULT_FIELD) -> Any:
        return self._collection.aggregate(func, field_spec)

    def sum(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self._collection.sum(field_spec, filter_func)

    def avg(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self._collection.avg(field_spec, filter_func)

    def mean(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self._collection.mean(field_spec, filter_func)

    def max(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self._collection.max(field_spec, filter_func)

    def min(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self._collection.min(field_spec, filter_func)

    def median(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self._collection.median(field_spec, filter_func)

    def stdev(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self._collection.stdev(field_spec, filter_func)

    def percentile(
        self,
        q: float,
        field_path: FieldPath = DEFAULT_FIELD,
        interp: InterpolationType | str = InterpolationType.LINEAR,
        filter_func: ValueFilter | None = None,
    ) -> Any:
        return self._collection.percentile(q, field_path, interp, filter_func)

    def quantile(
        self,
        n: int,
        field_path: FieldPath = DEFAULT_FIELD,
        interp: InterpolationType | str = InterpolationType.LINEAR,
    ) -> list[Any]:
        return self._collection.quantile(n, field_path, interp)

    # Rollups

    def fixed_window_rollup(
        self,
        window: WindowDef | str | int | None = None,
        aggregation: Mapping[str, Any] | None = None,
    ) -> TimeSeries:
        """Aggregate each window into one Index keyed event.

        Args:
            window: Window definition or duration such as "1h"
            aggregation: {output: {input_path: reducer}}

        Raises:
            ConfigError: If window or aggregation is missing or malformed.
        """
        options = RollupOptions(window=window, aggregation=aggregation)
        return self._rollup(options)

    def hourly_rollup(self, aggregation: Mapping[str, Any] | None = None) -> TimeSeries:
        return self._rollup(RollupOptions(window=fixed_window("1h"), aggregation=aggregation))

    def daily_rollup(
        self,
        aggregation: Mapping[str, Any] | None = None,
        timezone: str = UTC,
    ) -> TimeSeries:
        return self._rollup(RollupOptions(window=daily(timezone), aggregation=aggregation))

    def monthly_rollup(
        self,
        aggregation: Mapping[str, Any] | None = None,
        timezone: str = UTC,
    ) -> TimeSeries:
        return self._rollup(RollupOptions(window=monthly(timezone), aggregation=aggregation))

    def yearly_rollup(
        self,
        aggregation: Mapping[str, Any] | None = None,
        timezone: str = UTC,
    ) -> TimeSeries:
        return self._rollup(RollupOptions(window=yearly(timezone), aggregation=aggregation))

    def _rollup(self, options: RollupOptions) -> TimeSeries:
        windowed = self._collection.window(options.window, Trigger.ON_DISCARDED_WINDOW)
        aggregated = windowed.aggregate(options.aggregation)
        logger.debug("Rolled %d events up into %d windows", self.size(), len(aggregated))
        return self.set_collection(aggregated.flatten())

    def collect_by_window(
        self,
        window: WindowDef | str | int | None = None,
        trigger: Trigger | str = Trigger.ON_DISCARDED_WINDOW,
    ) -> dict[str, SortedCollection]:
        """Window key to the collection of events in that window.

        The mapping always holds the complete groups. ``trigger`` is
        validated but only changes ``emissions()`` on the grouping returned
        by ``collection().window(window, trigger)``.
        """
        return self._collection.window(window, trigger).ungroup()

    # Equality

    @staticmethod
    def equal(a: TimeSeries, b: TimeSeries) -> bool:
        """Identity equality: both share the same collection and meta objects."""
        return a._collection is b._collection and a._meta is b._meta

    @staticmethod
    def is_(a: TimeSeries, b: TimeSeries) -> bool:
        """Value equality of meta and events."""
        return dict(a._meta) == dict(b._meta) and SortedCollection.is_(a._collection, b._collection)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeSeries):
            return NotImplemented
        return TimeSeries.is_(self, other)

    __hash__ = None  # type: ignore[assignment]

    # List operations

    @staticmethod
    def timeseries_list_merge(series_list: list[TimeSeries], deep: bool = False, **meta: Any) -> TimeSeries:
        from tseventkit.series.combine import timeseries_list_merge

        return timeseries_list_merge(series_list, deep=deep, **meta)

    @staticmethod
    def timeseries_list_reduce(
        series_list: list[TimeSeries],
        reducer: Reducer,
        field_spec: FieldSpec | None = None,
        **meta: Any,
    ) -> TimeSeries:
        from tseventkit.series.combine import timeseries_list_reduce

        return timeseries_list_reduce(series_list, reducer, field_spec=field_spec, **meta)


# Factories


def _parse_wire(data: Mapping[str, Any] | WireFormat) -> WireFormat:
    if isinstance(data, WireFormat):
        return data
    if not isinstance(data, Mapping):
        raise DataError(
            "Wire data must be a mapping with columns and points",
            context={"got": type(data).__name__},
        )
    try:
        return WireFormat.model_validate(dict(data))
    except ValidationError as exc:
        raise DataError(
            "Invalid wire data",
            context={"errors": exc.errors(include_url=False)},
            fix_hint='Expected {"name": ..., "columns": ["time", ...], "points": [[t, ...], ...]}',
        ) from exc


def _from_wire(wire: WireFormat, key_type: KeyType) -> TimeSeries:
    events = []
    for key_value, fields in wire.rows():
        key: Key = key_from_json(key_type, key_value, wire.tz)
        events.append(Event(key, fields))
    meta = build_metadata(wire.name, wire.tz, wire.index, wire.extra_meta())
    logger.debug("Parsed %d %s points for series %r", len(events), key_type, wire.name)
    return TimeSeries(SortedCollection(events), meta)


def timeseries(data: Mapping[str, Any] | WireFormat) -> TimeSeries:
    """Build a series from wire data, choosing the key type from ``columns[0]``.

    Raises:
        DataError: If the wire data is malformed.
        ConfigError: If ``columns[0]`` is not time, timerange or index.
    """
    wire = _parse_wire(data)
    if not is_known_key_column(wire.key_column):
        raise ConfigError(
            f"Unknown key column: {wire.key_column!r}",
            context={"columns": wire.columns},
            fix_hint='columns[0] must be "time", "timerange" or "index"',
        )
    return _from_wire(wire, KeyType(wire.key_column))


def _check_key_column(wire: WireFormat, key_type: KeyType) -> WireFormat:
    if wire.key_column != key_type:
        raise ConfigError(
            f"Expected key column {str(key_type)!r}, got {wire.key_column!r}",
            context={"columns": wire.columns},
            fix_hint="Use timeseries() to pick the key type from columns[0]",
        )
    return wire


def time_series(data: Mapping[str, Any] | WireFormat) -> TimeSeries:
    return _from_wire(_check_key_column(_parse_wire(data), KeyType.TIME), KeyType.TIME)


def timerange_series(data: Mapping[str, Any] | WireFormat) -> TimeSeries:
    wire = _check_key_column(_parse_wire(data), KeyType.TIMERANGE)
    return _from_wire(wire, KeyType.TIMERANGE)


def indexed_series(data: Mapping[str, Any] | WireFormat) -> TimeSeries:
    wire = _check_key_column(_parse_wire(data), KeyType.INDEX)
    return _from_wire(wire, KeyType.INDEX)


def from_events(
    events: Iterable[Event],
    name: str = "",
    tz: str = UTC,
    index: Index | str | None = None,
    meta: Mapping[str, Any] | None = None,
) -> TimeSeries:
    return TimeSeries(SortedCollection(events), build_metadata(name, tz, index, meta))


def from_collection(
    collection: SortedCollection,
    name: str = "",
    tz: str = UTC,
    index: Index | str | None = None,
    meta: Mapping[str, Any] | None = None,
) -> TimeSeries:
    if not isinstance(collection, SortedCollection):
        raise ConfigError(
            "from_collection expects a SortedCollection",
            context={"got": type(collection).__name__},
        )
    return TimeSeries(collection, build_metadata(name, tz, index, meta))


def copy_series(other: TimeSeries) -> TimeSeries:
    """A new series sharing ``other``'s collection and meta."""
    return TimeSeries(other.collection(), other._meta)


__all__ = [
    "TimeSeries",
    "build_metadata",
    "copy_series",
    "from_collection",
    "from_events",
    "indexed_series",
    "time_series",
    "timerange_series",
    "timeseries",
]
