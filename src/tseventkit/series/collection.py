"""Immutable, time-ordered collection of events.

A ``SortedCollection`` is a view ``(backing tuple, start, stop)`` over events
kept sorted by key begin. Slicing returns a new view over the same backing
tuple; every transform returns a new collection and never touches the
events of an existing one.
"""

from __future__ import annotations

import bisect as _bisect
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from tseventkit.core.errors import ConfigError, EventIndexError
from tseventkit.core.types import (
    FieldPath,
    FieldSpec,
    InterpolationType,
    Reducer,
    Trigger,
    ValueFilter,
)
from tseventkit.event import (
    DEFAULT_FIELD,
    Event,
    field_spec_paths,
    path_name,
)
from tseventkit.series import functions
from tseventkit.time.keys import TimeRange, to_ms

if TYPE_CHECKING:
    from tseventkit.core.config import AlignOptions, FillOptions, RateOptions
    from tseventkit.series.windowing import WindowedCollection
    from tseventkit.time.window import WindowDef

logger = logging.getLogger(__name__)


def _begin(event: Event) -> int:
    return event.key.begin()


def resolve_index(index: int | None, size: int, default: int) -> int:
    """Clamp a possibly negative slice bound into ``[0, size]``."""
    if index is None:
        return default
    if index < 0:
        return max(0, size + index)
    return min(size, index)


class SortedCollection:
    """An immutable sequence of events ordered by key begin.

    Build it from any iterable of events; unsorted input is sorted once
    (stably, so events sharing a begin keep their input order).

    Example:
        >>> c = SortedCollection([Event(2000, {"value": 2}), Event(1000, {"value": 1})])
        >>> [e.timestamp() for e in c]
        [1000, 2000]
    """

    __slots__ = ("_events", "_start", "_stop")

    def __init__(self, events: Iterable[Event] | SortedCollection | None = None) -> None:
        if isinstance(events, SortedCollection):
            self._events = events._events
            self._start = events._start
            self._stop = events._stop
            return

        items = tuple(events) if events is not None else ()
        for e in items:
            if not isinstance(e, Event):
                raise ConfigError(
                    "SortedCollection accepts Event objects only",
                    context={"got": type(e).__name__},
                )
        if not _is_sorted(items):
            items = tuple(sorted(items, key=_begin))
        self._events: tuple[Event, ...] = items
        self._start = 0
        self._stop = len(items)

    @classmethod
    def _view(cls, events: tuple[Event, ...], start: int, stop: int) -> SortedCollection:
        view = cls.__new__(cls)
        view._events = events
        view._start = start
        view._stop = stop
        return view

    # Size and access

    def size(self) -> int:
        return self._stop - self._start

    def count(self) -> int:
        return self.size()

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[Event]:
        for i in range(self._start, self._stop):
            yield self._events[i]

    def events(self) -> Iterator[Event]:
        """Lazy iterator over the events, restartable by calling again."""
        return iter(self)

    def event_list(self) -> list[Event]:
        return list(self)

    def at(self, pos: int) -> Event:
        if not 0 <= pos < self.size():
            raise EventIndexError(
                f"Position {pos} out of range",
                context={"pos": pos, "size": self.size()},
            )
        return self._events[self._start + pos]

    def __getitem__(self, item: int | slice) -> Event | SortedCollection:
        if isinstance(item, slice):
            if item.step not in (None, 1):
                raise ConfigError("slice step must be None or 1", context={"step": item.step})
            return self.slice(item.start, item.stop)
        return self.at(item)

    def first(self) -> Event | None:
        return self._events[self._start] if self.size() else None

    def last(self) -> Event | None:
        return self._events[self._stop - 1] if self.size() else None

    def timerange(self) -> TimeRange | None:
        """Range from the earliest begin to the latest end."""
        if not self.size():
            return None
        end = max(e.end() for e in self)
        return TimeRange(self.first().begin(), end)

    def columns(self) -> list[str]:
        """Top-level field names, in first-seen order."""
        seen: dict[str, None] = {}
        for e in self:
            seen.update(dict.fromkeys(e.data))
        return list(seen)

    # Search and slicing

    def bisect(self, t: Any, from_index: int = 0) -> int | None:
        """Position of the event containing or most closely preceding ``t``.

        Returns the first position whose begin equals ``t`` when there is
        one, ``size`` when ``t`` is after the end of the last event, and
        ``max(from_index - 1, 0)`` when ``t`` precedes the searched region.
        Returns None for an empty collection.
        """
        size = self.size()
        if not size:
            return None
        ms = to_ms(t)
        lo = max(from_index, 0)
        if lo >= size:
            return size
        i = _bisect.bisect_left(
            self._events, ms, self._start + lo, self._stop, key=_begin
        ) - self._start
        if i < size and self.at(i).begin() == ms:
            return i
        if i == lo:
            return max(lo - 1, 0)
        pos = i - 1
        if pos == size - 1 and ms > self.at(pos).end():
            return size
        return pos

    def slice(self, begin: int | None = None, end: int | None = None) -> SortedCollection:
        """Half-open ``[begin, end)`` by position; negative counts from the end.

        Returns ``self`` when the slice covers the whole collection.
        """
        size = self.size()
        b = resolve_index(begin, size, 0)
        e = max(b, resolve_index(end, size, size))
        if b == 0 and e == size:
            return self
        return SortedCollection._view(self._events, self._start + b, self._start + e)

    def crop(self, tr: TimeRange) -> SortedCollection:
        """Events whose begin falls within ``[tr.begin(), tr.end()]``."""
        if not self.size():
            return self
        begin_pos = _bisect.bisect_left(
            self._events, tr.begin(), self._start, self._stop, key=_begin
        )
        end_pos = _bisect.bisect_right(self._events, tr.end(), begin_pos, self._stop, key=_begin)
        return self.slice(begin_pos - self._start, end_pos - self._start)

    # Transforms

    def for_each(self, side_effect: Callable[[Event], Any]) -> int:
        """Call ``side_effect`` on every event; returns the number visited."""
        n = 0
        for e in self:
            side_effect(e)
            n += 1
        return n

    def filter(self, predicate: Callable[[Event], bool]) -> SortedCollection:
        return SortedCollection(e for e in self if predicate(e))

    def map(self, mapper: Callable[[Event], Event]) -> SortedCollection:
        return SortedCollection(mapper(e) for e in self)

    def flat_map(self, mapper: Callable[[Event], Iterable[Event]]) -> SortedCollection:
        return SortedCollection(out for e in self for out in mapper(e))

    def select(self, fields: FieldSpec) -> SortedCollection:
        return self.map(lambda e: e.select(fields))

    def collapse(
        self,
        field_spec_list: FieldSpec,
        name: str,
        reducer: Reducer,
        append: bool = False,
    ) -> SortedCollection:
        if not callable(reducer):
            raise ConfigError(
                "reducer function must be supplied, for example functions.sum()",
                context={"reducer": repr(reducer)},
            )
        return self.map(lambda e: e.collapse(field_spec_list, name, reducer, append))

    def rename_columns(self, rename_map: Mapping[str, str]) -> SortedCollection:
        return self.map(lambda e: e.rename(rename_map))

    # Statistics

    def aggregate(self, func: Reducer, field_spec: FieldSpec | None = DEFAULT_FIELD) -> Any:
        """Apply ``func`` to the values of each field.

        A single path returns one value; a list of paths returns a dict
        keyed by dotted path. A field absent from every event yields None.
        """
        if not callable(func):
            raise ConfigError(
                "aggregation function must be callable",
                context={"func": repr(func)},
            )
        results: dict[str, Any] = {}
        for path in field_spec_paths(field_spec):
            name = path_name(path)
            if not any(e.has(path) for e in self):
                logger.debug("Field %s absent from every event, returning None", name)
                results[name] = None
                continue
            results[name] = func([e.get(path) for e in self])
        if field_spec is None or isinstance(field_spec, str):
            return next(iter(results.values()))
        return results

    def sum(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self.aggregate(functions.sum(filter_func or functions.ignore_missing), field_spec)

    def avg(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self.aggregate(functions.avg(filter_func or functions.ignore_missing), field_spec)

    def mean(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self.avg(field_spec, filter_func)

    def max(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self.aggregate(functions.max(filter_func or functions.ignore_missing), field_spec)

    def min(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self.aggregate(functions.min(filter_func or functions.ignore_missing), field_spec)

    def median(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self.aggregate(functions.median(filter_func or functions.ignore_missing), field_spec)

    def stdev(self, field_spec: FieldSpec = DEFAULT_FIELD, filter_func: ValueFilter | None = None) -> Any:
        return self.aggregate(functions.stdev(filter_func or functions.ignore_missing), field_spec)

    def percentile(
        self,
        q: float,
        field_path: FieldPath = DEFAULT_FIELD,
        interp: InterpolationType | str = InterpolationType.LINEAR,
        filter_func: ValueFilter | None = None,
    ) -> Any:
        reducer = functions.percentile(q, interp, filter_func or functions.ignore_missing)
        return self.aggregate(reducer, field_path)

    def quantile(
        self,
        n: int,
        field_path: FieldPath = DEFAULT_FIELD,
        interp: InterpolationType | str = InterpolationType.LINEAR,
    ) -> list[Any]:
        """The ``n - 1`` cut points splitting the values into ``n`` groups."""
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise ConfigError(
                f"quantile count must be a positive integer, got {n!r}",
                context={"n": n},
            )
        return [self.percentile(100 * k / n, field_path, interp) for k in range(1, n)]

    def size_valid(self, field_spec: FieldSpec = DEFAULT_FIELD) -> int:
        """Number of events where every field is a finite number."""
        return sum(1 for e in self if e.is_valid(field_spec))

    # Engines

    def window(
        self,
        window: WindowDef | str | int,
        trigger: Trigger | str = Trigger.ON_DISCARDED_WINDOW,
    ) -> WindowedCollection:
        from tseventkit.series.windowing import WindowedCollection

        return WindowedCollection.from_collection(self, window, trigger)

    def fill(self, options: FillOptions) -> SortedCollection:
        from tseventkit.series.fill import fill_events

        return SortedCollection(fill_events(self, options))

    def align(self, options: AlignOptions) -> SortedCollection:
        from tseventkit.series.alignment import align_events

        return SortedCollection(align_events(self, options))

    def rate(self, options: RateOptions) -> SortedCollection:
        from tseventkit.series.rate import rate_events

        return SortedCollection(rate_events(self, options))

    # Equality

    @staticmethod
    def is_(a: SortedCollection, b: SortedCollection) -> bool:
        """Value equality: same events in the same order."""
        if a is b:
            return True
        if a.size() != b.size():
            return False
        return all(x == y for x, y in zip(a, b))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SortedCollection):
            return NotImplemented
        return SortedCollection.is_(self, other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"SortedCollection(size={self.size()}, timerange={self.timerange()})"


def _is_sorted(events: tuple[Event, ...]) -> bool:
    return all(_begin(events[i]) <= _begin(events[i + 1]) for i in range(len(events) - 1))


__all__ = ["SortedCollection", "resolve_index"]
