"""Windowed grouping and the aggregation pipeline.

``SortedCollection.window()`` groups events by the keys a window definition
assigns to each event begin. The resulting ``WindowedCollection`` can be
ungrouped into plain collections, aggregated into one event per window, and
flattened back into a single ordered collection.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from tseventkit.core.config import AggregationEntry, WindowOptions, parse_aggregation
from tseventkit.core.types import Trigger
from tseventkit.event import Event
from tseventkit.series.collection import SortedCollection
from tseventkit.time.window import WindowDef

logger = logging.getLogger(__name__)


class WindowedCollection:
    """A mapping of window key to the collection of events in that window.

    Windows are kept in order of their begin time.
    """

    def __init__(
        self,
        window: WindowDef,
        groups: Mapping[str, SortedCollection],
        trigger: Trigger = Trigger.ON_DISCARDED_WINDOW,
        source: SortedCollection | None = None,
    ) -> None:
        self._window = window
        self._trigger = trigger
        self._source = source
        ordered = sorted(groups.items(), key=lambda item: window.to_index(item[0]).begin())
        self._groups: dict[str, SortedCollection] = dict(ordered)

    @classmethod
    def from_collection(
        cls,
        collection: SortedCollection,
        window: WindowDef | str | int,
        trigger: Trigger | str = Trigger.ON_DISCARDED_WINDOW,
    ) -> WindowedCollection:
        options = WindowOptions(window=window, trigger=trigger)
        buckets: dict[str, list[Event]] = {}
        for e in collection:
            for key in options.window.index_keys(e.begin()):
                buckets.setdefault(key, []).append(e)
        logger.debug(
            "Grouped %d events into %d windows of %s",
            collection.size(),
            len(buckets),
            options.window,
        )
        groups = {k: SortedCollection(v) for k, v in buckets.items()}
        return cls(options.window, groups, options.trigger, source=collection)

    @property
    def window(self) -> WindowDef:
        return self._window

    @property
    def trigger(self) -> Trigger:
        return self._trigger

    def keys(self) -> list[str]:
        return list(self._groups)

    def __len__(self) -> int:
        return len(self._groups)

    def __iter__(self) -> Iterator[tuple[str, SortedCollection]]:
        return iter(self._groups.items())

    def ungroup(self) -> dict[str, SortedCollection]:
        """Window key to collection, in window order."""
        return dict(self._groups)

    def aggregate(self, aggregation: Mapping[str, Any]) -> WindowedCollection:
        """Reduce every window to a single event keyed by the window's Index.

        Args:
            aggregation: {output: {input_path: reducer}} or
                {output: (input_path, reducer)}

        Raises:
            ConfigError: If the aggregation spec is malformed.
        """
        entries = parse_aggregation(aggregation)
        groups: dict[str, SortedCollection] = {}
        for key, collection in self._groups.items():
            event = _aggregate_window(self._window.to_index(key), collection, entries)
            groups[key] = SortedCollection([event])
        return WindowedCollection(self._window, groups, self._trigger)

    def flatten(self) -> SortedCollection:
        """All events of all windows as one collection."""
        return SortedCollection(e for collection in self._groups.values() for e in collection)

    def emissions(self) -> Iterator[tuple[str, SortedCollection]]:
        """Replay the source events and yield windows as the trigger fires.

        ``ON_EACH_EVENT`` yields the partial window after every event it
        touches. ``ON_DISCARDED_WINDOW`` yields each window exactly once,
        when the first event past its end arrives or when the pass ends.
        """
        if self._source is None:
            yield from self._groups.items()
            return

        open_windows: dict[str, list[Event]] = {}
        for e in self._source:
            ms = e.begin()
            for key in [k for k in open_windows if self._window.is_closed(k, ms)]:
                closed = open_windows.pop(key)
                if self._trigger is Trigger.ON_DISCARDED_WINDOW:
                    yield key, SortedCollection(closed)
            keys = self._window.index_keys(ms)
            for key in keys:
                open_windows.setdefault(key, []).append(e)
            if self._trigger is Trigger.ON_EACH_EVENT:
                for key in keys:
                    yield key, SortedCollection(open_windows[key])

        if self._trigger is Trigger.ON_DISCARDED_WINDOW:
            for key, events in open_windows.items():
                yield key, SortedCollection(events)

    def __repr__(self) -> str:
        return f"WindowedCollection(window={self._window}, windows={len(self._groups)})"


def _aggregate_window(
    key: Any,
    collection: SortedCollection,
    entries: tuple[AggregationEntry, ...],
) -> Event:
    data = {
        entry.output: entry.reducer([e.get(entry.input_path) for e in collection])
        for entry in entries
    }
    return Event(key, data)


__all__ = ["WindowedCollection"]
