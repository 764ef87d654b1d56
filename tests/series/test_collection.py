"""Tests for series/collection.py."""

from __future__ import annotations

import pytest

from tseventkit.core.errors import ConfigError, EventIndexError
from tseventkit.event import Event
from tseventkit.series import functions
from tseventkit.series.collection import SortedCollection, resolve_index
from tseventkit.time.keys import TimeRange


@pytest.fixture
def collection() -> SortedCollection:
    """Five events one second apart."""
    return SortedCollection(Event(t, {"value": v}) for t, v in zip(range(1000, 6000, 1000), [1, 2, 3, 4, 5]))


@pytest.fixture
def traffic() -> SortedCollection:
    """Three events with in/out fields."""
    return SortedCollection([
        Event(1000, {"in": 5, "out": 6}),
        Event(2000, {"in": 2, "out": 4}),
        Event(3000, {"in": 4, "out": 5}),
    ])


class TestConstruction:
    """Tests for construction and ordering."""

    def test_sorts_unsorted_input(self) -> None:
        """Events are ordered by begin."""
        c = SortedCollection([Event(2000, 2), Event(1000, 1)])
        assert [e.timestamp() for e in c] == [1000, 2000]

    def test_stable_for_equal_begins(self) -> None:
        """Events sharing a begin keep their input order."""
        c = SortedCollection([Event(2000, "b"), Event(1000, "a"), Event(2000, "c")])
        assert [e.get() for e in c] == ["a", "b", "c"]

    def test_rejects_non_events(self) -> None:
        """Only Event objects are accepted."""
        with pytest.raises(ConfigError, match="Event objects only"):
            SortedCollection([1, 2])

    def test_empty(self) -> None:
        """Empty collections have no range."""
        c = SortedCollection()
        assert c.size() == 0
        assert c.first() is None
        assert c.timerange() is None
        assert c.bisect(1000) is None


class TestAccess:
    """Tests for positional access and derived values."""

    def test_at(self, collection: SortedCollection) -> None:
        """Positional access within [0, size)."""
        assert collection.at(0).get() == 1
        assert collection[4].get() == 5
        with pytest.raises(EventIndexError):
            collection.at(5)
        with pytest.raises(IndexError):
            collection.at(-1)

    def test_timerange_and_columns(self, traffic: SortedCollection) -> None:
        """Derived range and columns."""
        assert traffic.timerange() == TimeRange(1000, 3000)
        assert traffic.columns() == ["in", "out"]
        assert traffic.count() == len(traffic) == 3

    def test_events_restartable(self, collection: SortedCollection) -> None:
        """events() can be iterated more than once."""
        assert len(list(collection.events())) == len(list(collection.events())) == 5


class TestBisect:
    """Tests for binary search."""

    def test_exact(self, collection: SortedCollection) -> None:
        """An exact begin returns its position."""
        assert collection.bisect(2000) == 1
        assert collection.bisect(5000) == 4

    def test_between(self, collection: SortedCollection) -> None:
        """Between events returns the preceding one."""
        assert collection.bisect(2500) == 1

    def test_before_and_after(self, collection: SortedCollection) -> None:
        """Before the first event is 0; after the last is size."""
        assert collection.bisect(500) == 0
        assert collection.bisect(9000) == 5

    def test_from_index(self, collection: SortedCollection) -> None:
        """Search starts at from_index."""
        assert collection.bisect(1500, 3) == 2
        assert collection.bisect(4500, 2) == 3

    def test_duplicate_begins(self) -> None:
        """The first of several equal begins is returned."""
        c = SortedCollection([Event(1000, 1), Event(2000, 2), Event(2000, 3)])
        assert c.bisect(2000) == 1


class TestSliceAndCrop:
    """Tests for slicing."""

    def test_whole_slice_is_self(self, collection: SortedCollection) -> None:
        """Covering the whole view allocates nothing."""
        assert collection.slice() is collection
        assert collection.slice(0, 5) is collection

    def test_slice(self, collection: SortedCollection) -> None:
        """Half-open, negative counts from the end."""
        assert [e.get() for e in collection.slice(1, 3)] == [2, 3]
        assert [e.get() for e in collection.slice(-2)] == [4, 5]
        assert [e.get() for e in collection[1:-1]] == [2, 3, 4]
        assert collection.slice(4, 2).size() == 0

    def test_slice_of_slice(self, collection: SortedCollection) -> None:
        """Views compose."""
        inner = collection.slice(1, 4).slice(1)
        assert [e.get() for e in inner] == [3, 4]
        assert inner.at(0).timestamp() == 3000

    def test_crop(self, collection: SortedCollection) -> None:
        """Crop keeps begins within the closed range."""
        cropped = collection.crop(TimeRange(1500, 4000))
        assert [e.timestamp() for e in cropped] == [2000, 3000, 4000]
        assert cropped.first().begin() >= 1500

    def test_crop_single_instant(self, collection: SortedCollection) -> None:
        """A zero-length range keeps an event on it."""
        assert [e.timestamp() for e in collection.crop(TimeRange(1000, 1000))] == [1000]

    def test_crop_keeps_duplicates_at_end(self) -> None:
        """Every event sharing the end instant is kept."""
        c = SortedCollection([Event(1000, 1), Event(2000, 2), Event(2000, 3), Event(3000, 4)])
        assert [e.get() for e in c.crop(TimeRange(1000, 2000))] == [1, 2, 3]
        assert [e.get() for e in c.crop(TimeRange(2000, 2000))] == [2, 3]
        assert c.crop(TimeRange(4000, 5000)).size() == 0

    def test_resolve_index(self) -> None:
        """Bounds clamp into [0, size]."""
        assert resolve_index(None, 5, 0) == 0
        assert resolve_index(-7, 5, 0) == 0
        assert resolve_index(9, 5, 0) == 5


class TestTransforms:
    """Tests for transforms returning new collections."""

    def test_map_leaves_original(self, collection: SortedCollection) -> None:
        """Transforms never change the source."""
        doubled = collection.map(lambda e: e.with_field("value", e.get() * 2))
        assert [e.get() for e in doubled] == [2, 4, 6, 8, 10]
        assert [e.get() for e in collection] == [1, 2, 3, 4, 5]

    def test_filter_and_for_each(self, collection: SortedCollection) -> None:
        """Filter keeps matches; for_each counts visits."""
        seen = []
        assert collection.filter(lambda e: e.get() % 2).for_each(seen.append) == 3
        assert [e.get() for e in seen] == [1, 3, 5]

    def test_flat_map_resorts(self) -> None:
        """flat_map output is sorted again."""
        c = SortedCollection([Event(1000, 1), Event(3000, 3)])
        out = c.flat_map(lambda e: [e, Event(e.timestamp() - 1500, 0)])
        assert [e.timestamp() for e in out] == [-500, 1000, 1500, 3000]

    def test_collapse(self, traffic: SortedCollection) -> None:
        """in + out per event."""
        totals = traffic.collapse(["in", "out"], "total", functions.sum())
        assert [e.get("total") for e in totals] == [11, 6, 9]
        assert totals.columns() == ["total"]

    def test_collapse_requires_reducer(self, traffic: SortedCollection) -> None:
        """Non-callable reducer."""
        with pytest.raises(ConfigError, match="reducer"):
            traffic.collapse(["in", "out"], "total", None)

    def test_select_and_rename(self, traffic: SortedCollection) -> None:
        """Field selection and renaming."""
        assert traffic.select("in").columns() == ["in"]
        assert traffic.rename_columns({"in": "ingress"}).columns() == ["ingress", "out"]


class TestStatistics:
    """Tests for aggregate statistics."""

    def test_basic(self, collection: SortedCollection) -> None:
        """Default field is 'value'."""
        assert collection.sum() == 15
        assert collection.avg() == 3.0
        assert collection.max() == 5
        assert collection.min() == 1
        assert collection.median() == 3.0
        assert collection.stdev() == pytest.approx(2 ** 0.5)

    def test_missing_values_ignored(self) -> None:
        """None values are skipped by default."""
        c = SortedCollection([Event(1000, 1), Event(2000, None), Event(3000, 3)])
        assert c.sum() == 4
        assert c.avg() == 2.0
        assert c.sum(filter_func=functions.propagate_missing) is None

    def test_field_list_returns_dict(self, traffic: SortedCollection) -> None:
        """A list of fields gives one result per field."""
        assert traffic.max(["in", "out"]) == {"in": 5, "out": 6}

    def test_absent_field_is_none(self, traffic: SortedCollection) -> None:
        """A field no event has yields None."""
        assert traffic.avg("status") is None

    def test_percentile_and_quantile(self) -> None:
        """Percentile of [5, 8, 2] at 50 is 5; quartiles of 1..5."""
        c = SortedCollection([Event(1000, 5), Event(2000, 8), Event(3000, 2)])
        assert c.percentile(50) == 5
        q = SortedCollection(Event(t * 1000, t) for t in range(1, 6))
        assert q.quantile(4) == [2, 3, 4]
        with pytest.raises(ConfigError, match="positive integer"):
            q.quantile(0)

    def test_aggregate(self, traffic: SortedCollection) -> None:
        """Arbitrary reducers through aggregate."""
        assert traffic.aggregate(functions.first(), "in") == 5
        assert traffic.aggregate(functions.count(), ["in", "out"]) == {"in": 3, "out": 3}
        with pytest.raises(ConfigError, match="callable"):
            traffic.aggregate("sum", "in")

    def test_size_valid(self) -> None:
        """Counts events with finite numbers in every field."""
        c = SortedCollection([
            Event(1000, {"a": 1, "b": 2}),
            Event(2000, {"a": None, "b": 2}),
            Event(3000, {"a": float("nan"), "b": 1}),
        ])
        assert c.size_valid("a") == 1
        assert c.size_valid(["a", "b"]) == 1
        assert c.size_valid("b") == 3


class TestEquality:
    """Tests for value equality."""

    def test_is(self, collection: SortedCollection) -> None:
        """Same events in the same order."""
        rebuilt = SortedCollection(list(collection))
        assert SortedCollection.is_(collection, rebuilt)
        assert collection == rebuilt
        assert collection != collection.slice(1)
