"""Tests for event.py."""

from __future__ import annotations

from datetime import datetime

import pytest

from tseventkit.core.errors import ConfigError
from tseventkit.core.types import KeyType
from tseventkit.event import (
    Event,
    field_spec_paths,
    is_missing,
    is_valid_number,
)
from tseventkit.series import functions
from tseventkit.time.keys import Index, Time, TimeRange


class TestHelpers:
    """Tests for value and path helpers."""

    def test_is_missing(self) -> None:
        """None and NaN are missing, zero is not."""
        assert is_missing(None)
        assert is_missing(float("nan"))
        assert not is_missing(0)
        assert not is_missing("x")

    def test_is_valid_number(self) -> None:
        """Finite numbers only."""
        assert is_valid_number(3)
        assert is_valid_number(2.5)
        assert not is_valid_number(float("inf"))
        assert not is_valid_number(True)
        assert not is_valid_number("3")

    def test_field_spec_paths(self) -> None:
        """Strings, dotted paths and lists of paths."""
        assert field_spec_paths(None) == [("value",)]
        assert field_spec_paths("in.bytes") == [("in", "bytes")]
        assert field_spec_paths(["in", "out"]) == [("in",), ("out",)]
        assert field_spec_paths([["a", "b"], "c"]) == [("a", "b"), ("c",)]


class TestEvent:
    """Tests for the Event value type."""

    def test_key_promotion(self) -> None:
        """Plain instants become Time keys."""
        e = Event(1000, {"value": 1})
        assert e.key == Time(1000)
        assert e.key_type is KeyType.TIME
        assert Event(datetime(2015, 1, 1)).timestamp() == 1420070400000

    def test_bare_value(self) -> None:
        """Non-mapping data is stored under 'value'."""
        assert Event(1000, 42).get() == 42

    def test_nested_get(self) -> None:
        """Dotted and list paths walk nested data."""
        e = Event(1000, {"in": {"bytes": 10}})
        assert e.get("in.bytes") == 10
        assert e.get(["in", "bytes"]) == 10
        assert e.get("in.packets") is None
        assert e.get("missing", default=0) == 0
        assert e.has("in.bytes")
        assert not e.has("out")

    def test_data_is_frozen(self) -> None:
        """Event data can not be mutated."""
        source = {"value": 1, "tags": ["a"]}
        e = Event(1000, source)
        source["value"] = 2
        assert e.get() == 1
        with pytest.raises(TypeError):
            e.data["value"] = 3

    def test_with_field_returns_new_event(self) -> None:
        """Setters never modify the original."""
        e = Event(1000, {"in": {"bytes": 10}})
        changed = e.with_field("in.packets", 2)
        assert changed.get("in.packets") == 2
        assert changed.get("in.bytes") == 10
        assert not e.has("in.packets")

    def test_select_and_rename(self) -> None:
        """Select keeps listed fields; rename maps top-level names."""
        e = Event(1000, {"in": 1, "out": 2, "status": "ok"})
        assert e.select(["in", "out"]).to_dict() == {"in": 1, "out": 2}
        assert e.rename({"in": "ingress"}).to_dict() == {"ingress": 1, "out": 2, "status": "ok"}

    def test_collapse(self) -> None:
        """Collapse reduces several fields into one."""
        e = Event(1000, {"in": 5, "out": 6})
        assert e.collapse(["in", "out"], "total", functions.sum()).to_dict() == {"total": 11}
        appended = e.collapse(["in", "out"], "total", functions.sum(), append=True)
        assert appended.to_dict() == {"in": 5, "out": 6, "total": 11}

    def test_equality(self) -> None:
        """Structural equality of key and data."""
        assert Event(1000, {"a": {"b": 1}}) == Event(Time(1000), {"a": {"b": 1}})
        assert Event(1000, {"a": 1}) != Event(1001, {"a": 1})
        assert Event(TimeRange(1, 2), {"a": 1}) != Event(Time(1), {"a": 1})

    def test_serialization(self) -> None:
        """Points and JSON."""
        e = Event(Index("1d-16314"), {"value": 3, "tags": ["x"]})
        assert e.to_point(["value", "tags", "other"]) == ["1d-16314", 3, ["x"], None]
        assert e.to_json() == {"index": "1d-16314", "data": {"value": 3, "tags": ["x"]}}


class TestMergeAndCombine:
    """Tests for list-level event operations."""

    def test_merge_shallow(self) -> None:
        """Events sharing a key are joined; the last wins on collisions."""
        merged = Event.merge([
            Event(1000, {"in": 1}),
            Event(1000, {"out": 2}),
            Event(2000, {"in": 3}),
        ])
        assert merged == [Event(1000, {"in": 1, "out": 2}), Event(2000, {"in": 3})]

    def test_merge_deep(self) -> None:
        """Deep merge joins nested mappings."""
        events = [Event(1000, {"a": {"x": 1}}), Event(1000, {"a": {"y": 2}})]
        assert Event.merge(events, deep=True)[0].to_dict() == {"a": {"x": 1, "y": 2}}
        assert Event.merge(events)[0].to_dict() == {"a": {"y": 2}}

    def test_combine(self) -> None:
        """Values of events sharing a key are reduced."""
        events = [Event(1000, {"a": 1, "b": 5}), Event(1000, {"a": 2}), Event(2000, {"a": 7})]
        combined = Event.combine(events, functions.sum())
        assert combined == [Event(1000, {"a": 3, "b": 5}), Event(2000, {"a": 7})]

    def test_combine_field_spec(self) -> None:
        """Only listed fields appear in the output."""
        events = [Event(1000, {"a": 1, "b": 5}), Event(1000, {"a": 2, "b": 1})]
        assert Event.combine(events, functions.max(), "b")[0].to_dict() == {"b": 5}

    def test_combiner_requires_callable(self) -> None:
        """A reducer must be supplied."""
        with pytest.raises(ConfigError, match="reducer function must be supplied"):
            Event.combiner(None, "sum")
