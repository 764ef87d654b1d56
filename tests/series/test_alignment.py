"""Tests for series/alignment.py."""

from __future__ import annotations

import pytest

from tseventkit.core.config import AlignOptions
from tseventkit.core.errors import KeyTypeError
from tseventkit.event import Event
from tseventkit.series.alignment import align_events
from tseventkit.series.collection import SortedCollection
from tseventkit.time.keys import Time, TimeRange


def _aligned(events: list[Event], **options) -> list[tuple[int, object]]:
    result = SortedCollection(events).align(AlignOptions(**options))
    return [(e.timestamp(), e.get()) for e in result]


class TestLinearAlign:
    """Tests for linear interpolation onto the grid."""

    def test_interpolates_boundaries(self) -> None:
        """Boundaries between two events are interpolated by time."""
        events = [Event(10_000, 0), Event(70_000, 60)]
        assert _aligned(events, period="30s") == [(30_000, 20.0), (60_000, 50.0)]

    def test_first_event_on_boundary(self) -> None:
        """An event sitting on a boundary is emitted as is."""
        events = [Event(60_000, 1), Event(120_000, 3)]
        assert _aligned(events, period="1m") == [(60_000, 1), (120_000, 3.0)]

    def test_boundaries_are_epoch_aligned(self) -> None:
        """Grid points are multiples of the period."""
        events = [Event(61_000, 1), Event(250_000, 2), Event(301_000, 5)]
        stamps = [t for t, _ in _aligned(events, period="1m")]
        assert stamps == [120_000, 180_000, 240_000, 300_000]

    def test_only_aligned_fields(self) -> None:
        """Output carries only the selected fields."""
        events = [Event(0, {"value": 0, "status": "ok"}), Event(60_000, {"value": 6, "status": "ok"})]
        result = SortedCollection(events).align(AlignOptions(period="30s"))
        assert [e.to_dict() for e in result] == [{"value": 0}, {"value": 3.0}, {"value": 6.0}]

    def test_non_numeric_gives_none(self) -> None:
        """Non-numeric endpoints produce None."""
        events = [Event(10_000, "up"), Event(70_000, 60)]
        assert _aligned(events, period="30s") == [(30_000, None), (60_000, None)]


class TestHoldAlign:
    """Tests for the hold method."""

    def test_hold(self) -> None:
        """Boundaries carry the previous value."""
        events = [Event(10_000, 5), Event(70_000, 60)]
        assert _aligned(events, period="30s", method="hold") == [(30_000, 5), (60_000, 5)]


class TestAlignLimit:
    """Tests for the limit option."""

    def test_limit_exceeded(self) -> None:
        """Gaps spanning more than limit boundaries give None."""
        events = [Event(0, 0), Event(300_000, 5)]
        result = _aligned(events, period="1m", limit=2)
        assert result[0] == (0, 0)
        assert [v for _, v in result[1:]] == [None] * 5

    def test_limit_not_exceeded(self) -> None:
        """Gaps within the limit are interpolated."""
        events = [Event(0, 0), Event(120_000, 2)]
        assert _aligned(events, period="1m", limit=2) == [(0, 0), (60_000, 1.0), (120_000, 2.0)]


class TestAlignKeys:
    """Tests for key handling."""

    def test_output_keys_are_time(self) -> None:
        """Aligned events are Time keyed."""
        result = align_events([Event(0, 0), Event(60_000, 1)], AlignOptions(period="1m"))
        assert all(isinstance(e.key, Time) for e in result)

    def test_rejects_timerange(self) -> None:
        """Only time keyed series can be aligned."""
        events = [Event(TimeRange(0, 1000), 1), Event(TimeRange(1000, 2000), 2)]
        with pytest.raises(KeyTypeError, match="Only time keyed"):
            align_events(events, AlignOptions(period="1s"))

    def test_empty(self) -> None:
        """No events, no output."""
        assert align_events([], AlignOptions()) == []
