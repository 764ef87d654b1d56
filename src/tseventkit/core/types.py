"""Shared type definitions for tseventkit.

Enums and type aliases used across modules for clarity and consistency.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import StrEnum
from typing import Any, Union

# A field path: "value", "in.bytes" or ["in", "bytes"]
FieldPath = Union[str, Sequence[str]]

# One field path or a list of them
FieldSpec = Union[str, Sequence[FieldPath]]

# Reduces a list of raw values to one value
Reducer = Callable[[list[Any]], Any]

# Cleans a list of raw values before reduction; may return None
ValueFilter = Callable[[list[Any]], Union[list[Any], None]]


class FillMethod(StrEnum):
    """How the fill engine repairs an invalid value."""

    ZERO = "zero"
    """Replace with 0."""

    PAD = "pad"
    """Hold the last valid value."""

    LINEAR = "linear"
    """Interpolate between the surrounding valid values."""


class AlignMethod(StrEnum):
    """How the align engine computes a boundary value."""

    LINEAR = "linear"
    HOLD = "hold"


class InterpolationType(StrEnum):
    """Percentile interpolation between neighbouring ranks."""

    LINEAR = "linear"
    LOWER = "lower"
    HIGHER = "higher"
    NEAREST = "nearest"
    MIDPOINT = "midpoint"


class Trigger(StrEnum):
    """When a windowed collection emits a window."""

    ON_EACH_EVENT = "eachEvent"
    """Emit the partial window after every event."""

    ON_DISCARDED_WINDOW = "discard"
    """Emit a window once no further event can belong to it."""


class KeyType(StrEnum):
    """Wire-format name of each key variant."""

    TIME = "time"
    TIMERANGE = "timerange"
    INDEX = "index"


__all__ = [
    "FieldPath",
    "FieldSpec",
    "Reducer",
    "ValueFilter",
    "FillMethod",
    "AlignMethod",
    "InterpolationType",
    "Trigger",
    "KeyType",
]
