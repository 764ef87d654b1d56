"""Reducers and missing-value filters.

Every reducer factory takes a ``clean`` filter applied to the raw values
before reduction (``ignore_missing`` by default) and returns a function of
``list -> value``.

Empty input contract: ``sum`` and ``count`` return 0; every other reducer
returns None when no valid value is left. None is also returned when the
filter itself returns None (``propagate_missing``, ``none_if_empty``).
"""

from __future__ import annotations

import builtins
import math
from typing import Any

import numpy as np

from tseventkit.core.errors import ConfigError
from tseventkit.core.types import InterpolationType, Reducer, ValueFilter
from tseventkit.event import is_missing

# Filters


def keep_missing(values: list[Any]) -> list[Any]:
    return list(values)


def ignore_missing(values: list[Any]) -> list[Any]:
    return [v for v in values if not is_missing(v)]


def zero_missing(values: list[Any]) -> list[Any]:
    return [0 if is_missing(v) else v for v in values]


def propagate_missing(values: list[Any]) -> list[Any] | None:
    if builtins.any(is_missing(v) for v in values):
        return None
    return list(values)


def none_if_empty(values: list[Any]) -> list[Any] | None:
    if not values:
        return None
    return list(values)


def _py(value: Any) -> Any:
    """Unwrap numpy scalars into plain Python numbers."""
    if isinstance(value, np.generic):
        return value.item()
    return value


def interpolation_type(interp: InterpolationType | str) -> InterpolationType:
    try:
        return InterpolationType(interp)
    except ValueError as exc:
        raise ConfigError(
            f"Invalid interpolation: {interp!r}",
            context={"interp": interp, "allowed": [i.value for i in InterpolationType]},
        ) from exc


def compute_percentile(
    values: list[Any],
    q: float,
    interp: InterpolationType | str = InterpolationType.LINEAR,
) -> Any:
    """Percentile ``q`` (0-100) of already-clean numeric values.

    With rank ``r = q/100 * (n-1)``, ``i = floor(r)``, ``j = ceil(r)`` and
    ``frac = r - i``; ``nearest`` picks ``v[j]`` when ``frac >= 0.5``.
    """
    if not 0 <= q <= 100:
        raise ConfigError(
            f"percentile must be between 0 and 100, got {q}",
            context={"q": q},
        )
    method = interpolation_type(interp)
    if not values:
        return None
    v = sorted(values)
    rank = q / 100 * (len(v) - 1)
    i = math.floor(rank)
    j = math.ceil(rank)
    frac = rank - i

    if method is InterpolationType.LINEAR:
        return _py(v[i] + (v[j] - v[i]) * frac)
    if method is InterpolationType.LOWER:
        return _py(v[i])
    if method is InterpolationType.HIGHER:
        return _py(v[j])
    if method is InterpolationType.NEAREST:
        return _py(v[j] if frac >= 0.5 else v[i])
    return _py((v[i] + v[j]) / 2)


def _check_filter(clean: ValueFilter) -> None:
    if not callable(clean):
        raise ConfigError(
            "clean filter must be callable",
            context={"clean": repr(clean)},
        )


# Reducer factories


def sum(clean: ValueFilter = ignore_missing) -> Reducer:  # noqa: A001
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if cleaned is None:
            return None
        return _py(np.sum(cleaned)) if cleaned else 0

    return reducer


def avg(clean: ValueFilter = ignore_missing) -> Reducer:
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if not cleaned:
            return None
        return _py(np.mean(cleaned))

    return reducer


mean = avg


def max(clean: ValueFilter = ignore_missing) -> Reducer:  # noqa: A001
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if not cleaned:
            return None
        return _py(np.max(cleaned))

    return reducer


def min(clean: ValueFilter = ignore_missing) -> Reducer:  # noqa: A001
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if not cleaned:
            return None
        return _py(np.min(cleaned))

    return reducer


def count(clean: ValueFilter = ignore_missing) -> Reducer:
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if cleaned is None:
            return None
        return len(cleaned)

    return reducer


def first(clean: ValueFilter = ignore_missing) -> Reducer:
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        return cleaned[0] if cleaned else None

    return reducer


def last(clean: ValueFilter = ignore_missing) -> Reducer:
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        return cleaned[-1] if cleaned else None

    return reducer


def median(clean: ValueFilter = ignore_missing) -> Reducer:
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if not cleaned:
            return None
        return _py(np.median(cleaned))

    return reducer


def stdev(clean: ValueFilter = ignore_missing) -> Reducer:
    """Population standard deviation."""
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if not cleaned:
            return None
        return _py(np.std(cleaned))

    return reducer


def percentile(
    q: float,
    interp: InterpolationType | str = InterpolationType.LINEAR,
    clean: ValueFilter = ignore_missing,
) -> Reducer:
    _check_filter(clean)
    method = interpolation_type(interp)
    if not 0 <= q <= 100:
        raise ConfigError(
            f"percentile must be between 0 and 100, got {q}",
            context={"q": q},
        )

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if not cleaned:
            return None
        return compute_percentile(cleaned, q, method)

    return reducer


def difference(clean: ValueFilter = ignore_missing) -> Reducer:
    """Spread between the largest and smallest value."""
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if not cleaned:
            return None
        return _py(np.max(cleaned) - np.min(cleaned))

    return reducer


def keep(clean: ValueFilter = ignore_missing) -> Reducer:
    """The common value when all values agree, else None."""
    _check_filter(clean)

    def reducer(values: list[Any]) -> Any:
        cleaned = clean(values)
        if not cleaned:
            return None
        head = cleaned[0]
        return head if builtins.all(v == head for v in cleaned) else None

    return reducer


__all__ = [
    # Filters
    "keep_missing",
    "ignore_missing",
    "zero_missing",
    "propagate_missing",
    "none_if_empty",
    # Reducers
    "sum",
    "avg",
    "mean",
    "max",
    "min",
    "count",
    "first",
    "last",
    "median",
    "stdev",
    "percentile",
    "difference",
    "keep",
    # Helpers
    "compute_percentile",
    "interpolation_type",
]
