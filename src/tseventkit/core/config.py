"""Validated option objects for series operations.

Each public series operation takes keyword arguments, builds one of these
frozen dataclasses first and only then touches data, so a malformed call
fails with ``ConfigError`` before anything is computed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from tseventkit.core.errors import ConfigError
from tseventkit.core.types import (
    AlignMethod,
    FieldPath,
    FieldSpec,
    FillMethod,
    Reducer,
    Trigger,
)
from tseventkit.time.keys import Duration, duration
from tseventkit.time.window import WindowDef, resolve_window

AGGREGATION_EXAMPLE = "{'value': {'value': functions.avg()}}"


def _check_field_spec(field_spec: Any, option: str = "field_spec") -> None:
    if isinstance(field_spec, str):
        if not field_spec:
            raise ConfigError(f"{option} must not be empty", context={option: field_spec})
        return
    if not isinstance(field_spec, Sequence) or not field_spec:
        raise ConfigError(
            f"{option} must be a field path or a non-empty list of paths",
            context={option: repr(field_spec)},
        )


def _check_limit(limit: Any) -> None:
    if limit is None:
        return
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ConfigError(
            f"limit must be a non-negative integer or None, got {limit!r}",
            context={"limit": limit},
        )


def _enum_option(enum_cls: type, value: Any, option: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ConfigError(
            f"Invalid {option}: {value!r}",
            context={option: value, "allowed": [m.value for m in enum_cls]},
        ) from exc


@dataclass(frozen=True)
class FillOptions:
    """Options for the fill engine.

    Args:
        field_spec: Field path or list of paths to repair
        method: 'zero', 'pad' or 'linear'
        limit: Max consecutive invalid values repaired per run (None = all)
    """

    field_spec: FieldSpec = "value"
    method: FillMethod = FillMethod.ZERO
    limit: int | None = None

    def __post_init__(self) -> None:
        _check_field_spec(self.field_spec)
        object.__setattr__(self, "method", _enum_option(FillMethod, self.method, "fill method"))
        _check_limit(self.limit)


@dataclass(frozen=True)
class AlignOptions:
    """Options for the align engine.

    Args:
        field_spec: Field path or list of paths to align
        period: Boundary spacing (Duration, '5m', or ms)
        method: 'linear' or 'hold'
        limit: Max boundaries bridged between two events (None = all)
    """

    field_spec: FieldSpec = "value"
    period: Duration | str | int = "5m"
    method: AlignMethod = AlignMethod.LINEAR
    limit: int | None = None

    def __post_init__(self) -> None:
        _check_field_spec(self.field_spec)
        object.__setattr__(self, "period", duration(self.period))
        object.__setattr__(self, "method", _enum_option(AlignMethod, self.method, "align method"))
        _check_limit(self.limit)


@dataclass(frozen=True)
class RateOptions:
    """Options for the rate engine."""

    field_spec: FieldSpec = "value"
    allow_negative: bool = True

    def __post_init__(self) -> None:
        _check_field_spec(self.field_spec)


@dataclass(frozen=True)
class AggregationEntry:
    """One output column of an aggregation: ``output = reducer(input values)``."""

    output: str
    input_path: FieldPath
    reducer: Reducer


def parse_aggregation(aggregation: Any) -> tuple[AggregationEntry, ...]:
    """Normalise an aggregation spec.

    Accepts ``{out: {in_path: reducer}}`` or ``{out: (in_path, reducer)}``.
    """
    if not isinstance(aggregation, Mapping) or not aggregation:
        raise ConfigError(
            f"aggregation object must be supplied, for example: {AGGREGATION_EXAMPLE}",
            context={"aggregation": repr(aggregation)},
        )
    entries: list[AggregationEntry] = []
    for output, spec in aggregation.items():
        if isinstance(spec, Mapping) and len(spec) == 1:
            input_path, reducer = next(iter(spec.items()))
        elif isinstance(spec, (tuple, list)) and len(spec) == 2:
            input_path, reducer = spec
        else:
            raise ConfigError(
                f"aggregation entry for {output!r} must map one input field to a reducer",
                context={"output": output, "entry": repr(spec)},
                fix_hint=f"For example: {AGGREGATION_EXAMPLE}",
            )
        if not callable(reducer):
            raise ConfigError(
                f"aggregation reducer for {output!r} is not callable",
                context={"output": output, "reducer": repr(reducer)},
            )
        entries.append(AggregationEntry(str(output), input_path, reducer))
    return tuple(entries)


@dataclass(frozen=True)
class WindowOptions:
    """Options for grouping a collection by window."""

    window: WindowDef | Duration | str | int | None = None
    trigger: Trigger = Trigger.ON_DISCARDED_WINDOW

    def __post_init__(self) -> None:
        if self.window is None:
            raise ConfigError("window must be supplied", context={"window": None})
        object.__setattr__(self, "window", resolve_window(self.window))
        object.__setattr__(self, "trigger", _enum_option(Trigger, self.trigger, "trigger"))


@dataclass(frozen=True)
class RollupOptions:
    """Options for a windowed rollup.

    Args:
        window: Window definition, or a duration for fixed windows
        aggregation: {output: {input_path: reducer}}
    """

    window: WindowDef | Duration | str | int | None = None
    aggregation: Mapping[str, Any] | None = None
    entries: tuple[AggregationEntry, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.window is None:
            raise ConfigError("window must be supplied", context={"window": None})
        object.__setattr__(self, "entries", parse_aggregation(self.aggregation))
        object.__setattr__(self, "window", resolve_window(self.window))


__all__ = [
    "FillOptions",
    "AlignOptions",
    "RateOptions",
    "WindowOptions",
    "RollupOptions",
    "AggregationEntry",
    "parse_aggregation",
]
