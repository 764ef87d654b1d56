"""Immutable events: a key plus a frozen data mapping.

Also hosts the list-level merge and combine operations used to join
events from several series that share a key.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import numpy as np

from tseventkit.core.errors import ConfigError
from tseventkit.core.types import FieldPath, FieldSpec, KeyType, Reducer
from tseventkit.time.keys import Key, time

DEFAULT_FIELD = "value"


def is_missing(value: Any) -> bool:
    """None or NaN."""
    if value is None:
        return True
    if isinstance(value, (float, np.floating)):
        return bool(np.isnan(value))
    return False


def is_valid_number(value: Any) -> bool:
    """A finite number (bools excluded)."""
    if isinstance(value, (bool, np.bool_)):
        return False
    if isinstance(value, (int, np.integer)):
        return True
    if isinstance(value, (float, np.floating)):
        return math.isfinite(value)
    return False


def field_path_parts(field_path: FieldPath | None) -> tuple[str, ...]:
    """Split ``"a.b"`` or ``["a", "b"]`` into path segments."""
    if field_path is None:
        return (DEFAULT_FIELD,)
    if isinstance(field_path, str):
        return tuple(field_path.split("."))
    return tuple(field_path)


def field_spec_paths(field_spec: FieldSpec | None) -> list[tuple[str, ...]]:
    """Normalise a field spec into a list of path tuples."""
    if field_spec is None or isinstance(field_spec, str):
        return [field_path_parts(field_spec)]
    # A list is always a list of paths, never the segments of one path
    return [field_path_parts(p) for p in field_spec]


def path_name(path: tuple[str, ...]) -> str:
    return ".".join(path)


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Convert frozen data back into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


def _set_path(data: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    node = data
    for part in path[:-1]:
        child = node.get(part)
        child = dict(child) if isinstance(child, Mapping) else {}
        node[part] = child
        node = child
    node[path[-1]] = value


def _deep_merge(left: Mapping[str, Any], right: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(left)
    for k, v in right.items():
        current = merged.get(k)
        if isinstance(current, Mapping) and isinstance(v, Mapping):
            merged[k] = _deep_merge(current, v)
        else:
            merged[k] = v
    return merged


@dataclass(frozen=True, eq=False)
class Event:
    """An immutable (key, data) pair.

    ``data`` is copied and frozen on construction, so an Event never
    changes after it is built; every "setter" returns a new Event.
    Plain instants given as the key are promoted to ``Time``.
    """

    key: Key
    data: Mapping[str, Any]

    def __init__(self, key: Any, data: Mapping[str, Any] | None = None) -> None:
        if not isinstance(key, Key):
            key = time(key)
        if data is None:
            data = {}
        elif not isinstance(data, Mapping):
            # Bare values become {"value": v}
            data = {DEFAULT_FIELD: data}
        object.__setattr__(self, "key", key)
        object.__setattr__(self, "data", _freeze(data))

    # Key accessors

    @property
    def key_type(self) -> KeyType:
        return self.key.key_type

    def begin(self) -> int:
        return self.key.begin()

    def end(self) -> int:
        return self.key.end()

    def timestamp(self) -> int:
        return self.key.begin()

    # Data access

    def get(self, field_path: FieldPath | None = DEFAULT_FIELD, default: Any = None) -> Any:
        node: Any = self.data
        for part in field_path_parts(field_path):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node

    def has(self, field_path: FieldPath | None = DEFAULT_FIELD) -> bool:
        node: Any = self.data
        for part in field_path_parts(field_path):
            if not isinstance(node, Mapping) or part not in node:
                return False
            node = node[part]
        return True

    def is_valid(self, field_spec: FieldSpec | None = DEFAULT_FIELD) -> bool:
        """Every listed field holds a finite number."""
        return all(is_valid_number(self.get(p)) for p in field_spec_paths(field_spec))

    def to_dict(self) -> dict[str, Any]:
        return thaw(self.data)

    # Derivation

    def set_key(self, key: Any) -> Event:
        return Event(key, self.data)

    def set_data(self, data: Mapping[str, Any]) -> Event:
        return Event(self.key, data)

    def with_field(self, field_path: FieldPath, value: Any) -> Event:
        data = thaw(self.data)
        _set_path(data, field_path_parts(field_path), value)
        return Event(self.key, data)

    def with_fields(self, updates: Mapping[tuple[str, ...], Any]) -> Event:
        if not updates:
            return self
        data = thaw(self.data)
        for path, value in updates.items():
            _set_path(data, path, value)
        return Event(self.key, data)

    def select(self, fields: FieldSpec) -> Event:
        data: dict[str, Any] = {}
        for path in field_spec_paths(fields):
            if self.has(path):
                _set_path(data, path, thaw(self.get(path)))
        return Event(self.key, data)

    def collapse(
        self,
        field_spec_list: FieldSpec,
        name: str,
        reducer: Reducer,
        append: bool = False,
    ) -> Event:
        values = [self.get(p) for p in field_spec_paths(field_spec_list)]
        data = thaw(self.data) if append else {}
        data[name] = reducer(values)
        return Event(self.key, data)

    def rename(self, rename_map: Mapping[str, str]) -> Event:
        return Event(self.key, {rename_map.get(k, k): v for k, v in self.data.items()})

    # Serialization

    def to_point(self, columns: Sequence[str]) -> list[Any]:
        return [self.key.to_json(), *[thaw(self.get(c)) for c in columns]]

    def to_json(self) -> dict[str, Any]:
        return {str(self.key_type): self.key.to_json(), "data": self.to_dict()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self.key == other.key and self.data == other.data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Event({self.key!r}, {self.to_dict()!r})"

    # List operations

    @staticmethod
    def merge(events: Iterable[Event], deep: bool = False) -> list[Event]:
        """Join events that share a key into one event per key.

        Data maps are combined with last-wins precedence; ``deep`` merges
        nested mappings recursively instead of replacing them.
        """
        groups = _group_by_key(events)
        merged: list[Event] = []
        for key, group in groups.items():
            if len(group) == 1:
                merged.append(group[0])
                continue
            data: dict[str, Any] = {}
            for e in group:
                if deep:
                    data = _deep_merge(data, thaw(e.data))
                else:
                    data.update(thaw(e.data))
            merged.append(Event(key, data))
        return merged

    @staticmethod
    def combine(
        events: Iterable[Event],
        reducer: Reducer,
        field_spec: FieldSpec | None = None,
    ) -> list[Event]:
        """Reduce the values of events that share a key.

        With ``field_spec`` None every top-level field seen in a group is
        reduced; otherwise only the listed paths appear in the output.
        """
        paths = None if field_spec is None else field_spec_paths(field_spec)
        combined: list[Event] = []
        for key, group in _group_by_key(events).items():
            group_paths = paths
            if group_paths is None:
                seen: dict[str, None] = {}
                for e in group:
                    seen.update(dict.fromkeys(e.data))
                group_paths = [(name,) for name in seen]
            data: dict[str, Any] = {}
            for path in group_paths:
                values = [e.get(path) for e in group if e.has(path)]
                _set_path(data, path, reducer(values))
            combined.append(Event(key, data))
        return combined

    @staticmethod
    def merger(deep: bool = False) -> Callable[[Iterable[Event]], list[Event]]:
        return lambda events: Event.merge(events, deep)

    @staticmethod
    def combiner(
        field_spec: FieldSpec | None,
        reducer: Reducer,
    ) -> Callable[[Iterable[Event]], list[Event]]:
        if not callable(reducer):
            raise ConfigError(
                "reducer function must be supplied, for example functions.sum()",
                context={"reducer": repr(reducer)},
            )
        return lambda events: Event.combine(events, reducer, field_spec)


def _group_by_key(events: Iterable[Event]) -> dict[Key, list[Event]]:
    groups: dict[Key, list[Event]] = {}
    for e in events:
        groups.setdefault(e.key, []).append(e)
    return groups


__all__ = [
    "DEFAULT_FIELD",
    "Event",
    "field_path_parts",
    "field_spec_paths",
    "is_missing",
    "is_valid_number",
    "path_name",
    "thaw",
]
