"""Pydantic model of the series wire format.

::

    {
      "name": "traffic",
      "columns": ["time", "in", "out"],
      "points": [[1400425947000, 52, 41], ...],
      "tz": "Etc/UTC",
      ...extra meta fields
    }

``columns[0]`` names the key variant (time, timerange or index); every
point starts with its key followed by one value per remaining column.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tseventkit.core.types import KeyType
from tseventkit.time.keys import UTC


class WireFormat(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str = ""
    columns: list[str] = Field(min_length=1)
    points: list[list[Any]] = Field(default_factory=list)
    tz: str = UTC
    index: str | None = None

    @model_validator(mode="after")
    def _check_points(self) -> WireFormat:
        width = len(self.columns)
        for row, point in enumerate(self.points):
            if not point:
                raise ValueError(f"point {row} is empty; it must start with its key")
            if len(point) > width:
                raise ValueError(
                    f"point {row} has {len(point)} values but there are only {width} columns"
                )
        return self

    @property
    def key_column(self) -> str:
        return self.columns[0]

    @property
    def field_columns(self) -> list[str]:
        return self.columns[1:]

    def extra_meta(self) -> dict[str, Any]:
        """Meta fields beyond name, tz and index."""
        return dict(self.model_extra or {})

    def rows(self) -> list[tuple[Any, dict[str, Any]]]:
        """(key value, field data) per point; short points are padded with None."""
        fields = self.field_columns
        result = []
        for point in self.points:
            values = list(point[1:]) + [None] * (len(fields) - (len(point) - 1))
            result.append((point[0], dict(zip(fields, values))))
        return result


def is_known_key_column(column: str) -> bool:
    return column in {k.value for k in KeyType}


__all__ = ["WireFormat", "is_known_key_column"]
