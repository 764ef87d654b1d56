"""pandas DataFrame interchange.

``to_dataframe`` writes one row per event. Key columns come first:
``time`` for Time keys, ``begin`` and ``end`` for TimeRange keys (both as
tz-aware timestamps in the series timezone) and ``index`` for Index keys.
``from_dataframe`` reads a frame with a time column back into a series.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import pandas as pd

from tseventkit.core.errors import DataError
from tseventkit.core.types import KeyType
from tseventkit.event import Event, thaw
from tseventkit.series.collection import SortedCollection
from tseventkit.time.keys import UTC, Index, Time, to_ms

if TYPE_CHECKING:
    from tseventkit.series.timeseries import TimeSeries

logger = logging.getLogger(__name__)

_TIME_COLUMNS = ("time", "begin", "end")


def _key_columns(event: Event) -> dict[str, Any]:
    if event.key_type is KeyType.TIME:
        return {"time": event.begin()}
    if event.key_type is KeyType.TIMERANGE:
        return {"begin": event.begin(), "end": event.end()}
    return {"index": event.key.as_string()}


def to_dataframe(series: TimeSeries) -> pd.DataFrame:
    """One row per event, key columns first then every data column."""
    columns = series.columns()
    records = []
    for e in series.events():
        row = _key_columns(e)
        for column in columns:
            row[column] = thaw(e.get(column))
        records.append(row)
    if not records:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame.from_records(records)
    for column in _TIME_COLUMNS:
        if column in df.columns:
            df[column] = pd.to_datetime(df[column], unit="ms", utc=True).dt.tz_convert(
                series.timezone()
            )
    return df


def _time_values(values: pd.Series) -> list[int]:
    if pd.api.types.is_numeric_dtype(values):
        return [to_ms(v) for v in values.tolist()]
    return [to_ms(ts) for ts in pd.to_datetime(values, utc=True)]


def from_dataframe(
    df: pd.DataFrame,
    time_col: str = "time",
    value_cols: Sequence[str] | None = None,
    name: str = "",
    tz: str = UTC,
    index: Index | str | None = None,
    meta: Mapping[str, Any] | None = None,
) -> TimeSeries:
    """Build a Time keyed series from a DataFrame.

    Args:
        df: Source frame
        time_col: Column of instants; numbers are epoch milliseconds
        value_cols: Columns to keep as fields (default: every other column)
        name: Series name
        tz: Series timezone

    Raises:
        DataError: If ``time_col`` or a value column is missing.
    """
    from tseventkit.series.timeseries import TimeSeries, build_metadata

    if time_col not in df.columns:
        raise DataError(
            f"Time column {time_col!r} not found",
            context={"columns": [str(c) for c in df.columns]},
            fix_hint="Pass time_col= with the name of the timestamp column",
        )
    if value_cols is None:
        value_cols = [c for c in df.columns if c != time_col]
    missing = [c for c in value_cols if c not in df.columns]
    if missing:
        raise DataError(
            f"Value columns not found: {missing}",
            context={"columns": [str(c) for c in df.columns]},
        )

    times = _time_values(df[time_col])
    values = df[list(value_cols)].astype(object)
    values = values.where(values.notna(), None)
    events = [
        Event(Time(ms), {str(k): v for k, v in row.items()})
        for ms, row in zip(times, values.to_dict(orient="records"))
    ]
    logger.debug("Read %d rows from DataFrame into series %r", len(events), name)
    return TimeSeries(SortedCollection(events), build_metadata(name, tz, index, meta))


__all__ = ["from_dataframe", "to_dataframe"]
