"""tseventkit - Immutable time-indexed event series.

Events are keyed by a point in time, a time range or a named interval
(index) and carry a nested data map. Collections of events are immutable
and kept in time order; every transform returns a new collection.

Basic usage:
    >>> from tseventkit import timeseries, functions
    >>> ts = timeseries({
    ...     "name": "traffic",
    ...     "columns": ["time", "in", "out"],
    ...     "points": [[1400425947000, 52, 34], [1400425948000, 18, 13]],
    ... })
    >>> ts.avg("in")
    35.0

Windowed rollups:
    >>> hourly = ts.fixed_window_rollup("1h", {"in_avg": {"in": functions.avg()}})

Combining series:
    >>> from tseventkit import timeseries_list_merge
    >>> merged = timeseries_list_merge([in_series, out_series], name="traffic")
"""

__version__ = "0.4.0"

# Errors
from tseventkit.core.errors import (
    ConfigError,
    DataError,
    EventIndexError,
    KeyTypeError,
    TSEventKitError,
)

# Options and types
from tseventkit.core.config import (
    AlignOptions,
    FillOptions,
    RateOptions,
    RollupOptions,
    WindowOptions,
)
from tseventkit.core.types import (
    AlignMethod,
    FillMethod,
    InterpolationType,
    KeyType,
    Trigger,
)

# Keys and windows
from tseventkit.time import (
    UTC,
    Duration,
    Index,
    Time,
    TimeRange,
    daily,
    duration,
    index,
    monthly,
    time,
    timerange,
    window,
    yearly,
)

# Events and collections
from tseventkit.event import Event
from tseventkit.series import (
    SortedCollection,
    TimeSeries,
    WindowedCollection,
    copy_series,
    from_collection,
    from_dataframe,
    from_events,
    functions,
    indexed_series,
    time_series,
    timerange_series,
    timeseries,
    timeseries_list_merge,
    timeseries_list_reduce,
    timeseries_list_sum,
    to_dataframe,
)

__all__ = [
    "__version__",
    # Errors
    "TSEventKitError",
    "ConfigError",
    "DataError",
    "EventIndexError",
    "KeyTypeError",
    # Options and types
    "FillOptions",
    "AlignOptions",
    "RateOptions",
    "WindowOptions",
    "RollupOptions",
    "FillMethod",
    "AlignMethod",
    "InterpolationType",
    "KeyType",
    "Trigger",
    # Keys and windows
    "UTC",
    "Duration",
    "Time",
    "TimeRange",
    "Index",
    "duration",
    "time",
    "timerange",
    "index",
    "window",
    "daily",
    "monthly",
    "yearly",
    # Events and collections
    "Event",
    "SortedCollection",
    "WindowedCollection",
    "functions",
    # TimeSeries
    "TimeSeries",
    "timeseries",
    "time_series",
    "timerange_series",
    "indexed_series",
    "from_events",
    "from_collection",
    "copy_series",
    "timeseries_list_merge",
    "timeseries_list_reduce",
    "timeseries_list_sum",
    "from_dataframe",
    "to_dataframe",
]
