"""Event collections, windowing and the TimeSeries facade."""

from tseventkit.series import functions
from tseventkit.series.collection import SortedCollection
from tseventkit.series.combine import (
    timeseries_list_event_reduce,
    timeseries_list_merge,
    timeseries_list_reduce,
    timeseries_list_sum,
)
from tseventkit.series.frame import from_dataframe, to_dataframe
from tseventkit.series.timeseries import (
    TimeSeries,
    build_metadata,
    copy_series,
    from_collection,
    from_events,
    indexed_series,
    time_series,
    timerange_series,
    timeseries,
)
from tseventkit.series.windowing import WindowedCollection

__all__ = [
    # Collections
    "SortedCollection",
    "WindowedCollection",
    "functions",
    # TimeSeries
    "TimeSeries",
    "build_metadata",
    "timeseries",
    "time_series",
    "timerange_series",
    "indexed_series",
    "from_events",
    "from_collection",
    "copy_series",
    # Combining
    "timeseries_list_event_reduce",
    "timeseries_list_merge",
    "timeseries_list_reduce",
    "timeseries_list_sum",
    # pandas
    "from_dataframe",
    "to_dataframe",
]
