"""Core module - errors and shared types.

Option objects live in ``tseventkit.core.config``; they depend on the time
module, so they are not re-exported here.
"""

from tseventkit.core.errors import (
    ConfigError,
    DataError,
    EventIndexError,
    KeyTypeError,
    TSEventKitError,
)
from tseventkit.core.types import (
    AlignMethod,
    FillMethod,
    InterpolationType,
    KeyType,
    Trigger,
)

__all__ = [
    # Errors
    "TSEventKitError",
    "ConfigError",
    "EventIndexError",
    "KeyTypeError",
    "DataError",
    # Types
    "FillMethod",
    "AlignMethod",
    "InterpolationType",
    "Trigger",
    "KeyType",
]
