"""Core error types with rich context.

Every error raised by tseventkit carries an error code, an optional context
dict naming the offending option or value, and a fix hint.
"""

from __future__ import annotations

from typing import Any


class TSEventKitError(Exception):
    """Base exception with rich context.

    Subclasses only override ``error_code`` and ``fix_hint``; call sites
    attach the offending option name and the allowed values via ``context``.
    """

    error_code: str = "E_UNKNOWN"
    fix_hint: str = ""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        fix_hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        if fix_hint:
            self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}"]
        if self.context:
            parts.append(f"(context: {self.context})")
        if self.fix_hint:
            parts.append(f"[hint: {self.fix_hint}]")
        return " ".join(parts)


class ConfigError(TSEventKitError, ValueError):
    """Malformed options passed to an operation."""

    error_code = "E_CONFIG"
    fix_hint = "Check the option names and values passed to the call"


class EventIndexError(TSEventKitError, IndexError):
    """Positional access outside the collection."""

    error_code = "E_INDEX"
    fix_hint = "Positions must be in [0, size)"


class KeyTypeError(TSEventKitError, TypeError):
    """The operation does not support the series key variant."""

    error_code = "E_KEY_TYPE"
    fix_hint = "Only time keyed series support this operation"


class DataError(TSEventKitError):
    """Event data does not have the expected shape."""

    error_code = "E_DATA"
    fix_hint = "Check the wire format: columns and points must line up"


# Error registry for lookup
ERROR_REGISTRY: dict[str, type[TSEventKitError]] = {
    "E_CONFIG": ConfigError,
    "E_INDEX": EventIndexError,
    "E_KEY_TYPE": KeyTypeError,
    "E_DATA": DataError,
}


def get_error_class(error_code: str) -> type[TSEventKitError]:
    """Get error class by code."""
    return ERROR_REGISTRY.get(error_code, TSEventKitError)
