"""Data contracts for tseventkit."""

from .wire import WireFormat, is_known_key_column

__all__ = ["WireFormat", "is_known_key_column"]
