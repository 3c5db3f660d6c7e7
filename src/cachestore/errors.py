"""Exceptions raised by cache drivers and stores"""


class CacheError(Exception):
    """Base exception for cache operations."""

    pass


class ScanError(CacheError):
    """A value could not be scanned (key absent or not coercible)."""

    pass


class ScanTypeMismatch(ScanError):
    """The stored value does not match the requested scan type."""

    pass


class NumericOpError(CacheError):
    """Increment/decrement on an absent or non-numeric value."""

    pass


class BackendUnavailable(CacheError):
    """The backend could not be reached or answered with a protocol error."""

    pass
