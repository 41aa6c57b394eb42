# calindex/core/exceptions.py
from __future__ import annotations


class CoreError(Exception):
    """Base error for all core-domain exceptions."""


# ---- Validation / construction errors ----
class ValidationError(CoreError):
    """Raised when a query input is malformed. Never reaches storage."""


class InvalidTimeWindow(ValidationError):
    """Raised when a TimeWindow is constructed with start after end."""


class InvalidIndexEntry(ValidationError):
    """Raised when an IndexEntry is constructed with invalid inputs."""


class InvalidCalendarUnit(ValidationError):
    """Raised when a calendar unit anchor (month, week, ...) is out of range."""


class InvalidConfig(ValidationError):
    """Raised when host settings cannot be turned into an IndexConfig."""


# ---- Owner boundary ----
class UnsupportedOwnerError(CoreError):
    """Raised when an owner object cannot be mapped to a type tag."""


# ---- Storage boundary (opaque, propagated unchanged) ----
class StorageError(CoreError):
    """Raised by a storage engine when a query cannot be executed."""


class UnknownColumn(StorageError, KeyError):
    """Raised when a constraint or ordering references a missing column."""
