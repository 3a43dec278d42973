"""
Error taxonomy for the history store.
"""


class TrackingError(Exception):
    """Base class for history store failures."""


class PersistenceError(TrackingError):
    """The store could not be created, opened, or written."""


class QueryError(TrackingError):
    """A read failed against an existing store (bad query or schema mismatch)."""
