from __future__ import annotations


class FastDBError(Exception):
    """Base class for errors raised by fastdb."""


class StoreValidationError(FastDBError, ValueError):
    """
    Raised when a key or value is rejected before it reaches the store.

    The store is never modified when this is raised.
    """


class BackupError(FastDBError):
    """Raised when a JSON backup cannot be written."""


class LoadAborted(FastDBError):
    """
    Raised by a persistence backend when a stored image must not be loaded
    (unsupported version, implausible entry count, unreadable file).
    """
