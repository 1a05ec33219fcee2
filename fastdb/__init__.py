from __future__ import annotations

__version__ = "1.0.5"

from .database import Database
from .errors import BackupError, FastDBError, LoadAborted, StoreValidationError
from .models import DatabaseOptions, DatabaseStats, KeyValuePair, SnapshotOptions

__all__ = [
    "Database",
    "DatabaseOptions",
    "SnapshotOptions",
    "DatabaseStats",
    "KeyValuePair",
    "FastDBError",
    "StoreValidationError",
    "BackupError",
    "LoadAborted",
]
