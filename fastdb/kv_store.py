from __future__ import annotations

import logging
from typing import Any

from .disk_store import encode_text
from .document import format_number
from .errors import LoadAborted, StoreValidationError
from .interfaces import PersistenceBackend

logger = logging.getLogger(__name__)

MAX_KEY_LENGTH = 1000
MAX_VALUE_BYTES = 10_000_000


def normalize_value(value: Any) -> str:
    """
    Coerce a caller-supplied value to the text the store keeps.

    Numbers become decimal text, booleans "true"/"false", None "null";
    anything that is not a scalar becomes "".
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):  # bool is subclass of int in Python
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if value is None:
        return "null"
    return ""


def _encoded_length(text: str, what: str) -> int:
    try:
        return len(encode_text(text))
    except UnicodeEncodeError as e:
        raise StoreValidationError(f"{what} is not encodable as UTF-8") from e


def validate_key(key: str) -> None:
    if not isinstance(key, str):
        raise StoreValidationError("Key must be a string")
    if not key or len(key) > MAX_KEY_LENGTH:
        raise StoreValidationError(f"Key must be 1-{MAX_KEY_LENGTH} characters")
    _encoded_length(key, "Key")


def validate_value(value: str) -> None:
    if _encoded_length(value, "Value") > MAX_VALUE_BYTES:
        raise StoreValidationError(f"Value too large (max {MAX_VALUE_BYTES} bytes)")


class KeyValueStore:
    """
    Flat in-memory mapping of text keys to text values.

    Each successful mutation is flushed to the backend straight away unless
    ``auto_sync`` is off, in which case the caller decides when to ``save()``.
    A failed automatic flush is logged; the in-memory change stands.
    """

    def __init__(self, backend: PersistenceBackend, *, auto_sync: bool = True):
        self._backend = backend
        self._auto_sync = auto_sync
        self._data: dict[str, str] = {}
        self._dirty = False

    @property
    def backend(self) -> PersistenceBackend:
        return self._backend

    @property
    def dirty(self) -> bool:
        """True when memory holds changes the backend has not seen."""
        return self._dirty

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        validate_key(key)
        validate_value(value)
        self._data[key] = value
        self._changed()

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        self._changed()
        return True

    def has(self, key: str) -> bool:
        return key in self._data

    def clear(self) -> None:
        self._data.clear()
        self._changed()

    def size(self) -> int:
        return len(self._data)

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def values(self) -> list[str]:
        return list(self._data.values())

    def items(self) -> list[tuple[str, str]]:
        return list(self._data.items())

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def save(self) -> bool:
        ok = self._backend.write_entries(self._data)
        if ok:
            self._dirty = False
        return ok

    def load(self) -> bool:
        """
        Replace memory with the backend's contents.

        Memory is left untouched when there is nothing to load or the stored
        image is rejected; only the latter reports failure.
        """
        try:
            entries = self._backend.read_entries()
        except LoadAborted as e:
            logger.warning("LOAD: aborted, keeping %d in-memory entries: %s", len(self._data), e)
            return False
        if entries is not None:
            self._data.clear()
            self._data.update(entries)
            self._dirty = False
        return True

    def _changed(self) -> None:
        self._dirty = True
        if self._auto_sync and not self.save():
            logger.warning("SAVE: automatic flush failed, changes kept in memory only")
