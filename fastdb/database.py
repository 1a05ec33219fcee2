from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from time import monotonic
from typing import Any, Callable, Iterator, Mapping

from dotenv import load_dotenv

from . import __version__, document
from .backup import read_backup, write_backup
from .disk_store import DiskBinaryStore
from .document import Array, DocumentValue, Object
from .dotpath import ROOT_KEY, DocumentPaths, is_dotted
from .errors import BackupError
from .kv_store import KeyValueStore, normalize_value, validate_key, validate_value
from .models import BackupDocument, DatabaseOptions, DatabaseStats, KeyValuePair
from .paths import ensure_dir, snapshot_path, utc_timestamp
from .settings import get_settings

logger = logging.getLogger(__name__)

# Leading numeric prefix, the way a lenient float reader sees "42px" as 42.
_NUMBER_PREFIX_RE = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _check_key(key: Any) -> None:
    if not isinstance(key, str):
        raise TypeError("Key must be a string")


def _leading_number(text: str | None) -> float | None:
    if text is None:
        return None
    m = _NUMBER_PREFIX_RE.match(text)
    if m is None:
        return None
    return float(m.group(0))


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return document.stringify(document.from_python(value))


def _flatten_document(obj: Object, prefix: str = "") -> Iterator[KeyValuePair]:
    for key, child in obj.members.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(child, Object):
            yield from _flatten_document(child, full_key)
        else:
            yield KeyValuePair(key=full_key, value=child.to_python())


def _flatten_mapping(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    flattened: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flattened.update(_flatten_mapping(value, full_key))
        else:
            flattened[full_key] = value
    return flattened


class Database:
    """
    File-backed key/value store with dot-notation access to a nested document.

    Flat keys map straight to text values. Keys containing "." address the
    document held under ``__root__``: ``db.set("user.name", "Ann")`` stores
    ``{"user": {"name": "Ann"}}`` there.

    Every mutation is written through to ``filename`` before returning unless
    ``options.auto_sync`` is off; then call ``sync()`` or ``close()``.
    """

    def __init__(
        self,
        filename: str | os.PathLike[str] | None = None,
        options: DatabaseOptions | None = None,
    ):
        if filename is None or options is None:
            settings = get_settings()
            if filename is None:
                filename = settings.filename
            if options is None:
                options = DatabaseOptions.from_settings(settings)

        self.filename = os.fspath(filename)
        if not self.filename:
            raise ValueError("Database filename is required")
        self.options = options

        backend = DiskBinaryStore(Path(self.filename), max_file_size=options.max_file_size)
        self._store = KeyValueStore(backend, auto_sync=options.auto_sync)
        self._paths = DocumentPaths(self._store)
        self._store.load()

        self._last_snapshot = monotonic()
        if options.snapshots.enabled:
            ensure_dir(Path(options.snapshots.path))

    @classmethod
    def from_env(cls, env_file: str = "local.env") -> "Database":
        """Build a database from ``FASTDB_*`` variables, reading ``env_file`` first if present."""
        load_dotenv(env_file)
        settings = get_settings()
        return cls(settings.filename, DatabaseOptions.from_settings(settings))

    def __repr__(self) -> str:
        return f"({self.size()})<Database@{self.filename}>"

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any) -> str | None:
        """
        Store ``value`` under ``key`` and return the text actually stored.

        Returns None when a dotted key has no usable segments (e.g. "...").
        Raises StoreValidationError for an empty or over-long key, or a value
        over 10 MB once converted to text.
        """
        _check_key(key)
        validate_key(key)
        text = normalize_value(value)
        validate_value(text)

        if is_dotted(key):
            if not self._paths.set(key, text):
                return None
        else:
            self._store.set(key, text)
        self._after_write()
        return text

    def get(self, key: str, default: Any = None) -> Any:
        _check_key(key)
        if is_dotted(key):
            # An empty leaf reads the same as a missing one.
            return self._paths.get(key) or default
        value = self._store.get(key)
        return default if value is None else value

    def delete(self, key: str) -> bool:
        _check_key(key)
        if is_dotted(key):
            deleted = self._paths.delete(key)
        else:
            deleted = self._store.delete(key)
        if deleted:
            self._after_write()
        return deleted

    def has(self, key: str) -> bool:
        _check_key(key)
        if is_dotted(key):
            return self._paths.has(key)
        return self._store.has(key)

    def clear(self) -> None:
        self._store.clear()
        self._after_write()

    def size(self) -> int:
        return self._store.size()

    def keys(self) -> list[str]:
        return self._store.keys()

    def values(self) -> list[str]:
        return self._store.values()

    def save(self) -> bool:
        return self._store.save()

    def load(self) -> bool:
        return self._store.load()

    def sync(self) -> bool:
        return self.save()

    def close(self) -> None:
        if self._store.dirty and not self._store.save():
            logger.warning("SAVE: pending changes to %s could not be written on close", self.filename)

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __getitem__(self, key: str) -> str:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if not self.delete(key):
            raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    # ------------------------------------------------------------------
    # Whole-database views
    # ------------------------------------------------------------------

    def all(self) -> list[KeyValuePair]:
        """
        Every flat entry plus every leaf of the nested document.

        Nested leaves are listed under their full dotted key with their native
        Python value; ``__root__`` itself is not listed.
        """
        pairs = [KeyValuePair(key=k, value=v) for k, v in self._store.items() if k != ROOT_KEY]
        root = self._paths.load_document()
        if isinstance(root, Object):
            pairs.extend(_flatten_document(root))
        return pairs

    def export(self) -> dict[str, Any]:
        return {pair.key: pair.value for pair in self.all()}

    def import_(self, data: Mapping[str, Any]) -> bool:
        """Load ``data`` key by key; nested mappings become dotted keys."""
        if not isinstance(data, Mapping):
            raise TypeError("Import data must be a mapping")
        for key, value in _flatten_mapping(data).items():
            self.set(key, _as_text(value))
        return True

    def stats(self) -> DatabaseStats:
        pairs = self.all()
        total_size = 0
        nested = 0
        for pair in pairs:
            total_size += len(pair.key) + len(_as_text(pair.value))
            if "." in pair.key:
                nested += 1
        average = int(total_size / len(pairs) + 0.5) if pairs else 0
        return DatabaseStats(
            total_keys=len(pairs),
            regular_properties=len(pairs) - nested,
            nested_properties=nested,
            total_size=total_size,
            average_key_size=average,
            filename=self.filename,
        )

    # ------------------------------------------------------------------
    # Arrays and numbers stored as text
    # ------------------------------------------------------------------

    def _load_array(self, key: str) -> DocumentValue:
        return document.parse(self.get(key, "[]"))

    def push(self, key: str, element: Any) -> int:
        """Append ``element`` to the JSON array stored at ``key``; returns the new length."""
        _check_key(key)
        arr = self._load_array(key)
        if not isinstance(arr, Array):
            arr = Array()
        arr.items.append(document.from_python(element))
        self.set(key, document.stringify(arr))
        return len(arr.items)

    def pull(self, key: str, element: Any) -> int:
        """Remove every item equal to ``element``; returns how many were removed."""
        _check_key(key)
        arr = self._load_array(key)
        if not isinstance(arr, Array):
            return 0
        target = document.from_python(element)
        kept = [item for item in arr.items if item != target]
        self.set(key, document.stringify(Array(kept)))
        return len(arr.items) - len(kept)

    def _update_number(self, key: str, start: float, op: Callable[[float], float]) -> float:
        current = _leading_number(self.get(key))
        new_value = op(start if current is None else current)
        self.set(key, new_value)
        return new_value

    def add(self, key: str, amount: float = 1) -> float:
        return self._update_number(key, 0, lambda current: current + amount)

    def subtract(self, key: str, amount: float = 1) -> float:
        return self.add(key, -amount)

    def multiply(self, key: str, amount: float = 1) -> float:
        return self._update_number(key, 1, lambda current: current * amount)

    def divide(self, key: str, amount: float = 1) -> float:
        if amount == 0:
            raise ZeroDivisionError("Cannot divide by zero")
        return self._update_number(key, 1, lambda current: current / amount)

    # ------------------------------------------------------------------
    # Backups and snapshots
    # ------------------------------------------------------------------

    def backup(self, filename: str | os.PathLike[str]) -> bool:
        """Write every key (see ``export``) to a JSON file with a timestamp and version."""
        if not filename:
            raise ValueError("Backup filename is required")
        doc = BackupDocument(timestamp=utc_timestamp(), data=self.export(), version=__version__)
        try:
            write_backup(Path(filename), doc)
        except OSError as e:
            raise BackupError(f"Backup failed: {e}") from e
        logger.debug("BACKUP: wrote %d keys to %s", len(doc.data), filename)
        return True

    def restore(self, filename: str | os.PathLike[str]) -> bool:
        """
        Replace the contents with a backup written by ``backup``.

        Returns False, leaving the database untouched, when the file is
        missing or is not a backup document. Every entry is validated before
        anything is cleared, so a StoreValidationError also leaves it untouched.
        """
        doc = read_backup(Path(filename))
        if doc is None:
            return False
        for key, value in _flatten_mapping(doc.data).items():
            validate_key(key)
            validate_value(normalize_value(_as_text(value)))
        self.clear()
        return self.import_(doc.data)

    def snapshot(self) -> Path:
        try:
            target = snapshot_path(ensure_dir(Path(self.options.snapshots.path)))
            self.backup(target)
        finally:
            self._last_snapshot = monotonic()
        return target

    def _after_write(self) -> None:
        snapshots = self.options.snapshots
        if not snapshots.enabled or monotonic() - self._last_snapshot < snapshots.interval:
            return
        try:
            path = self.snapshot()
        except (BackupError, OSError) as e:
            logger.error("SNAPSHOT: failed: %s", e)
            return
        logger.info("SNAPSHOT: wrote %s", path)
