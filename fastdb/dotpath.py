from __future__ import annotations

from . import document
from .document import DocumentValue, Object, String
from .kv_store import KeyValueStore

# Flat key holding the serialized nested document. A caller setting this key
# directly overwrites the whole document.
ROOT_KEY = "__root__"


def split_path(key: str) -> list[str]:
    """Split a dotted key into segments, ignoring empty ones (``a..b.`` -> a, b)."""
    return [part for part in key.split(".") if part]


def is_dotted(key: str) -> bool:
    return "." in key


def _walk(root: DocumentValue, segments: list[str]) -> DocumentValue | None:
    current = root
    for part in segments:
        if not isinstance(current, Object) or part not in current.members:
            return None
        current = current.members[part]
    return current


class DocumentPaths:
    """
    Dotted-path access into the single document kept under ``__root__``.

    The document is parsed from the store on every call and written back on
    every successful mutation; nothing is cached in between.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    def _load_root(self) -> DocumentValue | None:
        raw = self._store.get(ROOT_KEY)
        if raw is None:
            return None
        return document.parse(raw)

    def _store_root(self, root: DocumentValue) -> None:
        self._store.set(ROOT_KEY, document.stringify(root))

    def set(self, key: str, value: str) -> bool:
        """
        Store ``value`` as a string leaf at ``key``.

        A non-object root, and any non-object intermediate along the path,
        is replaced by an empty object.
        """
        segments = split_path(key)
        if not segments:
            return False

        root = self._load_root()
        if not isinstance(root, Object):
            root = Object()

        current = root
        for part in segments[:-1]:
            child = current.members.get(part)
            if not isinstance(child, Object):
                child = Object()
                current.members[part] = child
            current = child
        current.members[segments[-1]] = String(value)

        self._store_root(root)
        return True

    def get(self, key: str) -> str:
        """
        Return the leaf text at ``key``; non-string leaves come back as
        serialized JSON.

        Returns "" when the path does not resolve, which is indistinguishable
        from a stored empty string.
        """
        segments = split_path(key)
        root = self._load_root()
        if not segments or root is None:
            return ""
        leaf = _walk(root, segments)
        if leaf is None:
            return ""
        if isinstance(leaf, String):
            return leaf.text
        return document.stringify(leaf)

    def delete(self, key: str) -> bool:
        segments = split_path(key)
        root = self._load_root()
        if not segments or root is None:
            return False
        parent = _walk(root, segments[:-1])
        if not isinstance(parent, Object) or segments[-1] not in parent.members:
            return False
        del parent.members[segments[-1]]
        self._store_root(root)
        return True

    def has(self, key: str) -> bool:
        segments = split_path(key)
        root = self._load_root()
        if not segments or root is None:
            return False
        return _walk(root, segments) is not None

    def load_document(self) -> DocumentValue | None:
        """The parsed document, or None when nothing has been stored yet."""
        return self._load_root()
