from __future__ import annotations

from typing import Mapping, Protocol


class PersistenceBackend(Protocol):
    """
    Where a KeyValueStore's entries live between processes: the whole
    mapping is read and written in one piece.
    """

    def read_entries(self) -> dict[str, str] | None:
        """
        Return the persisted entries, or None when there is nothing usable
        to load and the in-memory state should be left alone.

        Raise LoadAborted when the stored image is rejected outright.
        """
        ...

    def write_entries(self, entries: Mapping[str, str]) -> bool:
        """Persist the full mapping, reporting whether the write completed."""
        ...
