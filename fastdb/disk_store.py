from __future__ import annotations

import io
import logging
import struct
from pathlib import Path
from typing import BinaryIO, Mapping

from .errors import LoadAborted
from .interfaces import PersistenceBackend

logger = logging.getLogger(__name__)

MAGIC = b"FSTDB"
FORMAT_VERSION = 1
MAX_ENTRY_COUNT = 10_000_000
MAX_STRING_LENGTH = 10_000_000
DEFAULT_MAX_FILE_SIZE = 100_000_000

# Fixed to little-endian so files move between hosts unchanged.
_U32 = struct.Struct("<I")


def encode_text(text: str) -> bytes:
    return text.encode("utf-8", errors="surrogateescape")


def decode_text(raw: bytes) -> str:
    # surrogateescape keeps invalid UTF-8 byte-exact across a load/save cycle.
    return raw.decode("utf-8", errors="surrogateescape")


def _write_string(out: BinaryIO, text: str) -> None:
    raw = encode_text(text)
    out.write(_U32.pack(len(raw)))
    out.write(raw)


def _read_u32(src: BinaryIO) -> int | None:
    raw = src.read(_U32.size)
    if len(raw) < _U32.size:
        return None
    return _U32.unpack(raw)[0]


def _read_string(src: BinaryIO) -> str | None:
    """
    Read one length-prefixed string. None means the stream ran dry.

    An implausible length is treated as corrupt: the string resolves to ""
    and no payload is consumed.
    """
    length = _read_u32(src)
    if length is None:
        return None
    if length > MAX_STRING_LENGTH:
        return ""
    raw = src.read(length)
    if len(raw) < length:
        return None
    return decode_text(raw)


def encode_entries(entries: Mapping[str, str]) -> bytes:
    buf = io.BytesIO()
    buf.write(MAGIC)
    buf.write(_U32.pack(FORMAT_VERSION))
    buf.write(_U32.pack(len(entries)))
    for key, value in entries.items():
        _write_string(buf, key)
        _write_string(buf, value)
    return buf.getvalue()


def decode_entries(src: BinaryIO) -> dict[str, str] | None:
    """
    Decode a full image from ``src``.

    Returns None for an unrecognised image (bad magic), raises LoadAborted for
    an unsupported version or entry count, and otherwise returns every entry
    read before the stream ended.
    """
    if src.read(len(MAGIC)) != MAGIC:
        return None

    version = _read_u32(src)
    if version != FORMAT_VERSION:
        raise LoadAborted(f"unsupported format version {version!r}")

    count = _read_u32(src)
    if count is None or count > MAX_ENTRY_COUNT:
        raise LoadAborted(f"implausible entry count {count!r}")

    entries: dict[str, str] = {}
    for _ in range(count):
        key = _read_string(src)
        value = _read_string(src)
        if key is None or value is None:
            break
        if key:
            entries[key] = value
    return entries


class DiskBinaryStore(PersistenceBackend):
    """
    Stores a whole key/value mapping in a single binary file.

    - A missing or foreign file reads as "nothing to load".
    - Writes go to a sibling temp file which then replaces the target.
    """

    def __init__(self, path: Path, *, max_file_size: int = DEFAULT_MAX_FILE_SIZE):
        self._path = path
        self._max_file_size = max_file_size

    @property
    def path(self) -> Path:
        return self._path

    def read_entries(self) -> dict[str, str] | None:
        if not self._path.exists():
            logger.debug("LOAD: %s does not exist, nothing to load", self._path)
            return None
        try:
            with self._path.open("rb") as f:
                entries = decode_entries(f)
        except OSError as e:
            logger.warning("LOAD: failed to read %s: %r", self._path, e)
            raise LoadAborted(str(e)) from e

        if entries is None:
            logger.debug("LOAD: %s is not a database file, ignoring", self._path)
        else:
            logger.debug("LOAD: read %d entries from %s", len(entries), self._path)
        return entries

    def write_entries(self, entries: Mapping[str, str]) -> bool:
        payload = encode_entries(entries)
        if len(payload) > self._max_file_size:
            logger.warning(
                "SAVE: %s would be %d bytes, over the %d byte limit",
                self._path,
                len(payload),
                self._max_file_size,
            )
            return False
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("wb") as f:
                f.write(payload)
            tmp_path.replace(self._path)
        except OSError as e:
            logger.warning("SAVE: failed to write %s: %r", self._path, e)
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                logger.debug("SAVE: could not remove %s", tmp_path)
            return False
        logger.debug("SAVE: wrote %d entries to %s", len(entries), self._path)
        return True
