from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    # Storage
    filename: str
    auto_sync: bool
    max_file_size: int

    # Snapshots (off by default)
    snapshots_enabled: bool
    snapshot_interval: float
    snapshot_path: str


def get_settings() -> Settings:
    filename = os.getenv("FASTDB_FILENAME", "fastdb.bin")
    auto_sync = _env_bool("FASTDB_AUTO_SYNC", True)
    max_file_size = _env_int("FASTDB_MAX_FILE_SIZE", 100_000_000)

    snapshots_enabled = _env_bool("FASTDB_SNAPSHOTS_ENABLED", False)
    # Seconds; one day by default.
    snapshot_interval = _env_float("FASTDB_SNAPSHOT_INTERVAL", 86400.0)
    snapshot_path = os.getenv("FASTDB_SNAPSHOT_PATH", "./backups/")

    return Settings(
        filename=filename,
        auto_sync=auto_sync,
        max_file_size=max_file_size,
        snapshots_enabled=snapshots_enabled,
        snapshot_interval=snapshot_interval,
        snapshot_path=snapshot_path,
    )
