from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def utc_timestamp(now: datetime | None = None) -> str:
    ts = now or datetime.now(timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def snapshot_path(snapshot_dir: Path, now: datetime | None = None) -> Path:
    # Colons and dots are not portable in file names.
    stamp = utc_timestamp(now).replace(":", "-").replace(".", "-")
    return snapshot_dir / f"snapshot-{stamp}.json"
