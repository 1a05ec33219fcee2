from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, Field

from .disk_store import DEFAULT_MAX_FILE_SIZE
from .settings import Settings


class SnapshotOptions(BaseModel):
    enabled: bool = False
    # Seconds between snapshots.
    interval: float = Field(default=86400.0, gt=0)
    path: str = "./backups/"


class DatabaseOptions(BaseModel):
    snapshots: SnapshotOptions = Field(default_factory=SnapshotOptions)
    auto_sync: bool = True
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, gt=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseOptions":
        return cls(
            auto_sync=settings.auto_sync,
            max_file_size=settings.max_file_size,
            snapshots=SnapshotOptions(
                enabled=settings.snapshots_enabled,
                interval=settings.snapshot_interval,
                path=settings.snapshot_path,
            ),
        )


class KeyValuePair(BaseModel):
    key: str
    value: Any = None


class DatabaseStats(BaseModel):
    total_keys: int
    regular_properties: int
    nested_properties: int
    total_size: int
    average_key_size: int
    filename: str


class BackupDocument(BaseModel):
    """
    On-disk JSON backup schema:
      { "timestamp": "<ISO-8601>", "data": { "<key>": <value> }, "version": "<package version>" }
    """

    timestamp: str
    data: dict[str, Any] = Field(default_factory=dict)
    version: str

    @classmethod
    def from_disk_doc(cls, doc: Mapping[str, Any]) -> "BackupDocument":
        return cls.model_validate(doc)

    def to_disk_doc(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
