from __future__ import annotations

from pathlib import Path

import pytest

from fastdb import Database, DatabaseOptions
from fastdb.settings import get_settings


def test_defaults():
    settings = get_settings()
    assert settings.filename == "fastdb.bin"
    assert settings.auto_sync is True
    assert settings.max_file_size == 100_000_000
    assert settings.snapshots_enabled is False
    assert settings.snapshot_interval == 86400.0
    assert settings.snapshot_path == "./backups/"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FASTDB_FILENAME", "other.bin")
    monkeypatch.setenv("FASTDB_AUTO_SYNC", "off")
    monkeypatch.setenv("FASTDB_MAX_FILE_SIZE", "2048")
    monkeypatch.setenv("FASTDB_SNAPSHOTS_ENABLED", "YES")
    monkeypatch.setenv("FASTDB_SNAPSHOT_INTERVAL", "3.5")

    options = DatabaseOptions.from_settings(get_settings())
    assert options.auto_sync is False
    assert options.max_file_size == 2048
    assert options.snapshots.enabled is True
    assert options.snapshots.interval == 3.5


def test_database_defaults_come_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    target = tmp_path / "env.bin"
    monkeypatch.setenv("FASTDB_FILENAME", str(target))
    db = Database()
    assert db.filename == str(target)
    db.set("a", "1")
    assert target.exists()


def test_from_env_reads_dotenv_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    target = tmp_path / "dotenv.bin"
    env_file = tmp_path / "local.env"
    env_file.write_text(f"FASTDB_FILENAME={target}\nFASTDB_AUTO_SYNC=false\n")
    # load_dotenv writes straight into os.environ; register the names so they are undone.
    monkeypatch.setenv("FASTDB_FILENAME", "")
    monkeypatch.delenv("FASTDB_FILENAME")
    monkeypatch.setenv("FASTDB_AUTO_SYNC", "")
    monkeypatch.delenv("FASTDB_AUTO_SYNC")

    db = Database.from_env(str(env_file))
    assert db.filename == str(target)
    assert db.options.auto_sync is False


def test_empty_filename_rejected():
    with pytest.raises(ValueError):
        Database("")
