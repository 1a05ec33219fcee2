from __future__ import annotations

import os
from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for `import fastdb` when the package is not installed.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """
    Drop any FASTDB_* variables from the host so defaults are predictable.
    """
    for name in list(os.environ):
        if name.startswith("FASTDB_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "db" / "fastdb.bin"


@pytest.fixture
def db(db_path: Path):
    from fastdb import Database

    return Database(db_path)
