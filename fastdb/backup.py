from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .models import BackupDocument

logger = logging.getLogger(__name__)


def write_backup(path: Path, doc: BackupDocument) -> None:
    """
    Write ``doc`` as indented JSON, going through ``<path>.tmp`` so a reader
    never sees a half-written backup. OSError propagates to the caller.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(doc.to_disk_doc(), f, indent=2, sort_keys=True)
        f.write("\n")
    tmp_path.replace(path)


def read_backup(path: Path) -> BackupDocument | None:
    """
    Read a backup written by ``write_backup``.

    Returns None for missing or empty files, invalid JSON, and JSON that is
    not a backup document.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("BACKUP: failed to read %s: %r", path, e)
        return None
    if not raw.strip():
        return None
    try:
        return BackupDocument.from_disk_doc(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("BACKUP: %s is not a backup document: %r", path, e)
        return None
