from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ..errors import GenerationIOError

logger = logging.getLogger(__name__)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Atomically write bytes to a path using a temporary file and replace.

    Ensures that either the old file remains or the new file fully replaces it.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    finally:
        try:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
        except OSError:
            logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)


def write_if_changed(path: Path, text: str) -> bool:
    """Write ``text`` unless the file already holds exactly these bytes.

    Returns True when the file was (re)written. Leaving identical files alone
    keeps their mtimes stable for incremental builds.
    """
    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise GenerationIOError(path, f"text is not encodable as UTF-8 ({e.reason})") from e
    try:
        if path.is_file() and path.read_bytes() == data:
            logger.debug("Unchanged: %s", path)
            return False
        atomic_write_bytes(path, data)
    except OSError as e:
        raise GenerationIOError(path, e.strerror or str(e)) from e
    logger.debug("Wrote %s (%d bytes)", path, len(data))
    return True


def remove_file(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        raise GenerationIOError(path, e.strerror or str(e)) from e
    logger.debug("Removed %s", path)
