"""
Single point of file access for the bot's flat-file storage.

Repositories never call open()/os.replace directly: they read through
read_text_or_none() and persist through atomic_write_text(). Swapping the flat
file for something else means a new repository, not changes in handlers.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def read_text_or_none(path: Path) -> str | None:
    """Return file contents, or None if the file does not exist."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None


def atomic_write_text(path: Path, content: str) -> None:
    """
    Replace `path` with `content` in one step.

    Writes to a temp file in the same directory, fsyncs it, then os.replace()
    onto the target. Readers see either the old file or the new one.
    The temp file is removed if anything fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
