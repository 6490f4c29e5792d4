"""
Log Writer
==========

Append-only writes of one record per call.  The file is opened, written,
flushed, synced and closed inside every call; no handle outlives an append,
so a midnight rollover never leaves a stale handle behind.

The writer holds no lock itself: callers serialize appends (see
``historian.core.dispatcher.Historian``), since the lock has to cover path
resolution as well.
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

from loguru import logger

from historian.core.errors import DirectoryCreationError, WriteError
from historian.core.normalizer import LogRecord
from historian.core.paths import to_utc
from historian.metrics import LAST_APPEND_TIME, RECORDS_WRITTEN, WRITE_FAILURES

__all__ = ["format_timestamp", "ensure_directory", "append"]


def format_timestamp(instant: datetime) -> str:
    """Format as ``yyyy-MM-dd'T'HH:mm:ss.SZ``, e.g. ``2024-01-01T00:00:01.5+0000``.

    Milliseconds are not zero padded and the offset is always ``+0000``.
    """
    utc = to_utc(instant)
    millis = utc.microsecond // 1000
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{millis}{utc:%z}"


def ensure_directory(directory: Path) -> None:
    """Create ``directory`` and its parents; idempotent.

    Raises
    ------
    DirectoryCreationError
        If the path is not a directory afterwards (e.g. a file is in the way).
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryCreationError(directory) from e
    if not directory.is_dir():
        raise DirectoryCreationError(directory)


def append(path: Path, record: LogRecord) -> None:
    """Append ``record`` as one line to ``path`` and make it durable.

    Raises
    ------
    DirectoryCreationError
        If the parent directory chain cannot be created.
    WriteError
        If opening, writing or flushing the file fails.
    """
    try:
        ensure_directory(path.parent)
    except DirectoryCreationError:
        WRITE_FAILURES.inc()
        raise

    line = f"{format_timestamp(record.timestamp)} {record.body}\n"
    try:
        with open(path, "a", encoding="utf-8") as f:
            f.write(line)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        WRITE_FAILURES.inc()
        logger.error(f"Failed to append to {path}: {e}")
        raise WriteError(path, str(e)) from e

    RECORDS_WRITTEN.labels(kind=record.kind.value).inc()
    LAST_APPEND_TIME.set(to_utc(record.timestamp).timestamp())
