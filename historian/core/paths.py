"""Log Path Resolver: ``root/channel/YYYY/MM/DD.txt`` from a UTC instant."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Union


def to_utc(instant: datetime) -> datetime:
    """Return ``instant`` in UTC; naive datetimes are taken to already be UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def resolve_path(root: Union[str, Path], channel: str, now: datetime) -> Path:
    """Compute the log file for ``channel`` on the UTC calendar day of ``now``.

    Pure and deterministic; nothing is touched on disk.
    """
    utc = to_utc(now)
    return (
        Path(root)
        / channel
        / f"{utc.year:04d}"
        / f"{utc.month:02d}"
        / f"{utc.day:02d}.txt"
    )
