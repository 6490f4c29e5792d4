"""Error types raised by the historian core."""

from __future__ import annotations

from pathlib import Path

__all__ = ["HistorianError", "DirectoryCreationError", "WriteError", "ConfigError"]


class HistorianError(RuntimeError):
    """Base class for all historian failures."""


class DirectoryCreationError(HistorianError):
    """Raised when a log directory could not be created."""

    def __init__(self, directory: Path):
        super().__init__(f"Could not create log directory: {directory}")
        self.directory = directory


class WriteError(HistorianError):
    """Raised when appending a record to a log file fails."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not append to log file {path}: {reason}")
        self.path = path


class ConfigError(HistorianError, ValueError):
    """Raised when the configuration file is missing or invalid."""
