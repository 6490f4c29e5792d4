"""
Configuration for the historian daemon
======================================

Loads the YAML configuration file and validates it with Pydantic.  The
keys mirror the properties the daemon has always read:

    logs: /var/log/historian
    user: historian
    channel: "#example"
    server_address: irc.example.net
    server_port: 6697

The core only ever sees the immutable ``SessionConfig`` derived from it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, Optional, Union

import yaml
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from historian.core.errors import ConfigError

CONFIG_PATH_ENV = "HISTORIAN_CONFIG_PATH"


class SessionConfig(BaseModel):
    """What the core needs to know about its own session; never mutated."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    log_root: Path
    channel: Annotated[str, Field(min_length=1)]
    login: Annotated[str, Field(min_length=1)]


class HistorianConfig(BaseModel):
    """Pydantic model for the configuration file - single source of truth."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    logs: Path
    user: Annotated[str, Field(min_length=1, description="Nick and login name")]
    channel: Annotated[str, Field(min_length=1, description="Channel to join and log")]
    server_address: Annotated[str, Field(min_length=1)]
    server_port: Annotated[int, Field(gt=0, lt=65536)] = 6697
    tls: bool = True
    tls_verify: Annotated[
        bool, Field(description="Verify the server certificate; off by default")
    ] = False

    def session(self) -> SessionConfig:
        return SessionConfig(log_root=self.logs, channel=self.channel, login=self.user)


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in error.errors()
    )


def load_config(config_path: Optional[Union[str, Path]] = None) -> HistorianConfig:
    """Load and validate the configuration file.

    Parameters
    ----------
    config_path : str or Path, optional
        Path to the YAML file.  Falls back to ``$HISTORIAN_CONFIG_PATH``.

    Returns
    -------
    HistorianConfig
        Validated configuration.

    Raises
    ------
    ConfigError
        If no path is given, the file cannot be read or parsed, or a value
        is missing or invalid.
    """
    if config_path is None:
        config_path = os.getenv(CONFIG_PATH_ENV)
    if not config_path:
        raise ConfigError(f"No configuration file given (set {CONFIG_PATH_ENV})")

    config_file = Path(config_path)
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read configuration {config_file}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse configuration {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {config_file} must be a mapping")

    try:
        config = HistorianConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {_describe(e)}") from e

    logger.info(f"Configuration loaded from {config_file}")
    return config
