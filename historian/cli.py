from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from historian.core.config import load_config
from historian.core.dispatcher import Historian, utc_now
from historian.core.errors import ConfigError
from historian.core.lifecycle import register_teardown
from historian.core.logging import setup_logging
from historian.core.paths import resolve_path
from historian.core.version import package_version, version_string

# Accepted by `path --at`; %z takes +0000, +00:00 and Z
AT_FORMATS = [
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S%z",
]

# Typer application
app = typer.Typer(
    add_completion=False, no_args_is_help=True, help="IRC channel historian"
)


def start_http_server(port: int) -> None:
    """Indirection for Prometheus server to allow monkeypatching in tests."""
    from prometheus_client import start_http_server as _start

    _start(port)


def run_bot(config, historian: Historian, version: str) -> None:
    """Thin wrapper to allow monkeypatching in tests and keep imports lazy."""
    from historian.irc_client import HistorianBot

    HistorianBot(config, historian, version).start()


def _load(config_path: Optional[Path]):
    try:
        return load_config(config_path)
    except ConfigError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command("version")
def version_cmd() -> None:
    """Print the historian package version."""
    typer.echo(package_version())


@app.command("run")
def run_cmd(
    config_path: Optional[Path] = typer.Argument(
        None, help="Configuration file (default: $HISTORIAN_CONFIG_PATH)"
    ),
    metrics_port: int = typer.Option(
        0, "--metrics-port", help="Prometheus metrics port (0 disables)"
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Diagnostic log level"),
) -> None:
    """Join the configured channel and log it until terminated."""
    setup_logging(log_level)
    config = _load(config_path)

    if metrics_port:
        start_http_server(metrics_port)
        logger.info(f"Metrics server listening on :{metrics_port}")

    historian = Historian(config.session())
    register_teardown(historian.teardown)

    version = version_string()
    historian.started(version)
    run_bot(config, historian, version)


@app.command("path")
def path_cmd(
    config_path: Optional[Path] = typer.Argument(
        None, help="Configuration file (default: $HISTORIAN_CONFIG_PATH)"
    ),
    at: Optional[datetime] = typer.Option(
        None,
        "--at",
        formats=AT_FORMATS,
        help="Instant to resolve instead of now; without an offset it is taken as UTC",
    ),
) -> None:
    """Print the log file a record written at the given instant would go to."""
    config = _load(config_path)
    typer.echo(str(resolve_path(config.logs, config.channel, at or utc_now())))


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
