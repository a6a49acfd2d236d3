from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from ccruntime import __version__
from ccruntime.config import find_config_file, load_config
from ccruntime.diag import HostProbe
from ccruntime.env import EnvRequest, build_snapshot
from ccruntime.errors import CCRuntimeError, HostProbeError
from ccruntime.logs import attach_log_file, setup_logging
from ccruntime.render import render

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class CliState:
    """Global options, handed to every subcommand through ctx.obj."""

    config: Path | None = None
    log: Path | None = None
    log_level: str | None = None


# -------------------- Typer app --------------------

app = typer.Typer(add_completion=False, help="Clear Containers runtime")


def _fail(err: Exception, code: int = 1) -> typer.Exit:
    typer.secho(f"ERROR: {err}", fg=typer.colors.RED, err=True)
    return typer.Exit(code)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"cc-runtime version {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None, typer.Option("--config", help="Path to configuration.toml")
    ] = None,
    log: Annotated[
        Path | None, typer.Option("--log", help="Global log file (overrides the config)")
    ] = None,
    log_level: Annotated[
        LogLevel | None, typer.Option("--log-level", case_sensitive=False, help="Log level")
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = False,
) -> None:
    level = log_level.value if log_level else None
    setup_logging(level)
    ctx.obj = CliState(config=config, log=log, log_level=level)


def _load_request(state: CliState) -> EnvRequest:
    config_file = find_config_file(state.config)
    runtime_config = load_config(config_file)
    log_file = str(state.log) if state.log else runtime_config.global_log_path
    if log_file:
        attach_log_file(log_file)
    return EnvRequest(
        config_file=str(config_file),
        log_file=log_file,
        runtime_config=runtime_config,
    )


@app.command("cc-env")
def cc_env(
    ctx: typer.Context,
    as_json: Annotated[bool, typer.Option("--json", help="JSON instead of TOML")] = False,
) -> None:
    """Display settings."""
    state: CliState = ctx.obj or CliState()
    try:
        request = _load_request(state)
        env = build_snapshot(request)
        render(env, sys.stdout, "json" if as_json else "toml")
    except CCRuntimeError as err:
        logger.debug("cc-env failed", exc_info=True)
        raise _fail(err) from err


@app.command("cc-check")
def cc_check(ctx: typer.Context) -> None:
    """Check that the host can run Clear Containers."""
    state: CliState = ctx.obj or CliState()
    if state.log:
        attach_log_file(state.log)
    try:
        HostProbe().check_capable()
    except HostProbeError as err:
        raise _fail(err) from err
    typer.secho("System is capable of running Clear Containers", fg=typer.colors.GREEN)


# -------------------- Entry --------------------


def run():
    app()


if __name__ == "__main__":
    run()
