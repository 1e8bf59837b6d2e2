"""Command line entry point for sessionsync."""

from pathlib import Path
from typing import Annotated, Any

import typer

from sessionsync._version import __version__
from sessionsync.cli.commands.config import app as config_app
from sessionsync.cli.commands.exchange import exchange_command
from sessionsync.cli.commands.tokens import app as tokens_app
from sessionsync.cli.helpers import print_error
from sessionsync.config.settings import ConfigurationError, Settings
from sessionsync.core.logging import setup_logging


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sessionsync {__version__}")
        raise typer.Exit()


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
    help="Exchange auth sessions for API credentials and manage the local store.",
)


@app.callback()
def app_main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML configuration file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    ] = None,
    json_logs: Annotated[
        bool | None,
        typer.Option("--json-logs/--console-logs", help="Log format"),
    ] = None,
) -> None:
    """Resolve settings once and configure logging for all commands."""
    logging_overrides: dict[str, Any] = {}
    if log_level is not None:
        logging_overrides["level"] = log_level
    if json_logs is not None:
        logging_overrides["json_logs"] = json_logs

    try:
        settings = Settings.from_config(
            config, **({"logging": logging_overrides} if logging_overrides else {})
        )
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    setup_logging(
        json_logs=settings.logging.json_logs,
        log_level_name=settings.logging.level,
    )
    ctx.obj = settings


app.command(name="exchange")(exchange_command)
app.add_typer(tokens_app)
app.add_typer(config_app)


def main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "main"]
