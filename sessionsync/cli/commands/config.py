"""Preference and settings commands."""

from typing import Annotated

import typer
from rich import box
from rich.markup import escape
from rich.table import Table

from sessionsync.cli.helpers import (
    console,
    get_cli_settings,
    get_preferences_storage,
    print_success,
    run_command,
)


app = typer.Typer(name="config", help="Show and change preferences")

NOT_SET = "[dim]not set[/dim]"


@app.command(name="show")
def show_command(ctx: typer.Context) -> None:
    """Show resolved settings and saved preferences."""
    settings = get_cli_settings(ctx)
    preferences = run_command(get_preferences_storage(settings).load())

    table = Table(show_header=True, header_style="bold cyan", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("storage_root", escape(str(settings.storage_root)))
    table.add_row("tokens_file", escape(str(settings.tokens_file)))
    table.add_row("auth_base_url", escape(settings.exchange.auth_base_url))
    table.add_row("url", escape(preferences.url) if preferences.url else NOT_SET)
    table.add_row(
        "file_path", escape(preferences.file_path) if preferences.file_path else NOT_SET
    )
    console.print(table)


@app.command(name="set")
def set_command(
    ctx: typer.Context,
    url: Annotated[
        str | None, typer.Option("--url", help="Remote import API URL")
    ] = None,
    file_path: Annotated[
        str | None, typer.Option("--file-path", help="Export file path")
    ] = None,
) -> None:
    """Save the remote import URL and/or export file path."""
    settings = get_cli_settings(ctx)
    storage = get_preferences_storage(settings)

    preferences = run_command(storage.load())
    updates = {
        key: value
        for key, value in {"url": url, "file_path": file_path}.items()
        if value is not None
    }
    if not updates:
        console.print("Nothing to update")
        return

    run_command(storage.save(preferences.model_copy(update=updates)))
    print_success("Preferences saved")
