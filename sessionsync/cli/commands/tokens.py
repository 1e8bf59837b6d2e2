"""Credential store commands."""

from typing import Annotated

import typer
from rich import box
from rich.markup import escape
from rich.table import Table

from sessionsync.cli.helpers import (
    console,
    get_cli_settings,
    get_store,
    load_preferences,
    print_error,
    print_success,
    run_command,
)
from sessionsync.config.settings import Settings
from sessionsync.core.logging import mask_secret
from sessionsync.importer.models import ImportResult
from sessionsync.importer.remote import RemoteImporter


app = typer.Typer(name="tokens", help="Manage the local credential store")


async def import_tokens(settings: Settings, api_url: str) -> ImportResult:
    """Import a remote batch into the configured store."""
    async with RemoteImporter(
        get_store(settings), http_settings=settings.http
    ) as importer:
        return await importer.import_from_remote(api_url)


@app.command(name="list")
def list_command(ctx: typer.Context) -> None:
    """List stored credentials."""
    settings = get_cli_settings(ctx)
    records = run_command(get_store(settings).load())

    if not records:
        console.print("No credentials stored")
        return

    table = Table(
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        title=f"Credentials ({len(records)})",
    )
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Email", style="white")
    table.add_column("Tenant", style="white")
    table.add_column("Token", style="dim")
    table.add_column("Status", style="white")
    table.add_column("Credits", justify="right")
    table.add_column("Created", style="dim")

    for record in records:
        credits = ""
        if record.portal_info and record.portal_info.credits_balance is not None:
            credits = str(record.portal_info.credits_balance)
        status_style = "green" if record.ban_status == "ACTIVE" else "red"
        table.add_row(
            escape(record.id),
            escape(record.email_note or ""),
            escape(record.tenant_url),
            escape(mask_secret(record.access_token)),
            f"[{status_style}]{escape(record.ban_status)}[/{status_style}]",
            credits,
            escape(record.created_at),
        )

    console.print(table)


@app.command(name="delete")
def delete_command(
    ctx: typer.Context,
    record_id: Annotated[str, typer.Argument(help="Id of the record to delete")],
) -> None:
    """Delete a stored credential. Unknown ids are ignored."""
    settings = get_cli_settings(ctx)
    run_command(get_store(settings).delete(record_id))
    print_success(f"Deleted {record_id}")


@app.command(name="import")
def import_command(
    ctx: typer.Context,
    api_url: Annotated[
        str | None,
        typer.Argument(help="Remote API URL (defaults to the saved preference)"),
    ] = None,
) -> None:
    """Import credentials from a remote API, skipping known sessions."""
    settings = get_cli_settings(ctx)

    url = api_url or load_preferences(settings).url
    if not url:
        print_error("No remote API URL given and none saved; use 'config set --url'")
        raise typer.Exit(1)

    result = run_command(import_tokens(settings, url))

    print_success(f"Imported {result.imported}, skipped {result.skipped}")
    for error in result.errors:
        console.print(f"  [yellow]-[/yellow] {escape(error)}")
