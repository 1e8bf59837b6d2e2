"""Session exchange command."""

from pathlib import Path
from typing import Annotated

import typer
from rich import box
from rich.markup import escape
from rich.table import Table

from sessionsync.auth.models import EnrichedCredential
from sessionsync.auth.session_exchange import SessionExchangeClient
from sessionsync.cli.helpers import (
    console,
    get_cli_settings,
    get_store,
    load_preferences,
    print_success,
    run_command,
)
from sessionsync.config.settings import Settings
from sessionsync.core.logging import mask_secret
from sessionsync.storage.export import ExportFile
from sessionsync.storage.models import CredentialRecord


async def exchange_session(settings: Settings, session: str) -> EnrichedCredential:
    """Run the full session exchange with the configured settings."""
    async with SessionExchangeClient(
        config=settings.exchange, http_settings=settings.http
    ) as client:
        return await client.orchestrate(session)


def _render_credential(credential: EnrichedCredential, show_token: bool) -> None:
    token = credential.access_token.get_secret_value()

    table = Table(show_header=False, box=box.ROUNDED, title="Credential")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Tenant URL", escape(credential.tenant_url))
    table.add_row("Access token", escape(token if show_token else mask_secret(token)))
    table.add_row(
        "Email",
        escape(credential.email) if credential.email else "[dim]unavailable[/dim]",
    )
    table.add_row(
        "Credits",
        str(credential.credits_balance)
        if credential.credits_balance is not None
        else "[dim]unavailable[/dim]",
    )
    table.add_row(
        "Expires",
        escape(credential.expiry_date)
        if credential.expiry_date
        else "[dim]unavailable[/dim]",
    )
    console.print(table)


def exchange_command(
    ctx: typer.Context,
    session: Annotated[
        str, typer.Argument(help="Session cookie value to exchange for a token")
    ],
    save: Annotated[
        bool, typer.Option("--save", help="Add the credential to the local store")
    ] = False,
    export: Annotated[
        bool,
        typer.Option("--export", help="Append the credential to the export file"),
    ] = False,
    export_path: Annotated[
        Path | None,
        typer.Option(
            "--export-path",
            help="Export file (defaults to the saved preference)",
        ),
    ] = None,
    show_token: Annotated[
        bool, typer.Option("--show-token", help="Print the full access token")
    ] = False,
) -> None:
    """Exchange a session string for an access token and tenant URL."""
    settings = get_cli_settings(ctx)

    credential = run_command(exchange_session(settings, session))
    _render_credential(credential, show_token)

    if not (save or export):
        return

    record = CredentialRecord.from_credential(session.strip(), credential)

    if save:
        run_command(get_store(settings).add(record))
        print_success(f"Saved credential {record.id}")

    if export:
        if export_path is None:
            preferred = load_preferences(settings).file_path
            export_path = Path(preferred) if preferred else None
        export_file = ExportFile(export_path)
        run_command(export_file.append_record(record))
        print_success(f"Exported credential to {export_file.get_location()}")
