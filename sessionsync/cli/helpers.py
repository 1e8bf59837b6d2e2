"""Shared helpers for CLI commands."""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from sessionsync.config.preferences import AppPreferences, PreferencesStorage
from sessionsync.config.settings import ConfigurationError, Settings, get_settings
from sessionsync.exceptions import SessionSyncError
from sessionsync.storage.credential_store import CredentialStore


T = TypeVar("T")

console = Console()


def get_cli_settings(ctx: typer.Context) -> Settings:
    """Settings resolved by the root callback, or the process defaults."""
    if isinstance(ctx.obj, Settings):
        return ctx.obj
    return get_settings()


def get_store(settings: Settings) -> CredentialStore:
    return CredentialStore(settings.tokens_file)


def get_preferences_storage(settings: Settings) -> PreferencesStorage:
    return PreferencesStorage(settings.preferences_file)


def load_preferences(settings: Settings) -> AppPreferences:
    return run_command(get_preferences_storage(settings).load())


def print_error(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_success(message: str) -> None:
    console.print(f"[green]{escape(message)}[/green]")


def run_command(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning sessionsync errors into a clean exit code 1."""
    try:
        return asyncio.run(coro)
    except (SessionSyncError, ConfigurationError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e

