"""Command line interface."""

from sessionsync.cli.main import app, main


__all__ = ["app", "main"]
