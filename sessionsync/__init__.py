"""Session to credential exchange and local credential store."""

from sessionsync._version import __version__


__all__ = ["__version__"]
