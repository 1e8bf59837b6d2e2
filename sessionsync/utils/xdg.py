"""XDG Base Directory Specification utilities."""

import os
from pathlib import Path


APP_DIR_NAME = "sessionsync"
EXPORT_APP_DIR_NAME = "com.cubezhao.atm"


def get_xdg_config_home() -> Path:
    """Get the XDG_CONFIG_HOME directory.

    Returns:
        Path to the XDG config directory. Falls back to ~/.config if not set.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg_config_home:
        return Path(xdg_config_home)
    return Path.home() / ".config"


def get_sessionsync_config_dir() -> Path:
    """Get the default storage root for the credential store and preferences."""
    return get_xdg_config_home() / APP_DIR_NAME


def get_default_export_path() -> Path:
    """Get the token file of the companion account manager app."""
    return get_xdg_config_home() / EXPORT_APP_DIR_NAME / "tokens.json"
