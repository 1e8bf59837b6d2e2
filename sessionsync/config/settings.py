"""Application settings loaded from the environment and an optional TOML file."""

import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sessionsync.config.core import ExchangeSettings, HTTPSettings, LoggingSettings
from sessionsync.core.logging import get_logger
from sessionsync.utils.xdg import get_sessionsync_config_dir


__all__ = ["Settings", "ConfigurationError", "get_settings"]

logger = get_logger(__name__)

TOKENS_FILE_NAME = "tokens.json"
PREFERENCES_FILE_NAME = "config.json"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class Settings(BaseSettings):
    """
    Configuration settings for sessionsync.

    Values come from ``SESSIONSYNC_*`` environment variables (nested sections
    use ``__``, e.g. ``SESSIONSYNC_HTTP__TIMEOUT=60``), a ``.env`` file, or a
    TOML file passed to ``from_config``. Environment variables win over TOML.
    """

    model_config = SettingsConfigDict(
        env_prefix="SESSIONSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    storage_root: Path = Field(
        default_factory=get_sessionsync_config_dir,
        description="Directory holding the credential store and preferences",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="HTTP client configuration",
    )

    exchange: ExchangeSettings = Field(
        default_factory=ExchangeSettings,
        description="Session exchange protocol settings",
    )

    @field_validator("storage_root")
    @classmethod
    def expand_storage_root(cls, v: Path) -> Path:
        return v.expanduser()

    @property
    def tokens_file(self) -> Path:
        """Path of the persisted credential store."""
        return self.storage_root / TOKENS_FILE_NAME

    @property
    def preferences_file(self) -> Path:
        """Path of the persisted user preferences."""
        return self.storage_root / PREFERENCES_FILE_NAME

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls, config_path: Path | str | None = None, **overrides: Any
    ) -> "Settings":
        """Create Settings from an optional TOML file plus explicit overrides.

        Environment variables still take precedence over values from the file;
        ``overrides`` take precedence over both.
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)

        config_data: dict[str, Any] = {}
        if config_path is not None:
            config_data = cls.load_toml_config(config_path)
            logger.info("config_file_loaded", path=str(config_path))

        try:
            env_settings = cls()
            merged = _merge_sections(
                config_data, env_settings.model_dump(exclude_unset=True)
            )
            merged = _merge_sections(merged, overrides)
            return cls(**merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


def _merge_sections(base: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_sections(merged[key], value)
        else:
            merged[key] = value
    return merged


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
