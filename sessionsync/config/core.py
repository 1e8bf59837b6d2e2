"""Core configuration settings - logging, HTTP and session exchange."""

from pydantic import BaseModel, Field, field_validator


BROWSER_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"

DEFAULT_AUTH_BASE_URL = "https://auth.augmentcode.com"


# === Logging Configuration ===


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    json_logs: bool = Field(
        default=False,
        description="Render log lines as JSON instead of the console format",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        upper_v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v


# === HTTP Configuration ===


class HTTPSettings(BaseModel):
    """HTTP client configuration settings."""

    connect_timeout: float = Field(
        default=10.0,
        description="Connection establishment timeout in seconds",
        gt=0,
    )

    timeout: float = Field(
        default=30.0,
        description="Overall request timeout in seconds",
        gt=0,
    )

    user_agent: str = Field(
        default=BROWSER_USER_AGENT,
        description="User-Agent sent with browser-like requests",
    )

    follow_redirects: bool = Field(
        default=True,
        description="Follow HTTP redirects",
    )


# === Session Exchange Configuration ===


class ExchangeSettings(BaseModel):
    """Session exchange protocol settings."""

    auth_base_url: str = Field(
        default=DEFAULT_AUTH_BASE_URL,
        description="Authorization host serving the consent page",
    )

    client_id: str = Field(
        default="v",
        description="Client id sent with the consent request and token exchange",
    )

    verifier_bytes: int = Field(
        default=32,
        description="Random bytes used for the code verifier",
        ge=32,
        le=96,
    )

    state_bytes: int = Field(
        default=42,
        description="Random bytes used for the state parameter",
        ge=16,
    )

    verify_state: bool = Field(
        default=False,
        description="Reject consent pages echoing a different state",
    )

    @field_validator("auth_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")
