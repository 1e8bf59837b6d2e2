"""Shared test fixtures and configuration for sessionsync tests.

Fixtures use real components against temporary directories; outbound HTTP is
intercepted with pytest-httpx.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sessionsync.config.settings import Settings
from sessionsync.core.logging import setup_logging
from sessionsync.storage.credential_store import CredentialStore
from sessionsync.storage.models import CredentialRecord


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    # Reuse the application logging pipeline so structlog output is exercised
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Isolated storage root for one test."""
    return tmp_path / "sessionsync"


@pytest.fixture
def test_settings(storage_root: Path) -> Settings:
    """Settings pointing at the temporary storage root."""
    return Settings(storage_root=storage_root)


@pytest.fixture
def credential_store(storage_root: Path) -> CredentialStore:
    """Credential store backed by a temporary tokens.json."""
    return CredentialStore(storage_root / "tokens.json")


@pytest.fixture
def make_record() -> Callable[..., CredentialRecord]:
    """Factory for credential records with sensible defaults."""

    def _make(
        record_id: str = "rec-1", session: str = "session-1", **overrides: Any
    ) -> CredentialRecord:
        data: dict[str, Any] = {
            "id": record_id,
            "tenant_url": "https://d1.api.example.com/",
            "access_token": f"token-{record_id}",
            "created_at": "2024-01-01T00:00:00+00:00",
            "updated_at": "2024-01-01T00:00:00+00:00",
            "session_fingerprint": session,
        }
        data.update(overrides)
        return CredentialRecord(**data)

    return _make


@pytest.fixture
def consent_page() -> Callable[..., str]:
    """Builder for consent page HTML with the inline script values."""

    def _build(
        code: str | None = "auth-code-123",
        state: str | None = "state-xyz",
        tenant_url: str | None = "https://d1.api.example.com/",
    ) -> str:
        lines = []
        if code is not None:
            lines.append(f'      code: "{code}",')
        if state is not None:
            lines.append(f'      state: "{state}",')
        if tenant_url is not None:
            lines.append(f'      tenant_url: "{tenant_url}",')
        script = "\n".join(lines)
        return (
            "<html><head><title>Terms</title></head><body>\n"
            "  <script>\n"
            "    window.__consent = {\n"
            f"{script}\n"
            "    };\n"
            "  </script>\n"
            "</body></html>"
        )

    return _build
