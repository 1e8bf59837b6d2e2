"""Remote import envelope and result models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sessionsync.storage.models import PortalInfo


class RemoteEnvelope(BaseModel):
    """Response body of the remote import source."""

    model_config = ConfigDict(extra="ignore")

    status: int
    data: list[Any]


class RemoteCredentialRecord(BaseModel):
    """A remote record after alias resolution; everything may be missing."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str | None = None
    tenant_url: str | None = None
    access_token: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    portal_url: str | None = None
    ban_status: str | None = None
    portal_info: PortalInfo | None = None
    email_note: str | None = None
    tag_name: str | None = None
    tag_color: str | None = None
    session_fingerprint: str | None = None
    suspensions: str | None = None
    skip_check: bool | None = None
    balance_color_mode: str | None = None


class ImportResult(BaseModel):
    """Outcome of one remote import."""

    imported: int = 0
    skipped: int = 0
    errors: list[str] = Field(default_factory=list)
