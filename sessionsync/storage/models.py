"""Persisted credential record models."""

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from sessionsync.auth.models import EnrichedCredential


DEFAULT_BAN_STATUS = "ACTIVE"


class PortalInfo(BaseModel):
    """Billing snapshot stored alongside a credential."""

    credits_balance: int | None = None
    expiry_date: str | None = None


class CredentialRecord(BaseModel):
    """One stored credential.

    ``session_fingerprint`` is the session string the credential was obtained
    from and is stored under the JSON key ``auth_session``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    tenant_url: str
    access_token: str
    created_at: str
    updated_at: str
    portal_url: str | None = None
    ban_status: str = DEFAULT_BAN_STATUS
    portal_info: PortalInfo | None = None
    email_note: str | None = None
    tag_name: str | None = None
    tag_color: str | None = None
    session_fingerprint: str = Field(..., alias="auth_session")
    suspensions: str | None = None
    skip_check: bool = False
    balance_color_mode: str | None = None

    @classmethod
    def from_credential(
        cls,
        session: str,
        credential: EnrichedCredential,
        record_id: str | None = None,
        now: datetime | None = None,
    ) -> "CredentialRecord":
        """Build a new record from an exchange result and its session string."""
        timestamp = (now or datetime.now(UTC)).replace(microsecond=0).isoformat()

        portal_info = None
        if credential.credits_balance is not None or credential.expiry_date:
            portal_info = PortalInfo(
                credits_balance=credential.credits_balance,
                expiry_date=credential.expiry_date,
            )

        return cls(
            id=record_id or str(uuid.uuid4()),
            tenant_url=credential.tenant_url,
            access_token=credential.access_token.get_secret_value(),
            created_at=timestamp,
            updated_at=timestamp,
            portal_info=portal_info,
            email_note=credential.email,
            session_fingerprint=session,
        )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize using the persisted field names."""
        return self.model_dump(by_alias=True, mode="json")
