"""Data models for the session exchange and enrichment responses."""

import math

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ChallengeParameters(BaseModel):
    """Verifier, challenge and state for one exchange. Never persisted."""

    model_config = ConfigDict(frozen=True)

    verifier: str
    challenge: str
    state: str


class ConsentFields(BaseModel):
    """Values embedded in the consent page."""

    code: str
    state: str
    tenant_url: str


class ExchangeResult(BaseModel):
    """Access token and tenant endpoint obtained from the token exchange."""

    access_token: SecretStr
    tenant_url: str


class TokenResponse(BaseModel):
    """Token endpoint response."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)


class UserData(BaseModel):
    """User block of the ``get-models`` response."""

    model_config = ConfigDict(extra="ignore")

    email: str
    id: str | None = None
    tenant_id: str | None = None
    tenant_name: str | None = None


class UserProfile(BaseModel):
    """Response of the ``get-models`` endpoint."""

    model_config = ConfigDict(extra="ignore")

    user: UserData


class CreditInfo(BaseModel):
    """Response of the ``get-credit-info`` endpoint."""

    model_config = ConfigDict(extra="ignore")

    usage_units_remaining: float = Field(..., allow_inf_nan=False)
    current_billing_cycle_end_date_iso: str
    usage_units_total: float | None = None
    usage_units_total_current_billing_cycle: float | None = None
    usage_units_total_additional: float | None = None
    included_usage_units_per_billing_cycle: float | None = None
    is_credit_balance_low: bool | None = None
    refreshed_at: str | None = None

    @property
    def credits_balance(self) -> int:
        """Remaining usage units rounded down to a whole number."""
        return math.floor(self.usage_units_remaining)


class EnrichedCredential(BaseModel):
    """Exchange result plus whatever enrichment succeeded."""

    access_token: SecretStr
    tenant_url: str
    email: str | None = None
    credits_balance: int | None = None
    expiry_date: str | None = None
