"""Profile and credit lookups for a freshly obtained access token."""

import asyncio
import json
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from sessionsync.auth.models import (
    CreditInfo,
    EnrichedCredential,
    ExchangeResult,
    UserProfile,
)
from sessionsync.config.core import HTTPSettings
from sessionsync.core.http_client import HTTPClientFactory
from sessionsync.core.logging import get_logger
from sessionsync.exceptions import (
    CreditFetchError,
    EnrichmentError,
    ProfileFetchError,
)


logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

PROFILE_ENDPOINT = "get-models"
CREDIT_ENDPOINT = "get-credit-info"


def tenant_endpoint(tenant_url: str, endpoint: str) -> str:
    """Join a tenant base URL and an endpoint name with exactly one slash."""
    base_url = tenant_url if tenant_url.endswith("/") else f"{tenant_url}/"
    return f"{base_url}{endpoint}"


class EnrichmentFetcher:
    """Fetches account email and credit balance for an access token."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        settings: HTTPSettings | None = None,
    ):
        """Initialize the fetcher.

        Args:
            http_client: HTTP client for making requests (creates one if not provided)
            settings: HTTP settings used when a client has to be created
        """
        self.settings = settings or HTTPSettings()
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def __aenter__(self) -> "EnrichmentFetcher":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._owns_http_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating one if needed."""
        if self._http_client is None:
            self._http_client = HTTPClientFactory.create_client(self.settings)
        return self._http_client

    async def _post_authorized(
        self,
        token: str,
        tenant_url: str,
        endpoint: str,
        model: type[ModelT],
        error_cls: type[EnrichmentError],
    ) -> ModelT:
        url = tenant_endpoint(tenant_url, endpoint)
        headers = {"Authorization": f"Bearer {token}"}

        try:
            response = await self.http_client.post(url, json={}, headers=headers)
        except httpx.TimeoutException as e:
            raise error_cls(f"{endpoint} request timed out") from e
        except httpx.HTTPError as e:
            raise error_cls(f"{endpoint} request failed: {e}") from e

        if not response.is_success:
            detail = response.text[:200]
            raise error_cls(
                f"{endpoint} returned HTTP {response.status_code}: {detail}"
            )

        try:
            return model.model_validate(response.json())
        except json.JSONDecodeError as e:
            raise error_cls(f"{endpoint} returned invalid JSON") from e
        except ValidationError as e:
            raise error_cls(f"{endpoint} returned unexpected data: {e}") from e

    async def fetch_profile(self, token: str, tenant_url: str) -> UserProfile:
        """Fetch the account profile, which carries the email address.

        Raises:
            ProfileFetchError: If the request or response parsing fails
        """
        return await self._post_authorized(
            token, tenant_url, PROFILE_ENDPOINT, UserProfile, ProfileFetchError
        )

    async def fetch_credit(self, token: str, tenant_url: str) -> CreditInfo:
        """Fetch the remaining credit and billing cycle end date.

        Raises:
            CreditFetchError: If the request or response parsing fails
        """
        return await self._post_authorized(
            token, tenant_url, CREDIT_ENDPOINT, CreditInfo, CreditFetchError
        )

    async def enrich(self, result: ExchangeResult) -> EnrichedCredential:
        """Run both lookups concurrently and fold them into the credential.

        A failed lookup leaves its fields unset; it never fails the caller
        and never cancels the other lookup.
        """
        token = result.access_token.get_secret_value()
        profile_result, credit_result = await asyncio.gather(
            self.fetch_profile(token, result.tenant_url),
            self.fetch_credit(token, result.tenant_url),
            return_exceptions=True,
        )

        credential = EnrichedCredential(
            access_token=result.access_token, tenant_url=result.tenant_url
        )

        if isinstance(profile_result, UserProfile):
            credential.email = profile_result.user.email
        else:
            _log_enrichment_failure("profile", profile_result)

        if isinstance(credit_result, CreditInfo):
            credential.credits_balance = credit_result.credits_balance
            credential.expiry_date = credit_result.current_billing_cycle_end_date_iso
        else:
            _log_enrichment_failure("credit", credit_result)

        logger.info(
            "credential_enriched",
            has_email=credential.email is not None,
            has_credits=credential.credits_balance is not None,
        )
        return credential


def _log_enrichment_failure(part: str, error: BaseException) -> None:
    if not isinstance(error, Exception):
        raise error
    if isinstance(error, EnrichmentError):
        logger.warning("enrichment_failed", part=part, error=str(error))
    else:
        logger.error(
            "enrichment_unexpected_error", part=part, error=str(error), exc_info=error
        )
