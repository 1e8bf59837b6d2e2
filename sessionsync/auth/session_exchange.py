"""Session to access token exchange.

The exchange drives the authorization host's consent page with the session
cookie, reads the authorization code and tenant endpoint embedded in the page,
and trades the code for an access token at the tenant's token endpoint::

    generate parameters -> consent URL -> consent page -> extract fields
        -> token exchange -> concurrent enrichment

Every step before the token exchange completes is fatal. Enrichment is not.
"""

import json
import urllib.parse
from typing import Any

import httpx
from pydantic import SecretStr, ValidationError

from sessionsync.auth.enrichment import EnrichmentFetcher
from sessionsync.auth.extraction import ConsentPageExtractor, ScriptPatternExtractor
from sessionsync.auth.models import (
    ChallengeParameters,
    ConsentFields,
    EnrichedCredential,
    ExchangeResult,
    TokenResponse,
)
from sessionsync.auth.pkce import generate_parameters
from sessionsync.config.core import (
    DEFAULT_AUTH_BASE_URL,
    ExchangeSettings,
    HTTPSettings,
)
from sessionsync.core.http_client import HTTPClientFactory
from sessionsync.core.logging import get_logger, mask_secret
from sessionsync.exceptions import (
    ExtractionError,
    HttpStatusError,
    NetworkError,
    TokenExchangeError,
)


logger = get_logger(__name__)

CONSENT_PATH = "/terms-accept"


def build_consent_url(
    challenge: str,
    client_id: str,
    state: str,
    auth_base_url: str = DEFAULT_AUTH_BASE_URL,
) -> str:
    """Build the consent page URL for a challenge and state.

    Args:
        challenge: Code challenge derived from the verifier
        client_id: Client id of the exchange
        state: Random state parameter
        auth_base_url: Authorization host

    Returns:
        Consent page URL
    """
    params = {
        "response_type": "code",
        "code_challenge": challenge,
        "client_id": client_id,
        "state": state,
        "prompt": "login",
    }
    query_string = urllib.parse.urlencode(params)
    return f"{auth_base_url.rstrip('/')}{CONSENT_PATH}?{query_string}"


class SessionExchangeClient:
    """Client converting a session string into an enriched credential."""

    def __init__(
        self,
        config: ExchangeSettings | None = None,
        http_settings: HTTPSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
        extractor: ConsentPageExtractor | None = None,
        enrichment: EnrichmentFetcher | None = None,
    ):
        """Initialize the exchange client.

        Args:
            config: Exchange protocol settings (uses defaults if not provided)
            http_settings: HTTP settings used when a client has to be created
            http_client: HTTP client for making requests (creates one if not provided)
            extractor: Consent page field extractor
            enrichment: Enrichment fetcher (shares this client's HTTP client if
                not provided)
        """
        self.config = config or ExchangeSettings()
        self.http_settings = http_settings or HTTPSettings()
        self.extractor = extractor or ScriptPatternExtractor()
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._enrichment = enrichment

    async def __aenter__(self) -> "SessionExchangeClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._owns_http_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating one if needed."""
        if self._http_client is None:
            self._http_client = HTTPClientFactory.create_client(self.http_settings)
        return self._http_client

    @property
    def enrichment(self) -> EnrichmentFetcher:
        if self._enrichment is None:
            self._enrichment = EnrichmentFetcher(
                http_client=self.http_client, settings=self.http_settings
            )
        return self._enrichment

    def generate_parameters(self) -> ChallengeParameters:
        """Generate verifier, challenge and state for one exchange."""
        return generate_parameters(
            verifier_bytes=self.config.verifier_bytes,
            state_bytes=self.config.state_bytes,
        )

    def build_consent_url(self, challenge: str, client_id: str, state: str) -> str:
        """Build the consent page URL against the configured auth host."""
        return build_consent_url(
            challenge, client_id, state, auth_base_url=self.config.auth_base_url
        )

    async def _get_consent_page(self, session: str, url: str) -> httpx.Response:
        headers = {
            "Cookie": f"session={session}",
            "User-Agent": self.http_settings.user_agent,
        }
        try:
            response = await self.http_client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("consent_page_timeout", error=str(e))
            raise NetworkError("Consent page request timed out") from e
        except httpx.HTTPError as e:
            logger.error("consent_page_transport_error", error=str(e), exc_info=e)
            raise NetworkError(f"Failed to fetch consent page: {e}") from e

        logger.debug(
            "consent_page_fetched",
            status_code=response.status_code,
            body_length=len(response.text),
        )
        return response

    async def fetch_consent_page(self, session: str, url: str) -> str:
        """Fetch the consent page with the session cookie.

        The response status is not checked here; see ``orchestrate``.

        Raises:
            NetworkError: On transport failure or timeout
        """
        response = await self._get_consent_page(session, url)
        return response.text

    def extract_fields(self, html: str) -> ConsentFields:
        """Extract authorization code, echoed state and tenant URL.

        Raises:
            ExtractionError: If any of the three values is missing
        """
        return self.extractor.extract(html)

    async def exchange_code(
        self, tenant_url: str, code: str, verifier: str, client_id: str
    ) -> ExchangeResult:
        """Exchange the authorization code for an access token.

        Args:
            tenant_url: Tenant endpoint from the consent page
            code: Authorization code
            verifier: Code verifier matching the challenge
            client_id: Client id of the exchange

        Returns:
            ExchangeResult with access token and tenant URL

        Raises:
            TokenExchangeError: On transport failure, non-2xx status or a
                response without an access token
        """
        token_endpoint = f"{tenant_url}token"
        payload = {
            "grant_type": "authorization_code",
            "client_id": client_id,
            "code_verifier": verifier,
            "redirect_uri": "",
            "code": code,
        }

        logger.debug(
            "token_exchange_start",
            endpoint=token_endpoint,
            has_code=bool(code),
            has_verifier=bool(verifier),
        )

        try:
            response = await self.http_client.post(token_endpoint, json=payload)
        except httpx.TimeoutException as e:
            logger.error("token_exchange_timeout", error=str(e))
            raise TokenExchangeError("Token exchange timed out") from e
        except httpx.HTTPError as e:
            logger.error("token_exchange_transport_error", error=str(e), exc_info=e)
            raise TokenExchangeError(f"HTTP error during token exchange: {e}") from e

        if not response.is_success:
            error_detail = _extract_error_detail(response)
            logger.error(
                "token_exchange_http_error",
                status_code=response.status_code,
                error_detail=error_detail,
            )
            raise TokenExchangeError(
                f"Token exchange failed ({response.status_code}): {error_detail}"
            )

        try:
            token_response = TokenResponse.model_validate(response.json())
        except json.JSONDecodeError as e:
            raise TokenExchangeError("Token endpoint returned invalid JSON") from e
        except ValidationError as e:
            logger.error("token_exchange_missing_field", error=str(e))
            raise TokenExchangeError(
                "Token response does not contain an access token"
            ) from e

        logger.debug(
            "token_exchange_success",
            access_token=mask_secret(token_response.access_token),
        )
        return ExchangeResult(
            access_token=SecretStr(token_response.access_token),
            tenant_url=tenant_url,
        )

    def _check_state(self, expected: str, echoed: str) -> None:
        if echoed == expected:
            return
        if self.config.verify_state:
            raise ExtractionError("state echoed by consent page does not match")
        logger.warning("consent_state_mismatch")

    async def orchestrate(self, session: str) -> EnrichedCredential:
        """Turn a session string into an enriched credential.

        Args:
            session: Session cookie value

        Returns:
            EnrichedCredential; email and credit fields are unset when their
            lookups fail

        Raises:
            NetworkError: If the consent page cannot be fetched
            HttpStatusError: If the consent page answered with an error status
                and carried no consent fields
            ExtractionError: If the consent page lacks the consent fields
            TokenExchangeError: If the token exchange fails
        """
        session = session.strip()
        if not session:
            raise ExtractionError("session is empty", field="session")

        logger.info("session_exchange_started", session=mask_secret(session))

        params = self.generate_parameters()
        url = self.build_consent_url(
            params.challenge, self.config.client_id, params.state
        )
        response = await self._get_consent_page(session, url)

        try:
            fields = self.extract_fields(response.text)
        except ExtractionError as e:
            if not response.is_success:
                logger.warning(
                    "consent_page_http_error", status_code=response.status_code
                )
                raise HttpStatusError(
                    f"Consent page returned HTTP {response.status_code}",
                    status_code=response.status_code,
                ) from e
            logger.warning("consent_fields_missing", field=e.field)
            raise

        self._check_state(params.state, fields.state)

        result = await self.exchange_code(
            fields.tenant_url, fields.code, params.verifier, self.config.client_id
        )
        credential = await self.enrichment.enrich(result)

        logger.info("session_exchange_completed", tenant_url=credential.tenant_url)
        return credential


def _extract_error_detail(response: httpx.Response) -> str:
    try:
        error_data = response.json()
    except json.JSONDecodeError:
        return response.text[:200]
    if isinstance(error_data, dict):
        return str(
            error_data.get("error_description", error_data.get("error", error_data))
        )
    return str(error_data)[:200]
