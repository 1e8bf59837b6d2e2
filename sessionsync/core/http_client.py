"""Centralized HTTP client construction.

Every outbound call goes through an ``httpx.AsyncClient`` built here so the
connection timeout, overall timeout, redirect policy and cookie jar are the
same for the session exchange, enrichment and remote import.
"""

import os
from pathlib import Path
from typing import Any

import httpx

from sessionsync.config.core import HTTPSettings
from sessionsync.core.logging import get_logger
from sessionsync.exceptions import HttpStatusError, NetworkError


logger = get_logger(__name__)


class HTTPClientFactory:
    """Factory for the cookie-enabled HTTP clients used by sessionsync."""

    @staticmethod
    def create_client(
        settings: HTTPSettings | None = None,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create an HTTP client with the configured timeouts.

        Args:
            settings: HTTP settings (defaults if not provided)
            **kwargs: Additional httpx.AsyncClient arguments

        Returns:
            Configured httpx.AsyncClient instance
        """
        settings = settings or HTTPSettings()

        timeout = httpx.Timeout(settings.timeout, connect=settings.connect_timeout)

        client_config: dict[str, Any] = {
            "timeout": timeout,
            "follow_redirects": settings.follow_redirects,
            "cookies": httpx.Cookies(),
            "verify": _get_ssl_context(),
        }
        proxy = _get_proxy_url()
        if proxy:
            client_config["proxy"] = proxy
        client_config.update(kwargs)

        logger.debug(
            "http_client_created",
            timeout_connect=settings.connect_timeout,
            timeout=settings.timeout,
            follow_redirects=settings.follow_redirects,
            has_proxy=proxy is not None,
        )

        return httpx.AsyncClient(**client_config)


def _get_proxy_url() -> str | None:
    """Get proxy URL from environment variables.

    Returns:
        str or None: Proxy URL if any proxy is set
    """
    https_proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("https_proxy")
    all_proxy = os.environ.get("ALL_PROXY")
    http_proxy = os.environ.get("HTTP_PROXY") or os.environ.get("http_proxy")

    return https_proxy or all_proxy or http_proxy


def _get_ssl_context() -> str | bool:
    """Get SSL verification configuration from environment variables.

    Returns:
        Path to a CA bundle, True for default verification, or False when
        verification is explicitly disabled
    """
    ca_bundle = os.environ.get("REQUESTS_CA_BUNDLE") or os.environ.get(
        "SSL_CERT_FILE"
    )
    ssl_verify = os.environ.get("SSL_VERIFY", "true").lower()

    if ca_bundle and Path(ca_bundle).exists():
        return ca_bundle
    if ssl_verify in ("false", "0", "no"):
        logger.warning("ssl_verification_disabled")
        return False
    return True


async def fetch_text(
    client: httpx.AsyncClient, url: str, user_agent: str | None = None
) -> str:
    """GET ``url`` and return the response body as text.

    Raises:
        NetworkError: On transport failure or timeout
        HttpStatusError: If the server answers with a non-2xx status
    """
    headers = {"User-Agent": user_agent or HTTPSettings().user_agent}
    try:
        response = await client.get(url, headers=headers)
    except httpx.TimeoutException as e:
        logger.error("fetch_text_timeout", url=url, error=str(e))
        raise NetworkError(f"Request to {url} timed out") from e
    except httpx.HTTPError as e:
        logger.error("fetch_text_transport_error", url=url, error=str(e))
        raise NetworkError(f"Request to {url} failed: {e}") from e

    if not response.is_success:
        logger.warning(
            "fetch_text_http_error", url=url, status_code=response.status_code
        )
        raise HttpStatusError(
            f"HTTP error {response.status_code} from {url}",
            status_code=response.status_code,
        )

    return response.text
