"""Import credential records from a remote source into the local store."""

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError

from sessionsync.config.core import HTTPSettings
from sessionsync.core.http_client import HTTPClientFactory
from sessionsync.core.logging import get_logger
from sessionsync.exceptions import (
    RecordNormalizationError,
    RemoteFetchError,
    RemoteStatusError,
)
from sessionsync.importer.models import ImportResult, RemoteEnvelope
from sessionsync.importer.normalization import normalize
from sessionsync.storage.credential_store import CredentialStore
from sessionsync.storage.models import CredentialRecord


logger = get_logger(__name__)

SUCCESS_STATUS = 1


@dataclass
class MergeResult:
    """Merged record list plus per-batch counters."""

    records: list[CredentialRecord]
    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def merge(
    existing: Sequence[CredentialRecord],
    batch: Sequence[CredentialRecord | RecordNormalizationError],
) -> MergeResult:
    """Append batch records whose session and id are not already known.

    The batch is processed in order. Failed normalizations and records whose
    session or id already exists, in ``existing`` or earlier in the batch,
    are skipped. Existing records are never modified.
    """
    result = MergeResult(records=list(existing))
    known_sessions = {record.session_fingerprint for record in existing}
    known_ids = {record.id for record in existing}

    for item in batch:
        if isinstance(item, RecordNormalizationError):
            result.skipped += 1
            result.errors.append(str(item))
            continue

        if item.session_fingerprint in known_sessions:
            result.skipped += 1
            logger.debug("import_record_duplicate", record_id=item.id)
            continue

        if item.id in known_ids:
            result.skipped += 1
            logger.debug("import_record_id_taken", record_id=item.id)
            continue

        known_sessions.add(item.session_fingerprint)
        known_ids.add(item.id)
        result.records.append(item)
        result.imported += 1

    return result


class RemoteImporter:
    """Fetches a remote batch and merges it into a credential store."""

    def __init__(
        self,
        store: CredentialStore,
        http_client: httpx.AsyncClient | None = None,
        http_settings: HTTPSettings | None = None,
    ):
        """Initialize the importer.

        Args:
            store: Credential store receiving the records
            http_client: HTTP client for making requests (creates one if not provided)
            http_settings: HTTP settings used when a client has to be created
        """
        self.store = store
        self.http_settings = http_settings or HTTPSettings()
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def __aenter__(self) -> "RemoteImporter":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._owns_http_client and self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get the HTTP client, creating one if needed."""
        if self._http_client is None:
            self._http_client = HTTPClientFactory.create_client(self.http_settings)
        return self._http_client

    async def fetch_remote(self, api_url: str) -> RemoteEnvelope:
        """Fetch the remote envelope.

        Raises:
            RemoteFetchError: On transport failure, non-2xx status or an
                unparsable body
            RemoteStatusError: If the envelope status is not 1
        """
        try:
            response = await self.http_client.get(api_url)
        except httpx.TimeoutException as e:
            logger.error("remote_fetch_timeout", url=api_url, error=str(e))
            raise RemoteFetchError(f"Request to {api_url} timed out") from e
        except httpx.HTTPError as e:
            logger.error("remote_fetch_transport_error", url=api_url, error=str(e))
            raise RemoteFetchError(f"Request to {api_url} failed: {e}") from e

        if not response.is_success:
            logger.error(
                "remote_fetch_http_error",
                url=api_url,
                status_code=response.status_code,
            )
            raise RemoteFetchError(
                f"Remote API returned HTTP {response.status_code}"
            )

        try:
            envelope = RemoteEnvelope.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(
                "remote_fetch_parse_error",
                url=api_url,
                body_length=len(response.text),
                error=str(e),
            )
            raise RemoteFetchError(f"Failed to parse remote API response: {e}") from e

        if envelope.status != SUCCESS_STATUS:
            logger.error("remote_fetch_status_error", status=envelope.status)
            raise RemoteStatusError(
                f"Remote API reported failure status {envelope.status}",
                status=envelope.status,
            )

        logger.info("remote_batch_fetched", url=api_url, count=len(envelope.data))
        return envelope

    async def import_from_remote(self, api_url: str) -> ImportResult:
        """Fetch, normalize and merge a remote batch into the store.

        Per-record normalization failures are counted as skipped and never
        abort the batch.

        Raises:
            RemoteFetchError: If the batch cannot be fetched
            RemoteStatusError: If the envelope reports failure
        """
        envelope = await self.fetch_remote(api_url)

        batch: list[CredentialRecord | RecordNormalizationError] = []
        for index, remote in enumerate(envelope.data):
            try:
                batch.append(normalize(remote))
            except RecordNormalizationError as e:
                logger.warning(
                    "import_record_invalid",
                    index=index,
                    record_id=e.record_id,
                    error=str(e),
                )
                batch.append(e)

        async with self.store.edit() as records:
            merged = merge(records, batch)
            records[:] = merged.records

        logger.info(
            "remote_import_completed",
            imported=merged.imported,
            skipped=merged.skipped,
            invalid=len(merged.errors),
        )
        return ImportResult(
            imported=merged.imported, skipped=merged.skipped, errors=merged.errors
        )
