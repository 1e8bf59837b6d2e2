"""Custom exceptions for session exchange, credential storage and import."""


class SessionSyncError(Exception):
    """Base exception for all sessionsync errors."""

    pass


# === Session exchange ===


class NetworkError(SessionSyncError):
    """Raised when a request fails at the transport level or times out."""

    pass


class HttpStatusError(SessionSyncError):
    """Raised when a server answers with a non-success status code."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ExtractionError(SessionSyncError):
    """Raised when the consent page lacks the code, state or tenant URL.

    This almost always means the session is invalid or the account is
    restricted.
    """

    category = "session invalid or account restricted"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(f"{self.category}: {message}")
        self.field = field


class TokenExchangeError(SessionSyncError):
    """Raised when the authorization code cannot be exchanged for a token."""

    pass


# === Enrichment ===


class EnrichmentError(SessionSyncError):
    """Base exception for profile and credit lookups."""

    pass


class ProfileFetchError(EnrichmentError):
    """Raised when the account profile (email) cannot be fetched."""

    pass


class CreditFetchError(EnrichmentError):
    """Raised when the credit balance cannot be fetched."""

    pass


# === Credential store ===


class StorageError(SessionSyncError):
    """Base exception for credential store errors."""

    pass


class StoreCorruptError(StorageError):
    """Raised when the persisted store does not parse as a credential list."""

    pass


class StoreIOError(StorageError):
    """Raised when the store file cannot be read or written."""

    pass


class DuplicateSessionError(StorageError):
    """Raised when a record with the same session fingerprint already exists."""

    pass


class DuplicateIdError(StorageError):
    """Raised when a record with the same id already exists."""

    pass


class NotFoundError(StorageError):
    """Raised when no record matches the requested id."""

    pass


# === Remote import ===


class RemoteImportError(SessionSyncError):
    """Base exception for remote import errors."""

    pass


class RemoteFetchError(RemoteImportError):
    """Raised when the remote batch cannot be fetched or parsed."""

    pass


class RemoteStatusError(RemoteImportError):
    """Raised when the remote envelope reports a failure status."""

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.status = status


class RecordNormalizationError(RemoteImportError):
    """Raised when a single remote record cannot be normalized."""

    def __init__(self, message: str, record_id: str | None = None):
        super().__init__(message)
        self.record_id = record_id


class MissingFieldError(RecordNormalizationError):
    """Raised when a remote record lacks a required field."""

    def __init__(self, field: str, record_id: str | None = None):
        super().__init__(f"Missing required field: {field}", record_id=record_id)
        self.field = field
