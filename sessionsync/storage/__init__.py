"""Credential storage."""

from sessionsync.storage.base import BaseJsonStorage
from sessionsync.storage.credential_store import CredentialStore
from sessionsync.storage.export import ExportFile
from sessionsync.storage.models import CredentialRecord, PortalInfo


__all__ = [
    "BaseJsonStorage",
    "CredentialRecord",
    "CredentialStore",
    "ExportFile",
    "PortalInfo",
]
