"""Remote credential import."""

from sessionsync.importer.models import (
    ImportResult,
    RemoteCredentialRecord,
    RemoteEnvelope,
)
from sessionsync.importer.normalization import FIELD_ALIASES, normalize
from sessionsync.importer.remote import MergeResult, RemoteImporter, merge


__all__ = [
    "FIELD_ALIASES",
    "ImportResult",
    "MergeResult",
    "RemoteCredentialRecord",
    "RemoteEnvelope",
    "RemoteImporter",
    "merge",
    "normalize",
]
