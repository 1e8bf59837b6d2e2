"""Normalization of remote credential records into stored records.

Remote sources have used several spellings for the same field over time.
``FIELD_ALIASES`` is the single table mapping each canonical field to the
names accepted for it, canonical spelling first. A ``None`` value counts as
absent, so a later alias can still supply the field.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from sessionsync.core.logging import get_logger
from sessionsync.exceptions import MissingFieldError, RecordNormalizationError
from sessionsync.importer.models import RemoteCredentialRecord
from sessionsync.storage.models import DEFAULT_BAN_STATUS, CredentialRecord


logger = get_logger(__name__)

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id",),
    "tenant_url": ("tenant_url", "tenantUrl"),
    "access_token": ("access_token", "accessToken"),
    "created_at": ("created_at",),
    "updated_at": ("updated_at",),
    "portal_url": ("portal_url",),
    "ban_status": ("ban_status", "banStatus"),
    "portal_info": ("portal_info",),
    "email_note": ("email_note", "emailNote"),
    "tag_name": ("tag_name",),
    "tag_color": ("tag_color",),
    "session_fingerprint": ("auth_session", "authSession"),
    "suspensions": ("suspensions",),
    "skip_check": ("skip_check",),
    "balance_color_mode": ("balance_color_mode",),
}

REQUIRED_FIELDS = ("id", "session_fingerprint", "created_at")


def resolve_aliases(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Map a raw remote record onto canonical field names."""
    resolved: dict[str, Any] = {}
    for canonical, names in FIELD_ALIASES.items():
        for name in names:
            value = raw.get(name)
            if value is not None:
                resolved[canonical] = value
                break
    return resolved


def normalize(remote: Any) -> CredentialRecord:
    """Convert one remote record into a CredentialRecord with defaults filled.

    Raises:
        MissingFieldError: If id, session or created_at is missing
        RecordNormalizationError: If the record is not an object or a field
            has an unusable value
    """
    if not isinstance(remote, Mapping):
        raise RecordNormalizationError(
            f"Remote record must be an object, got {type(remote).__name__}"
        )

    resolved = resolve_aliases(remote)
    record_id = resolved.get("id")
    record_id = str(record_id) if record_id is not None else None

    for field in REQUIRED_FIELDS:
        if field not in resolved:
            raise MissingFieldError(
                "auth_session" if field == "session_fingerprint" else field,
                record_id=record_id,
            )

    try:
        parsed = RemoteCredentialRecord.model_validate(resolved)
    except ValidationError as e:
        raise RecordNormalizationError(
            f"Invalid remote record {record_id}: {e}", record_id=record_id
        ) from e

    # Required fields were checked above, so they are set on ``parsed``.
    return CredentialRecord(
        id=parsed.id,  # type: ignore[arg-type]
        tenant_url=parsed.tenant_url or "",
        access_token=parsed.access_token or "",
        created_at=parsed.created_at,  # type: ignore[arg-type]
        updated_at=(
            parsed.updated_at if parsed.updated_at is not None else parsed.created_at
        ),
        portal_url=parsed.portal_url,
        ban_status=(
            parsed.ban_status if parsed.ban_status is not None else DEFAULT_BAN_STATUS
        ),
        portal_info=parsed.portal_info,
        email_note=parsed.email_note,
        tag_name=parsed.tag_name,
        tag_color=parsed.tag_color,
        session_fingerprint=parsed.session_fingerprint,  # type: ignore[arg-type]
        suspensions=parsed.suspensions,
        skip_check=parsed.skip_check if parsed.skip_check is not None else False,
        balance_color_mode=parsed.balance_color_mode,
    )
