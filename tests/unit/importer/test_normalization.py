"""Tests for remote record normalization."""

from typing import Any

import pytest

from sessionsync.exceptions import MissingFieldError, RecordNormalizationError
from sessionsync.importer.normalization import (
    FIELD_ALIASES,
    normalize,
    resolve_aliases,
)


def _remote(**fields: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": "r1",
        "auth_session": "sess-1",
        "created_at": "2024-01-01",
    }
    record.update(fields)
    return record


@pytest.mark.unit
class TestResolveAliases:
    def test_camel_case_aliases(self) -> None:
        resolved = resolve_aliases(
            {
                "tenantUrl": "https://t/",
                "accessToken": "tok",
                "banStatus": "SUSPENDED",
                "emailNote": "a@b.c",
                "authSession": "sess",
            }
        )

        assert resolved == {
            "tenant_url": "https://t/",
            "access_token": "tok",
            "ban_status": "SUSPENDED",
            "email_note": "a@b.c",
            "session_fingerprint": "sess",
        }

    def test_canonical_name_wins(self) -> None:
        resolved = resolve_aliases(
            {"access_token": "canonical", "accessToken": "alias"}
        )
        assert resolved["access_token"] == "canonical"

    def test_null_canonical_falls_back_to_alias(self) -> None:
        resolved = resolve_aliases({"access_token": None, "accessToken": "alias"})
        assert resolved["access_token"] == "alias"

    def test_unknown_fields_dropped(self) -> None:
        assert resolve_aliases({"whatever": 1}) == {}

    def test_every_canonical_field_accepts_its_first_name(self) -> None:
        raw = {names[0]: f"v-{canonical}" for canonical, names in FIELD_ALIASES.items()}

        resolved = resolve_aliases(raw)

        assert set(resolved) == set(FIELD_ALIASES)


@pytest.mark.unit
class TestNormalize:
    def test_defaults_are_filled(self) -> None:
        record = normalize(_remote())

        assert record.id == "r1"
        assert record.session_fingerprint == "sess-1"
        assert record.created_at == "2024-01-01"
        assert record.updated_at == "2024-01-01"
        assert record.ban_status == "ACTIVE"
        assert record.skip_check is False
        assert record.tenant_url == ""
        assert record.access_token == ""
        assert record.portal_info is None

    def test_present_values_are_kept(self) -> None:
        record = normalize(
            _remote(
                updated_at="2024-02-01",
                banStatus="SUSPENDED",
                skip_check=True,
                accessToken="tok",
                portal_info={"credits_balance": 3, "expiry_date": "2024-03-01"},
                tag_name="work",
                tag_color="#ff0000",
                suspensions="[]",
                balance_color_mode="auto",
                portal_url="https://portal/",
            )
        )

        assert record.updated_at == "2024-02-01"
        assert record.ban_status == "SUSPENDED"
        assert record.skip_check is True
        assert record.access_token == "tok"
        assert record.portal_info is not None
        assert record.portal_info.credits_balance == 3
        assert record.tag_name == "work"
        assert record.portal_url == "https://portal/"

    def test_numeric_id_becomes_string(self) -> None:
        assert normalize(_remote(id=42)).id == "42"

    def test_camel_case_session(self) -> None:
        remote = _remote()
        remote["authSession"] = remote.pop("auth_session")

        assert normalize(remote).session_fingerprint == "sess-1"

    @pytest.mark.parametrize(
        ("removed", "reported"),
        [("id", "id"), ("auth_session", "auth_session"), ("created_at", "created_at")],
    )
    def test_missing_required_field(self, removed: str, reported: str) -> None:
        remote = _remote()
        del remote[removed]

        with pytest.raises(MissingFieldError) as exc_info:
            normalize(remote)

        assert exc_info.value.field == reported
        assert str(exc_info.value) == f"Missing required field: {reported}"

    def test_missing_field_carries_record_id(self) -> None:
        with pytest.raises(MissingFieldError) as exc_info:
            normalize({"id": "r9", "created_at": "2024-01-01"})

        assert exc_info.value.record_id == "r9"

    def test_null_required_field_counts_as_missing(self) -> None:
        with pytest.raises(MissingFieldError):
            normalize(_remote(auth_session=None))

    @pytest.mark.parametrize("remote", [["not", "an", "object"], "text", 7, None])
    def test_non_object_record(self, remote: Any) -> None:
        with pytest.raises(RecordNormalizationError):
            normalize(remote)

    def test_unusable_field_value(self) -> None:
        with pytest.raises(RecordNormalizationError) as exc_info:
            normalize(_remote(portal_info="not an object"))

        assert exc_info.value.record_id == "r1"
