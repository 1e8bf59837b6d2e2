"""Tests for the sessionsync command line interface."""

import json
import re
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from pytest_httpx import HTTPXMock
from typer.testing import CliRunner

from sessionsync._version import __version__
from sessionsync.cli.main import app
from sessionsync.storage.models import CredentialRecord


TENANT_URL = "https://d1.api.example.com/"
CONSENT_URL = re.compile(r"https://auth\.augmentcode\.com/terms-accept\?.*")
API_URL = "https://remote.example.com/api/tokens"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide Typer CLI runner."""
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path) -> dict[str, str]:
    return {
        "SESSIONSYNC_STORAGE_ROOT": str(tmp_path / "store"),
        "XDG_CONFIG_HOME": str(tmp_path / "xdg"),
    }


@pytest.fixture(autouse=True)
def _quiet_logging() -> Iterator[None]:
    with patch("sessionsync.cli.main.setup_logging"):
        yield


def _tokens_file(cli_env: dict[str, str]) -> Path:
    return Path(cli_env["SESSIONSYNC_STORAGE_ROOT"]) / "tokens.json"


def _write_store(cli_env: dict[str, str], records: list[CredentialRecord]) -> None:
    path = _tokens_file(cli_env)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([r.to_json_dict() for r in records], indent=2))


def _mock_exchange(httpx_mock: HTTPXMock, consent_html: str) -> None:
    httpx_mock.add_response(url=CONSENT_URL, method="GET", text=consent_html)
    httpx_mock.add_response(
        url=f"{TENANT_URL}token", method="POST", json={"access_token": "tok-cli-0001"}
    )
    httpx_mock.add_response(
        url=f"{TENANT_URL}get-models",
        method="POST",
        json={"user": {"email": "cli@example.com"}},
    )
    httpx_mock.add_response(
        url=f"{TENANT_URL}get-credit-info",
        method="POST",
        json={
            "usage_units_remaining": 77.2,
            "current_billing_cycle_end_date_iso": "2026-11-01T00:00:00Z",
        },
    )


@pytest.mark.unit
class TestRootCommand:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"sessionsync {__version__}" in result.output

    def test_invalid_log_level(
        self, cli_runner: CliRunner, cli_env: dict[str, str]
    ) -> None:
        result = cli_runner.invoke(
            app, ["--log-level", "LOUD", "tokens", "list"], env=cli_env
        )

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


@pytest.mark.unit
class TestExchangeCommand:
    def test_exchange_prints_credential(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
        consent_page: Callable[..., str],
    ) -> None:
        _mock_exchange(httpx_mock, consent_page())

        result = cli_runner.invoke(app, ["exchange", "session-value"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "cli@example.com" in result.output
        assert "77" in result.output
        # Token is masked unless asked for
        assert "tok-cli-0001" not in result.output
        assert not _tokens_file(cli_env).exists()

    def test_exchange_prints_markup_characters_literally(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
        consent_page: Callable[..., str],
    ) -> None:
        httpx_mock.add_response(url=CONSENT_URL, method="GET", text=consent_page())
        httpx_mock.add_response(
            url=f"{TENANT_URL}token", method="POST", json={"access_token": "tok"}
        )
        httpx_mock.add_response(
            url=f"{TENANT_URL}get-models",
            method="POST",
            json={"user": {"email": "[/bold]me@example.com"}},
        )
        httpx_mock.add_response(
            url=f"{TENANT_URL}get-credit-info",
            method="POST",
            json={
                "usage_units_remaining": 1,
                "current_billing_cycle_end_date_iso": "[red]soon",
            },
        )

        result = cli_runner.invoke(app, ["exchange", "session-value"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "[/bold]me@example.com" in result.output
        assert "[red]soon" in result.output

    def test_exchange_save_and_export(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
        consent_page: Callable[..., str],
        tmp_path: Path,
    ) -> None:
        _mock_exchange(httpx_mock, consent_page())
        export_path = tmp_path / "export.json"

        result = cli_runner.invoke(
            app,
            [
                "exchange",
                "session-value",
                "--save",
                "--export",
                "--export-path",
                str(export_path),
            ],
            env=cli_env,
        )

        assert result.exit_code == 0, result.output
        assert "Saved credential" in result.output
        assert "Exported credential" in result.output

        stored = json.loads(_tokens_file(cli_env).read_text())
        assert len(stored) == 1
        assert stored[0]["auth_session"] == "session-value"
        assert stored[0]["access_token"] == "tok-cli-0001"
        assert stored[0]["email_note"] == "cli@example.com"
        assert stored[0]["portal_info"]["credits_balance"] == 77

        exported = json.loads(export_path.read_text())
        assert exported == stored

    def test_exchange_export_defaults_to_companion_file(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
        consent_page: Callable[..., str],
    ) -> None:
        _mock_exchange(httpx_mock, consent_page())

        result = cli_runner.invoke(
            app, ["exchange", "session-value", "--export"], env=cli_env
        )

        assert result.exit_code == 0, result.output
        xdg = Path(cli_env["XDG_CONFIG_HOME"])
        export_path = xdg / "com.cubezhao.atm" / "tokens.json"
        assert len(json.loads(export_path.read_text())) == 1

    def test_exchange_save_duplicate_session(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
        consent_page: Callable[..., str],
        make_record: Callable[..., CredentialRecord],
    ) -> None:
        _write_store(cli_env, [make_record("existing", "session-value")])
        _mock_exchange(httpx_mock, consent_page())

        result = cli_runner.invoke(
            app, ["exchange", "session-value", "--save"], env=cli_env
        )

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert len(json.loads(_tokens_file(cli_env).read_text())) == 1

    def test_exchange_failure_exits_with_error(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
    ) -> None:
        httpx_mock.add_response(url=CONSENT_URL, method="GET", text="<html></html>")

        result = cli_runner.invoke(app, ["exchange", "session-value"], env=cli_env)

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "account restricted" in result.output


@pytest.mark.unit
class TestTokensCommands:
    def test_list_empty(self, cli_runner: CliRunner, cli_env: dict[str, str]) -> None:
        result = cli_runner.invoke(app, ["tokens", "list"], env=cli_env)

        assert result.exit_code == 0
        assert "No credentials stored" in result.output

    def test_list_records(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        make_record: Callable[..., CredentialRecord],
    ) -> None:
        _write_store(
            cli_env, [make_record("rec-a", "s-a"), make_record("rec-b", "s-b")]
        )

        result = cli_runner.invoke(app, ["tokens", "list"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "Credentials (2)" in result.output
        assert "rec-a" in result.output
        assert "rec-b" in result.output

    def test_list_records_with_markup_characters(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        make_record: Callable[..., CredentialRecord],
    ) -> None:
        _write_store(
            cli_env,
            [
                make_record(
                    "[b]",
                    "s-a",
                    email_note="[/bold]oops",
                    ban_status="[/red]",
                    tenant_url="https://t/[x]",
                )
            ],
        )

        result = cli_runner.invoke(app, ["tokens", "list"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "Credentials (1)" in result.output
        assert "[b]" in result.output

    def test_list_corrupt_store(
        self, cli_runner: CliRunner, cli_env: dict[str, str]
    ) -> None:
        path = _tokens_file(cli_env)
        path.parent.mkdir(parents=True)
        path.write_text("{oops")

        result = cli_runner.invoke(app, ["tokens", "list"], env=cli_env)

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_delete(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        make_record: Callable[..., CredentialRecord],
    ) -> None:
        _write_store(
            cli_env, [make_record("rec-a", "s-a"), make_record("rec-b", "s-b")]
        )

        result = cli_runner.invoke(app, ["tokens", "delete", "rec-a"], env=cli_env)

        assert result.exit_code == 0
        assert "Deleted rec-a" in result.output
        stored = json.loads(_tokens_file(cli_env).read_text())
        assert [r["id"] for r in stored] == ["rec-b"]

    def test_import_from_argument(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
    ) -> None:
        httpx_mock.add_response(
            url=API_URL,
            json={
                "status": 1,
                "data": [
                    {"id": "1", "auth_session": "sA", "created_at": "2024-01-01"},
                    {"id": "2", "auth_session": "sA", "created_at": "2024-01-02"},
                    {"id": "3", "created_at": "2024-01-03"},
                ],
            },
        )

        result = cli_runner.invoke(app, ["tokens", "import", API_URL], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "Imported 1, skipped 2" in result.output
        assert "Missing required field: auth_session" in result.output

    def test_import_uses_saved_url(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
    ) -> None:
        preferences = Path(cli_env["SESSIONSYNC_STORAGE_ROOT"]) / "config.json"
        preferences.parent.mkdir(parents=True)
        preferences.write_text(json.dumps({"url": API_URL, "file_path": ""}))
        httpx_mock.add_response(url=API_URL, json={"status": 1, "data": []})

        result = cli_runner.invoke(app, ["tokens", "import"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "Imported 0, skipped 0" in result.output

    def test_import_without_url(
        self, cli_runner: CliRunner, cli_env: dict[str, str]
    ) -> None:
        result = cli_runner.invoke(app, ["tokens", "import"], env=cli_env)

        assert result.exit_code == 1
        assert "No remote API URL" in result.output

    def test_import_failure_status(
        self,
        cli_runner: CliRunner,
        cli_env: dict[str, str],
        httpx_mock: HTTPXMock,
    ) -> None:
        httpx_mock.add_response(url=API_URL, json={"status": 2, "data": []})

        result = cli_runner.invoke(app, ["tokens", "import", API_URL], env=cli_env)

        assert result.exit_code == 1
        assert "failure status 2" in result.output


@pytest.mark.unit
class TestConfigCommands:
    def test_set_then_show(
        self, cli_runner: CliRunner, cli_env: dict[str, str]
    ) -> None:
        result = cli_runner.invoke(
            app,
            ["config", "set", "--url", "https://r.example/api"],
            env=cli_env,
        )

        assert result.exit_code == 0, result.output
        assert "Preferences saved" in result.output
        preferences = Path(cli_env["SESSIONSYNC_STORAGE_ROOT"]) / "config.json"
        assert json.loads(preferences.read_text()) == {
            "url": "https://r.example/api",
            "file_path": "",
        }

        result = cli_runner.invoke(app, ["config", "show"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "https://r.example/api" in result.output
        assert "auth_base_url" in result.output

    def test_set_keeps_other_preference(
        self, cli_runner: CliRunner, cli_env: dict[str, str]
    ) -> None:
        cli_runner.invoke(app, ["config", "set", "--url", "https://r/"], env=cli_env)
        cli_runner.invoke(
            app, ["config", "set", "--file-path", "/tmp/t.json"], env=cli_env
        )

        preferences = Path(cli_env["SESSIONSYNC_STORAGE_ROOT"]) / "config.json"
        assert json.loads(preferences.read_text()) == {
            "url": "https://r/",
            "file_path": "/tmp/t.json",
        }

    def test_set_nothing(self, cli_runner: CliRunner, cli_env: dict[str, str]) -> None:
        result = cli_runner.invoke(app, ["config", "set"], env=cli_env)

        assert result.exit_code == 0
        assert "Nothing to update" in result.output
