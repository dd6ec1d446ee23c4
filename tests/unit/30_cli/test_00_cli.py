"""Tests for the mail-notifier command line."""

import json

import pytest
from click.testing import CliRunner

from mail_notifier.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[mail]\nhost = smtp.example.com\nport = 2525\nfrom = noreply@example.com\n")
    return path


@pytest.fixture
def tenants_file(tmp_path):
    path = tmp_path / "tenants.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "acme",
                    "description": "ACME Corporation",
                    "communicationPolicy": {
                        "emailCommunicationPolicy": {"host": "smtp.acme.test", "port": 587, "from": "ops@acme.test"}
                    },
                }
            ]
        )
    )
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MAIL_HOST", "MAIL_PORT", "MAIL_CONFIG", "MAIL_TENANTS", "MAIL_FROM"):
        monkeypatch.delenv(name, raising=False)


def test_send_uses_configured_from(runner, config_file, smtp):
    result = runner.invoke(
        main, ["--config", str(config_file), "send", "--to", "user@example.com", "--body", "Hello", "--subject", "Hi"]
    )

    assert result.exit_code == 0, result.output
    assert "Sent" in result.output
    assert smtp.sent[0]["From"] == "noreply@example.com"
    assert smtp.created[0].hostname == "smtp.example.com"


def test_send_with_tenant(runner, config_file, tenants_file, smtp):
    result = runner.invoke(
        main,
        [
            "--config", str(config_file),
            "--tenants", str(tenants_file),
            "send", "--tenant", "acme", "--to", "user@example.com", "--body", "<b>Hi</b>", "--html",
        ],
    )

    assert result.exit_code == 0, result.output
    assert smtp.sent[0]["From"] == "ops@acme.test"
    assert smtp.created[0].hostname == "smtp.acme.test"


def test_send_exits_1_when_unreachable(runner, config_file, smtp):
    smtp.connect_error = ConnectionRefusedError("refused")

    result = runner.invoke(main, ["--config", str(config_file), "send", "--to", "user@example.com", "--body", "x"])

    assert result.exit_code == 1


def test_check(runner, config_file, smtp):
    result = runner.invoke(main, ["--config", str(config_file), "check"])

    assert result.exit_code == 0, result.output
    assert "Connected" in result.output


def test_check_without_host(runner, smtp):
    result = runner.invoke(main, ["check"])

    assert result.exit_code == 1
    assert smtp.created == []


def test_tenants_table(runner, tenants_file):
    result = runner.invoke(main, ["--tenants", str(tenants_file), "tenants"])

    assert result.exit_code == 0, result.output
    assert "acme" in result.output
    assert "smtp.acme.test" in result.output


def test_tenants_requires_file(runner):
    result = runner.invoke(main, ["tenants"])

    assert result.exit_code == 2
