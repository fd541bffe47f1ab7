"""Tests for settings loading from config.ini and ESN_* variables."""

import os

import pytest

from email_send_node.config_loader import _parse_bool, load_credentials, load_settings


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Run every test from an empty directory without ESN_* variables."""
    for key in list(os.environ):
        if key.startswith("ESN_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


def test_load_from_config_file(tmp_path):
    config_file = tmp_path / "mail.ini"
    config_file.write_text("""
[smtp]
host = smtp.example.com
port = 587
secure = false
user = mailer@example.com
password = secret
allow_unauthorized_certs = yes
timeout = 15

[node]
continue_on_fail = true

[logging]
level = debug
""")

    settings = load_settings(str(config_file))

    creds = settings["credentials"]
    assert creds.host == "smtp.example.com"
    assert creds.port == 587
    assert creds.secure is False
    assert creds.user == "mailer@example.com"
    assert creds.password == "secret"
    assert creds.allow_unauthorized_certs is True
    assert settings["transport_timeout"] == 15.0
    assert settings["continue_on_fail"] is True
    assert settings["log_level"] == "DEBUG"


def test_environment_fallbacks(monkeypatch):
    monkeypatch.setenv("ESN_SMTP_HOST", "env.example.com")
    monkeypatch.setenv("ESN_SMTP_PORT", "2525")
    monkeypatch.setenv("ESN_SMTP_SECURE", "0")
    monkeypatch.setenv("ESN_LOG_LEVEL", "warning")

    settings = load_settings()

    assert settings["credentials"].host == "env.example.com"
    assert settings["credentials"].port == 2525
    assert settings["credentials"].secure is False
    assert settings["credentials"].user is None
    assert settings["transport_timeout"] == 60.0
    assert settings["continue_on_fail"] is False
    assert settings["log_level"] == "WARNING"


def test_config_file_wins_over_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("ESN_SMTP_HOST", "env.example.com")
    monkeypatch.setenv("ESN_SMTP_PORT", "2525")
    (tmp_path / "config.ini").write_text("[smtp]\nhost = file.example.com\n")

    creds = load_credentials()

    assert creds.host == "file.example.com"
    assert creds.port == 2525


def test_esn_config_variable(monkeypatch, tmp_path):
    custom = tmp_path / "custom.ini"
    custom.write_text("[smtp]\nhost = custom.example.com\n")
    monkeypatch.setenv("ESN_CONFIG", str(custom))

    assert load_credentials().host == "custom.example.com"


def test_missing_host():
    with pytest.raises(ValueError, match="SMTP host is not configured"):
        load_settings()


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "nope.ini"))


def test_parse_bool():
    assert _parse_bool(None, True) is True
    assert _parse_bool("On", False) is True
    assert _parse_bool("no", True) is False
    assert _parse_bool("maybe", True) is True
