from __future__ import annotations

from pathlib import Path

import pytest

from orderit_client_sdk.config import ConfigError, load_config


@pytest.fixture()
def no_env_file(tmp_path: Path) -> str:
    return str(tmp_path / "missing.env")


def test_base_url_is_required(monkeypatch, no_env_file) -> None:
    monkeypatch.setenv("ORDERIT_ENV", "dev")
    monkeypatch.setenv("ORDERIT_API_BASE_URL", "")
    monkeypatch.setenv("ORDERIT_API_BASE_URL_DEV", "")

    with pytest.raises(ConfigError, match="ORDERIT_API_BASE_URL"):
        load_config(no_env_file)


def test_environment_specific_url_wins(monkeypatch, no_env_file) -> None:
    monkeypatch.setenv("ORDERIT_ENV", "staging")
    monkeypatch.setenv("ORDERIT_API_BASE_URL", "https://default.example.com")
    monkeypatch.setenv("ORDERIT_API_BASE_URL_STAGING", "https://staging.example.com/api/")

    config = load_config(no_env_file)

    assert config.api_base_url == "https://staging.example.com/api"
    assert config.normalized_env == "staging"


def test_defaults(monkeypatch, no_env_file) -> None:
    monkeypatch.setenv("ORDERIT_API_BASE_URL", "https://api.example.com")
    for name in (
        "ORDERIT_ENV",
        "ORDERIT_TIMEOUT_SECONDS",
        "ORDERIT_CONNECT_TIMEOUT_SECONDS",
        "ORDERIT_READ_TIMEOUT_SECONDS",
        "ORDERIT_RETRIES",
        "ORDERIT_DIRECTORY_TTL_SECONDS",
        "ORDERIT_DIRECTORY_MAX_ENTRIES",
        "ORDERIT_VERIFY_SSL",
    ):
        monkeypatch.delenv(name, raising=False)

    config = load_config(no_env_file)

    assert config.env_name == "dev"
    assert config.connect_timeout_seconds == 5.0
    assert config.read_timeout_seconds == 10.0
    assert config.retries == 3
    assert config.directory_ttl_seconds == 60.0
    assert config.directory_max_entries == 512
    assert config.verify_ssl is True


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("ORDERIT_TIMEOUT_SECONDS", "0"),
        ("ORDERIT_TIMEOUT_SECONDS", "soon"),
        ("ORDERIT_RETRIES", "-1"),
        ("ORDERIT_DIRECTORY_TTL_SECONDS", "0"),
        ("ORDERIT_DIRECTORY_MAX_ENTRIES", "0"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, no_env_file, name, value) -> None:
    monkeypatch.setenv("ORDERIT_API_BASE_URL", "https://api.example.com")
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError, match=name):
        load_config(no_env_file)


def test_env_file_is_loaded(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ORDERIT_ENV", "dev")
    monkeypatch.setenv("ORDERIT_API_BASE_URL_DEV", "")
    monkeypatch.setenv("ORDERIT_API_BASE_URL", "placeholder")
    monkeypatch.delenv("ORDERIT_API_BASE_URL")
    monkeypatch.setenv("ORDERIT_VERIFY_SSL", "off")
    env_file = tmp_path / ".env"
    env_file.write_text("ORDERIT_API_BASE_URL=https://from-file.example.com\n", encoding="utf-8")

    config = load_config(str(env_file))

    assert config.api_base_url == "https://from-file.example.com"
    assert config.verify_ssl is False
