from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable

from dotenv import load_dotenv

TRUTHY = frozenset({"1", "true", "yes", "on"})


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 20
    verify_ssl: bool = True
    directory_ttl_seconds: float = 60.0
    directory_max_entries: int = 512

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _env_number(
    name: str,
    default: float | int,
    cast: Callable[[str], float | int],
    *,
    minimum: float,
    allow_equal: bool,
) -> float | int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        value = default
    else:
        try:
            value = cast(raw.strip())
        except ValueError as exc:
            kind = "an integer" if cast is int else "a number"
            raise ConfigError(f"Invalid {name}: expected {kind}, got {raw!r}") from exc
    ok = value >= minimum if allow_equal else value > minimum
    if not ok:
        bound = ">=" if allow_equal else ">"
        raise ConfigError(f"Invalid {name}: expected {bound} {minimum:g}, got {value}")
    return value


def _positive_seconds(name: str, default: float) -> float:
    return float(_env_number(name, default, float, minimum=0, allow_equal=False))


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in TRUTHY


def _base_url(env_key: str) -> str:
    for name in (f"ORDERIT_API_BASE_URL_{env_key}", "ORDERIT_API_BASE_URL"):
        value = (os.getenv(name) or "").strip()
        if value:
            return value.rstrip("/")
    raise ConfigError("Missing required config values: ORDERIT_API_BASE_URL")


def load_config(env_file: str | None = None) -> ClientConfig:
    """Read the SDK settings from the environment, after loading ``env_file``.

    ``ORDERIT_API_BASE_URL_<ENV>`` wins over ``ORDERIT_API_BASE_URL`` so one
    .env file can carry several backends. ``ORDERIT_TIMEOUT_SECONDS`` seeds
    the connect (capped at 5s) and read timeouts unless those are set.
    """
    load_dotenv(env_file)

    env_name = (os.getenv("ORDERIT_ENV") or "dev").strip()
    api_base_url = _base_url(env_name.upper())

    timeout = _positive_seconds("ORDERIT_TIMEOUT_SECONDS", 10.0)
    connect_timeout = _positive_seconds("ORDERIT_CONNECT_TIMEOUT_SECONDS", min(timeout, 5.0))
    read_timeout = _positive_seconds("ORDERIT_READ_TIMEOUT_SECONDS", max(timeout, connect_timeout))

    return ClientConfig(
        env_name=env_name,
        api_base_url=api_base_url,
        connect_timeout_seconds=connect_timeout,
        read_timeout_seconds=read_timeout,
        retries=int(_env_number("ORDERIT_RETRIES", 3, int, minimum=0, allow_equal=True)),
        retry_backoff_seconds=float(
            _env_number("ORDERIT_RETRY_BACKOFF_SECONDS", 0.3, float, minimum=0, allow_equal=True)
        ),
        max_connections=int(_env_number("ORDERIT_MAX_CONNECTIONS", 20, int, minimum=1, allow_equal=True)),
        verify_ssl=_env_flag("ORDERIT_VERIFY_SSL", True),
        directory_ttl_seconds=_positive_seconds("ORDERIT_DIRECTORY_TTL_SECONDS", 60.0),
        directory_max_entries=int(
            _env_number("ORDERIT_DIRECTORY_MAX_ENTRIES", 512, int, minimum=1, allow_equal=True)
        ),
    )
