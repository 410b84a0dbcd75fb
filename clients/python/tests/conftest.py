from __future__ import annotations

import sys
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
SDK_SRC = BASE_DIR / "orderit_client_sdk" / "src"

if str(SDK_SRC) not in sys.path:
    sys.path.insert(0, str(SDK_SRC))

TEST_BASE_URL = "https://api.example.com"


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def http(sleeps):
    from orderit_client_sdk.config import ClientConfig
    from orderit_client_sdk.http_client import HttpClient
    from orderit_client_sdk.tracing import TraceContext

    config = ClientConfig(env_name="test", api_base_url=TEST_BASE_URL, retries=0)
    return HttpClient(config, trace=TraceContext(), sleep=sleeps.append)
