import importlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

BACKEND_URL = "http://backend.test"


def _setup_app(monkeypatch, pod_base: Path):
    monkeypatch.setenv("POD_FILE_BASE_PATH", str(pod_base))
    monkeypatch.setenv("POD_IMAGES_FOLDER", "Imágenes")
    monkeypatch.setenv("BACKEND_API_BASE_URL", BACKEND_URL)
    monkeypatch.setenv("PROXY_TIMEOUT_SECONDS", "5")

    import app.orderit.core.config as config
    import app.main as main

    importlib.reload(config)
    importlib.reload(main)

    return main.create_app()


@pytest.fixture()
def pod_base(tmp_path: Path) -> Path:
    base = tmp_path / "pod_files"
    (base / "Imágenes").mkdir(parents=True)
    return base


@pytest.fixture()
def client(monkeypatch, pod_base: Path):
    app = _setup_app(monkeypatch, pod_base)
    with TestClient(app) as client:
        yield client
