from pathlib import Path

import pytest

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png"


def _store(pod_base: Path, name: str, content: bytes = PNG_BYTES) -> Path:
    target = pod_base / "Imágenes" / name
    target.write_bytes(content)
    return target


def test_pod_image_maps_stored_folder_to_images_folder(client, pod_base):
    _store(pod_base, "order-1.png")

    response = client.get("/api/pod-image", params={"path": "imagenes/order-1.png"})

    assert response.status_code == 200
    assert response.content == PNG_BYTES
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "public, max-age=3600"


def test_pod_image_accepts_backslash_separators(client, pod_base):
    _store(pod_base, "order-2.png")

    response = client.get("/api/pod-image", params={"path": "\\Imagenes\\order-2.png"})

    assert response.status_code == 200
    assert response.content == PNG_BYTES


@pytest.mark.parametrize(
    ("name", "content_type"),
    [
        ("photo.JPG", "image/jpeg"),
        ("photo.jpeg", "image/jpeg"),
        ("anim.gif", "image/gif"),
        ("shot.webp", "image/webp"),
        ("scan.bin", "image/png"),
    ],
)
def test_pod_image_content_type_follows_extension(client, pod_base, name, content_type):
    _store(pod_base, name, b"data")

    response = client.get("/api/pod-image", params={"path": f"imagenes/{name}"})

    assert response.status_code == 200
    assert response.headers["content-type"] == content_type


def test_pod_image_rejects_traversal_without_reading(client, monkeypatch):
    def _fail(self):
        raise AssertionError(f"{self} must not be read")

    monkeypatch.setattr(Path, "read_bytes", _fail)

    response = client.get("/api/pod-image", params={"path": "../../etc/passwd"})

    assert response.status_code == 400
    payload = response.json()
    assert payload["code"] == "POD_PATH_OUTSIDE_BASE"
    assert payload["message"] == "Invalid path"
    assert payload["trace_id"]


def test_pod_image_rejects_absolute_path_outside_base(client):
    response = client.get("/api/pod-image", params={"path": "/etc/passwd"})

    assert response.status_code == 400
    assert response.json()["code"] == "POD_PATH_OUTSIDE_BASE"


@pytest.mark.parametrize("params", [{}, {"path": ""}, {"path": "   "}])
def test_pod_image_requires_path(client, params):
    response = client.get("/api/pod-image", params=params)

    assert response.status_code == 400
    assert response.json()["code"] == "POD_PATH_REQUIRED"
    assert response.json()["message"] == "Missing path"


@pytest.mark.parametrize(
    "path",
    ["data:image/png;base64,AAAA", "https://cdn.example.com/pod.png", "HTTP://cdn.example.com/pod.png"],
)
def test_pod_image_refuses_non_local_references(client, path):
    response = client.get("/api/pod-image", params={"path": path})

    assert response.status_code == 400
    assert response.json()["code"] == "POD_PATH_NOT_LOCAL"


def test_pod_image_missing_file_is_404(client):
    response = client.get("/api/pod-image", params={"path": "imagenes/missing.png"})

    assert response.status_code == 404
    assert response.json()["code"] == "POD_IMAGE_NOT_FOUND"


def test_pod_image_rejections_are_counted(client):
    from app.orderit.core.metrics import metrics

    metrics.reset()
    client.get("/api/pod-image", params={"path": "../secret.png"})

    body = client.get("/orderit/ops/metrics").text
    assert 'pod_image_rejections_total{reason="outside_base"} 1.0' in body
