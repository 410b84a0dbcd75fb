from __future__ import annotations

import base64

import pytest

from orderit_client_sdk.pod_validation import MAX_POD_BYTES, PodValidationError, validate_pod_upload

PNG = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"0" * 32).decode("ascii")


def test_file_name_with_image_extension() -> None:
    upload = validate_pod_upload("delivery.jpg", size_bytes=1024)

    assert upload.content_type == "image/jpeg"
    assert upload.pod_path == "imagenes/delivery.jpg"
    assert upload.base64 is None


def test_explicit_content_type_wins() -> None:
    upload = validate_pod_upload("imagenes/scan", content_type="IMAGE/PNG")

    assert upload.content_type == "image/png"
    assert upload.pod_path == "imagenes/scan"


def test_data_url_is_measured() -> None:
    upload = validate_pod_upload(f"data:image/png;base64,{PNG}", file_name="order-7.png")

    assert upload.size_bytes == 40
    assert upload.base64 == PNG
    assert upload.pod_path == "imagenes/order-7.png"


def test_data_url_default_name() -> None:
    assert validate_pod_upload(f"data:image/png;base64,{PNG}").file_name == "POD.png"


@pytest.mark.parametrize(
    ("reference", "kwargs", "field"),
    [
        ("", {}, "pod"),
        ("invoice.pdf", {}, "content_type"),
        ("noextension", {}, "content_type"),
        ("big.png", {"size_bytes": MAX_POD_BYTES + 1}, "size_bytes"),
        ("data:application/pdf;base64,AAAA", {}, "content_type"),
        ("data:image/png;base64,not-base64!", {}, "pod"),
        ("data:image/png,raw", {}, "pod"),
    ],
)
def test_rejected_uploads(reference, kwargs, field) -> None:
    with pytest.raises(PodValidationError) as excinfo:
        validate_pod_upload(reference, **kwargs)
    assert excinfo.value.issues[0].field == field


def test_size_limit_is_inclusive() -> None:
    assert validate_pod_upload("big.png", size_bytes=MAX_POD_BYTES).size_bytes == MAX_POD_BYTES
