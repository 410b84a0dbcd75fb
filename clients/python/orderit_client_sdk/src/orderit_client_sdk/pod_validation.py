from __future__ import annotations

import base64
import binascii
import mimetypes
import re
from dataclasses import dataclass

from .validation import ClientValidationError, ValidationIssue

MAX_POD_BYTES = 5 * 1024 * 1024
POD_FOLDER_PREFIX = "imagenes/"
DEFAULT_POD_NAME = "POD.png"

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


class PodValidationError(ClientValidationError):
    pass


@dataclass(frozen=True)
class PodUpload:
    file_name: str
    content_type: str
    size_bytes: int | None
    base64: str | None = None

    @property
    def pod_path(self) -> str:
        if self.file_name.startswith(POD_FOLDER_PREFIX):
            return self.file_name
        return f"{POD_FOLDER_PREFIX}{self.file_name}"


def _fail(field: str, reason: str) -> PodValidationError:
    return PodValidationError([ValidationIssue(row_index=None, field=field, reason=reason)])


def _decoded_size(payload: str) -> int:
    try:
        return len(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError) as exc:
        raise _fail("pod", "data URL is not valid base64") from exc


def validate_pod_upload(
    file_name_or_data_url: str,
    content_type: str | None = None,
    size_bytes: int | None = None,
    *,
    file_name: str | None = None,
) -> PodUpload:
    """Check a POD before it is sent: image MIME type, 5 MB at most.

    Accepts either a file name (type from ``content_type`` or the extension)
    or a ``data:image/...;base64,`` URL, whose type and size come from the URL.
    """
    reference = (file_name_or_data_url or "").strip()
    if not reference:
        raise _fail("pod", "file name or data URL is required")

    encoded: str | None = None
    match = _DATA_URL_RE.match(reference)
    if match:
        content_type = match.group("mime")
        encoded = match.group("data").strip()
        if not encoded:
            raise _fail("pod", "data URL carries no image data")
        size_bytes = _decoded_size(encoded)
        name = (file_name or DEFAULT_POD_NAME).strip() or DEFAULT_POD_NAME
    elif reference.startswith("data:"):
        raise _fail("pod", "only base64 image data URLs are accepted")
    else:
        name = reference
        if content_type is None:
            content_type, _ = mimetypes.guess_type(name)

    if not content_type or not content_type.lower().startswith("image/"):
        raise _fail("content_type", f"expected an image, got {content_type or 'unknown type'}")
    if size_bytes is not None and size_bytes > MAX_POD_BYTES:
        raise _fail("size_bytes", f"image is {size_bytes} bytes, limit is {MAX_POD_BYTES}")
    if size_bytes is not None and size_bytes < 0:
        raise _fail("size_bytes", "size cannot be negative")

    return PodUpload(
        file_name=name,
        content_type=content_type.lower(),
        size_bytes=size_bytes,
        base64=encoded,
    )
