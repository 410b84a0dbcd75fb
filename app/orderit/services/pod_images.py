from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from app.orderit.core import config
from app.orderit.core.error_catalog import AppError, ErrorCatalog
from app.orderit.core.metrics import metrics

logger = logging.getLogger(__name__)

STORED_FOLDER_NAME = "imagenes"
CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
DEFAULT_CONTENT_TYPE = "image/png"
_SEPARATORS = re.compile(r"[\\/]+")


@dataclass(frozen=True)
class PodImage:
    path: Path
    content: bytes
    content_type: str


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


class PodImageStore:
    """Serves POD images stored under one base directory.

    The database keeps paths like ``imagenes/foo.png``; the first segment is
    mapped to the configured images folder on disk. Nothing outside the base
    directory is ever opened.
    """

    def __init__(self, base_path: str, images_folder: str) -> None:
        self.base_path = Path(base_path).expanduser().resolve()
        self.images_folder = images_folder

    def resolve(self, raw_path: str | None) -> Path:
        candidate = (raw_path or "").strip()
        if not candidate:
            self._reject("missing", ErrorCatalog.POD_PATH_REQUIRED)
        if candidate.lower().startswith(("data:", "http://", "https://")):
            self._reject("not_local", ErrorCatalog.POD_PATH_NOT_LOCAL)

        if Path(candidate).is_absolute():
            full_path = Path(candidate).resolve()
        else:
            full_path = (self.base_path / self._disk_relative(candidate)).resolve()

        if not full_path.is_relative_to(self.base_path):
            logger.warning("Refused POD path outside base directory: %s", candidate)
            self._reject("outside_base", ErrorCatalog.POD_PATH_OUTSIDE_BASE)
        return full_path

    def read(self, raw_path: str | None) -> PodImage:
        full_path = self.resolve(raw_path)
        try:
            content = full_path.read_bytes()
        except OSError as exc:
            logger.warning("POD image read failed for %s: %s", full_path, exc)
            raise AppError(ErrorCatalog.POD_IMAGE_NOT_FOUND) from exc
        return PodImage(path=full_path, content=content, content_type=content_type_for(full_path))

    def _disk_relative(self, stored_path: str) -> Path:
        parts = [part for part in _SEPARATORS.split(stored_path) if part]
        if parts and parts[0].lower() == STORED_FOLDER_NAME:
            parts[0] = self.images_folder
        return Path(*parts) if parts else Path()

    @staticmethod
    def _reject(reason: str, error) -> None:
        metrics.increment_pod_image_rejection(reason)
        raise AppError(error)


def get_pod_image_store() -> PodImageStore:
    return PodImageStore(config.settings.POD_FILE_BASE_PATH, config.settings.POD_IMAGES_FOLDER)
