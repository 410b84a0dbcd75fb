from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from ..http_client import HttpClient


def segment(value: object) -> str:
    """Quote one path segment; ids may carry slashes or spaces."""
    return quote(str(value).strip(), safe="")


@dataclass
class BaseClient:
    http: HttpClient
    access_token: str | None = None

    def _request(self, method: str, path: str, *, headers: dict[str, str] | None = None, **kwargs: Any) -> Any:
        merged = dict(headers or {})
        if self.access_token:
            merged.setdefault("Authorization", f"Bearer {self.access_token}")
        return self.http.request(method, path, headers=merged, **kwargs)
