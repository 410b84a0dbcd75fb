from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from app.orderit.core import config
from app.orderit.core.context import TRACE_HEADER

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, PATCH, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
PREFLIGHT_MAX_AGE = "86400"
BODYLESS_METHODS = frozenset({"GET", "DELETE"})

_session = requests.Session()


@dataclass(frozen=True)
class UpstreamReply:
    status_code: int
    content_type: str | None
    body: Any = None
    is_json: bool = False

    @property
    def is_empty(self) -> bool:
        return self.status_code == 204 or self.body is None


class BackendProxy:
    """Forwards one browser request to the backend REST API, unchanged."""

    def __init__(self, base_url: str, timeout_seconds: float, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.session = session or _session

    def build_url(self, path: str, query: str = "") -> str:
        url = f"{self.base_url}/{path.lstrip('/')}"
        return f"{url}?{query}" if query else url

    def forward(
        self,
        method: str,
        path: str,
        *,
        query: str = "",
        body: bytes | None = None,
        authorization: str | None = None,
        trace_id: str | None = None,
    ) -> UpstreamReply:
        method = method.upper()
        url = self.build_url(path, query)
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if authorization:
            headers["Authorization"] = authorization
        if trace_id:
            headers[TRACE_HEADER] = trace_id
        data = body if method not in BODYLESS_METHODS and body else None

        logger.info("Proxy %s %s", method, url)
        response = self.session.request(method, url, headers=headers, data=data, timeout=self.timeout_seconds)
        content_type = response.headers.get("Content-Type")
        if response.status_code == 204 or not response.content:
            return UpstreamReply(status_code=response.status_code, content_type=content_type)
        if content_type and "application/json" in content_type:
            return UpstreamReply(
                status_code=response.status_code,
                content_type=content_type,
                body=response.json(),
                is_json=True,
            )
        return UpstreamReply(status_code=response.status_code, content_type=content_type, body=response.text)


def get_backend_proxy() -> BackendProxy:
    return BackendProxy(
        base_url=config.settings.BACKEND_API_BASE_URL,
        timeout_seconds=config.settings.PROXY_TIMEOUT_SECONDS,
    )
