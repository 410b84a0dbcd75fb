from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError
from .tracing import TRACE_HEADER, TraceContext

logger = logging.getLogger(__name__)

ResponseHook = Callable[[requests.Response], None]
RequestHook = Callable[[str, str, dict[str, Any]], None]

IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})


@dataclass
class LastOperation:
    operation: str
    duration_ms: int
    result: str
    trace_id: str | None


def pooled_session(max_connections: int) -> requests.Session:
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=max_connections, pool_maxsize=max_connections)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


@dataclass
class HttpClient:
    """JSON client for the OrderIt REST backend.

    Only GET/HEAD are retried, on transport errors and 5xx answers, with
    exponential backoff. Mutations go out exactly once so a timeout never
    turns into a duplicated order or invoice line.
    """

    config: ClientConfig
    trace: TraceContext | None = None
    session: requests.Session | None = None
    before_request: RequestHook | None = None
    after_response: ResponseHook | None = None
    sleep: Callable[[float], None] = time.sleep
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.trace is None:
            self.trace = TraceContext()
        if self.session is None:
            self.session = pooled_session(self.config.max_connections)

    def url_for(self, path: str) -> str:
        return f"{self.config.api_base_url.rstrip('/')}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | list[Any] | None = None,
        params: dict[str, Any] | None = None,
        operation: str = "unknown",
    ) -> Any:
        method = method.upper()
        url = self.url_for(path)
        request_headers = {"Accept": "application/json", **(headers or {}), TRACE_HEADER: self.trace.ensure()}
        if self.before_request:
            self.before_request(method, url, {"headers": request_headers, "json_body": json_body, "params": params})

        started = time.monotonic()
        try:
            response = self._send(method, url, request_headers, json_body, params)
        except requests.RequestException as exc:
            self._finish(operation, started, "transport_error")
            raise TransportError(
                code="TRANSPORT_ERROR",
                message=str(exc),
                details={"type": type(exc).__name__},
                trace_id=self.trace.trace_id,
                status_code=0,
            ) from exc

        if self.after_response:
            self.after_response(response)
        self.trace.update_from_headers(response.headers)
        if not response.ok:
            self._finish(operation, started, "error")
            raise map_error(response.status_code, _error_payload(response), self.trace.trace_id)
        self._finish(operation, started, "success")
        return _parse_body(response) if response.content else None

    def _send(self, method, url, headers, json_body, params) -> requests.Response:
        attempts = self.config.retries + 1 if method in IDEMPOTENT_METHODS else 1
        for attempt in range(1, attempts + 1):
            last = attempt == attempts
            try:
                response = self.session.request(
                    method=method,
                    url=url,
                    headers=headers,
                    json=json_body,
                    params=params,
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if last:
                    raise
                logger.warning("%s %s failed (%s), retrying", method, url, type(exc).__name__)
            else:
                if response.status_code < 500 or last:
                    return response
                logger.warning("%s %s returned %s, retrying", method, url, response.status_code)
            self.sleep(self.config.retry_backoff_seconds * 2 ** (attempt - 1))
        raise RuntimeError(f"{method} {url} finished without a response")

    def _finish(self, operation: str, started: float, result: str) -> None:
        self.last_operation = LastOperation(
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            trace_id=self.trace.trace_id,
        )


def _error_payload(response: requests.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"message": response.text}
    return payload if isinstance(payload, dict) else {"message": str(payload)}


def _parse_body(response: requests.Response) -> Any:
    if "json" in response.headers.get("Content-Type", ""):
        return response.json()
    # Some backend endpoints answer a bare id as text/plain.
    text = response.text
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text
