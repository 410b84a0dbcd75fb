from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.orderit.core import config

LATENCY_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)
REQUEST_LABELS = ("route", "method", "status")


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


@dataclass
class _Collectors:
    registry: CollectorRegistry
    requests_total: Counter
    request_duration_ms: Histogram
    upstream_errors_total: Counter
    pod_rejections_total: Counter

    @classmethod
    def build(cls) -> "_Collectors":
        registry = CollectorRegistry()
        return cls(
            registry=registry,
            requests_total=Counter(
                "http_requests_total", "HTTP requests by route/method/status.", REQUEST_LABELS, registry=registry
            ),
            request_duration_ms=Histogram(
                "http_request_duration_ms",
                "HTTP request latency in milliseconds.",
                REQUEST_LABELS,
                buckets=LATENCY_BUCKETS_MS,
                registry=registry,
            ),
            upstream_errors_total=Counter(
                "proxy_upstream_errors_total",
                "Proxied requests that failed before the backend answered.",
                ("method",),
                registry=registry,
            ),
            pod_rejections_total=Counter(
                "pod_image_rejections_total",
                "POD image requests refused by path checks.",
                ("reason",),
                registry=registry,
            ),
        )


class Metrics:
    """Process-wide Prometheus collectors; every call is a no-op when metrics are disabled."""

    def __init__(self) -> None:
        self.enabled = bool(config.settings.METRICS_ENABLED)
        self._collectors = _Collectors.build() if self.enabled else None

    def reset(self) -> None:
        if self.enabled:
            self._collectors = _Collectors.build()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if self._collectors is None:
            return
        labels = (route, method, str(status_code))
        self._collectors.requests_total.labels(*labels).inc()
        self._collectors.request_duration_ms.labels(*labels).observe(latency_ms)

    def increment_proxy_upstream_error(self, method: str) -> None:
        if self._collectors is not None:
            self._collectors.upstream_errors_total.labels(method).inc()

    def increment_pod_image_rejection(self, reason: str) -> None:
        if self._collectors is not None:
            self._collectors.pod_rejections_total.labels(reason).inc()

    def render(self) -> MetricsSnapshot:
        if self._collectors is None:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._collectors.registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
