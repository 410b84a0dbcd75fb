def test_health_reports_app_and_trace_id(client):
    response = client.get("/health", headers={"X-Trace-ID": "trace-health"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "app": "OrderIt", "trace_id": "trace-health"}
    assert response.headers["X-Trace-ID"] == "trace-health"


def test_health_generates_trace_id_when_missing(client):
    response = client.get("/health")

    trace_id = response.headers["X-Trace-ID"]
    assert trace_id
    assert response.json()["trace_id"] == trace_id


def test_metrics_endpoint_counts_requests(client):
    from app.orderit.core.metrics import metrics

    metrics.reset()
    client.get("/health")
    response = client.get("/orderit/ops/metrics")

    assert response.status_code == 200
    body = response.text
    assert "http_requests_total" in body
    assert 'route="/health"' in body


def test_request_id_header_is_accepted_as_trace_id(client):
    response = client.get("/health", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Trace-ID"] == "req-42"
    assert response.json()["trace_id"] == "req-42"


def test_overlong_trace_id_is_replaced(client):
    response = client.get("/health", headers={"X-Trace-ID": "x" * 200})

    trace_id = response.headers["X-Trace-ID"]
    assert trace_id
    assert trace_id != "x" * 200


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/does-not-exist", headers={"X-Trace-ID": "trace-404"})

    assert response.status_code == 404
    body = response.json()
    assert body["code"] == "NOT_FOUND"
    assert body["details"] is None
    assert body["trace_id"] == "trace-404"


def test_wrong_method_uses_error_envelope(client):
    response = client.post("/health")

    assert response.status_code == 405
    assert response.json()["code"] == "METHOD_NOT_ALLOWED"
