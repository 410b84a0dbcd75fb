import json

import requests
import responses

BACKEND_URL = "http://backend.test"


@responses.activate
def test_proxy_forwards_query_and_authorization(client):
    responses.add(
        responses.GET,
        f"{BACKEND_URL}/orders/orders",
        json=[{"id": "order-1", "status": "pending"}],
        status=200,
    )

    response = client.get(
        "/api/proxy/orders/orders?page=2&size=10",
        headers={"Authorization": "Bearer token-1"},
    )

    assert response.status_code == 200
    assert response.json() == [{"id": "order-1", "status": "pending"}]
    assert response.headers["access-control-allow-origin"] == "*"
    upstream = responses.calls[0].request
    assert upstream.url == f"{BACKEND_URL}/orders/orders?page=2&size=10"
    assert upstream.headers["Authorization"] == "Bearer token-1"
    assert upstream.body is None


@responses.activate
def test_proxy_forwards_body_and_status(client):
    responses.add(responses.POST, f"{BACKEND_URL}/orders/orders", json={"id": "order-9"}, status=201)

    response = client.post("/api/proxy/orders/orders", json={"storeId": "store-1"})

    assert response.status_code == 201
    assert response.json() == {"id": "order-9"}
    assert json.loads(responses.calls[0].request.body) == {"storeId": "store-1"}
    assert responses.calls[0].request.headers["Content-Type"] == "application/json"


@responses.activate
def test_proxy_passes_backend_errors_through(client):
    responses.add(
        responses.GET,
        f"{BACKEND_URL}/orders/orders/missing",
        json={"message": "Order not found"},
        status=404,
    )

    response = client.get("/api/proxy/orders/orders/missing")

    assert response.status_code == 404
    assert response.json() == {"message": "Order not found"}


@responses.activate
def test_proxy_relays_no_content(client):
    responses.add(responses.DELETE, f"{BACKEND_URL}/orders/orders/order-1", status=204)

    response = client.delete("/api/proxy/orders/orders/order-1")

    assert response.status_code == 204
    assert response.content == b""
    assert responses.calls[0].request.body is None


@responses.activate
def test_proxy_relays_plain_text(client):
    responses.add(
        responses.PUT,
        f"{BACKEND_URL}/orders/order/order-1/status",
        body="updated",
        content_type="text/plain",
        status=200,
    )

    response = client.put("/api/proxy/orders/order/order-1/status", json={"isInvoiced": True})

    assert response.status_code == 200
    assert response.text == "updated"
    assert response.headers["content-type"].startswith("text/plain")


@responses.activate
def test_proxy_reports_unreachable_backend(client):
    responses.add(
        responses.GET,
        f"{BACKEND_URL}/stores/stores",
        body=requests.ConnectionError("connection refused"),
    )

    response = client.get("/api/proxy/stores/stores")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "connection refused",
        "error": "Proxy error",
    }


def test_proxy_preflight_allows_cors(client):
    response = client.options("/api/proxy/orders/orders")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "PATCH" in response.headers["access-control-allow-methods"]
    assert response.headers["access-control-max-age"] == "86400"


@responses.activate
def test_proxy_forwards_trace_id_upstream(client):
    responses.add(responses.GET, f"{BACKEND_URL}/catalog/products", json=[], status=200)

    response = client.get("/api/proxy/catalog/products", headers={"X-Trace-ID": "trace-proxy-1"})

    assert response.status_code == 200
    assert response.headers["X-Trace-ID"] == "trace-proxy-1"
    assert responses.calls[0].request.headers["X-Trace-ID"] == "trace-proxy-1"
