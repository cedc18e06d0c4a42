def test_request_id_header_is_present(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.headers.get("X-Request-ID")


def test_incoming_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})

    assert response.headers["X-Request-ID"] == "trace-123"


def test_metrics_endpoint_returns_prometheus_text(client):
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "text/plain" in response.headers.get("content-type", "")
    body = response.text
    assert "http_requests_total" in body
    assert "http_request_duration_seconds" in body


def test_conflicts_are_counted_in_metrics(client, tenant):
    payload = {
        "customer_id": tenant.customer_id,
        "service_id": tenant.service_id,
        "professional_id": tenant.professional_id,
        "start_time": "2024-01-01T10:00:00Z",
    }
    client.post("/bookings", headers=tenant.headers, json=payload)
    client.post("/bookings", headers=tenant.headers, json=payload)

    body = client.get("/metrics").text

    assert 'booking_conflicts_total{kind="scheduling_conflict"}' in body
    assert 'bookings_written_total{operation="create"}' in body
