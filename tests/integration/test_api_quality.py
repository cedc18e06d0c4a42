def test_error_response_has_unified_shape(client):
    response = client.get("/bookings")
    assert response.status_code == 401
    body = response.json()
    assert "error" in body
    assert "code" in body["error"]
    assert "message" in body["error"]
    assert "detail" in body
    assert "request_id" in body


def test_scheduling_error_carries_request_id(client, tenant):
    response = client.get("/bookings/12345", headers={**tenant.headers, "X-Request-ID": "req-404"})

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == {"code": "booking_not_found", "message": "Booking not found", "detail": "Booking not found"}
    assert body["request_id"] == "req-404"


def test_health_endpoint_returns_ok_and_request_id(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "x-request-id" in response.headers


def test_services_pagination_limit_offset(client, tenant):
    for name in ("Blow dry", "Colour"):
        client.post(
            "/services",
            headers=tenant.headers,
            json={"name": name, "duration_minutes": 30, "price": "20.00"},
        )

    paged = client.get("/services?limit=1&offset=1", headers=tenant.headers)
    assert paged.status_code == 200
    data = paged.json()
    assert len(data) == 1
    assert data[0]["name"] == "Colour"


def test_pagination_limit_is_bounded(client, tenant):
    response = client.get("/bookings?limit=0", headers=tenant.headers)

    assert response.status_code == 422
