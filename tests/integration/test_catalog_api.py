def test_service_crud_is_tenant_scoped(client, tenant, other_tenant):
    created = client.post(
        "/services",
        headers=tenant.headers,
        json={"name": "Beard trim", "duration_minutes": 30, "price": "35.50", "tenant_id": other_tenant.tenant_id},
    )
    assert created.status_code == 201
    service = created.json()
    assert service["tenant_id"] == tenant.tenant_id
    assert service["price"] == "35.50"

    own = client.get("/services", headers=tenant.headers).json()
    foreign = client.get("/services", headers=other_tenant.headers).json()
    assert {item["name"] for item in own} == {"Haircut", "Beard trim"}
    assert service["id"] not in {item["id"] for item in foreign}

    hijack = client.patch(f"/services/{service['id']}", headers=other_tenant.headers, json={"price": "1.00"})
    assert hijack.status_code == 404


def test_service_price_change_keeps_existing_booking_price(client, tenant):
    booking = client.post(
        "/bookings",
        headers=tenant.headers,
        json={
            "customer_id": tenant.customer_id,
            "service_id": tenant.service_id,
            "professional_id": tenant.professional_id,
            "start_time": "2024-01-01T10:00:00Z",
        },
    ).json()

    updated = client.patch(f"/services/{tenant.service_id}", headers=tenant.headers, json={"price": "150.00"})
    assert updated.status_code == 200
    assert updated.json()["price"] == "150.00"

    fetched = client.get(f"/bookings/{booking['id']}", headers=tenant.headers).json()
    assert fetched["price"] == "100.00"


def test_deactivated_service_cannot_be_booked(client, tenant):
    client.patch(f"/services/{tenant.service_id}", headers=tenant.headers, json={"is_active": False})

    active = client.get("/services?active_only=true", headers=tenant.headers).json()
    response = client.post(
        "/bookings",
        headers=tenant.headers,
        json={
            "customer_id": tenant.customer_id,
            "service_id": tenant.service_id,
            "start_time": "2024-01-01T10:00:00Z",
        },
    )

    assert active == []
    assert response.status_code == 404


def test_invalid_service_payload_is_rejected(client, tenant):
    response = client.post(
        "/services",
        headers=tenant.headers,
        json={"name": "Free lunch", "duration_minutes": 0, "price": "-1"},
    )

    assert response.status_code == 422


def test_professionals_and_customers(client, tenant, other_tenant):
    professional = client.post(
        "/professionals",
        headers=tenant.headers,
        json={"name": "Carla Colorist", "email": "carla@acme.example.com"},
    )
    customer = client.post(
        "/customers",
        headers=tenant.headers,
        json={"name": "Diego Client", "phone": "+34 600 000 000"},
    )

    assert professional.status_code == 201
    assert customer.status_code == 201
    assert len(client.get("/professionals", headers=tenant.headers).json()) == 2
    assert len(client.get("/customers", headers=tenant.headers).json()) == 2
    assert len(client.get("/customers", headers=other_tenant.headers).json()) == 1

    bad_email = client.post("/professionals", headers=tenant.headers, json={"name": "Bad", "email": "nope"})
    assert bad_email.status_code == 422


def test_customer_of_other_tenant_cannot_be_booked(client, tenant, other_tenant):
    response = client.post(
        "/bookings",
        headers=tenant.headers,
        json={
            "customer_id": other_tenant.customer_id,
            "service_id": tenant.service_id,
            "start_time": "2024-01-01T10:00:00Z",
        },
    )

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "customer_not_found"


def test_professional_services_drive_booking_eligibility(client, tenant, other_tenant):
    massage = client.post(
        "/services",
        headers=tenant.headers,
        json={"name": "Massage", "duration_minutes": 45, "price": "60.00"},
    ).json()

    created = client.post(
        "/professionals",
        headers=tenant.headers,
        json={"name": "Marta Masseuse", "service_ids": [massage["id"]]},
    )
    assert created.status_code == 201
    marta = created.json()
    assert marta["service_ids"] == [massage["id"]]

    def book(professional_id, service_id):
        return client.post(
            "/bookings",
            headers=tenant.headers,
            json={
                "customer_id": tenant.customer_id,
                "service_id": service_id,
                "professional_id": professional_id,
                "start_time": "2024-01-01T10:00:00Z",
            },
        )

    mismatch = book(marta["id"], tenant.service_id)
    assert mismatch.status_code == 422
    assert mismatch.json()["error"]["code"] == "professional_service_mismatch"
    assert book(marta["id"], massage["id"]).status_code == 201

    updated = client.patch(
        f"/professionals/{marta['id']}",
        headers=tenant.headers,
        json={"service_ids": [tenant.service_id, massage["id"]]},
    )
    assert updated.status_code == 200
    assert updated.json()["service_ids"] == sorted([tenant.service_id, massage["id"]])
    assert updated.json()["name"] == "Marta Masseuse"

    foreign = client.post(
        "/professionals",
        headers=tenant.headers,
        json={"name": "Sneaky Link", "service_ids": [other_tenant.service_id]},
    )
    assert foreign.status_code == 404
    assert foreign.json()["error"]["code"] == "service_not_found"
    assert len(client.get("/professionals", headers=tenant.headers).json()) == 2

    hijack = client.patch(f"/professionals/{marta['id']}", headers=other_tenant.headers, json={"name": "Taken"})
    assert hijack.status_code == 404
