from datetime import UTC, date, datetime

from agenda.services import booking_service
from agenda.services.availability_service import list_available_slots
from agenda.services.conflicts import ResourceSelector

DAY = date(2024, 1, 1)


def test_empty_day_lists_every_step(db_session, tenant):
    availability = list_available_slots(db_session, tenant.tenant_id, tenant.service_id, DAY)

    starts = [start for start, _ in availability.slots]
    # 09:00 to 17:00 inclusive in 15 minute steps for a 60 minute service.
    assert len(starts) == 33
    assert starts[0] == datetime(2024, 1, 1, 9, 0, tzinfo=UTC)
    assert starts[-1] == datetime(2024, 1, 1, 17, 0, tzinfo=UTC)
    assert availability.duration_minutes == 60


def test_busy_interval_removes_overlapping_slots(db_session, tenant):
    booking_service.create_booking(
        db=db_session,
        tenant_id=tenant.tenant_id,
        customer_id=tenant.customer_id,
        service_id=tenant.service_id,
        selector=ResourceSelector(professional_id=tenant.professional_id),
        start_time=datetime(2024, 1, 1, 10, 0, tzinfo=UTC),
    )

    availability = list_available_slots(
        db_session,
        tenant.tenant_id,
        tenant.service_id,
        DAY,
        professional_id=tenant.professional_id,
    )
    starts = {start.strftime("%H:%M") for start, _ in availability.slots}

    assert "09:00" in starts
    assert "09:15" not in starts
    assert "10:45" not in starts
    assert "11:00" in starts


def test_cancelled_bookings_do_not_block(db_session, tenant):
    booking = booking_service.create_booking(
        db=db_session,
        tenant_id=tenant.tenant_id,
        customer_id=tenant.customer_id,
        service_id=tenant.service_id,
        selector=ResourceSelector(professional_id=tenant.professional_id),
        start_time=datetime(2024, 1, 1, 10, 0, tzinfo=UTC),
    )
    booking_service.cancel_booking(db_session, booking.id, tenant.tenant_id)

    availability = list_available_slots(db_session, tenant.tenant_id, tenant.service_id, DAY)

    assert len(availability.slots) == 33


def test_availability_endpoint(client, tenant, other_tenant):
    client.post(
        "/bookings",
        headers=tenant.headers,
        json={
            "customer_id": tenant.customer_id,
            "service_id": tenant.service_id,
            "professional_id": tenant.professional_id,
            "start_time": "2024-01-01T09:00:00Z",
        },
    )

    response = client.get(
        f"/bookings/availability?service_id={tenant.service_id}&date=2024-01-01&duration_minutes=30",
        headers=tenant.headers,
    )
    foreign = client.get(
        f"/bookings/availability?service_id={tenant.service_id}&date=2024-01-01",
        headers=other_tenant.headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["duration_minutes"] == 30
    assert body["available_slots"][0]["start"].startswith("2024-01-01T10:00:00")
    assert foreign.status_code == 404


def test_professional_who_does_not_offer_the_service_is_rejected(client, tenant):
    professional = client.post(
        "/professionals",
        headers=tenant.headers,
        json={"name": "Carla Colorist"},
    ).json()

    response = client.get(
        f"/bookings/availability?service_id={tenant.service_id}&date=2024-01-01&professional_id={professional['id']}",
        headers=tenant.headers,
    )

    assert professional["service_ids"] == []
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "professional_service_mismatch"
