from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy.orm import Session

from agenda.core.config import settings
from agenda.db.models import Booking, BookingStatus
from agenda.db.tenancy import TenantScope
from agenda.services.catalog_service import ensure_professional_offers_service, get_professional, get_service
from agenda.services.conflicts import booking_end_time, intervals_overlap


@dataclass
class DayAvailability:
    day: date
    service_id: int
    professional_id: int | None
    duration_minutes: int
    slots: list[tuple[datetime, datetime]] = field(default_factory=list)


def working_window(day: date) -> tuple[datetime, datetime]:
    start_of_day = datetime.combine(day, time.min, tzinfo=UTC)
    return (
        start_of_day + timedelta(hours=settings.availability_day_start_hour),
        start_of_day + timedelta(hours=settings.availability_day_end_hour),
    )


def list_available_slots(
    db: Session,
    tenant_id: int | None,
    service_id: int,
    day: date,
    professional_id: int | None = None,
    duration_minutes: int | None = None,
) -> DayAvailability:
    """Free ``[start, end)`` windows of the working day for a service.

    Without a professional every non-cancelled booking of the tenant counts
    as busy time.
    """
    scope = TenantScope(db, tenant_id)
    service = get_service(scope, service_id)
    if professional_id is not None:
        get_professional(scope, professional_id)
        ensure_professional_offers_service(scope, professional_id, service.id)
    availability = DayAvailability(
        day=day,
        service_id=service.id,
        professional_id=professional_id,
        duration_minutes=duration_minutes or service.duration_minutes,
    )
    window_start, window_end = working_window(day)

    criteria = [
        Booking.status != BookingStatus.CANCELLED.value,
        Booking.start_time < window_end,
        Booking.end_time > window_start,
    ]
    if professional_id is not None:
        criteria.append(Booking.professional_id == professional_id)
    busy = [(booking.start_time, booking.end_time) for booking in scope.scalars(Booking, *criteria)]

    step = timedelta(minutes=settings.availability_step_minutes)
    current = window_start
    while booking_end_time(current, availability.duration_minutes) <= window_end:
        slot_end = booking_end_time(current, availability.duration_minutes)
        if not any(intervals_overlap(current, slot_end, start, end) for start, end in busy):
            availability.slots.append((current, slot_end))
        current += step
    return availability
