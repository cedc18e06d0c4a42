"""Overlap detection for bookings that occupy the same resource.

Intervals are half-open, ``[start, end)``: a booking ending at 11:00 and one
starting at 11:00 on the same resource do not collide.

The occupied resource is the professional when one is given, otherwise the
legacy user id. A booking with neither is not checked against anything.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from agenda.core.errors import InvalidBookingTime
from agenda.db.models import Booking, BookingStatus


class ResourceKind(str, Enum):
    PROFESSIONAL = "professional"
    USER = "user"


@dataclass(frozen=True)
class ResourceKey:
    kind: ResourceKind
    resource_id: int

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.resource_id}"


@dataclass(frozen=True)
class ResourceSelector:
    professional_id: int | None = None
    user_id: int | None = None

    def conflict_key(self) -> ResourceKey | None:
        if self.professional_id is not None:
            return ResourceKey(ResourceKind.PROFESSIONAL, self.professional_id)
        if self.user_id is not None:
            return ResourceKey(ResourceKind.USER, self.user_id)
        return None


def booking_end_time(start_time: datetime, duration_minutes: int) -> datetime:
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    try:
        return start_time + timedelta(minutes=duration_minutes)
    except OverflowError:
        raise InvalidBookingTime("Booking would end after the latest supported date") from None


def intervals_overlap(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    return start < other_end and end > other_start


def build_conflict_query(
    tenant_id: int,
    resource: ResourceKey,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: int | None = None,
) -> Select[tuple[Booking]]:
    query = select(Booking).where(
        Booking.tenant_id == tenant_id,
        Booking.status != BookingStatus.CANCELLED.value,
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    )
    if resource.kind is ResourceKind.PROFESSIONAL:
        query = query.where(Booking.professional_id == resource.resource_id)
    else:
        query = query.where(Booking.user_id == resource.resource_id)

    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)
    return query.order_by(Booking.start_time, Booking.id)


def find_conflict(
    db: Session,
    tenant_id: int,
    selector: ResourceSelector,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: int | None = None,
) -> Booking | None:
    resource = selector.conflict_key()
    if resource is None:
        return None
    return db.scalar(
        build_conflict_query(
            tenant_id=tenant_id,
            resource=resource,
            start_time=start_time,
            end_time=end_time,
            exclude_booking_id=exclude_booking_id,
        ).limit(1)
    )
