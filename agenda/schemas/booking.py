from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from agenda.db.models import BookingStatus


class BookingCreateRequest(BaseModel):
    customer_id: int
    service_id: int
    professional_id: int | None = None
    user_id: int | None = None
    start_time: datetime
    notes: str | None = Field(default=None, max_length=2000)


class BookingUpdateRequest(BaseModel):
    """Reschedule payload. Only fields present in the request are applied."""

    customer_id: int | None = None
    service_id: int | None = None
    professional_id: int | None = None
    user_id: int | None = None
    start_time: datetime | None = None
    notes: str | None = Field(default=None, max_length=2000)


class BookingCancelRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class BookingResponse(BaseModel):
    id: int
    tenant_id: int
    customer_id: int
    service_id: int
    professional_id: int | None
    user_id: int | None
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    price: Decimal
    notes: str | None
    cancellation_reason: str | None
    cancelled_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingStatsResponse(BaseModel):
    today: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int
    month_total: int
    month_revenue: Decimal


class AvailableSlot(BaseModel):
    start: datetime
    end: datetime


class AvailabilityResponse(BaseModel):
    date: date
    service_id: int
    professional_id: int | None
    duration_minutes: int
    available_slots: list[AvailableSlot]
