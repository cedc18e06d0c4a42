from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from agenda.api.deps import get_current_tenant_id, limit_booking_writes
from agenda.api.pagination import DateFromParam, DateToParam, LimitParam, OffsetParam
from agenda.db.models import BookingStatus
from agenda.db.session import get_db
from agenda.schemas.booking import (
    AvailabilityResponse,
    AvailableSlot,
    BookingCancelRequest,
    BookingCreateRequest,
    BookingResponse,
    BookingStatsResponse,
    BookingUpdateRequest,
)
from agenda.services import booking_service
from agenda.services.availability_service import list_available_slots
from agenda.services.conflicts import ResourceSelector

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_booking_writes)],
)
def create_booking(
    payload: BookingCreateRequest,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = booking_service.create_booking(
        db=db,
        tenant_id=tenant_id,
        customer_id=payload.customer_id,
        service_id=payload.service_id,
        selector=ResourceSelector(professional_id=payload.professional_id, user_id=payload.user_id),
        start_time=payload.start_time,
        notes=payload.notes,
    )
    return BookingResponse.model_validate(booking)


@router.get("", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    date_from: DateFromParam = None,
    date_to: DateToParam = None,
    service_id: int | None = Query(default=None),
    professional_id: int | None = Query(default=None),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> list[BookingResponse]:
    bookings = booking_service.list_bookings(
        db=db,
        tenant_id=tenant_id,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        service_id=service_id,
        professional_id=professional_id,
        limit=limit,
        offset=offset,
    )
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get("/stats", response_model=BookingStatsResponse, status_code=status.HTTP_200_OK)
def get_booking_stats(
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> BookingStatsResponse:
    return BookingStatsResponse(**booking_service.booking_stats(db=db, tenant_id=tenant_id))


@router.get("/availability", response_model=AvailabilityResponse, status_code=status.HTTP_200_OK)
def get_availability(
    service_id: int,
    day: date = Query(alias="date"),
    professional_id: int | None = Query(default=None),
    duration_minutes: int | None = Query(default=None, gt=0, le=1440),
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> AvailabilityResponse:
    availability = list_available_slots(
        db=db,
        tenant_id=tenant_id,
        service_id=service_id,
        day=day,
        professional_id=professional_id,
        duration_minutes=duration_minutes,
    )
    return AvailabilityResponse(
        date=availability.day,
        service_id=availability.service_id,
        professional_id=availability.professional_id,
        duration_minutes=availability.duration_minutes,
        available_slots=[AvailableSlot(start=start, end=end) for start, end in availability.slots],
    )


@router.get("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def get_booking_by_id(
    booking_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = booking_service.get_booking(db=db, booking_id=booking_id, tenant_id=tenant_id)
    return BookingResponse.model_validate(booking)


@router.patch(
    "/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(limit_booking_writes)],
)
def reschedule_booking(
    booking_id: int,
    payload: BookingUpdateRequest,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = booking_service.update_booking(db=db, booking_id=booking_id, tenant_id=tenant_id, changes=payload)
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}/confirm", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def confirm_booking(
    booking_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = booking_service.confirm_booking(db=db, booking_id=booking_id, tenant_id=tenant_id)
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}/complete", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def complete_booking(
    booking_id: int,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = booking_service.complete_booking(db=db, booking_id=booking_id, tenant_id=tenant_id)
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}/cancel", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def cancel_booking(
    booking_id: int,
    payload: BookingCancelRequest | None = None,
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = booking_service.cancel_booking(
        db=db,
        booking_id=booking_id,
        tenant_id=tenant_id,
        reason=payload.reason if payload else None,
    )
    return BookingResponse.model_validate(booking)
