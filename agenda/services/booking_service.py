import logging
from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from agenda.core.errors import (
    BookingNotEditable,
    BookingNotFound,
    ConcurrentWriteConflict,
    InvalidBookingTime,
    InvalidStatusTransition,
    SchedulingConflict,
)
from agenda.core.metrics import BOOKING_CONFLICTS, BOOKINGS_WRITTEN
from agenda.db.models import Booking, BookingStatus, Service
from agenda.db.tenancy import TenantScope
from agenda.db.types import as_utc
from agenda.schemas.booking import BookingUpdateRequest
from agenda.services.catalog_service import (
    ensure_professional_offers_service,
    get_customer,
    get_professional,
    get_service,
)
from agenda.services.conflicts import ResourceSelector, booking_end_time, find_conflict
from agenda.services.locks import is_postgresql_session, resource_lock

logger = logging.getLogger(__name__)

PG_LOCK_NOT_AVAILABLE_SQLSTATE = "55P03"
PG_EXCLUSION_VIOLATION_SQLSTATE = "23P01"
TERMINAL_STATUSES = frozenset({BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value})


def _sqlstate(exc: DBAPIError) -> str | None:
    original_error = getattr(exc, "orig", None)
    if original_error is None:
        return None

    sqlstate = getattr(original_error, "sqlstate", None)
    if sqlstate is None:
        sqlstate = getattr(original_error, "pgcode", None)
    return sqlstate


def _ensure_no_conflict(
    scope: TenantScope,
    selector: ResourceSelector,
    start_time: datetime,
    end_time: datetime,
    exclude_booking_id: int | None = None,
) -> None:
    conflict = find_conflict(
        scope.db,
        tenant_id=scope.tenant_id,
        selector=selector,
        start_time=start_time,
        end_time=end_time,
        exclude_booking_id=exclude_booking_id,
    )
    if conflict is not None:
        BOOKING_CONFLICTS.labels(kind="scheduling_conflict").inc()
        logger.warning(
            "booking_conflict tenant_id=%s resource=%s start=%s end=%s conflicting_booking_id=%s",
            scope.tenant_id,
            selector.conflict_key(),
            start_time.isoformat(),
            end_time.isoformat(),
            conflict.id,
        )
        raise SchedulingConflict(conflicting_booking_id=conflict.id)


def _run_unit_of_work(scope: TenantScope, selector: ResourceSelector, work: Callable[[], Booking]) -> Booking:
    """Run check-then-write under the resource lock and commit it as one transaction."""
    db = scope.db
    try:
        with resource_lock(db, scope.tenant_id, selector.conflict_key()):
            try:
                booking = work()
                db.commit()
            except Exception:
                db.rollback()
                raise
    except OperationalError as exc:
        if _sqlstate(exc) == PG_LOCK_NOT_AVAILABLE_SQLSTATE:
            raise _concurrent_write(scope, selector) from None
        raise
    except IntegrityError as exc:
        if _sqlstate(exc) == PG_EXCLUSION_VIOLATION_SQLSTATE:
            raise _concurrent_write(scope, selector) from None
        raise
    except ConcurrentWriteConflict:
        raise _concurrent_write(scope, selector) from None

    db.refresh(booking)
    return booking


def _concurrent_write(scope: TenantScope, selector: ResourceSelector) -> ConcurrentWriteConflict:
    BOOKING_CONFLICTS.labels(kind="concurrent_write_conflict").inc()
    logger.warning(
        "booking_concurrent_write tenant_id=%s resource=%s",
        scope.tenant_id,
        selector.conflict_key(),
    )
    return ConcurrentWriteConflict()


def _get_booking(scope: TenantScope, booking_id: int, for_update: bool = False) -> Booking:
    booking = scope.get(Booking, booking_id, for_update=for_update and is_postgresql_session(scope.db))
    if booking is None:
        raise BookingNotFound()
    return booking


def _utc_start(value: datetime) -> datetime:
    try:
        return as_utc(value)
    except OverflowError:
        raise InvalidBookingTime() from None


def create_booking(
    db: Session,
    tenant_id: int | None,
    customer_id: int,
    service_id: int,
    selector: ResourceSelector,
    start_time: datetime,
    notes: str | None = None,
) -> Booking:
    scope = TenantScope(db, tenant_id)
    start_time = _utc_start(start_time)
    service = get_service(scope, service_id)
    get_customer(scope, customer_id)
    if selector.professional_id is not None:
        get_professional(scope, selector.professional_id)
        ensure_professional_offers_service(scope, selector.professional_id, service.id)

    end_time = booking_end_time(start_time, service.duration_minutes)

    def work() -> Booking:
        _ensure_no_conflict(scope, selector, start_time, end_time)
        booking = scope.add(
            Booking(
                customer_id=customer_id,
                service_id=service.id,
                professional_id=selector.professional_id,
                user_id=selector.user_id,
                start_time=start_time,
                end_time=end_time,
                status=BookingStatus.PENDING.value,
                price=service.price,
                notes=notes,
            )
        )
        db.flush()
        return booking

    booking = _run_unit_of_work(scope, selector, work)
    BOOKINGS_WRITTEN.labels(operation="create").inc()
    logger.info(
        "booking_created tenant_id=%s booking_id=%s resource=%s start=%s end=%s",
        scope.tenant_id,
        booking.id,
        selector.conflict_key(),
        booking.start_time.isoformat(),
        booking.end_time.isoformat(),
    )
    return booking


def _plan_reschedule(
    scope: TenantScope,
    booking: Booking,
    changes: BookingUpdateRequest,
) -> tuple[ResourceSelector, datetime, datetime, Service]:
    present = changes.model_fields_set

    if "start_time" in present and changes.start_time is not None:
        start_time = _utc_start(changes.start_time)
    else:
        start_time = booking.start_time

    if "service_id" in present and changes.service_id is not None:
        service = get_service(scope, changes.service_id)
    else:
        service = get_service(scope, booking.service_id, require_active=False)

    if "customer_id" in present and changes.customer_id is not None:
        get_customer(scope, changes.customer_id)

    selector = ResourceSelector(
        professional_id=changes.professional_id if "professional_id" in present else booking.professional_id,
        user_id=changes.user_id if "user_id" in present else booking.user_id,
    )
    if selector.professional_id is not None:
        professional_changed = selector.professional_id != booking.professional_id
        if professional_changed:
            get_professional(scope, selector.professional_id)
        if professional_changed or service.id != booking.service_id:
            ensure_professional_offers_service(scope, selector.professional_id, service.id)

    return selector, start_time, booking_end_time(start_time, service.duration_minutes), service


def update_booking(db: Session, booking_id: int, tenant_id: int | None, changes: BookingUpdateRequest) -> Booking:
    """Reschedule or edit a booking.

    Start time, service and resource default to the booking's current values
    when absent from ``changes``. End time and price are always recomputed
    from the effective service, and the conflict check ignores the booking
    itself.
    """
    scope = TenantScope(db, tenant_id)
    booking = _get_booking(scope, booking_id, for_update=True)
    if booking.status in TERMINAL_STATUSES:
        db.rollback()
        raise BookingNotEditable()

    locked_selector = _plan_reschedule(scope, booking, changes)[0]
    present = changes.model_fields_set

    def work() -> Booking:
        # Re-read under the lock so a concurrent edit of this booking is not overwritten.
        db.refresh(booking)
        if booking.status in TERMINAL_STATUSES:
            raise BookingNotEditable()
        selector, start_time, end_time, service = _plan_reschedule(scope, booking, changes)
        if selector.conflict_key() != locked_selector.conflict_key():
            raise ConcurrentWriteConflict()

        _ensure_no_conflict(scope, selector, start_time, end_time, exclude_booking_id=booking.id)
        booking.start_time = start_time
        booking.end_time = end_time
        booking.service_id = service.id
        booking.price = service.price
        booking.professional_id = selector.professional_id
        booking.user_id = selector.user_id
        if "customer_id" in present and changes.customer_id is not None:
            booking.customer_id = changes.customer_id
        if "notes" in present:
            booking.notes = changes.notes
        db.flush()
        return booking

    updated = _run_unit_of_work(scope, locked_selector, work)
    BOOKINGS_WRITTEN.labels(operation="update").inc()
    logger.info(
        "booking_rescheduled tenant_id=%s booking_id=%s resource=%s start=%s end=%s",
        scope.tenant_id,
        updated.id,
        locked_selector.conflict_key(),
        updated.start_time.isoformat(),
        updated.end_time.isoformat(),
    )
    return updated


def change_booking_status(
    db: Session,
    booking_id: int,
    tenant_id: int | None,
    new_status: BookingStatus | str,
    reason: str | None = None,
) -> Booking:
    # Status-only writes keep the interval and resource, so no conflict check runs.
    scope = TenantScope(db, tenant_id)
    target = BookingStatus(new_status)
    booking = _get_booking(scope, booking_id, for_update=True)
    if not booking.can_transition_to(target):
        db.rollback()
        raise InvalidStatusTransition(f"Cannot change booking from {booking.status} to {target.value}")

    previous = booking.status
    if target is BookingStatus.CANCELLED:
        booking.cancel(reason)
    else:
        booking.status = target.value
    db.commit()
    db.refresh(booking)

    logger.info(
        "booking_status_changed tenant_id=%s booking_id=%s from=%s to=%s",
        scope.tenant_id,
        booking.id,
        previous,
        booking.status,
    )
    return booking


def cancel_booking(db: Session, booking_id: int, tenant_id: int | None, reason: str | None = None) -> Booking:
    return change_booking_status(db, booking_id, tenant_id, BookingStatus.CANCELLED, reason=reason)


def confirm_booking(db: Session, booking_id: int, tenant_id: int | None) -> Booking:
    return change_booking_status(db, booking_id, tenant_id, BookingStatus.CONFIRMED)


def complete_booking(db: Session, booking_id: int, tenant_id: int | None) -> Booking:
    return change_booking_status(db, booking_id, tenant_id, BookingStatus.COMPLETED)


def get_booking(db: Session, booking_id: int, tenant_id: int | None) -> Booking:
    return _get_booking(TenantScope(db, tenant_id), booking_id)


def list_bookings(
    db: Session,
    tenant_id: int | None,
    status: BookingStatus | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    service_id: int | None = None,
    professional_id: int | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Booking]:
    scope = TenantScope(db, tenant_id)
    query = scope.select(Booking)
    if status:
        query = query.where(Booking.status == status.value)
    if date_from:
        query = query.where(Booking.start_time >= datetime.combine(date_from, time.min, tzinfo=UTC))
    # date.max has no following day, so it bounds nothing.
    if date_to and date_to < date.max:
        query = query.where(Booking.start_time < datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=UTC))
    if service_id is not None:
        query = query.where(Booking.service_id == service_id)
    if professional_id is not None:
        query = query.where(Booking.professional_id == professional_id)

    return list(db.scalars(query.order_by(Booking.start_time, Booking.id).limit(limit).offset(offset)).all())


def booking_stats(db: Session, tenant_id: int | None, now: datetime | None = None) -> dict[str, int | Decimal]:
    scope = TenantScope(db, tenant_id)
    current_time = as_utc(now or datetime.now(UTC))
    start_of_day = datetime.combine(current_time.date(), time.min, tzinfo=UTC)
    start_of_month = start_of_day.replace(day=1)
    start_of_next_month = (start_of_month + timedelta(days=32)).replace(day=1)
    not_cancelled = Booking.status != BookingStatus.CANCELLED.value
    in_month = (Booking.start_time >= start_of_month, Booking.start_time < start_of_next_month)
    count = func.count(Booking.id)

    by_status = dict(
        db.execute(scope.select(Booking).with_only_columns(Booking.status, count).group_by(Booking.status)).all()
    )
    today = db.scalar(
        scope.select(
            Booking,
            not_cancelled,
            Booking.start_time >= start_of_day,
            Booking.start_time < start_of_day + timedelta(days=1),
        ).with_only_columns(count)
    )
    month_total = db.scalar(scope.select(Booking, not_cancelled, *in_month).with_only_columns(count))
    month_revenue = db.scalar(
        scope.select(Booking, Booking.status == BookingStatus.COMPLETED.value, *in_month).with_only_columns(
            func.coalesce(func.sum(Booking.price), 0)
        )
    )

    return {
        "today": today or 0,
        "pending": by_status.get(BookingStatus.PENDING.value, 0),
        "confirmed": by_status.get(BookingStatus.CONFIRMED.value, 0),
        "completed": by_status.get(BookingStatus.COMPLETED.value, 0),
        "cancelled": by_status.get(BookingStatus.CANCELLED.value, 0),
        "month_total": month_total or 0,
        "month_revenue": Decimal(str(month_revenue or 0)).quantize(Decimal("0.01")),
    }
