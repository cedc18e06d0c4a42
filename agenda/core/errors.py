"""Typed failures raised by the scheduling core.

Every failure carries an ``ErrorKind`` so callers can branch on ``exc.kind``
(or on the class) instead of matching messages. Transport mapping lives in
``agenda.core.exceptions``.
"""

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED_TENANT = "unauthorized_tenant"
    TENANT_REQUIRED = "tenant_required"
    SERVICE_NOT_FOUND = "service_not_found"
    CUSTOMER_NOT_FOUND = "customer_not_found"
    PROFESSIONAL_NOT_FOUND = "professional_not_found"
    PROFESSIONAL_SERVICE_MISMATCH = "professional_service_mismatch"
    BOOKING_NOT_FOUND = "booking_not_found"
    INVALID_BOOKING_TIME = "invalid_booking_time"
    SCHEDULING_CONFLICT = "scheduling_conflict"
    CONCURRENT_WRITE_CONFLICT = "concurrent_write_conflict"
    INVALID_STATUS_TRANSITION = "invalid_status_transition"
    BOOKING_NOT_EDITABLE = "booking_not_editable"


class SchedulingError(Exception):
    kind: ErrorKind
    default_message = "Scheduling operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedTenant(SchedulingError):
    kind = ErrorKind.UNAUTHORIZED_TENANT
    default_message = "Tenant could not be identified"


class TenantRequired(UnauthorizedTenant):
    kind = ErrorKind.TENANT_REQUIRED
    default_message = "A tenant is required for this operation"


class ServiceNotFound(SchedulingError):
    kind = ErrorKind.SERVICE_NOT_FOUND
    default_message = "Service not found"


class CustomerNotFound(SchedulingError):
    kind = ErrorKind.CUSTOMER_NOT_FOUND
    default_message = "Customer not found"


class ProfessionalNotFound(SchedulingError):
    kind = ErrorKind.PROFESSIONAL_NOT_FOUND
    default_message = "Professional not found"


class ProfessionalServiceMismatch(SchedulingError):
    kind = ErrorKind.PROFESSIONAL_SERVICE_MISMATCH
    default_message = "This professional does not offer the selected service"


class BookingNotFound(SchedulingError):
    kind = ErrorKind.BOOKING_NOT_FOUND
    default_message = "Booking not found"


class InvalidBookingTime(SchedulingError):
    kind = ErrorKind.INVALID_BOOKING_TIME
    default_message = "Booking time is outside the supported range"


class SchedulingConflict(SchedulingError):
    kind = ErrorKind.SCHEDULING_CONFLICT
    default_message = "A booking already exists for this resource in the requested time"

    def __init__(self, message: str | None = None, conflicting_booking_id: int | None = None) -> None:
        super().__init__(message)
        self.conflicting_booking_id = conflicting_booking_id


class ConcurrentWriteConflict(SchedulingError):
    """Another writer holds or just claimed the resource. Safe to retry."""

    kind = ErrorKind.CONCURRENT_WRITE_CONFLICT
    default_message = "Booking for this resource is in progress. Retry the request."


class InvalidStatusTransition(SchedulingError):
    kind = ErrorKind.INVALID_STATUS_TRANSITION
    default_message = "Booking status transition is not allowed"


class BookingNotEditable(SchedulingError):
    kind = ErrorKind.BOOKING_NOT_EDITABLE
    default_message = "Cancelled or completed bookings cannot be rescheduled"
