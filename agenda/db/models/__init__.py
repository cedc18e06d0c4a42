from agenda.db.models.booking import ALLOWED_STATUS_TRANSITIONS, Booking, BookingStatus
from agenda.db.models.customer import Customer
from agenda.db.models.professional import Professional, ProfessionalService
from agenda.db.models.service import Service
from agenda.db.models.tenant import Tenant

__all__ = [
    "Tenant",
    "Service",
    "Professional",
    "ProfessionalService",
    "Customer",
    "Booking",
    "BookingStatus",
    "ALLOWED_STATUS_TRANSITIONS",
]

# Attaches the PostgreSQL exclusion constraints to the bookings table.
from agenda.db import constraints as _constraints  # noqa: E402,F401
