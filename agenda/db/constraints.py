"""Storage-level backstop for the no-overlap rule (PostgreSQL only).

Rows without a professional fall back to the legacy user id, mirroring the
resource tie-break the scheduler applies before writing.
"""

from sqlalchemy import DDL, event

from agenda.db.models.booking import Booking

BTREE_GIST_EXTENSION = "CREATE EXTENSION IF NOT EXISTS btree_gist"

PROFESSIONAL_NO_OVERLAP = """
ALTER TABLE bookings
  ADD CONSTRAINT ex_bookings_professional_no_overlap
  EXCLUDE USING gist (
    tenant_id WITH =,
    professional_id WITH =,
    tstzrange(start_time, end_time, '[)') WITH &&
  )
  WHERE (status <> 'cancelled' AND professional_id IS NOT NULL)
"""

USER_NO_OVERLAP = """
ALTER TABLE bookings
  ADD CONSTRAINT ex_bookings_user_no_overlap
  EXCLUDE USING gist (
    tenant_id WITH =,
    user_id WITH =,
    tstzrange(start_time, end_time, '[)') WITH &&
  )
  WHERE (status <> 'cancelled' AND professional_id IS NULL AND user_id IS NOT NULL)
"""

BOOKING_OVERLAP_DDL = (BTREE_GIST_EXTENSION, PROFESSIONAL_NO_OVERLAP, USER_NO_OVERLAP)

for _statement in BOOKING_OVERLAP_DDL:
    event.listen(Booking.__table__, "after_create", DDL(_statement).execute_if(dialect="postgresql"))
