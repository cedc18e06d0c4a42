"""add booking overlap exclusion constraints

Revision ID: 20261019_03
Revises: 20261019_02
Create Date: 2026-10-19 09:40:00
"""

from typing import Sequence, Union

from alembic import op

from agenda.db.constraints import BOOKING_OVERLAP_DDL

# revision identifiers, used by Alembic.
revision: str = "20261019_03"
down_revision: Union[str, None] = "20261019_02"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    for statement in BOOKING_OVERLAP_DDL:
        op.execute(statement)


def downgrade() -> None:
    if op.get_bind().dialect.name != "postgresql":
        return
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_bookings_user_no_overlap")
    op.execute("ALTER TABLE bookings DROP CONSTRAINT IF EXISTS ex_bookings_professional_no_overlap")
