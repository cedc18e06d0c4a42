"""create professional_services

Revision ID: 20261019_04
Revises: 20261019_03
Create Date: 2026-10-19 10:05:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_04"
down_revision: Union[str, None] = "20261019_03"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "professional_services",
        sa.Column("tenant_id", sa.Integer(), nullable=False),
        sa.Column("professional_id", sa.Integer(), nullable=False),
        sa.Column("service_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["professional_id"], ["professionals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["service_id"], ["services.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("professional_id", "service_id"),
    )
    op.create_index("ix_professional_services_tenant_id", "professional_services", ["tenant_id"], unique=False)
    op.create_index("ix_professional_services_service_id", "professional_services", ["service_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_professional_services_service_id", table_name="professional_services")
    op.drop_index("ix_professional_services_tenant_id", table_name="professional_services")
    op.drop_table("professional_services")
