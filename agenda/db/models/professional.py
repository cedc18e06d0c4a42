from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agenda.db.base import Base, TenantScopedMixin


class Professional(TenantScopedMixin, Base):
    __tablename__ = "professionals"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    # Links are written through TenantScope.add so they get stamped; read-only here.
    service_links: Mapped[list["ProfessionalService"]] = relationship(
        viewonly=True,
        lazy="selectin",
        order_by="ProfessionalService.service_id",
    )

    @property
    def service_ids(self) -> list[int]:
        return [link.service_id for link in self.service_links]


class ProfessionalService(TenantScopedMixin, Base):
    """A service a professional offers."""

    __tablename__ = "professional_services"

    professional_id: Mapped[int] = mapped_column(
        ForeignKey("professionals.id", ondelete="CASCADE"), primary_key=True
    )
    service_id: Mapped[int] = mapped_column(
        ForeignKey("services.id", ondelete="CASCADE"), primary_key=True, index=True
    )
