"""Tenant isolation for every tenant-owned model.

``TenantScope`` can only be built with a tenant id, and every read it
produces is filtered on that id, so a call site cannot forget the filter.
Writes go through ``TenantScope.add`` which stamps the scope's tenant on the
row, overwriting whatever the caller put there.

A ``before_flush`` hook on all sessions backs this up: tenant-owned rows are
never flushed without a tenant and never move to another tenant.
"""

from typing import Any, TypeVar

from sqlalchemy import Select, event, inspect, select
from sqlalchemy.orm import Session

from agenda.core.errors import TenantRequired, UnauthorizedTenant
from agenda.db.base import TenantScopedMixin

ModelT = TypeVar("ModelT", bound=TenantScopedMixin)


def _require_tenant_model(model: type) -> None:
    if not (isinstance(model, type) and issubclass(model, TenantScopedMixin)):
        raise TypeError(f"{model!r} is not a tenant-scoped model")


def stamp_tenant(entity: TenantScopedMixin, tenant_id: int) -> TenantScopedMixin:
    _require_tenant_model(type(entity))
    entity.tenant_id = tenant_id
    return entity


class TenantScope:
    __slots__ = ("db", "tenant_id")

    def __init__(self, db: Session, tenant_id: int | None) -> None:
        if tenant_id is None:
            raise TenantRequired()
        self.db = db
        self.tenant_id = tenant_id

    @classmethod
    def for_caller(cls, db: Session, caller_tenant_id: int | None) -> "TenantScope":
        """Scope for an inbound request; no tenant on the caller means no access."""
        if caller_tenant_id is None:
            raise UnauthorizedTenant()
        return cls(db, caller_tenant_id)

    @classmethod
    def for_system(cls, db: Session, tenant_id: int) -> "TenantScope":
        """Scope for server-initiated work (seeding, maintenance) with no caller."""
        return cls(db, tenant_id)

    def select(self, model: type[ModelT], *criteria: Any) -> Select[tuple[ModelT]]:
        _require_tenant_model(model)
        return select(model).where(model.tenant_id == self.tenant_id, *criteria)

    def scalars(self, model: type[ModelT], *criteria: Any) -> list[ModelT]:
        return list(self.db.scalars(self.select(model, *criteria)).all())

    def get(self, model: type[ModelT], entity_id: int, *, for_update: bool = False) -> ModelT | None:
        query = self.select(model, model.id == entity_id)
        if for_update:
            query = query.with_for_update()
        return self.db.scalar(query)

    def add(self, entity: ModelT) -> ModelT:
        stamp_tenant(entity, self.tenant_id)
        self.db.add(entity)
        return entity


@event.listens_for(Session, "before_flush")
def _guard_tenant_columns(session: Session, flush_context, instances) -> None:
    for obj in session.new:
        if isinstance(obj, TenantScopedMixin) and obj.tenant_id is None:
            raise TenantRequired(f"{type(obj).__name__} cannot be stored without a tenant")

    for obj in session.dirty:
        if not isinstance(obj, TenantScopedMixin):
            continue
        history = inspect(obj).attrs.tenant_id.history
        previous = [value for value in history.deleted if value is not None]
        if previous and history.added and history.added[0] != previous[0]:
            raise UnauthorizedTenant(f"{type(obj).__name__} cannot move to another tenant")
