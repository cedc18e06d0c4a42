import logging

from agenda.core.errors import (
    CustomerNotFound,
    ProfessionalNotFound,
    ProfessionalServiceMismatch,
    ServiceNotFound,
)
from agenda.db.models import Customer, Professional, ProfessionalService, Service
from agenda.db.tenancy import TenantScope
from agenda.schemas.catalog import (
    CustomerCreateRequest,
    ProfessionalCreateRequest,
    ProfessionalUpdateRequest,
    ServiceCreateRequest,
    ServiceUpdateRequest,
)

logger = logging.getLogger(__name__)


def get_service(scope: TenantScope, service_id: int, require_active: bool = True) -> Service:
    service = scope.get(Service, service_id)
    if service is None or (require_active and not service.is_active):
        raise ServiceNotFound()
    return service


def get_customer(scope: TenantScope, customer_id: int) -> Customer:
    customer = scope.get(Customer, customer_id)
    if customer is None:
        raise CustomerNotFound()
    return customer


def get_professional(scope: TenantScope, professional_id: int) -> Professional:
    professional = scope.get(Professional, professional_id)
    if professional is None or not professional.is_active:
        raise ProfessionalNotFound()
    return professional


def list_services(scope: TenantScope, active_only: bool = False, limit: int = 20, offset: int = 0) -> list[Service]:
    query = scope.select(Service)
    if active_only:
        query = query.where(Service.is_active.is_(True))
    return list(scope.db.scalars(query.order_by(Service.name, Service.id).limit(limit).offset(offset)).all())


def create_service(scope: TenantScope, payload: ServiceCreateRequest) -> Service:
    service = scope.add(Service(**payload.model_dump()))
    scope.db.commit()
    scope.db.refresh(service)
    logger.info("service_created tenant_id=%s service_id=%s", scope.tenant_id, service.id)
    return service


def update_service(scope: TenantScope, service_id: int, payload: ServiceUpdateRequest) -> Service:
    # Bookings keep the price captured when they were made; nothing here touches them.
    service = get_service(scope, service_id, require_active=False)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    scope.db.commit()
    scope.db.refresh(service)
    logger.info("service_updated tenant_id=%s service_id=%s", scope.tenant_id, service.id)
    return service


def ensure_professional_offers_service(scope: TenantScope, professional_id: int, service_id: int) -> None:
    link = scope.db.scalar(
        scope.select(
            ProfessionalService,
            ProfessionalService.professional_id == professional_id,
            ProfessionalService.service_id == service_id,
        )
    )
    if link is None:
        raise ProfessionalServiceMismatch()


def _sync_professional_services(scope: TenantScope, professional: Professional, service_ids: list[int]) -> None:
    wanted = set(service_ids)
    for service_id in wanted:
        get_service(scope, service_id, require_active=False)

    existing = set()
    for link in scope.scalars(ProfessionalService, ProfessionalService.professional_id == professional.id):
        if link.service_id in wanted:
            existing.add(link.service_id)
        else:
            scope.db.delete(link)
    for service_id in sorted(wanted - existing):
        scope.add(ProfessionalService(professional_id=professional.id, service_id=service_id))


def create_professional(scope: TenantScope, payload: ProfessionalCreateRequest) -> Professional:
    professional = scope.add(Professional(**payload.model_dump(exclude={"service_ids"})))
    scope.db.flush()
    try:
        _sync_professional_services(scope, professional, payload.service_ids)
    except ServiceNotFound:
        scope.db.rollback()
        raise
    scope.db.commit()
    scope.db.refresh(professional)
    logger.info(
        "professional_created tenant_id=%s professional_id=%s service_ids=%s",
        scope.tenant_id,
        professional.id,
        professional.service_ids,
    )
    return professional


def update_professional(scope: TenantScope, professional_id: int, payload: ProfessionalUpdateRequest) -> Professional:
    professional = scope.get(Professional, professional_id)
    if professional is None:
        raise ProfessionalNotFound()

    for field, value in payload.model_dump(exclude_unset=True, exclude={"service_ids"}).items():
        setattr(professional, field, value)
    if payload.service_ids is not None:
        try:
            _sync_professional_services(scope, professional, payload.service_ids)
        except ServiceNotFound:
            scope.db.rollback()
            raise
    scope.db.commit()
    scope.db.refresh(professional)
    return professional


def list_professionals(scope: TenantScope, limit: int = 20, offset: int = 0) -> list[Professional]:
    query = scope.select(Professional).order_by(Professional.name, Professional.id)
    return list(scope.db.scalars(query.limit(limit).offset(offset)).all())


def create_customer(scope: TenantScope, payload: CustomerCreateRequest) -> Customer:
    customer = scope.add(Customer(**payload.model_dump()))
    scope.db.commit()
    scope.db.refresh(customer)
    return customer


def list_customers(scope: TenantScope, limit: int = 20, offset: int = 0) -> list[Customer]:
    query = scope.select(Customer).order_by(Customer.name, Customer.id)
    return list(scope.db.scalars(query.limit(limit).offset(offset)).all())
