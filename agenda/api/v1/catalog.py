from fastapi import APIRouter, Depends, Query, status

from agenda.api.deps import get_tenant_scope
from agenda.api.pagination import LimitParam, OffsetParam
from agenda.db.tenancy import TenantScope
from agenda.schemas.catalog import (
    CustomerCreateRequest,
    CustomerResponse,
    ProfessionalCreateRequest,
    ProfessionalResponse,
    ProfessionalUpdateRequest,
    ServiceCreateRequest,
    ServiceResponse,
    ServiceUpdateRequest,
)
from agenda.services import catalog_service

router = APIRouter(tags=["catalog"])


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    payload: ServiceCreateRequest,
    scope: TenantScope = Depends(get_tenant_scope),
) -> ServiceResponse:
    return ServiceResponse.model_validate(catalog_service.create_service(scope, payload))


@router.get("/services", response_model=list[ServiceResponse], status_code=status.HTTP_200_OK)
def list_services(
    active_only: bool = Query(default=False),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    scope: TenantScope = Depends(get_tenant_scope),
) -> list[ServiceResponse]:
    services = catalog_service.list_services(scope, active_only=active_only, limit=limit, offset=offset)
    return [ServiceResponse.model_validate(service) for service in services]


@router.patch("/services/{service_id}", response_model=ServiceResponse, status_code=status.HTTP_200_OK)
def update_service(
    service_id: int,
    payload: ServiceUpdateRequest,
    scope: TenantScope = Depends(get_tenant_scope),
) -> ServiceResponse:
    return ServiceResponse.model_validate(catalog_service.update_service(scope, service_id, payload))


@router.post("/professionals", response_model=ProfessionalResponse, status_code=status.HTTP_201_CREATED)
def create_professional(
    payload: ProfessionalCreateRequest,
    scope: TenantScope = Depends(get_tenant_scope),
) -> ProfessionalResponse:
    return ProfessionalResponse.model_validate(catalog_service.create_professional(scope, payload))


@router.patch("/professionals/{professional_id}", response_model=ProfessionalResponse, status_code=status.HTTP_200_OK)
def update_professional(
    professional_id: int,
    payload: ProfessionalUpdateRequest,
    scope: TenantScope = Depends(get_tenant_scope),
) -> ProfessionalResponse:
    return ProfessionalResponse.model_validate(catalog_service.update_professional(scope, professional_id, payload))


@router.get("/professionals", response_model=list[ProfessionalResponse], status_code=status.HTTP_200_OK)
def list_professionals(
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    scope: TenantScope = Depends(get_tenant_scope),
) -> list[ProfessionalResponse]:
    professionals = catalog_service.list_professionals(scope, limit=limit, offset=offset)
    return [ProfessionalResponse.model_validate(professional) for professional in professionals]


@router.post("/customers", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreateRequest,
    scope: TenantScope = Depends(get_tenant_scope),
) -> CustomerResponse:
    return CustomerResponse.model_validate(catalog_service.create_customer(scope, payload))


@router.get("/customers", response_model=list[CustomerResponse], status_code=status.HTTP_200_OK)
def list_customers(
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    scope: TenantScope = Depends(get_tenant_scope),
) -> list[CustomerResponse]:
    customers = catalog_service.list_customers(scope, limit=limit, offset=offset)
    return [CustomerResponse.model_validate(customer) for customer in customers]
