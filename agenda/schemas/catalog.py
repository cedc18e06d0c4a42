from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field


class ServiceCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    description: str | None = Field(default=None, max_length=500)
    duration_minutes: int = Field(gt=0, le=1440)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    is_active: bool = True


class ServiceUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=120)
    description: str | None = Field(default=None, max_length=500)
    duration_minutes: int | None = Field(default=None, gt=0, le=1440)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    is_active: bool | None = None


class ServiceResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    description: str | None
    duration_minutes: int
    price: Decimal
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ProfessionalCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=30)
    is_active: bool = True
    service_ids: list[int] = Field(default_factory=list)


class ProfessionalUpdateRequest(BaseModel):
    """Only fields present in the request are applied; ``service_ids`` replaces the whole set."""

    name: str | None = Field(default=None, min_length=2, max_length=120)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=30)
    is_active: bool | None = None
    service_ids: list[int] | None = None


class ProfessionalResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    email: str | None
    phone: str | None
    is_active: bool
    service_ids: list[int]

    model_config = {"from_attributes": True}


class CustomerCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=30)
    notes: str | None = None


class CustomerResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    email: str | None
    phone: str | None
    notes: str | None

    model_config = {"from_attributes": True}
