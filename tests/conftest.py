import os
import sys
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")

from agenda.core.rate_limiter import rate_limiter
from agenda.core.security import create_access_token
from agenda.db.base import Base
from agenda.db.models import Customer, Professional, ProfessionalService, Service, Tenant
from agenda.db.session import get_db
from agenda.db.tenancy import TenantScope
from agenda.main import app

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@dataclass
class SeededTenant:
    tenant_id: int
    service_id: int
    customer_id: int
    professional_id: int

    @property
    def headers(self) -> dict[str, str]:
        token = create_access_token(subject=f"staff-{self.tenant_id}", tenant_id=self.tenant_id)
        return {"Authorization": f"Bearer {token}"}


def seed_tenant(
    db: Session,
    slug: str,
    duration_minutes: int = 60,
    price: Decimal = Decimal("100.00"),
) -> SeededTenant:
    tenant = Tenant(name=slug.title(), slug=slug)
    db.add(tenant)
    db.flush()

    scope = TenantScope.for_system(db, tenant.id)
    service = scope.add(Service(name="Haircut", duration_minutes=duration_minutes, price=price))
    customer = scope.add(Customer(name="Ana Client", email=f"ana@{slug}.example.com"))
    professional = scope.add(Professional(name="Bruno Barber"))
    db.flush()
    scope.add(ProfessionalService(professional_id=professional.id, service_id=service.id))
    db.commit()
    return SeededTenant(
        tenant_id=tenant.id,
        service_id=service.id,
        customer_id=customer.id,
        professional_id=professional.id,
    )


@pytest.fixture(autouse=True)
def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()


@pytest.fixture()
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def tenant(db_session) -> SeededTenant:
    return seed_tenant(db_session, "acme")


@pytest.fixture()
def other_tenant(db_session) -> SeededTenant:
    return seed_tenant(db_session, "globex")


@pytest.fixture()
def client() -> TestClient:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def tenant_seeder():
    return seed_tenant
