from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from agenda.core.config import settings
from agenda.core.errors import UnauthorizedTenant
from agenda.core.rate_limiter import booking_write_key, rate_limiter
from agenda.core.security import decode_access_token, tenant_id_from_claims
from agenda.db.models import Tenant
from agenda.db.session import get_db
from agenda.db.tenancy import TenantScope

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_tenant_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> int:
    """Resolve the caller's tenant once, at the request boundary."""
    unauthorized_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized_exc
    try:
        claims = decode_access_token(credentials.credentials)
    except ValueError:
        raise unauthorized_exc

    tenant_id = tenant_id_from_claims(claims)
    if tenant_id is None:
        raise UnauthorizedTenant()

    tenant = db.scalar(select(Tenant).where(Tenant.id == tenant_id))
    if not tenant or not tenant.is_active:
        raise UnauthorizedTenant()
    return tenant_id


def get_tenant_scope(
    tenant_id: int = Depends(get_current_tenant_id),
    db: Session = Depends(get_db),
) -> TenantScope:
    return TenantScope.for_caller(db, tenant_id)


def limit_booking_writes(request: Request, tenant_id: int = Depends(get_current_tenant_id)) -> None:
    client_host = request.client.host if request.client else "unknown"
    allowed, retry_after = rate_limiter.allow(
        key=booking_write_key(tenant_id, client_host),
        limit=settings.booking_write_max_attempts,
        window_seconds=settings.booking_write_rate_limit_window_seconds,
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many booking requests. Please try again later.",
            headers={"Retry-After": str(retry_after)},
        )
