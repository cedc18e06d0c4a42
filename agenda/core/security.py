"""Bearer token handling.

Identity is issued elsewhere; this service only needs to read the tenant a
token was issued for. ``create_access_token`` exists for operators and tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from agenda.core.config import settings


def create_access_token(
    subject: str,
    tenant_id: int | None = None,
    expires_in: timedelta | None = None,
) -> str:
    issued_at = datetime.now(UTC)
    lifetime = expires_in or timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {"sub": subject, "iat": issued_at, "exp": issued_at + lifetime}
    if tenant_id is not None:
        claims[settings.tenant_claim] = tenant_id
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc


def tenant_id_from_claims(claims: dict[str, Any]) -> int | None:
    raw = claims.get(settings.tenant_claim)
    # bool is an int subclass; a literal true must not resolve to tenant 1.
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
