"""HTTP rendering of every failure the API can return.

All error responses share one body::

    {"error": {"code", "message", "detail"}, "detail", "request_id"}
"""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agenda.core.errors import ErrorKind, SchedulingError
from agenda.core.request_context import request_id_ctx_var

SCHEDULING_ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED_TENANT: status.HTTP_403_FORBIDDEN,
    ErrorKind.TENANT_REQUIRED: status.HTTP_403_FORBIDDEN,
    ErrorKind.SERVICE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CUSTOMER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PROFESSIONAL_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PROFESSIONAL_SERVICE_MISMATCH: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.BOOKING_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_BOOKING_TIME: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.SCHEDULING_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.CONCURRENT_WRITE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_STATUS_TRANSITION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.BOOKING_NOT_EDITABLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
}

# The client may retry a concurrent write straight away.
RETRYABLE_KINDS = frozenset({ErrorKind.CONCURRENT_WRITE_CONFLICT})


def error_response(
    status_code: int,
    code: str,
    message: str,
    detail: Any,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = {
        "error": {"code": code, "message": message, "detail": detail},
        "detail": detail,
        "request_id": request_id_ctx_var.get(),
    }
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail), exc.detail, exc.headers)


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "Request validation failed",
        exc.errors(),
    )


async def scheduling_exception_handler(_: Request, exc: SchedulingError) -> JSONResponse:
    return error_response(
        SCHEDULING_ERROR_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST),
        exc.kind.value,
        exc.message,
        exc.message,
        headers={"Retry-After": "1"} if exc.kind in RETRYABLE_KINDS else None,
    )


EXCEPTION_HANDLERS = {
    HTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    SchedulingError: scheduling_exception_handler,
}
