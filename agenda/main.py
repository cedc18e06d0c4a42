import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request, Response

from agenda.api.v1.bookings import router as bookings_router
from agenda.api.v1.catalog import router as catalog_router
from agenda.core.exceptions import EXCEPTION_HANDLERS
from agenda.core.logging import setup_logging
from agenda.core.metrics import observe_request, render_metrics
from agenda.core.request_context import request_id_ctx_var

setup_logging()
logger = logging.getLogger("agenda.request")

app = FastAPI(title="Agenda Booking API", version="0.1.0")
for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(catalog_router)
app.include_router(bookings_router)


def _route_path(request: Request) -> str:
    # Label by route template so booking ids do not explode metric cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


@app.middleware("http")
async def observability_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid4().hex
    token = request_id_ctx_var.set(request_id)
    started = time.perf_counter()
    try:
        try:
            response = await call_next(request)
        except Exception:
            elapsed = time.perf_counter() - started
            observe_request(request.method, _route_path(request), 500, elapsed)
            logger.exception(
                "request_failed method=%s path=%s status=500 duration_ms=%.2f",
                request.method,
                _route_path(request),
                elapsed * 1000,
            )
            raise

        elapsed = time.perf_counter() - started
        observe_request(request.method, _route_path(request), response.status_code, elapsed)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request_completed method=%s path=%s status=%s duration_ms=%.2f",
            request.method,
            _route_path(request),
            response.status_code,
            elapsed * 1000,
        )
        return response
    finally:
        request_id_ctx_var.reset(token)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["observability"])
def metrics() -> Response:
    payload, content_type = render_metrics()
    return Response(content=payload, media_type=content_type)
