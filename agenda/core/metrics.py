from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)

BOOKING_CONFLICTS = Counter(
    "booking_conflicts_total",
    "Booking writes rejected because the resource was taken",
    ["kind"],
)
BOOKINGS_WRITTEN = Counter(
    "bookings_written_total",
    "Bookings committed by the scheduler",
    ["operation"],
)
RESOURCE_LOCK_WAIT = Histogram(
    "booking_resource_lock_wait_seconds",
    "Time spent acquiring the per-resource booking lock",
    ["backend"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)


def observe_request(method: str, path: str, status_code: int, elapsed: float) -> None:
    REQUEST_COUNT.labels(method=method, path=path, status_code=status_code).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(elapsed)


def render_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
