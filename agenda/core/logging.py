import logging

from agenda.core.config import settings
from agenda.core.request_context import request_id_ctx_var

LOG_FORMAT = "%(asctime)s %(levelname)s request_id=%(request_id)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# The request middleware already logs one line per request.
QUIET_LOGGERS = ("uvicorn.access",)


class RequestIdFilter(logging.Filter):
    """Stamp each record with the id of the request being served, or "-"."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx_var.get()
        return True


def setup_logging(level: str | None = None) -> bool:
    """Install the request-aware handler on the root logger.

    Returns False without touching anything when the root logger is already
    configured (uvicorn --log-config, pytest's caplog, repeated imports).
    """
    root = logging.getLogger()
    if root.handlers:
        return False

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel((level or settings.log_level).upper())
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return True
