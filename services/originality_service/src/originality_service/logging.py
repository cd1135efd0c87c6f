"""Structured logging for the originality service.

Every record is one JSON line on stdout carrying the id of the request being
served. Structured values go in ``extra={"fields": {...}}`` and are merged
into the line; the access log uses this for method, path, status and timing.
"""

import json
import logging
import sys
import time
from contextvars import ContextVar

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

access_logger = logging.getLogger("originality_service.access")


def set_request_id(rid: str | None) -> None:
    _request_id.set(rid)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = {
            "level": record.levelname,
            "ts": round(record.created, 3),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        line.update(getattr(record, "fields", None) or {})
        rid = _request_id.get()
        if rid:
            line["request_id"] = rid
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def log_request(method: str, path: str, status_code: int, started: float) -> None:
    """Write one access-log line for a finished request; ``started`` is a ``perf_counter`` value."""
    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    access_logger.info(
        "%s %s %s",
        method, path, status_code,
        extra={"fields": {"method": method, "path": path, "status": status_code, "duration_ms": duration_ms}},
    )


def configure_logging(level: int | str = "INFO") -> logging.Logger:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)
    # requests are logged by the service's own access logger
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    return logging.getLogger("originality_service")
