"""
Structured logging for accessgate.

Everything logs under the "accessgate" logger tree. Records carry the
request id bound by RequestIdMiddleware, plus whichever access-decision
fields the caller attached (role, module, action, feature, verdict flags).
Production renders one JSON object per line; other environments render a
single human-readable line with the same fields appended as key=value.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Optional, Union

ROOT_LOGGER = "accessgate"

request_id_ctx_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Record attributes rendered by both formatters, in output order
CONTEXT_FIELDS = (
    "user_id",
    "organization_id",
    "org_role",
    "effective_role",
    "feature",
    "org_module",
    "action",
    "blocked_by_plan",
    "blocked_by_role",
    "required_plan",
    "event_type",
    "error_code",
    "status",
    "path",
    "method",
    "latency_bucket",
)

_LATENCY_BUCKETS = (
    (10, "<10ms"),
    (100, "10-100ms"),
    (500, "100-500ms"),
    (1000, "500-1000ms"),
)

_MAX_FIELD_LENGTH = 500


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    rid = request_id_ctx_var.get()
    return rid if rid is not None else default


def latency_bucket_ms(latency_ms: Optional[float]) -> str:
    """Coarse latency label; exact timings stay out of logs."""
    if latency_ms is None:
        return "unknown"
    for upper, label in _LATENCY_BUCKETS:
        if latency_ms < upper:
            return label
    return ">=1000ms"


def _utc_timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z")


def _context_of(record: logging.LogRecord) -> Dict[str, object]:
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class RequestIdFilter(logging.Filter):
    """Stamp the bound request id onto records that do not carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _utc_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(_context_of(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class PrettyFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        rid = getattr(record, "request_id", None)
        parts = [_utc_timestamp(record), record.levelname, f"[{record.name}]"]
        if rid:
            parts.append(f"[rid={rid}]")
        parts.append(record.getMessage())
        parts.extend(f"{key}={value}" for key, value in _context_of(record).items())
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(env: str = "development", level: Union[int, str] = logging.INFO) -> None:
    """Install a single stdout handler on the accessgate logger tree."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if env.lower() == "production" else PrettyFormatter())
    handler.addFilter(RequestIdFilter())

    logger.handlers = [handler]
    logger.propagate = True

    # uvicorn keeps its own handlers
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.error").propagate = False


def _truncate(value: object) -> object:
    if value is None or isinstance(value, (bool, int, float)):
        return value
    text = str(value)
    if len(text) <= _MAX_FIELD_LENGTH:
        return text
    return text[:_MAX_FIELD_LENGTH] + "...<truncated>"


def log_event(
    level: Union[int, str],
    msg: str,
    *,
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
    organization_id: Optional[str] = None,
    event_type: Optional[str] = None,
    error_code: Optional[str] = None,
    extra: Optional[Dict[str, object]] = None,
) -> None:
    """Emit one structured record on the accessgate logger with request correlation."""
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        configure_logging(os.getenv("ENV", "development"))

    fields: Dict[str, object] = {
        "request_id": request_id or get_request_id(),
        "user_id": user_id,
        "organization_id": organization_id,
        "event_type": event_type,
        "error_code": error_code,
    }
    for key, value in (extra or {}).items():
        fields[key] = _truncate(value)

    numeric_level = level if isinstance(level, int) else logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logger.log(numeric_level, msg, extra=fields)
