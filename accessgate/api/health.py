"""
Liveness and readiness probes.

/readyz fails only on storage problems. An unconfigured role resolution
service is reported but does not fail readiness: /v1/access answers 503
for those requests on its own.
"""

import logging
from typing import Dict, List

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from accessgate.core.config import settings
from accessgate.core.database import check_connection, get_engine, metadata

logger = logging.getLogger("accessgate.health")

root_router = APIRouter(tags=["health"])


def _missing_tables() -> List[str]:
    inspector = inspect(get_engine())
    return [name for name in sorted(metadata.tables) if not inspector.has_table(name)]


def _not_ready(detail: str, checks: Dict[str, object]) -> JSONResponse:
    logger.warning("readiness.failed", extra={"status": 503, "error_code": detail})
    return JSONResponse(status_code=503, content={"status": "error", "detail": detail, "checks": checks})


@root_router.get("/healthz")
def healthz():
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz():
    checks: Dict[str, object] = {
        "role_resolution": "configured" if settings.ROLE_RESOLUTION_URL else "unconfigured",
        "database": check_connection(),
    }
    if not checks["database"]:
        return _not_ready("database unreachable", checks)

    try:
        missing = _missing_tables()
    except (SQLAlchemyError, ValueError):
        logger.exception("readiness.inspect_failed")
        checks["database"] = False
        return _not_ready("database unreachable", checks)

    if missing:
        checks["missing_tables"] = missing
        return _not_ready("missing tables: " + ", ".join(missing), checks)
    return {"status": "ok", "checks": checks}
