"""Error taxonomy and FastAPI handlers.

Access denials are not errors: they travel as AccessVerdict values.
Only transport-level failures (no session, role service failure) and
programming errors (unknown plan feature) are raised.

Every error response has the same body:
    {"error": {"code", "message", "request_id"}, "detail": message}
and echoes the request id in the x-request-id header.
"""

import logging
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.requests import Request

from accessgate.core.logging import get_request_id

logger = logging.getLogger("accessgate.errors")


class AppError(Exception):
    code = "app_error"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class UnauthenticatedError(AppError):
    """No active session; anonymous role resolution is never attempted."""
    code = "unauthenticated"
    status_code = 401


class RemoteError(AppError):
    """The role resolution backend failed; carries the server message."""
    code = "remote_error"
    status_code = 502

    def __init__(self, message: str, *, upstream_status: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.upstream_status = upstream_status


class UnknownFeatureError(AppError, ValueError):
    """A plan, feature or limit name outside the declared catalog."""
    code = "unknown_feature"
    status_code = 500


def _request_id_for(request: Request, preferred: Optional[str] = None) -> str:
    return preferred or getattr(request.state, "request_id", None) or get_request_id() or str(uuid4())


def error_response(request: Request, status_code: int, code: str, message: str, request_id: Optional[str] = None) -> JSONResponse:
    """Render the normalized error body and log it (5xx as error, others as warning)."""
    rid = _request_id_for(request, request_id)
    logger.log(
        logging.ERROR if status_code >= 500 else logging.WARNING,
        "request.error",
        extra={"request_id": rid, "error_code": code, "status": status_code, "path": request.url.path},
    )
    response = JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "request_id": rid}, "detail": message},
    )
    response.headers["x-request-id"] = rid
    return response


async def app_error_handler(request: Request, exc: AppError):
    return error_response(request, exc.status_code, exc.code, exc.message, exc.request_id)


async def http_error_handler(request: Request, exc: HTTPException):
    code = "not_found" if exc.status_code == 404 else "http_error"
    return error_response(request, exc.status_code, code, str(exc.detail or "HTTP error"))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = sorted({".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()})
    message = f"Invalid request: {', '.join(f for f in fields if f) or 'body'}"
    return error_response(request, 422, "validation_error", message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("unhandled.exception", exc_info=exc, extra={"request_id": _request_id_for(request)})
    return error_response(request, 500, "internal_error", "Unexpected error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
