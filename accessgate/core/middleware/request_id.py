"""
Request correlation middleware.

Binds one request id per request (the caller's x-request-id when it is a
sane token, a fresh uuid4 otherwise), exposes it on request.state and the
logging context, echoes it on the response, and logs one completion line.
"""

import logging
import re
import time
from typing import Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from accessgate.core.logging import latency_bucket_ms, request_id_ctx_var

logger = logging.getLogger("accessgate.http")

_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def accept_request_id(candidate: Optional[str]) -> str:
    """Caller-supplied ids are reused only if short and log-safe."""
    if candidate and _ACCEPTABLE_ID.match(candidate):
        return candidate
    return str(uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next):
        rid = accept_request_id(request.headers.get(self.header_name))
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)

        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[self.header_name] = rid
            logger.info(
                "request.complete",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status": response.status_code,
                    "latency_bucket": latency_bucket_ms((time.perf_counter() - started) * 1000),
                },
            )
            return response
        finally:
            request_id_ctx_var.reset(token)
