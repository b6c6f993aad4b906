"""Middleware: request IDs and the access log."""

import hashlib
import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("gymcoach.access")

REQUEST_ID_HEADER = "X-Request-ID"

# Caller ids longer than this or with other characters are replaced.
_REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]{1,64}")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ID, reusing the caller's when it is well formed."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER, "")
        if not _REQUEST_ID_PATTERN.fullmatch(request_id):
            request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class AccessLogMiddleware(BaseHTTPMiddleware):
    """One log line per request with method, path, status and latency."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        response = await call_next(request)
        elapsed_ms = (time.monotonic() - start) * 1000

        user_id = getattr(request.state, "user_id", None)
        logger.info(
            "request_id=%s user=%s method=%s path=%s status=%d elapsed_ms=%.1f",
            getattr(request.state, "request_id", "-"),
            hash_user_id(user_id) if user_id else "-",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


def hash_user_id(user_id) -> str:
    """Short SHA-256 prefix so user ids never land in logs verbatim."""
    return hashlib.sha256(str(user_id).encode()).hexdigest()[:12]
