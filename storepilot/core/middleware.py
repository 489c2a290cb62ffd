"""Custom middleware for the StorePilot backend."""

import re
import secrets
import time
from typing import Callable

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from storepilot.core.error_contract import build_error_envelope
from storepilot.core.logging import get_logger, request_context

logger = get_logger(__name__)

_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9_-]{1,64}")


def _request_id_from(request: Request) -> str:
    """Caller-supplied X-Request-ID if well-formed, else a fresh one."""
    supplied = request.headers.get("X-Request-ID", "")
    if _REQUEST_ID_RE.fullmatch(supplied):
        return supplied
    return secrets.token_hex(8)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to inject request context for logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with context."""
        request_id = _request_id_from(request)
        start_time = time.perf_counter()

        ctx = {
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        }
        token = request_context.set(ctx)

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                data={"duration_ms": round(duration_ms, 2)},
            )

            response.headers["X-Request-ID"] = request_id
            return response

        finally:
            request_context.reset(token)


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """Turn unexpected exceptions into an opaque 500 envelope.

    The exception and traceback go to the log only; clients never see
    internal detail.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                f"Unhandled error on {request.method} {request.url.path}",
                exc_info=True,
                data={"error_type": type(exc).__name__},
            )
            return JSONResponse(
                status_code=500,
                content=build_error_envelope("Internal server error"),
            )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to every response, including error responses."""

    SECURITY_HEADERS = {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "X-XSS-Protection": "1; mode=block",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Add security headers to response."""
        response = await call_next(request)

        for header, value in self.SECURITY_HEADERS.items():
            if header not in response.headers:
                response.headers[header] = value

        return response
