"""Exception types and FastAPI exception handlers."""

import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from storepilot.core.error_contract import build_error_envelope, pydantic_errors_to_details
from storepilot.core.logging import get_logger

logger = get_logger(__name__)


class StorePilotError(Exception):
    """Base exception for StorePilot application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: list = None,
        headers: dict = None,
        extra: dict = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or []
        self.headers = headers or {}
        self.extra = extra or {}
        super().__init__(message)


class ValidationFailedError(StorePilotError):
    """Request fields are missing or malformed."""

    def __init__(self, message: str = "Invalid input data", details: list = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class AuthenticationError(StorePilotError):
    """Missing, malformed, expired or forged credentials."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFoundError(StorePilotError):
    """Resource not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(StorePilotError):
    """Resource already exists."""

    def __init__(self, message: str):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT)


class RateLimitExceededError(StorePilotError):
    """Too many requests inside the current window."""

    def __init__(
        self,
        retry_after: float,
        message: str = "Too many requests. Please try again later.",
        reset_at: float | None = None,
        extra: dict = None,
    ):
        self.retry_after = max(1, math.ceil(retry_after))
        headers = {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Remaining": "0",
        }
        if reset_at is not None:
            headers["X-RateLimit-Reset"] = str(math.ceil(reset_at))
        super().__init__(
            message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            headers=headers,
            extra=extra,
        )


class AccountLockedError(RateLimitExceededError):
    """Login blocked after repeated authentication failures."""

    def __init__(self, locked_until: float, retry_after: float):
        minutes = max(1, math.ceil(retry_after / 60))
        self.locked_until = locked_until
        super().__init__(
            retry_after=minutes * 60,
            message=(
                "Account temporarily locked due to too many failed attempts. "
                f"Try again in {minutes} minutes."
            ),
            extra={"lockedUntil": int(locked_until * 1000)},
        )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app.

    Unexpected exceptions are not handled here; UnhandledErrorMiddleware
    turns them into opaque 500 responses.
    """

    @app.exception_handler(StorePilotError)
    async def storepilot_exception_handler(
        request: Request, exc: StorePilotError
    ) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            f"Request rejected: {exc.message}",
            data={"status_code": exc.status_code, "path": request.url.path},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=build_error_envelope(exc.message, details=exc.details, extra=exc.extra),
            headers=exc.headers or None,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = pydantic_errors_to_details(exc.errors())
        logger.warning("Validation error", data={"errors": details})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=build_error_envelope("Invalid input data", details=details),
        )

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        details = pydantic_errors_to_details(exc.errors())
        logger.warning("Validation error", data={"errors": details})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=build_error_envelope("Invalid input data", details=details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content=build_error_envelope(message),
            headers=getattr(exc, "headers", None),
        )
