"""Per-route request guard: content-type, rate limit and bearer auth.

Each protected route declares a ``RoutePolicy`` and depends on
``RouteGuard(policy)``. Checks run in a fixed order (content type, rate
limit, authentication) and the first failure short-circuits the request
before the handler is entered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Response

from storepilot.auth.lockout import LoginLockoutTracker
from storepilot.auth.tokens import TokenErrorKind, TokenService
from storepilot.core.exceptions import (
    AuthenticationError,
    RateLimitExceededError,
    ValidationFailedError,
)
from storepilot.core.limits import RateLimitResult
from storepilot.core.limits.limiter import RateLimiter
from storepilot.core.logging import get_logger, request_context

logger = get_logger(__name__)

UNKNOWN_CLIENT = "unknown"
WRITE_METHODS = frozenset({"POST", "PUT", "PATCH"})

_TOKEN_ERROR_MESSAGES = {
    TokenErrorKind.EXPIRED: "Token expired",
    TokenErrorKind.MALFORMED: "Invalid token",
    TokenErrorKind.SIGNATURE_INVALID: "Invalid token",
}


@dataclass(frozen=True)
class RateLimitRule:
    max_requests: int
    window_seconds: float = 15 * 60


@dataclass(frozen=True)
class RoutePolicy:
    """What a route requires before its handler runs.

    ``endpoint`` is the rate-limit bucket name; routes sharing a name share
    a budget per client. The limit is either a fixed ``rate_limit`` rule or
    the name of a ``Settings`` attribute holding the request budget, read at
    request time with ``rate_limit_window_seconds`` as the window.
    """

    endpoint: str
    rate_limit: Optional[RateLimitRule] = None
    rate_limit_setting: Optional[str] = None
    require_auth: bool = True
    require_json: bool = True


@dataclass(frozen=True)
class AuthIdentity:
    """Caller identity handed to route handlers."""

    client_id: str
    subject_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    rate_limit: Optional[RateLimitResult] = None

    @property
    def is_authenticated(self) -> bool:
        return self.subject_id is not None


def get_client_identifier(request: Request) -> str:
    """Derive the rate-limit/lockout key for a request.

    First entry of X-Forwarded-For, then X-Real-IP, else "unknown". Headers
    are taken as given; the deployment must sit behind a proxy that
    overwrites them.
    """
    forwarded_for = request.headers.get("x-forwarded-for", "")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return UNKNOWN_CLIENT


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_lockout_tracker(request: Request) -> LoginLockoutTracker:
    return request.app.state.lockout_tracker


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def _is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";")[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _extract_bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def resolve_rate_limit_rule(request: Request, policy: RoutePolicy) -> Optional[RateLimitRule]:
    if policy.rate_limit is not None:
        return policy.rate_limit
    if policy.rate_limit_setting is None:
        return None
    settings = request.app.state.settings
    return RateLimitRule(
        max_requests=getattr(settings, policy.rate_limit_setting),
        window_seconds=settings.rate_limit_window_seconds,
    )


def apply_rate_limit_headers(response: Response, result: RateLimitResult) -> None:
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
    response.headers["X-RateLimit-Reset"] = str(int(result.reset_at))


async def enforce_rate_limit(
    request: Request,
    identifier: str,
    endpoint: str,
    rule: RateLimitRule,
) -> RateLimitResult:
    """Count one request against ``endpoint`` and raise 429 when over budget."""
    limiter = get_rate_limiter(request)
    result = await limiter.check(identifier, endpoint, rule.max_requests, rule.window_seconds)
    if not result.allowed:
        now = request.app.state.clock()
        raise RateLimitExceededError(
            retry_after=result.retry_after(now),
            reset_at=result.reset_at,
        )
    return result


def authenticate_bearer(request: Request) -> AuthIdentity:
    """Verify the bearer access token on ``request``.

    Raises:
        AuthenticationError: Header missing/malformed, token expired or invalid.
    """
    token = _extract_bearer_token(request)
    if token is None:
        raise AuthenticationError("Missing or invalid authorization header")

    verification = get_token_service(request).verify(token)
    if not verification.valid:
        logger.info(
            "Access token rejected",
            data={"reason": verification.error_kind.value, "path": request.url.path},
        )
        raise AuthenticationError(_TOKEN_ERROR_MESSAGES[verification.error_kind])

    claims = verification.claims
    return AuthIdentity(
        client_id=get_client_identifier(request),
        subject_id=claims.subject_id,
        email=claims.email,
        role=claims.role,
    )


class RouteGuard:
    """FastAPI dependency enforcing a ``RoutePolicy``.

    Usage:
        @router.get("/profile")
        async def profile(identity: AuthIdentity = Depends(RouteGuard(PROFILE_POLICY))):
            ...
    """

    def __init__(self, policy: RoutePolicy):
        self.policy = policy

    async def __call__(self, request: Request, response: Response) -> AuthIdentity:
        policy = self.policy
        client_id = get_client_identifier(request)

        if policy.require_json and request.method in WRITE_METHODS:
            if not _is_json_content_type(request.headers.get("content-type", "")):
                raise ValidationFailedError("Invalid request headers")

        result = None
        rule = resolve_rate_limit_rule(request, policy)
        if rule is not None:
            result = await enforce_rate_limit(request, client_id, policy.endpoint, rule)
            apply_rate_limit_headers(response, result)

        if not policy.require_auth:
            return AuthIdentity(client_id=client_id, rate_limit=result)

        identity = authenticate_bearer(request)
        ctx = request_context.get()
        if "request_id" in ctx:
            ctx["user_id"] = identity.subject_id

        return AuthIdentity(
            client_id=client_id,
            subject_id=identity.subject_id,
            email=identity.email,
            role=identity.role,
            rate_limit=result,
        )
