"""Authentication API endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from sqlalchemy.orm import Session as DBSession
from starlette.concurrency import run_in_threadpool

from storepilot.api.body import parse_json_body
from storepilot.api.fields import (
    BusinessName,
    BusinessStage,
    FullName,
    NewPassword,
    ProductCategory,
    RegistrationEmail,
    UserRole,
)
from storepilot.auth.guard import (
    AuthIdentity,
    RouteGuard,
    RoutePolicy,
    get_client_identifier,
    get_lockout_tracker,
    get_token_service,
)
from storepilot.auth.password import hash_password, verify_password_with_upgrade
from storepilot.auth.tokens import TokenClaims, TokenErrorKind, TokenService
from storepilot.config import Settings
from storepilot.core.exceptions import (
    AccountLockedError,
    AuthenticationError,
    ConflictError,
    StorePilotError,
    ValidationFailedError,
)
from storepilot.core.logging import get_logger
from storepilot.core.sanitize import sanitize_input, sanitize_optional
from storepilot.db import get_db
from storepilot.db.models import User
from storepilot.services.audit_service import audit_log_event

logger = get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])

REGISTER_POLICY = RoutePolicy(
    endpoint="/api/auth/register",
    rate_limit_setting="register_rate_limit",
    require_auth=False,
)
LOGIN_POLICY = RoutePolicy(
    endpoint="/api/auth/login",
    rate_limit_setting="login_rate_limit",
    require_auth=False,
)
REFRESH_POLICY = RoutePolicy(
    endpoint="/api/auth/refresh",
    rate_limit_setting="refresh_rate_limit",
    require_auth=False,
    require_json=False,
)

_AUTH_CACHE_CONTROL = "no-store, no-cache, must-revalidate, private"
_INVALID_CREDENTIALS = "Invalid email or password"


class RegisterRequest(BaseModel):
    """Registration request model."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: FullName = Field(alias="fullName")
    email: RegistrationEmail
    password: NewPassword
    confirm_password: str = Field(alias="confirmPassword")
    role: UserRole
    business_stage: BusinessStage = Field(alias="businessStage")
    product_category: ProductCategory = Field(alias="productCategory")
    business_name: Optional[BusinessName] = Field(default=None, alias="businessName")
    device_id: Optional[str] = Field(default=None, alias="deviceId", max_length=255)


class LoginRequest(BaseModel):
    """Login request model."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)
    remember: bool = False
    device_id: Optional[str] = Field(default=None, alias="deviceId", max_length=255)


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "fullName": user.full_name,
        "role": user.role,
        "businessName": user.business_name,
        "businessStage": user.business_stage,
        "productCategory": user.product_category,
        "emailVerified": bool(user.email_verified),
    }


def _issue_token_pair(
    tokens: TokenService, user: User, remember: bool
) -> dict[str, Any]:
    access_token = tokens.issue_access_token(
        TokenClaims(subject_id=user.id, email=user.email, role=user.role)
    )
    refresh_token = tokens.issue_refresh_token(user.id, remember=remember)
    return {
        "accessToken": access_token,
        "refreshToken": refresh_token,
        "expiresIn": tokens.access_ttl_seconds,
    }


def _set_refresh_cookie(
    response: Response, settings: Settings, refresh_token: str, remember: bool
) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=settings.refresh_ttl_seconds(remember),
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
        path="/",
    )


async def require_login_unlocked(request: Request) -> str:
    """Reject login attempts from a locked-out client before anything else runs."""
    client_id = get_client_identifier(request)
    lockout = await get_lockout_tracker(request).check(client_id)
    if not lockout.allowed:
        now = request.app.state.clock()
        raise AccountLockedError(lockout.locked_until, lockout.retry_after(now))
    return client_id


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    response: Response,
    identity: AuthIdentity = Depends(RouteGuard(REGISTER_POLICY)),
    db: DBSession = Depends(get_db),
):
    """Create an account and sign it in."""
    settings: Settings = request.app.state.settings
    response.headers["Cache-Control"] = _AUTH_CACHE_CONTROL
    payload = await parse_json_body(request, RegisterRequest)

    if payload.password != payload.confirm_password:
        raise ValidationFailedError(
            details=[{"field": "confirmPassword", "message": "Passwords do not match"}]
        )

    if db.query(User).filter(User.email == payload.email).first():
        raise ConflictError("An account with this email already exists")

    hashed = await run_in_threadpool(hash_password, payload.password)
    user = User(
        email=payload.email,
        hashed_password=hashed,
        full_name=sanitize_input(payload.full_name, 50),
        role=payload.role,
        business_stage=payload.business_stage,
        product_category=payload.product_category,
        business_name=sanitize_optional(payload.business_name, 100),
        email_verified=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    audit_log_event(db, event_type="user_registered", user_id=user.id, request=request)
    logger.info("User registered", data={"user_id": user.id})

    tokens = _issue_token_pair(get_token_service(request), user, remember=False)
    _set_refresh_cookie(response, settings, tokens["refreshToken"], remember=False)

    return {
        "success": True,
        "message": "Account created successfully",
        "user": serialize_user(user),
        "tokens": tokens,
        "nextSteps": [
            "Check your email for verification link",
            "Complete your store setup",
            "Start building your online presence",
        ],
    }


@router.post("/login")
async def login(
    request: Request,
    response: Response,
    client_id: str = Depends(require_login_unlocked),
    identity: AuthIdentity = Depends(RouteGuard(LOGIN_POLICY)),
    db: DBSession = Depends(get_db),
):
    """Authenticate with email and password.

    Every failure, including malformed input and unexpected errors, counts
    towards the client's lockout.
    """
    settings: Settings = request.app.state.settings
    tracker = get_lockout_tracker(request)
    response.headers["Cache-Control"] = _AUTH_CACHE_CONTROL

    try:
        payload = await parse_json_body(request, LoginRequest)

        user = db.query(User).filter(User.email == payload.email.strip().lower()).first()
        if not user or not user.is_active:
            raise AuthenticationError(_INVALID_CREDENTIALS)

        result = await run_in_threadpool(
            verify_password_with_upgrade, payload.password, user.hashed_password
        )
        if not result.ok:
            audit_log_event(
                db,
                event_type="login_failed",
                user_id=user.id,
                request=request,
                data={"reason": "bad_password"},
            )
            raise AuthenticationError(_INVALID_CREDENTIALS)
    except StorePilotError:
        lockout = await tracker.record_failure(client_id)
        if not lockout.allowed:
            audit_log_event(db, event_type="login_locked", user_id=None, request=request)
        raise
    except Exception:
        await tracker.record_failure(client_id)
        raise

    await tracker.clear(client_id)

    if result.upgraded_hash:
        user.hashed_password = result.upgraded_hash
        db.commit()

    tokens = _issue_token_pair(get_token_service(request), user, remember=payload.remember)
    _set_refresh_cookie(response, settings, tokens["refreshToken"], payload.remember)

    audit_log_event(db, event_type="login_success", user_id=user.id, request=request)
    logger.info("User logged in", data={"user_id": user.id, "remember": payload.remember})

    return {
        "success": True,
        "user": serialize_user(user),
        "tokens": tokens,
    }


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    identity: AuthIdentity = Depends(RouteGuard(REFRESH_POLICY)),
    db: DBSession = Depends(get_db),
):
    """Rotate a refresh token into a fresh access/refresh pair.

    The token is read from the JSON body or, failing that, the refresh cookie.
    The new refresh token keeps the lifetime class (7 or 30 days) of the old one.
    """
    settings: Settings = request.app.state.settings
    response.headers["Cache-Control"] = _AUTH_CACHE_CONTROL

    if await request.body():
        body = await parse_json_body(request, RefreshRequest)
    else:
        body = RefreshRequest()

    token = body.refresh_token or request.cookies.get(settings.refresh_cookie_name)
    if not token:
        raise AuthenticationError("Missing refresh token")

    tokens = get_token_service(request)
    verification = tokens.verify_refresh(token)
    if not verification.valid:
        if verification.error_kind == TokenErrorKind.EXPIRED:
            raise AuthenticationError("Refresh token expired")
        raise AuthenticationError("Invalid refresh token")

    user = db.query(User).filter(User.id == verification.claims.subject_id).first()
    if not user or not user.is_active:
        raise AuthenticationError("Invalid refresh token")

    pair = _issue_token_pair(tokens, user, remember=verification.remember)
    _set_refresh_cookie(response, settings, pair["refreshToken"], verification.remember)

    audit_log_event(db, event_type="token_refreshed", user_id=user.id, request=request)

    return {"success": True, "tokens": pair}


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Clear the refresh cookie.

    Issued tokens stay valid until they expire; there is no server-side
    revocation.
    """
    settings: Settings = request.app.state.settings
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="strict",
    )
    return {"success": True, "message": "Logged out successfully"}
