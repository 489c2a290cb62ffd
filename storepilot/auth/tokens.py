"""JWT access/refresh token issuance and verification.

Tokens are HS256-signed with a shared secret. There is no revocation list:
any correctly signed, unexpired token is accepted, and logout only discards
the client's copy. Rotating the secret invalidates every token at once.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from storepilot.config.settings import Settings
from storepilot.core.logging import get_logger
from storepilot.core.time import Clock, system_clock

logger = get_logger(__name__)

ALGORITHM = "HS256"


class TokenErrorKind(str, Enum):
    EXPIRED = "expired"
    MALFORMED = "malformed"
    SIGNATURE_INVALID = "signature_invalid"


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a token."""

    subject_id: str
    email: Optional[str] = None
    role: Optional[str] = None


@dataclass(frozen=True)
class TokenVerification:
    valid: bool
    claims: Optional[TokenClaims] = None
    error_kind: Optional[TokenErrorKind] = None
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None
    remember: bool = False

    @classmethod
    def failure(cls, kind: TokenErrorKind) -> "TokenVerification":
        return cls(valid=False, error_kind=kind)


class TokenService:
    """Issues and verifies signed, time-bounded tokens."""

    def __init__(
        self,
        secret: str,
        *,
        issuer: str = "shopify-automation-platform",
        access_audience: str = "shopify-automation-users",
        refresh_audience: str = "shopify-automation-refresh",
        access_ttl_seconds: int = 15 * 60,
        refresh_ttl_days: int = 7,
        refresh_remember_ttl_days: int = 30,
        clock: Clock = system_clock,
    ):
        self._secret = secret
        self.issuer = issuer
        self.access_audience = access_audience
        self.refresh_audience = refresh_audience
        self.access_ttl_seconds = access_ttl_seconds
        self.refresh_ttl_days = refresh_ttl_days
        self.refresh_remember_ttl_days = refresh_remember_ttl_days
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Clock = system_clock) -> "TokenService":
        return cls(
            settings.jwt_secret,
            issuer=settings.jwt_issuer,
            access_audience=settings.jwt_access_audience,
            refresh_audience=settings.jwt_refresh_audience,
            access_ttl_seconds=settings.access_token_ttl_seconds,
            refresh_ttl_days=settings.refresh_token_ttl_days,
            refresh_remember_ttl_days=settings.refresh_token_remember_ttl_days,
            clock=clock,
        )

    def refresh_ttl_seconds(self, remember: bool) -> int:
        days = self.refresh_remember_ttl_days if remember else self.refresh_ttl_days
        return days * 24 * 60 * 60

    def _sign(self, payload: dict[str, Any], audience: str, ttl_seconds: int) -> str:
        now = int(self._clock())
        payload.update(
            {
                "iat": now,
                "exp": now + ttl_seconds,
                "iss": self.issuer,
                "aud": audience,
            }
        )
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def issue_access_token(self, claims: TokenClaims) -> str:
        payload: dict[str, Any] = {"sub": claims.subject_id}
        if claims.email is not None:
            payload["email"] = claims.email
        if claims.role is not None:
            payload["role"] = claims.role
        return self._sign(payload, self.access_audience, self.access_ttl_seconds)

    def issue_refresh_token(self, subject_id: str, remember: bool = False) -> str:
        payload = {
            "sub": subject_id,
            "rem": bool(remember),
            "jti": secrets.token_urlsafe(16),
        }
        return self._sign(payload, self.refresh_audience, self.refresh_ttl_seconds(remember))

    def verify(self, token: str, audience: Optional[str] = None) -> TokenVerification:
        """Verify signature, issuer, audience and expiry.

        Expiry is compared against this service's clock rather than the
        library's, so issuance and verification share one time source.
        """
        audience = audience or self.access_audience

        try:
            jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError:
            return TokenVerification.failure(TokenErrorKind.MALFORMED)

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=audience,
                issuer=self.issuer,
                options={"verify_exp": False},
            )
        except ExpiredSignatureError:
            return TokenVerification.failure(TokenErrorKind.EXPIRED)
        except JWTClaimsError as exc:
            logger.info("Token claims rejected", data={"reason": str(exc)})
            return TokenVerification.failure(TokenErrorKind.MALFORMED)
        except JWTError:
            return TokenVerification.failure(TokenErrorKind.SIGNATURE_INVALID)

        subject = payload.get("sub")
        expires_at = payload.get("exp")
        if not isinstance(subject, str) or not isinstance(expires_at, int):
            return TokenVerification.failure(TokenErrorKind.MALFORMED)

        if self._clock() >= expires_at:
            return TokenVerification.failure(TokenErrorKind.EXPIRED)

        return TokenVerification(
            valid=True,
            claims=TokenClaims(
                subject_id=subject,
                email=payload.get("email"),
                role=payload.get("role"),
            ),
            issued_at=payload.get("iat"),
            expires_at=expires_at,
            remember=bool(payload.get("rem", False)),
        )

    def verify_refresh(self, token: str) -> TokenVerification:
        return self.verify(token, audience=self.refresh_audience)
