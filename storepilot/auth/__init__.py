"""Authentication: tokens, login lockout and per-route guards."""

from storepilot.auth.guard import AuthIdentity, RateLimitRule, RouteGuard, RoutePolicy
from storepilot.auth.lockout import LoginLockoutTracker
from storepilot.auth.tokens import TokenClaims, TokenService

__all__ = [
    "AuthIdentity",
    "LoginLockoutTracker",
    "RateLimitRule",
    "RouteGuard",
    "RoutePolicy",
    "TokenClaims",
    "TokenService",
]
