"""Production startup configuration checks.

Run at application startup; production and staging deployments must pass
every check before the app starts serving requests.
"""

import logging
from typing import List

from storepilot.config import DEFAULT_JWT_SECRET, Settings

logger = logging.getLogger(__name__)


class ProductionConfigError(Exception):
    """Raised when production configuration fails validation."""
    pass


def validate_production_settings(settings: Settings) -> List[str]:
    """Validate production configuration requirements.

    Returns a list of error messages (empty if valid) so all violations
    are reported together.
    """
    errors: List[str] = []

    # 1. Tokens must not be signed with the published default secret
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        errors.append("JWT_SECRET must be changed from the default value")
    elif len(settings.jwt_secret) < 32:
        errors.append("JWT_SECRET must be at least 32 characters")

    # 2. Refresh cookie must only travel over TLS
    if not settings.cookie_secure:
        errors.append("COOKIE_SECURE must be true in production for secure cookies")

    # 3. The demo account has a well-known password
    if settings.demo_user_enabled:
        errors.append("DEMO_USER_ENABLED must be false in production")

    # 4. A shared rate-limit store needs somewhere to live
    if settings.limits_backend == "redis" and not settings.redis_url:
        errors.append("REDIS_URL is required when LIMITS_BACKEND=redis")

    for origin in settings.cors_origins_list:
        if origin == "*":
            errors.append("CORS_ORIGINS must not contain wildcard '*' in production")
        elif origin.startswith("http://"):
            errors.append(
                f"CORS_ORIGINS must be https-only in production; "
                f"found insecure origin: '{origin}'"
            )

    return errors


def assert_production_settings(settings: Settings) -> None:
    """Raise ProductionConfigError listing every failed check."""
    errors = validate_production_settings(settings)

    if errors:
        error_msg = "\n".join(f"  - {e}" for e in errors)
        logger.error(
            f"Production configuration validation failed:\n{error_msg}"
        )
        raise ProductionConfigError(
            f"Production configuration errors:\n{error_msg}"
        )

    logger.info("Production configuration validation passed")


def run_startup_validations(settings: Settings) -> None:
    """Run all startup validations based on environment."""
    if settings.is_prod_like:
        assert_production_settings(settings)
    elif settings.limits_backend == "memory":
        logger.warning(
            "Rate limits use in-memory tables; limits are not shared between instances"
        )
