"""Tests for production configuration checks and settings validation."""

import pytest
from pydantic import ValidationError

from storepilot.config import DEFAULT_JWT_SECRET, Settings
from storepilot.core.startup_checks import (
    ProductionConfigError,
    run_startup_validations,
    validate_production_settings,
)

pytestmark = pytest.mark.security

STRONG_SECRET = "x" * 48


def _production(**overrides) -> Settings:
    values = {
        "environment": "production",
        "jwt_secret": STRONG_SECRET,
        "cookie_secure": True,
        "demo_user_enabled": False,
        "cors_origins": "https://app.example.com",
    }
    values.update(overrides)
    return Settings(**values)


class TestValidateProductionSettings:
    def test_hardened_settings_pass(self):
        assert validate_production_settings(_production()) == []

    def test_default_jwt_secret_rejected(self):
        errors = validate_production_settings(_production(jwt_secret=DEFAULT_JWT_SECRET))
        assert any("JWT_SECRET" in e for e in errors)

    def test_short_jwt_secret_rejected(self):
        errors = validate_production_settings(_production(jwt_secret="short-secret"))
        assert any("at least 32" in e for e in errors)

    def test_insecure_cookie_rejected(self):
        errors = validate_production_settings(_production(cookie_secure=False))
        assert any("COOKIE_SECURE" in e for e in errors)

    def test_demo_user_rejected(self):
        errors = validate_production_settings(_production(demo_user_enabled=True))
        assert any("DEMO_USER_ENABLED" in e for e in errors)

    def test_redis_backend_without_url_rejected(self):
        errors = validate_production_settings(_production(limits_backend="redis", redis_url=""))
        assert any("REDIS_URL" in e for e in errors)

    def test_wildcard_and_http_origins_rejected(self):
        errors = validate_production_settings(_production(cors_origins="*,http://app.example.com"))
        assert any("wildcard" in e for e in errors)
        assert any("https-only" in e for e in errors)

    def test_all_errors_reported_together(self):
        settings = _production(jwt_secret=DEFAULT_JWT_SECRET, cookie_secure=False, demo_user_enabled=True)
        assert len(validate_production_settings(settings)) == 3


class TestRunStartupValidations:
    def test_production_refuses_insecure_config(self):
        with pytest.raises(ProductionConfigError):
            run_startup_validations(_production(jwt_secret=DEFAULT_JWT_SECRET))

    def test_staging_is_checked_like_production(self):
        with pytest.raises(ProductionConfigError):
            run_startup_validations(_production(environment="staging", cookie_secure=False))

    def test_test_environment_is_not_checked(self):
        run_startup_validations(Settings(environment="test", jwt_secret=DEFAULT_JWT_SECRET))


class TestSettingsValidation:
    def test_invalid_environment_rejected(self):
        with pytest.raises(ValidationError):
            Settings(environment="prod")

    def test_invalid_limits_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(limits_backend="memcached")

    def test_log_level_normalised(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_refresh_ttl(self):
        settings = Settings()
        assert settings.refresh_ttl_seconds(False) == 7 * 24 * 60 * 60
        assert settings.refresh_ttl_seconds(True) == 30 * 24 * 60 * 60

    def test_cors_origins_list(self):
        settings = Settings(cors_origins="https://a.example.com, https://b.example.com,")
        assert settings.cors_origins_list == ["https://a.example.com", "https://b.example.com"]

    @pytest.mark.parametrize(
        "field",
        [
            "register_rate_limit",
            "login_rate_limit",
            "refresh_rate_limit",
            "profile_rate_limit",
            "stores_rate_limit",
            "progress_rate_limit",
            "rate_limit_window_seconds",
            "login_max_attempts",
            "login_window_seconds",
            "login_lockout_seconds",
        ],
    )
    def test_limits_must_be_positive(self, field):
        with pytest.raises(ValidationError):
            Settings(**{field: 0})

    def test_zero_rate_limit_env_fails_at_startup(self, make_client):
        with pytest.raises(ValidationError):
            make_client(register_rate_limit="0")
