"""Pytest configuration for StorePilot backend tests.

Sets up the test environment before any tests run, so settings are loaded
for the test context rather than development defaults.
"""

import os


def pytest_configure(config):
    """Configure test environment before any tests run.

    Key test settings:
    - ENVIRONMENT=test (not development) so production checks behave as in CI
    - LIMITS_BACKEND=memory; Redis tests opt in through REDIS_URL
    - DEMO_USER_ENABLED=false; tests that need the demo account enable it

    Environment variables must be set BEFORE the app is imported.
    """
    config.addinivalue_line("markers", "security: Security-related tests (required gate)")
    config.addinivalue_line("markers", "slow: Slow-running tests (excluded from fast)")
    config.addinivalue_line("markers", "integration: Integration tests requiring external services")

    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("LIMITS_BACKEND", "memory")
    os.environ.setdefault("DEMO_USER_ENABLED", "false")
    os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
