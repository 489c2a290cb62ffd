"""Shared fixtures: controllable clock and a per-test app over a temp database."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from storepilot.config import get_settings
from storepilot.db import dispose_engine
from storepilot.main import create_app
from storepilot.tests.helpers import ManualClock, register_user


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


def configure_env(tmp_path: Path, monkeypatch, **overrides: str) -> None:
    """Point settings at a fresh SQLite file and apply env overrides."""
    db_path = tmp_path / "storepilot.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path.as_posix()}")
    for key, value in overrides.items():
        monkeypatch.setenv(key.upper(), value)
    get_settings.cache_clear()
    dispose_engine()


@pytest.fixture
def make_client(tmp_path, monkeypatch, clock):
    """Build a started TestClient for an app configured with env overrides."""
    clients = []

    def _make(**env: str) -> TestClient:
        configure_env(tmp_path, monkeypatch, **env)
        client = TestClient(create_app(clock=clock))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)
    get_settings.cache_clear()
    dispose_engine()


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def access_token(client) -> str:
    """Register the default owner and return its access token."""
    res = register_user(client)
    assert res.status_code == 201, res.text
    return res.json()["tokens"]["accessToken"]
