# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# The module-level app in loanflow.main is built at import time.
os.environ.setdefault("CSRF_SECRET", "test-secret-not-for-production")
os.environ.setdefault("APP_ENV", "test")

from loanflow.core.security import LimitPolicy, SecurityConfig
from loanflow.core.settings import Settings
from loanflow.main import create_app
from loanflow.services.csrf import CsrfTokenService

TEST_SECRET = "unit-test-secret"
START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with a fixed secret and default limits."""
    return Settings(CSRF_SECRET=TEST_SECRET, APP_ENV="test")


@pytest.fixture()
def security_config(test_settings: Settings) -> SecurityConfig:
    return SecurityConfig.from_settings(test_settings)


@pytest.fixture()
def csrf_service(security_config: SecurityConfig, clock: FakeClock) -> CsrfTokenService:
    return CsrfTokenService(security_config, clock=clock)


@pytest.fixture()
def action_policy() -> LimitPolicy:
    return LimitPolicy(max_attempts=5, window_seconds=60)


@pytest.fixture()
def app(test_settings: Settings) -> FastAPI:
    return create_app(test_settings)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def csrf_headers(client: TestClient) -> dict[str, str]:
    """Headers carrying a freshly issued token."""
    token = client.get("/api/csrf-token").json()["token"]
    return {"x-csrf-token": token}
