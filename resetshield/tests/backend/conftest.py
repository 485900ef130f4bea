"""Shared fixtures for the ResetShield backend tests."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.app import app
from backend.config import Settings
from backend.services.throttle import ThrottleEngine
from backend.utils.state import DeviceStateStore, device_store


class FakeClock:
    def __init__(self, start: float = 10_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture()
def engine(settings: Settings) -> ThrottleEngine:
    return ThrottleEngine.from_settings(settings)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_state(clock: FakeClock, settings: Settings):
    fresh = DeviceStateStore(ThrottleEngine.from_settings(settings), clock=clock)
    device_store.__dict__.clear()
    device_store.__dict__.update(fresh.__dict__)
    yield


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)
