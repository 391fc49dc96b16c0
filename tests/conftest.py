"""Shared fixtures for the QuipChat test suite."""

from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from quipchat.client import ChatClient
from quipchat.clock import Clock
from quipchat.config import get_settings
from quipchat.history import HistoryManager
from quipchat.store import HistoryStore, InMemoryStore
from quipchat.turn import TurnProtocolHandler


class FakeClock(Clock):
    """Deterministic clock: every read advances by one millisecond."""

    def __init__(self, start_ms: int = 1_700_000_000_000, step: int = 1) -> None:
        super().__init__()
        self.ms = start_ms
        self.step = step

    def now(self) -> datetime:
        return datetime(2024, 5, 6, 7, 8, 9)

    def now_ms(self) -> int:
        self.ms += self.step
        return self.ms


class FailingMedium:
    def __init__(self, fail_get: bool = False, fail_set: bool = True) -> None:
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.data = {}

    def get(self, key):
        if self.fail_get:
            raise OSError("disk unavailable")
        return self.data.get(key)

    def set(self, key, value):
        if self.fail_set:
            raise OSError("disk full")
        self.data[key] = value


@pytest.fixture(autouse=True)
def demo_backend(monkeypatch):
    monkeypatch.setenv("REPLY_BACKEND", "demo")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def medium() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def history(medium, clock) -> HistoryManager:
    return HistoryManager(HistoryStore(medium), clock=clock)


@pytest.fixture
def endpoint() -> TestClient:
    from quipchat.main import app

    return TestClient(app)


@pytest.fixture
def chat_client(endpoint, history, clock) -> ChatClient:
    client = ChatClient(TurnProtocolHandler("/", client=endpoint), history, clock=clock)
    client.open()
    yield client
    client.close()
