"""
Root-level shared test fixtures.

The provisioning service is faked with an httpx.MockTransport handler that
records every request body and the wall-clock window it was handled in.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any

import httpx
import pytest

from credbridge.config import TOKEN_ENV, URL_ENV, URL_FROM_ENV_FLAG, reset_config
from credbridge.contract import InitializeRequest
from credbridge.orchestrator import RemoteMySQL

SERVICE_URL = "http://provisioning.test/api/user"
TOKEN = "tok-3f9a1c"


class FakeProvisioningService:
    """Stands in for the remote HTTP service."""

    def __init__(self) -> None:
        self.status_code = 200
        self.reply: Any = {"status": 0}
        self.delay = 0.0
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []
        self.bodies: list[dict[str, Any]] = []
        self.windows: list[tuple[float, float]] = []
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        start = time.monotonic()
        if self.delay:
            time.sleep(self.delay)
        end = time.monotonic()
        with self._lock:
            self.requests.append(request)
            self.bodies.append(json.loads(request.content))
            self.windows.append((start, end))
        if self.error is not None:
            raise self.error
        if isinstance(self.reply, bytes):
            return httpx.Response(self.status_code, content=self.reply)
        return httpx.Response(self.status_code, json=self.reply)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove env vars that leak between tests and reset the settings singleton."""
    for key in [
        TOKEN_ENV,
        URL_ENV,
        URL_FROM_ENV_FLAG,
        "CREDBRIDGE_TIMEOUT",
        "CREDBRIDGE_KEEP_ALIVE",
        "CREDBRIDGE_IDLE_CONN_TIMEOUT",
        "CREDBRIDGE_MAX_IDLE_CONNS",
        "CREDBRIDGE_LOG_LEVEL",
    ]:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def token(monkeypatch) -> str:
    monkeypatch.setenv(TOKEN_ENV, TOKEN)
    return TOKEN


@pytest.fixture
def service() -> FakeProvisioningService:
    return FakeProvisioningService()


@pytest.fixture
def plugin(service: FakeProvisioningService) -> RemoteMySQL:
    """Initialized plugin talking to the fake service."""
    db = RemoteMySQL(transport=httpx.MockTransport(service.handler))
    db.initialize(InitializeRequest(config={"connection_url": SERVICE_URL, "timeout": 5}))
    return db
