"""API test fixtures — HTTP client and WebSocket client bound to a fresh hub.

Invariants:
    - get_hub dependency overridden to the per-test hub
    - Overrides cleared after each test
    - ws_client is entered as a context manager: every socket and request shares
      one event loop, like a real uvicorn worker
"""

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from relaypay.main import app
from relaypay.services.hub import get_hub


@pytest.fixture
async def client(hub):
    """Async HTTP client with the hub dependency overridden."""
    app.dependency_overrides[get_hub] = lambda: hub
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def ws_client(hub):
    """Sync TestClient for WebSocket endpoints, sharing one portal loop."""
    app.dependency_overrides[get_hub] = lambda: hub
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
