"""
Test Configuration
==================
Pytest fixtures for Meshes events client tests.
"""

from typing import Any, Awaitable, Callable, Optional

import pytest

from meshes_events import MeshesEventsClient
from meshes_events.transport import RequestInit

VALID_KEY = "mesh_pub_abc.def_ghi-jkl_suffix123"


class FakeResponse:
    """Transport response with a canned body."""

    def __init__(
        self,
        ok: bool = True,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        body: str = "",
        error: Optional[Exception] = None,
    ):
        self.ok = ok
        self.status = status if status is not None else (200 if ok else 400)
        self.status_text = status_text or ("OK" if ok else "Bad Request")
        self._body = body
        self._error = error

    async def text(self) -> str:
        if self._error is not None:
            raise self._error
        return self._body


class FakeTransport:
    """Records every call and replies with a fixed response, error or handler."""

    def __init__(
        self,
        response: Optional[FakeResponse] = None,
        error: Optional[Exception] = None,
        handler: Optional[Callable[[str, RequestInit], Awaitable[Any]]] = None,
    ):
        self.response = response or FakeResponse(body='{"ok":true}')
        self.error = error
        self.handler = handler
        self.calls: list[tuple[str, RequestInit]] = []

    async def __call__(self, url: str, init: RequestInit) -> Any:
        self.calls.append((url, init))
        if self.handler is not None:
            return await self.handler(url, init)
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last_url(self) -> str:
        return self.calls[-1][0]

    @property
    def last_init(self) -> RequestInit:
        return self.calls[-1][1]


@pytest.fixture
def transport() -> FakeTransport:
    """Transport answering 200 with ``{"ok":true}``."""
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> MeshesEventsClient:
    """Client with default options and the fake transport."""
    return MeshesEventsClient(VALID_KEY, transport=transport)


@pytest.fixture
def sample_event() -> dict:
    """Sample event for testing."""
    return {
        "event": "user.signed_up",
        "resource": "user",
        "resource_id": "u_123",
        "payload": {"email": "a@b.com", "name": "Test"},
    }


@pytest.fixture
def sample_batch_events() -> list[dict]:
    """Sample batch of events for testing."""
    return [
        {"event": "user.signed_up", "payload": {"email": "a@b.com"}},
        {
            "event": "order.created",
            "resource": "order",
            "resource_id": "o_1",
            "payload": {"email": "b@c.com", "total": 42.5},
        },
        {"event": "user.upgraded", "payload": {"email": "c@d.com", "plan": "pro"}},
    ]
