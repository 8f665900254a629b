"""
Transport
=========
The boundary between the client and the network.

A transport is any async callable ``transport(url, init)`` returning an
object with ``ok``, ``status``, ``status_text`` and an async ``text()``.
The default implementation is built on httpx.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx


@dataclass(frozen=True)
class RequestInit:
    """Everything the transport needs besides the URL."""

    method: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


class TransportResponse(Protocol):
    """Minimal response surface the client reads."""

    @property
    def ok(self) -> bool: ...

    @property
    def status(self) -> int: ...

    @property
    def status_text(self) -> str: ...

    async def text(self) -> str: ...


class Transport(Protocol):
    """Async callable that performs exactly one HTTP request."""

    async def __call__(self, url: str, init: RequestInit) -> TransportResponse: ...


class HttpxResponse:
    """
    Adapts an ``httpx.Response`` to :class:`TransportResponse`.

    The body is streamed; ``text()`` reads it and releases the response along
    with the per-request client, if the response owns one.
    """

    def __init__(
        self,
        response: httpx.Response,
        owner: Optional[httpx.AsyncClient] = None,
    ):
        self._response = response
        self._owner = owner

    @property
    def ok(self) -> bool:
        return self._response.is_success

    @property
    def status(self) -> int:
        return self._response.status_code

    @property
    def status_text(self) -> str:
        return self._response.reason_phrase

    async def text(self) -> str:
        try:
            await self._response.aread()
        finally:
            await self._response.aclose()
            if self._owner is not None:
                await self._owner.aclose()
        return self._response.text


class HttpxTransport:
    """
    Default transport backed by ``httpx.AsyncClient``.

    When no client is given, a short-lived one is opened for each request and
    closed once the body has been read. A client passed in is used as is and
    its lifecycle stays with the caller. ``http_transport`` replaces the
    network layer of the short-lived clients.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = client
        self._http_transport = http_transport

    async def __call__(self, url: str, init: RequestInit) -> HttpxResponse:
        if self._client is not None:
            return await self._send(self._client, url, init)

        client = httpx.AsyncClient(timeout=None, transport=self._http_transport)
        try:
            return await self._send(client, url, init, owner=client)
        except BaseException:
            await client.aclose()
            raise

    async def _send(
        self,
        client: httpx.AsyncClient,
        url: str,
        init: RequestInit,
        owner: Optional[httpx.AsyncClient] = None,
    ) -> HttpxResponse:
        request = client.build_request(
            init.method,
            url,
            headers=init.headers,
            content=init.body.encode("utf-8") if init.body is not None else None,
        )
        # Deadlines are enforced by the caller's cancellation scope
        response = await client.send(request, stream=True)
        return HttpxResponse(response, owner)
