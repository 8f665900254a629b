"""
Meshes Events Client
====================
Main client for emitting events with a publishable key.
"""

import asyncio
import contextlib
import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union, overload

import httpx
import structlog

from meshes_events.config import (
    ClientConfig,
    ClientOptions,
    MeshesSettings,
    build_config,
    get_settings,
)
from meshes_events.errors import MeshesApiError
from meshes_events.headers import clean_headers
from meshes_events.helpers import read_body
from meshes_events.transport import HttpxTransport, RequestInit, Transport
from meshes_events.validation import (
    as_event_mapping,
    validate_batch,
    validate_event,
    validate_timeout,
)

logger = structlog.get_logger(__name__)

EVENTS_PATH = "/events"
BULK_EVENTS_PATH = "/events/bulk"
VALID_METHODS = ("POST",)

Callback = Callable[..., Any]

_MISSING: Any = object()


@dataclass
class RequestOptions:
    """
    Optional per-call settings.

    Attributes:
        headers: Extra request headers; reserved names are dropped
        query: Flat query parameters appended to the URL
        timeout: Request timeout in milliseconds, overrides the client default
    """

    headers: Optional[dict[str, str]] = None
    query: Optional[dict[str, Union[str, int, float, bool]]] = None
    timeout: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in vars(self).items() if v is not None}


@dataclass(frozen=True)
class EffectiveOptions:
    """Fully merged options for one call (defaults < client < per-call)."""

    method: Any
    path: Any
    body: Any = None
    headers: Any = None
    query: Any = _MISSING
    timeout: Any = _MISSING
    raw: Mapping[str, Any] = field(default_factory=dict)


class MeshesEventsClient:
    """
    Client for emitting events to the Meshes API.

    Each call validates its input synchronously, then returns an awaitable
    resolving to the parsed response body. Passing ``callback`` switches to
    callback delivery: the call returns ``None`` and the callback receives
    ``(None, result)`` or ``(error)``.

    Usage:
        client = MeshesEventsClient("mesh_pub_...")
        result = await client.emit(
            {"event": "user.signed_up", "payload": {"email": "a@b.com"}}
        )
    """

    def __init__(
        self,
        publishable_key: str,
        options: Union[Mapping[str, Any], ClientOptions] = _MISSING,
        *,
        transport: Optional[Transport] = None,
    ):
        """
        Initialize the client.

        Args:
            publishable_key: Meshes publishable key
            options: Construction options (version, timeout, headers, debug,
                api_base_url)
            transport: Async callable performing the HTTP request
                (defaults to an httpx-backed transport)

        Raises:
            MeshesApiError: If the key or options are invalid
        """
        if options is _MISSING:
            options = {}
        self._config = build_config(publishable_key, options)
        self._transport: Transport = transport or HttpxTransport()
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Optional[MeshesSettings] = None,
        *,
        transport: Optional[Transport] = None,
    ) -> "MeshesEventsClient":
        """Create a client from ``MESHES_*`` environment settings."""
        settings = settings or get_settings()
        return cls(
            settings.publishable_key,
            settings.client_options(),
            transport=transport,
        )

    @classmethod
    def with_httpx_client(
        cls,
        publishable_key: str,
        http_client: httpx.AsyncClient,
        options: Union[Mapping[str, Any], ClientOptions] = _MISSING,
    ) -> "MeshesEventsClient":
        """Create a client that sends through an existing httpx client."""
        return cls(publishable_key, options, transport=HttpxTransport(http_client))

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _log(self, message: str, **kw: Any) -> None:
        if self._config.debug:
            logger.debug(message, **kw)

    def _error(self, message: str, **kw: Any) -> None:
        if self._config.debug:
            logger.error(message, **kw)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @overload
    def emit(
        self,
        event: Any,
        options: Optional[Union[Mapping[str, Any], RequestOptions]] = None,
        callback: None = None,
    ) -> Awaitable[Any]: ...

    @overload
    def emit(
        self,
        event: Any,
        options: Optional[Union[Mapping[str, Any], RequestOptions]] = None,
        *,
        callback: Callback,
    ) -> None: ...

    def emit(self, event, options=None, callback=None):
        """
        Emit a single event.

        Args:
            event: Event mapping or EventBody model
            options: Per-call headers, query and timeout
            callback: Receive the outcome as ``callback(err, data)`` instead
                of awaiting

        Returns:
            Awaitable resolving to the parsed response, or None with a callback

        Raises:
            MeshesApiError: If the event is invalid
        """
        event = as_event_mapping(event)
        validate_event(event)
        return self._request(
            self._resolve(options, method="POST", path=EVENTS_PATH, body=event),
            callback,
        )

    @overload
    def emit_batch(
        self,
        events: Any,
        options: Optional[Union[Mapping[str, Any], RequestOptions]] = None,
        callback: None = None,
    ) -> Awaitable[Any]: ...

    @overload
    def emit_batch(
        self,
        events: Any,
        options: Optional[Union[Mapping[str, Any], RequestOptions]] = None,
        *,
        callback: Callback,
    ) -> None: ...

    def emit_batch(self, events, options=None, callback=None):
        """
        Emit up to 100 events in one request.

        Raises:
            MeshesApiError: If the batch or any event in it is invalid
        """
        if isinstance(events, (list, tuple)):
            events = [as_event_mapping(e) for e in events]
        validate_batch(events)
        return self._request(
            self._resolve(options, method="POST", path=BULK_EVENTS_PATH, body=events),
            callback,
        )

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def _resolve(self, options: Any, **fixed: Any) -> Any:
        """
        Layer per-call options over the client defaults.

        Returns the per-call value untouched when it is not a mapping so the
        pipeline can reject it.
        """
        if options is None:
            options = {}
        elif isinstance(options, RequestOptions):
            options = options.to_dict()
        if not isinstance(options, Mapping):
            return options

        merged: dict[str, Any] = {
            "timeout": self._config.timeout,
            "headers": dict(self._config.additional_headers),
        }
        merged.update(options)
        merged.update(fixed)
        return EffectiveOptions(
            method=merged.get("method"),
            path=merged.get("path"),
            body=merged.get("body"),
            headers=merged.get("headers"),
            query=merged.get("query", _MISSING),
            timeout=merged.get("timeout", _MISSING),
            raw=merged,
        )

    def _validate(self, options: Any) -> str:
        if not isinstance(options, EffectiveOptions):
            self._log("Invalid Request Options", options=options)
            raise MeshesApiError("Invalid request options", options)
        context = dict(options.raw)

        method = options.method.upper() if isinstance(options.method, str) else None
        if not method:
            self._log("Invalid Request Method", options=context)
            raise MeshesApiError("Invalid request method", context)
        if method not in VALID_METHODS:
            self._log("Invalid Request Method Option", options=context)
            raise MeshesApiError("Unsupported request method", context)

        path = options.path
        if not isinstance(path, str) or not path.strip() or path.strip() == "/":
            self._log("Invalid Request Path", options=context)
            raise MeshesApiError("Invalid request path", context)

        if options.timeout is not _MISSING:
            try:
                validate_timeout(options.timeout, context)
            except MeshesApiError:
                self._log("Invalid Request Timeout", options=context)
                raise

        if options.query is not _MISSING and not isinstance(options.query, Mapping):
            self._log("Invalid Request Query Params", options=context)
            raise MeshesApiError("Invalid request query params", context)

        return method

    def _build(self, options: EffectiveOptions, method: str) -> tuple[str, RequestInit]:
        query = options.query if options.query is not _MISSING else None
        query_string = str(httpx.QueryParams(query)) if query else ""
        if query_string:
            query_string = f"?{query_string}"

        body = options.body
        if body is not None and not isinstance(body, str):
            body = json.dumps(
                body, separators=(",", ":"), ensure_ascii=False, allow_nan=False
            )

        path = options.path if options.path.startswith("/") else f"/{options.path}"

        init = RequestInit(
            method=method,
            headers={**clean_headers(options.headers), **self._config.default_headers},
            body=body,
        )
        self._log("Fetch Options", method=method, path=path, query=query_string)
        return f"{self._config.api_base_url}{path}{query_string}", init

    def _deadline(self, timeout: float) -> Any:
        if not self._config.cancellation_supported:
            self._log("Cancellation not supported; timeouts won't be enforced")
            return contextlib.nullcontext()
        return asyncio.timeout(timeout / 1000)

    async def _dispatch(self, url: str, init: RequestInit, timeout: float) -> Any:
        try:
            async with self._deadline(timeout):
                try:
                    response = await self._transport(url, init)
                except Exception as exc:
                    self._error("Request Failure", error=repr(exc))
                    raise MeshesApiError("Request Failure", exc) from exc

                if response.ok:
                    try:
                        data = await read_body(response)
                    except Exception as exc:
                        self._error("Response Parsing Error", error=repr(exc))
                        raise MeshesApiError("Error parsing response data", exc) from exc
                    self._log("Response Success")
                    return data

                try:
                    data = await read_body(response)
                except Exception as exc:
                    self._error("Response Parsing Failure", error=repr(exc))
                    raise MeshesApiError(
                        "Error parsing request failure",
                        {
                            "status": response.status,
                            "statusText": response.status_text,
                            "error": exc,
                        },
                    ) from exc
                self._log("Response Error", status=response.status, data=data)
                raise MeshesApiError(
                    "Meshes API request failed",
                    {
                        "status": response.status,
                        "statusText": response.status_text,
                        "data": data,
                    },
                )
        except TimeoutError as exc:
            self._error("Request Failure", error="deadline exceeded", timeout=timeout)
            raise MeshesApiError("Request Failure", exc) from exc

    async def _send(self, options: Any) -> Any:
        try:
            method = self._validate(options)
            url, init = self._build(options, method)
            timeout = (
                options.timeout
                if options.timeout is not _MISSING
                else self._config.timeout
            )
            return await self._dispatch(url, init, timeout)
        except MeshesApiError:
            raise
        except Exception as exc:
            self._error("Unexpected Error", error=repr(exc))
            raise MeshesApiError("Unexpected Error", exc) from exc

    def _request(self, options: Any, callback: Optional[Callback] = None) -> Any:
        self._log(
            "Request Options",
            options=options,
            mode="callback" if callback else "awaitable",
        )
        if callback is None:
            return self._send(options)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            try:
                result = asyncio.run(self._send(options))
            except MeshesApiError as exc:
                self._deliver(callback, exc, None)
            else:
                self._deliver(callback, None, result)
            return None

        task = loop.create_task(self._send(options))
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_task_done(t, callback))
        return None

    def _on_task_done(self, task: "asyncio.Task[Any]", callback: Callback) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        self._deliver(callback, error, None if error else task.result())

    def _deliver(
        self,
        callback: Callback,
        error: Optional[BaseException],
        result: Any,
    ) -> None:
        if error is not None:
            self._log("Callback Error", error=repr(error))
            callback(error)
            return
        self._log("Callback Success")
        callback(None, result)
