"""
Meshes Events Client
====================
Python client for emitting events to Meshes with a publishable key.
"""

__version__ = "1.0.0"

from meshes_events.client import (
    BULK_EVENTS_PATH,
    EVENTS_PATH,
    MeshesEventsClient,
    RequestOptions,
)
from meshes_events.config import ClientConfig, ClientOptions, MeshesSettings, get_settings
from meshes_events.errors import MeshesApiError
from meshes_events.headers import RESERVED_HEADERS, clean_headers
from meshes_events.helpers import read_body
from meshes_events.models import (
    BulkCreateEventsResult,
    CreateEventResponse,
    ErrorRecord,
    EventBody,
    EventPayload,
    MeshesEvent,
)
from meshes_events.transport import HttpxTransport, RequestInit, Transport, TransportResponse

__all__ = [
    "MeshesEventsClient",
    "MeshesApiError",
    "ClientConfig",
    "ClientOptions",
    "MeshesSettings",
    "RequestOptions",
    "RequestInit",
    "Transport",
    "TransportResponse",
    "HttpxTransport",
    "EventBody",
    "EventPayload",
    "MeshesEvent",
    "CreateEventResponse",
    "BulkCreateEventsResult",
    "ErrorRecord",
    "EVENTS_PATH",
    "BULK_EVENTS_PATH",
    "RESERVED_HEADERS",
    "clean_headers",
    "get_settings",
    "read_body",
]
