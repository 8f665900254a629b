"""
Input Validation
================
Checks applied to events, batches and timeouts before anything is sent.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from meshes_events.errors import MeshesApiError

MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 30000
MAX_BATCH_SIZE = 100


def is_number(value: Any) -> bool:
    """True for ints and floats; bools are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_timeout(timeout: Any, context: Any = None) -> None:
    """Ensure a timeout is a number of milliseconds in the supported range."""
    if not is_number(timeout):
        raise MeshesApiError(f"Invalid request timeout: {timeout!r}", context)
    if not MIN_TIMEOUT_MS <= timeout <= MAX_TIMEOUT_MS:
        raise MeshesApiError(f"Unsupported request timeout: {timeout!r}", context)


def as_event_mapping(event: Any) -> Any:
    """Dump pydantic event models to plain data; leave anything else as is."""
    if isinstance(event, BaseModel):
        return event.model_dump(mode="json", exclude_none=True)
    return event


def validate_event(event: Any) -> None:
    """
    Validate a single event record.

    Only ``event``, ``payload`` and ``payload.email`` are checked; any other
    field passes through untouched.
    """
    if not isinstance(event, Mapping):
        raise MeshesApiError("Invalid event: must be an object", event)

    name = event.get("event")
    if not isinstance(name, str) or not name.strip():
        raise MeshesApiError("Invalid event: missing 'event' string", event)

    payload = event.get("payload")
    if not isinstance(payload, Mapping):
        raise MeshesApiError("Invalid event: missing 'payload' object", event)

    email = payload.get("email")
    if not isinstance(email, str) or not email.strip():
        raise MeshesApiError("Invalid event: missing payload.email", event)


def validate_batch(events: Any) -> None:
    """Validate the shape and size of a batch, then every event in it."""
    if not isinstance(events, (list, tuple)):
        raise MeshesApiError("Events must be an array", events)
    if not events:
        raise MeshesApiError("Events array cannot be empty")
    if len(events) > MAX_BATCH_SIZE:
        raise MeshesApiError(
            f"Bulk emit supports up to {MAX_BATCH_SIZE} events per request",
            {"count": len(events)},
        )
    for event in events:
        validate_event(event)
