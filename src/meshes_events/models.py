"""
Data Models
===========
Pydantic models for event bodies and documented API responses.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class EventPayload(BaseModel):
    """Event payload; ``email`` is required, any other field is allowed."""

    model_config = ConfigDict(extra="allow")

    email: str = Field(min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    id: Optional[str] = None
    ip_address: Optional[str] = None
    phone: Optional[str] = None
    resource_url: Optional[str] = None


class EventBody(BaseModel):
    """An event to emit."""

    model_config = ConfigDict(extra="allow")

    event: str = Field(min_length=1)
    resource: Optional[str] = None
    resource_id: Optional[str] = None
    payload: EventPayload


class MeshesEvent(BaseModel):
    """An event record as stored by the API."""

    model_config = ConfigDict(extra="allow")

    type: str = "event"
    event: str
    id: str
    workspace: str
    created_by: str
    created_at: str
    resource: str
    resource_id: Optional[str] = None


class ErrorRecord(BaseModel):
    """A per-event failure inside a bulk result."""

    model_config = ConfigDict(extra="allow")

    message: str
    error: Optional[Any] = None


class CreateEventResponse(BaseModel):
    """Response from a single emit."""

    event: MeshesEvent


class BulkCreateEventsResult(BaseModel):
    """Response from a bulk emit."""

    count: int
    records: list[Union[MeshesEvent, ErrorRecord]]
    error_count: Optional[int] = None
