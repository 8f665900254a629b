"""
Model Tests
===========
Tests for event and response models.
"""

import pytest
from pydantic import ValidationError

from meshes_events import BulkCreateEventsResult, CreateEventResponse, ErrorRecord, EventBody, MeshesEvent


class TestEventBody:
    """Tests for the event body model."""

    def test_extra_fields_allowed(self):
        """Test that custom payload fields are kept."""
        event = EventBody(event="x", payload={"email": "a@b.com", "plan": "pro"})
        assert event.payload.model_dump(exclude_none=True) == {
            "email": "a@b.com",
            "plan": "pro",
        }

    def test_email_required(self):
        """Test that a payload without email is invalid."""
        with pytest.raises(ValidationError):
            EventBody(event="x", payload={})


class TestResponses:
    """Tests for response models."""

    def test_single_response(self):
        """Test parsing a single emit response."""
        response = CreateEventResponse.model_validate(
            {
                "event": {
                    "type": "event",
                    "event": "user.signed_up",
                    "id": "evt_1",
                    "workspace": "ws_1",
                    "created_by": "mesh_pub",
                    "created_at": "2024-01-01T00:00:00Z",
                    "resource": "global",
                }
            }
        )
        assert response.event.id == "evt_1"
        assert response.event.resource_id is None

    def test_bulk_response_with_errors(self):
        """Test parsing a bulk result mixing records and failures."""
        result = BulkCreateEventsResult.model_validate(
            {
                "count": 2,
                "error_count": 1,
                "records": [
                    {
                        "event": "x",
                        "id": "evt_1",
                        "workspace": "ws_1",
                        "created_by": "mesh_pub",
                        "created_at": "2024-01-01T00:00:00Z",
                        "resource": "global",
                    },
                    {"message": "invalid payload"},
                ],
            }
        )
        assert isinstance(result.records[0], MeshesEvent)
        assert isinstance(result.records[1], ErrorRecord)
        assert result.error_count == 1
