"""
Response Helpers
================
Read a response body and parse it as JSON, falling back to text.
"""

import json
from typing import Any

from meshes_events.transport import TransportResponse


async def read_body(response: TransportResponse) -> Any:
    """
    Read the full response body.

    Returns ``None`` for an empty body, the decoded value when the body is
    JSON, and the raw text otherwise. Errors raised while reading propagate.
    """
    text = await response.text()
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text
