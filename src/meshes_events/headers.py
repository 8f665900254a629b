"""
Header Policy
=============
Contract headers set on every request and the cleaning rule applied to
caller-supplied headers.
"""

from collections.abc import Mapping
from typing import Any

PUBLISHABLE_KEY_HEADER = "X-Meshes-Publishable-Key"
CLIENT_HEADER = "X-Meshes-Client"
CONTENT_TYPE_HEADER = "Content-Type"
ACCEPT_HEADER = "Accept"

JSON_MEDIA_TYPE = "application/json"

# Matched case-insensitively
RESERVED_HEADERS = frozenset(
    name.lower()
    for name in (
        PUBLISHABLE_KEY_HEADER,
        CLIENT_HEADER,
        CONTENT_TYPE_HEADER,
        ACCEPT_HEADER,
    )
)


def is_reserved(name: str) -> bool:
    """Check whether a header name belongs to the client's contract."""
    return name.lower() in RESERVED_HEADERS


def clean_headers(headers: Any) -> dict[str, str]:
    """
    Clean caller-supplied headers before they are merged into a request.

    Entries with a non-string key or value are dropped, keys and values are
    stripped, entries left empty are dropped, and reserved names are dropped.
    Anything that is not a mapping cleans to an empty dict.
    """
    if not isinstance(headers, Mapping):
        return {}

    cleaned: dict[str, str] = {}
    for key, value in headers.items():
        if not isinstance(key, str) or not isinstance(value, str):
            continue

        k = key.strip()
        v = value.strip()
        if not k or not v:
            continue
        if k.lower() in RESERVED_HEADERS:
            continue
        cleaned[k] = v
    return cleaned


def contract_headers(publishable_key: str, client_name: str) -> dict[str, str]:
    """Headers the client always sends; callers can never override them."""
    return {
        PUBLISHABLE_KEY_HEADER: publishable_key,
        CLIENT_HEADER: client_name,
        CONTENT_TYPE_HEADER: JSON_MEDIA_TYPE,
        ACCEPT_HEADER: JSON_MEDIA_TYPE,
    }
