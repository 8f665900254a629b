"""
Client Configuration
====================
Validation and normalization of construction-time settings.
"""

import asyncio
import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from meshes_events import __version__
from meshes_events.errors import MeshesApiError
from meshes_events.headers import clean_headers, contract_headers, is_reserved
from meshes_events.validation import validate_timeout

PUBLISHABLE_KEY_PATTERN = re.compile(
    r"^mesh_pub_([A-Za-z0-9\-.]+)_([A-Za-z0-9\-.]+)_([^_]+)$"
)

DEFAULT_API_HOST = "api.meshes.io"
SUPPORTED_VERSIONS = ("v1",)
CLIENT_NAME = f"Meshes Events Client v{__version__}"

DEFAULT_OPTIONS: dict[str, Any] = {
    "version": "v1",
    "timeout": 5000,
    "debug": False,
}

OPTION_KEYS = frozenset({"version", "timeout", "headers", "debug", "api_base_url"})

# Deadlines need asyncio.timeout (Python 3.11+); without it requests run
# with no deadline.
CANCELLATION_SUPPORTED = hasattr(asyncio, "timeout")


@dataclass
class ClientOptions:
    """
    Typed construction options.

    Attributes:
        version: API version, only "v1" is supported
        timeout: Default request timeout in milliseconds [1000-30000]
        headers: Additional headers sent with every request
        debug: Enable diagnostic logging
        api_base_url: Override the API base URL (useful for testing)
    """

    version: str = "v1"
    timeout: float = 5000
    headers: Optional[dict[str, str]] = None
    debug: bool = False
    api_base_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Only the options that were actually set."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class ClientConfig:
    """Immutable per-client configuration shared by every request."""

    publishable_key: str
    api_base_url: str
    version: str
    timeout: float
    debug: bool
    contract_headers: Mapping[str, str] = field(default_factory=dict)
    additional_headers: Mapping[str, str] = field(default_factory=dict)
    cancellation_supported: bool = CANCELLATION_SUPPORTED

    @property
    def default_headers(self) -> dict[str, str]:
        """Additional headers overlaid by the contract headers."""
        return {**self.additional_headers, **self.contract_headers}


def validate_publishable_key(publishable_key: Any) -> str:
    """Check the structural shape of a publishable key."""
    if not isinstance(publishable_key, str) or not PUBLISHABLE_KEY_PATTERN.fullmatch(
        publishable_key
    ):
        raise MeshesApiError(f"Missing or invalid publishable key: {publishable_key}")
    return publishable_key


def _validate_headers(headers: Any) -> None:
    if not isinstance(headers, Mapping):
        raise MeshesApiError(
            f"Invalid additional request headers: {type(headers).__name__}",
            headers,
        )
    for key, value in headers.items():
        if not isinstance(value, str):
            raise MeshesApiError(
                f"Invalid request header value for {key}: {type(value).__name__}",
                headers,
            )
        if isinstance(key, str) and is_reserved(key):
            raise MeshesApiError(f"Header not allowed: {key}", headers)


def merge_options(options: Any) -> dict[str, Any]:
    """Layer supplied options over the built-in defaults, key by key."""
    if isinstance(options, ClientOptions):
        options = options.to_dict()
    if options is None or not isinstance(options, Mapping):
        raise MeshesApiError(
            f"Invalid options object: {type(options).__name__}", options
        )
    supplied = {k: v for k, v in options.items() if k in OPTION_KEYS}
    return {**DEFAULT_OPTIONS, **supplied}


def build_config(
    publishable_key: Any,
    options: Any,
    cancellation_supported: Optional[bool] = None,
) -> ClientConfig:
    """
    Validate construction inputs and produce the client configuration.

    Args:
        publishable_key: Meshes publishable key
        options: Mapping or ClientOptions; merged over the defaults
        cancellation_supported: Whether request deadlines can be enforced;
            detected from the running interpreter when omitted

    Returns:
        The immutable ClientConfig

    Raises:
        MeshesApiError: If the key or any option is invalid
    """
    validate_publishable_key(publishable_key)
    merged = merge_options(options)
    if cancellation_supported is None:
        cancellation_supported = CANCELLATION_SUPPORTED

    version = merged["version"]
    if not isinstance(version, str):
        raise MeshesApiError(f"Invalid API version: {version}")
    if version not in SUPPORTED_VERSIONS:
        raise MeshesApiError(f"Unsupported API version: {version}")

    timeout = merged["timeout"]
    validate_timeout(timeout)

    headers = merged.get("headers")
    if "headers" in merged:
        _validate_headers(headers)
    additional = clean_headers(headers)

    api_base_url = merged.get("api_base_url")
    if api_base_url is None:
        api_base_url = f"https://{DEFAULT_API_HOST}/api/{version}"

    return ClientConfig(
        publishable_key=publishable_key,
        api_base_url=api_base_url,
        version=version,
        timeout=timeout,
        debug=merged["debug"] is True,
        contract_headers=MappingProxyType(contract_headers(publishable_key, CLIENT_NAME)),
        additional_headers=MappingProxyType(additional),
        cancellation_supported=cancellation_supported,
    )


class MeshesSettings(BaseSettings):
    """Client settings loaded from ``MESHES_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MESHES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    publishable_key: Optional[str] = None
    api_version: str = "v1"
    timeout: float = 5000
    debug: bool = False
    api_base_url: Optional[str] = None

    def client_options(self) -> ClientOptions:
        return ClientOptions(
            version=self.api_version,
            timeout=self.timeout,
            debug=self.debug,
            api_base_url=self.api_base_url,
        )


@lru_cache
def get_settings() -> MeshesSettings:
    """Get cached settings instance."""
    return MeshesSettings()
