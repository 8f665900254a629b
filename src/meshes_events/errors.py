"""
Errors
======
The single exception type raised by the Meshes events client.
"""

import traceback
from typing import Any

_UNSET: Any = object()


class MeshesApiError(Exception):
    """
    Error raised for every failure in the client.

    Cases are told apart by ``message`` and the free-form ``data`` payload:
    validation context, ``{"status", "statusText", "data"}`` for rejected
    requests, or the lower-level exception that caused the failure.
    """

    def __init__(self, message: str, data: Any = _UNSET):
        super().__init__(message)
        self.name = type(self).__name__
        self.message = message
        self._has_data = data is not _UNSET
        self.data = data if self._has_data else None

    @property
    def has_data(self) -> bool:
        """True when the error was created with a ``data`` payload."""
        return self._has_data

    def to_dict(self, stack: bool = False) -> dict[str, Any]:
        """
        Convert the error to a JSON-friendly dictionary.

        Args:
            stack: Include the formatted traceback under ``stack``

        Returns:
            ``name`` and ``message``, plus ``data`` when set
        """
        result: dict[str, Any] = {"name": self.name, "message": self.message}
        if self._has_data:
            result["data"] = self.data
        if stack:
            result["stack"] = "".join(
                traceback.format_exception(type(self), self, self.__traceback__)
            )
        return result

    def __repr__(self) -> str:
        if self._has_data:
            return f"{self.name}({self.message!r}, data={self.data!r})"
        return f"{self.name}({self.message!r})"
