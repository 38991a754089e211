"""Client-side failure classification.

Every failed call is exactly one of: ``OFFLINE`` (the connectivity monitor says
there is no network, or the server answered 503 ``{"error": "Offline"}``),
``NETWORK`` (the request could not complete: DNS, refused, timeout), or the
HTTP status code of a response that reached the server.
"""

from typing import Optional, Union

OFFLINE = "OFFLINE"
NETWORK = "NETWORK"

ErrorCode = Union[str, int]


class ApiError(Exception):
    def __init__(self, message: str, code: ErrorCode, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    @property
    def is_connectivity(self) -> bool:
        return self.code in (OFFLINE, NETWORK)

    def __repr__(self) -> str:
        return f"ApiError({self.message!r}, code={self.code!r})"


def is_connectivity_error(error: Optional[BaseException]) -> bool:
    return isinstance(error, ApiError) and error.is_connectivity
