"""HTTP client for the Slotbook API with connectivity-aware error classification."""

import json
import logging
from typing import Any, Optional, Union

import httpx

from app.client.connectivity import ConnectivityMonitor
from app.client.errors import NETWORK, OFFLINE, ApiError

logger = logging.getLogger(__name__)

OFFLINE_MESSAGE = "You are offline. Reconnect to sync your latest appointments."
NETWORK_MESSAGE = "Cannot reach the server right now. Please try again in a moment."

Body = Union[str, dict, list, None]


def parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}


def serialize_body(body: Body) -> Optional[str]:
    if body is None or isinstance(body, str):
        return body
    return json.dumps(body)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        monitor: Optional[ConnectivityMonitor] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.monitor = monitor or ConnectivityMonitor()
        headers = {
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            transport=transport,
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def request(self, path: str, method: str = "GET", body: Body = None) -> httpx.Response:
        """Send one request and return the raw response, whatever its status.

        Raises ApiError(OFFLINE) when the monitor reports no connectivity and
        ApiError(NETWORK) when the transport fails while supposedly online.
        """
        if not self.monitor.online:
            raise ApiError(OFFLINE_MESSAGE, OFFLINE)
        try:
            return await self._client.request(method.upper(), path, content=serialize_body(body))
        except httpx.TransportError as e:
            offline = not self.monitor.online
            logger.info("%s %s failed (%s): %s", method.upper(), path, OFFLINE if offline else NETWORK, e)
            if offline:
                raise ApiError(OFFLINE_MESSAGE, OFFLINE) from e
            raise ApiError(NETWORK_MESSAGE, NETWORK) from e

    async def call(self, path: str, method: str = "GET", body: Body = None) -> Any:
        """Request and decode; any non-2xx answer becomes an ApiError."""
        response = await self.request(path, method, body)
        payload = parse_body(response)
        if response.is_success:
            return payload

        detail = None
        if isinstance(payload, dict):
            detail = payload.get("detail") or payload.get("error")
        if response.status_code == 401:
            raise ApiError(str(detail or "Authentication required."), 401, status=401)
        # An intercepting proxy or service worker answers 503 {"error": "Offline"} with no network
        if response.status_code == 503 and isinstance(payload, dict) and payload.get("error") == "Offline":
            raise ApiError(OFFLINE_MESSAGE, OFFLINE, status=503)
        raise ApiError(
            str(detail or f"Request failed ({response.status_code})"),
            response.status_code,
            status=response.status_code,
        )
