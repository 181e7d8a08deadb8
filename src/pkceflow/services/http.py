"""HTTP client capability used for the token exchange.

The flow only needs "send a request, get the body bytes back or an error",
so the collaborator is a small protocol. HttpxClient is the default
implementation.
"""

from __future__ import annotations

import logging
from typing import Mapping, Protocol

import httpx

logger = logging.getLogger(__name__)


class HttpClient(Protocol):
    """Protocol for the HTTP transport.

    Implementations return the raw response body and raise on transport
    failure. Status codes are not interpreted by the flow.
    """

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
    ) -> bytes:
        """Send one request and return the response body bytes."""
        ...


class HttpxClient:
    """HttpClient backed by ``httpx.AsyncClient``."""

    def __init__(self, timeout: float = 10.0):
        """Initialize the HTTP client.

        Args:
            timeout: HTTP request timeout in seconds
        """
        self.timeout = timeout
        self._http_client = httpx.AsyncClient(timeout=timeout)

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes,
    ) -> bytes:
        """Send one request and return the body.

        Non-2xx responses are returned as-is; the caller decides whether the
        body is usable.

        Raises:
            httpx.HTTPError: On connection, timeout or protocol failure
        """
        response = await self._http_client.request(
            method, url, headers=dict(headers), content=body
        )

        if not response.is_success:
            logger.warning(f"{method} {url} answered with HTTP {response.status_code}")

        return response.content

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()
