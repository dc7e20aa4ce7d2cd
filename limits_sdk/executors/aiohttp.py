"""Async HTTP executor implementation using aiohttp.

This module provides asyncio HTTP request handling using the aiohttp library,
for use with AsyncLimitsApiClient.
"""

import asyncio
import logging
from typing import override

import aiohttp

from limits_sdk.errors import (
    BaseError,
    HttpConnectionError,
    TransportTimeoutError,
    UnknownError,
)
from limits_sdk.executors.interface import AsyncHttpExecutor, HttpResponse
from limits_sdk.helpers import (
    DEFAULT_API_URL,
    DEFAULT_PERMIT_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    default_headers,
    deserialize_response,
    serialize_request,
)
from limits_sdk.types import Json

log = logging.getLogger(__name__)


class AiohttpHttpExecutor(AsyncHttpExecutor):
    """Async HTTP executor implementation using aiohttp.

    Manages a lazily created aiohttp ClientSession.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        permit_api_url: str = DEFAULT_PERMIT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
    ):
        """Initialize an AiohttpHttpExecutor.

        The session is created on first use, inside the running event loop.

        Args:
            api_url: Base URL of the trading backend. Defaults to DEFAULT_API_URL.
            permit_api_url: Base URL of the permit signing service.
                Defaults to DEFAULT_PERMIT_API_URL.
            timeout: Total request timeout in seconds.
            headers: Extra headers merged over the SDK defaults.

        """
        self.api_url = api_url.rstrip("/")
        self.permit_api_url = permit_api_url.rstrip("/")
        self.timeout = timeout
        self.headers = default_headers(headers)
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def _send(self, method: str, url: str, json: Json | None) -> HttpResponse:
        request_body = serialize_request(json)
        log.debug("%s %s", method, url)
        try:
            async with self._get_session().request(
                method, url, headers=self.headers, data=request_body
            ) as response:
                content = await response.read()
                status = response.status
                headers = dict(response.headers)
        except BaseError:
            raise
        except asyncio.TimeoutError as e:
            raise TransportTimeoutError(
                f"{method} request to {url} timed out", timeout_seconds=self.timeout
            ) from e
        except aiohttp.ClientConnectionError as e:
            raise HttpConnectionError(f"Failed to connect to {url}", url=url) from e
        except Exception as e:
            raise UnknownError(f"{method} request to {url} failed: {e}") from e
        return HttpResponse(
            status=status,
            body=deserialize_response(content, url),
            headers=headers,
        )

    @override
    async def send_request(
        self,
        method: str,
        path: str,
        json: Json | None = None,
    ) -> HttpResponse:
        """Send a request to the trading backend.

        Raises:
            TransportTimeoutError: If the request times out.
            HttpConnectionError: If the connection fails or drops.
            UnknownError: If any other transport-level error occurs.

        """
        return await self._send(method, f"{self.api_url}{path}", json)

    @override
    async def send_permit_request(self, path: str, json: Json) -> HttpResponse:
        """POST a signed permit to the permit signing service."""
        return await self._send("POST", f"{self.permit_api_url}{path}", json)

    @override
    async def close(self) -> None:
        """Close the executor and its underlying aiohttp session."""
        if self._session is not None:
            await self._session.close()
            self._session = None
