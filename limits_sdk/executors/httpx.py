"""HTTP executor implementation using httpx.

This module provides synchronous HTTP request handling using the httpx library.
"""

import logging
from typing import override

import httpx

from limits_sdk.errors import (
    BaseError,
    HttpConnectionError,
    TransportTimeoutError,
    UnknownError,
)
from limits_sdk.executors.interface import HttpExecutor, HttpResponse
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


class HttpxHttpExecutor(HttpExecutor):
    """HTTP executor implementation using httpx.

    Provides synchronous HTTP request execution over a pooled ``httpx.Client``.
    """

    @override
    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        permit_api_url: str = DEFAULT_PERMIT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
    ):
        """Initialize the HTTPX HTTP executor.

        Args:
            api_url: Base URL of the trading backend. Defaults to DEFAULT_API_URL.
            permit_api_url: Base URL of the permit signing service.
                Defaults to DEFAULT_PERMIT_API_URL.
            timeout: Request timeout in seconds. Defaults to DEFAULT_TIMEOUT_SECONDS.
            headers: Extra headers merged over the SDK defaults.

        """
        self.api_url = api_url.rstrip("/")
        self.permit_api_url = permit_api_url.rstrip("/")
        self.timeout = timeout
        self.headers = default_headers(headers)
        self.client = httpx.Client(timeout=timeout)

    def _send(self, method: str, url: str, json: Json | None) -> HttpResponse:
        request_body = serialize_request(json)
        log.debug("%s %s", method, url)
        try:
            response = self.client.request(
                method, url, headers=self.headers, content=request_body
            )
        except BaseError:
            raise
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"{method} request to {url} timed out", timeout_seconds=self.timeout
            ) from e
        except httpx.ConnectError as e:
            raise HttpConnectionError(f"Failed to connect to {url}", url=url) from e
        except httpx.NetworkError as e:
            raise HttpConnectionError(
                f"Network error during {method} request to {url}", url=url
            ) from e
        except Exception as e:
            raise UnknownError(f"{method} request to {url} failed: {e}") from e
        return HttpResponse(
            status=response.status_code,
            body=deserialize_response(response.content, url),
            headers=dict(response.headers),
        )

    @override
    def send_request(
        self,
        method: str,
        path: str,
        json: Json | None = None,
    ) -> HttpResponse:
        """Send a request to the trading backend.

        Args:
            method: The HTTP method to use (e.g., 'GET', 'POST', 'PUT').
            path: The API endpoint path (appended to api_url).
            json: Optional JSON data to include in the request body.

        Returns:
            HttpResponse containing the status code and deserialized response body.

        Raises:
            TransportTimeoutError: If the request times out.
            HttpConnectionError: If there is a connection or network error.
            SerializationError: If the request body cannot be encoded.
            DeserializationError: If the response body is not a JSON object.
            UnknownError: If any other transport-level error occurs.

        """
        return self._send(method, f"{self.api_url}{path}", json)

    @override
    def send_permit_request(self, path: str, json: Json) -> HttpResponse:
        """POST a signed permit to the permit signing service.

        Args:
            path: The endpoint path (appended to permit_api_url).
            json: The request body.

        Returns:
            HttpResponse containing the status code and deserialized response body.

        """
        return self._send("POST", f"{self.permit_api_url}{path}", json)

    @override
    def close(self) -> None:
        """Close the pooled httpx client."""
        self.client.close()

    def __del__(self) -> None:
        """Cleanup the httpx client when the executor is destroyed."""
        client = getattr(self, "client", None)
        if client is not None:
            client.close()
