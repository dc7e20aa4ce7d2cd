"""Abstract interfaces for HTTP executors.

This module defines the abstract base classes that all synchronous and
asynchronous HTTP executor implementations must follow, enabling pluggable
transport layers.
"""

from abc import ABC, abstractmethod

from limits_sdk.types import Json, JsonObject


class HttpResponse:
    """Container for HTTP response data.

    Encapsulates the status code, body, and headers from an HTTP response.
    """

    status: int
    body: JsonObject
    headers: dict[str, str] | None

    __slots__ = ("status", "body", "headers")

    def __init__(
        self,
        *,
        status: int,
        body: JsonObject | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Initialize an HTTP response object.

        Args:
            status: The HTTP status code of the response.
            body: The JSON response body. Defaults to an empty dict if None.
            headers: Optional HTTP response headers as key-value pairs.

        """
        self.status = status
        self.body = body if body is not None else {}
        self.headers = headers


class HttpExecutor(ABC):
    """Abstract base class for synchronous HTTP request executors.

    Requests go either to the trading backend (``api_url``) or to the permit
    signing service (``permit_api_url``).
    """

    @abstractmethod
    def __init__(
        self,
        api_url: str,
        permit_api_url: str,
        timeout: float,
        headers: dict[str, str] | None,
    ):
        """Initialize the HTTP executor.

        Args:
            api_url: Base URL of the trading backend.
            permit_api_url: Base URL of the permit signing service.
            timeout: Request timeout in seconds.
            headers: Extra headers sent with every request.

        """
        ...

    @abstractmethod
    def send_request(
        self,
        method: str,
        path: str,
        json: Json | None = None,
    ) -> HttpResponse:
        """Send a request to the trading backend.

        Args:
            method: The HTTP method (e.g., 'GET', 'POST', 'PUT').
            path: The URL path for the request.
            json: Optional JSON payload to send with the request.

        Returns:
            An HttpResponse object containing the status, body, and headers.

        """
        ...

    @abstractmethod
    def send_permit_request(
        self,
        path: str,
        json: Json,
    ) -> HttpResponse:
        """POST a signed permit to the permit signing service.

        Args:
            path: The URL path for the request.
            json: The JSON payload.

        Returns:
            An HttpResponse object containing the status, body, and headers.

        """
        ...

    def close(self) -> None:
        """Release any pooled connections."""
        return None


class AsyncHttpExecutor(ABC):
    """Abstract base class for asyncio HTTP request executors.

    Mirrors HttpExecutor with awaitable methods.
    """

    @abstractmethod
    async def send_request(
        self,
        method: str,
        path: str,
        json: Json | None = None,
    ) -> HttpResponse:
        """Send a request to the trading backend.

        Args:
            method: The HTTP method (e.g., 'GET', 'POST', 'PUT').
            path: The URL path for the request.
            json: Optional JSON payload to send with the request.

        Returns:
            An HttpResponse object containing the status, body, and headers.

        """
        ...

    @abstractmethod
    async def send_permit_request(
        self,
        path: str,
        json: Json,
    ) -> HttpResponse:
        """POST a signed permit to the permit signing service.

        Args:
            path: The URL path for the request.
            json: The JSON payload.

        Returns:
            An HttpResponse object containing the status, body, and headers.

        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying session."""
        ...
