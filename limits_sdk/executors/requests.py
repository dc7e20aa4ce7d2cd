from typing import override

import requests

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


class RequestsHttpExecutor(HttpExecutor):
    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        permit_api_url: str = DEFAULT_PERMIT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.permit_api_url = permit_api_url.rstrip("/")
        self.timeout = timeout
        self.headers = default_headers(headers)
        self.session = requests.Session()

    def _send(self, method: str, url: str, json: Json | None) -> HttpResponse:
        request_body = serialize_request(json)
        try:
            response = self.session.request(
                method,
                url,
                headers=self.headers,
                data=request_body,
                timeout=self.timeout,
            )
        except BaseError:
            raise
        except requests.Timeout as e:
            raise TransportTimeoutError(
                f"{method} request to {url} timed out", timeout_seconds=self.timeout
            ) from e
        except requests.ConnectionError as e:
            raise HttpConnectionError(f"Failed to connect to {url}", url=url) from e
        except Exception as e:
            raise UnknownError(f"{method} request to {url} failed: {e}") from e
        return HttpResponse(
            status=response.status_code,
            body=deserialize_response(response.content, url),
            headers=dict(response.headers),
        )

    @override
    def send_request(
        self, method: str, path: str, json: Json | None = None
    ) -> HttpResponse:
        return self._send(method, f"{self.api_url}{path}", json)

    @override
    def send_permit_request(self, path: str, json: Json) -> HttpResponse:
        return self._send("POST", f"{self.permit_api_url}{path}", json)

    @override
    def close(self) -> None:
        self.session.close()
