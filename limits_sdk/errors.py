"""Exception hierarchy for the Limits SDK.

This module defines the public exception hierarchy for the entire SDK. All exceptions
raised by this library inherit from BaseError and carry a human-readable ``message``
and a machine-checkable ``code``.

Exception Hierarchy
-------------------
BaseError
├── ValidationError - Client-side input validation failures
├── UnsupportedOperationError - No signing schema registered for an operation kind
└── TransportError - Errors while talking to the backend
    ├── NetworkError - No response was received
    ├── HttpError - Response received with a non-2XX status
    └── UnknownError - Anything else (encoding, decoding, unexpected failures)
"""

from typing import Any, Iterable


class BaseError(Exception):
    """Base exception for all Limits SDK errors.

    All exceptions raised by this library inherit from this class, allowing users
    to catch all SDK-related errors with a single except clause.

    This exception should not be raised directly. Use one of the specific subclasses
    instead (ValidationError, UnsupportedOperationError, TransportError).
    """

    code: str = "SDK_ERROR"

    def __init__(self, message: str = ""):
        """Initialize the error.

        Args:
            message: Human-readable description of the error.

        """
        self.message = message
        super().__init__(message)


# ============================================================================
# VALIDATION ERROR
# ============================================================================


class ValidationError(BaseError):
    """Exception raised for client-side input validation failures.

    This exception is raised when input fails validation checks before anything
    is signed or sent to the API server, such as missing required fields,
    invalid types, or deprecated field names.

    ValidationError indicates that:
    - No signature was produced and no network request was attempted
    - The error is due to invalid input from the caller
    - The error can be fixed by correcting the input parameters
    """

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        operation: str | None = None,
        fields: Iterable[str] = (),
    ):
        """Initialize a ValidationError.

        Args:
            message: Description of the validation failure.
            operation: The operation kind being validated, if any.
            fields: Names of the offending fields, if any.

        """
        self.operation = operation
        self.fields = tuple(fields)
        super().__init__(message)


class MissingCredentialsError(ValidationError):
    """Raised when required signing credentials are missing."""

    def __init__(self, credential_type: str = "signer"):
        """Initialize a MissingCredentialsError.

        Args:
            credential_type: The type of credential that is missing (default: "signer").

        """
        self.credential_type = credential_type
        super().__init__(f"{credential_type} is not set")


# ============================================================================
# UNSUPPORTED OPERATION ERROR
# ============================================================================


class UnsupportedOperationError(BaseError):
    """Raised when an operation kind has no registered signing schema.

    This indicates a mismatch between the caller and the library version and is
    always fatal to the call that triggered it.
    """

    code = "UNSUPPORTED_OPERATION"

    def __init__(self, operation: Any):
        """Initialize an UnsupportedOperationError.

        Args:
            operation: The unrecognized operation kind value.

        """
        self.operation = operation
        super().__init__(f"Unsupported operation kind: {operation!r}")


# ============================================================================
# TRANSPORT ERROR
# ============================================================================


class TransportError(BaseError):
    """Exception raised for errors in the process of exchanging data with the API server.

    All transport-library specific exceptions (httpx, requests, aiohttp) are caught
    at the executor boundary and re-raised as one of the subclasses below, so callers
    never need to inspect third-party exception types.
    """

    code = "TRANSPORT_ERROR"


## No response received


class NetworkError(TransportError):
    """Raised when the request was sent but no response was received."""

    code = "NETWORK_ERROR"

    def __init__(self, message: str = "Network error - no response received"):
        """Initialize a NetworkError.

        Args:
            message: Description of the network failure.

        """
        super().__init__(message)


class HttpConnectionError(NetworkError):
    """Raised when a connection cannot be established or is lost."""

    def __init__(self, message: str, url: str | None = None):
        """Initialize an HttpConnectionError.

        Args:
            message: Description of the connection error.
            url: The URL that failed to connect, if available.

        """
        self.url = url
        if url:
            super().__init__(f"{message} (url: {url})")
        else:
            super().__init__(message)


class TransportTimeoutError(NetworkError):
    """Raised when a request or connection times out."""

    def __init__(self, message: str, timeout_seconds: float | None = None):
        """Initialize a TransportTimeoutError.

        Args:
            message: Description of the timeout error.
            timeout_seconds: The timeout duration in seconds, if available.

        """
        self.timeout_seconds = timeout_seconds
        if timeout_seconds:
            super().__init__(f"{message} (timeout: {timeout_seconds}s)")
        else:
            super().__init__(message)


## Non-2XX response


class HttpError(TransportError):
    """Raised when response status from the backend is not 2XX."""

    status_code: int
    body: Any

    def __init__(
        self,
        status_code: int,
        message: str,
        body: Any = None,
        code: str | None = None,
    ):
        """Initialize an HttpError.

        Args:
            status_code: The HTTP status code returned by the server.
            message: Description of the HTTP error.
            body: The decoded error payload, if any.
            code: Backend supplied error code. Defaults to ``HTTP_<status>``.

        """
        self.status_code = status_code
        self.body = body
        self.code = code if code is not None else f"HTTP_{status_code}"
        super().__init__(message)


## 4xx status errors


class BadRequest(HttpError):
    """Raised when the server returns a 400 Bad Request error."""

    pass


class Unauthorized(HttpError):
    """Raised when the server returns a 401 Unauthorized error."""

    pass


class Forbidden(HttpError):
    """Raised when the server returns a 403 Forbidden error."""

    pass


class NotFound(HttpError):
    """Raised when the server returns a 404 Not Found error."""

    pass


class RateLimited(HttpError):
    """Raised when the server returns a 429 Rate Limited error."""

    pass


## 5xx status errors - unexpected - should be reported


class InternalServerError(HttpError):
    """Raised when the server returns a 500 Internal Server Error."""

    pass


class BadGateway(HttpError):
    """Raised when the server returns a 502 Bad Gateway error."""

    pass


class ServiceUnavailable(HttpError):
    """Raised when the server returns a 503 Service Unavailable error."""

    pass


class GatewayTimeout(HttpError):
    """Raised when the server returns a 504 Gateway Timeout error."""

    pass


## Anything else


class UnknownError(TransportError):
    """Raised for transport failures that are neither network nor HTTP status errors."""

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str = "Unknown error occurred"):
        """Initialize an UnknownError.

        Args:
            message: Description of the failure.

        """
        super().__init__(message)


class DeserializationError(UnknownError):
    """Raised when response data cannot be deserialized/decoded."""

    pass


class SerializationError(UnknownError):
    """Raised when request data cannot be serialized/encoded."""

    pass
