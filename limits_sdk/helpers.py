"""Helper utilities for the Limits Python SDK.

This module contains utility functions for serialization, deserialization,
object construction from API responses and nonce generation.
"""

import inspect
import logging
from decimal import Decimal
from functools import lru_cache
from time import time_ns
from typing import Any, Callable, Dict, TypeVar

import orjson

from limits_sdk.errors import DeserializationError, SerializationError
from limits_sdk.types import Json, Nonce

log = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

DEFAULT_API_URL: str = "http://localhost:3001/dmp"
DEFAULT_PERMIT_API_URL: str = "https://api.hyperliquid.xyz"
DEFAULT_CHAIN_ID: int = 42161
DEFAULT_TIMEOUT_SECONDS: float = 30.0


# ============================================================================
# CLIENT IDENTIFICATION
# ============================================================================


@lru_cache(maxsize=1)
def get_limits_client() -> str:
    """Get the Limits client identification string."""
    import limits_sdk

    return f"LimitsPythonSDK/{limits_sdk.__version__}"


def default_headers(extra: dict[str, str] | None = None) -> dict[str, str]:
    """Build request headers, letting caller supplied headers override the defaults."""
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "Limits-Client": get_limits_client(),
    }
    if extra:
        headers.update(extra)
    return headers


# ============================================================================
# OBJECT CONSTRUCTION
# ============================================================================

T = TypeVar("T")


def create_with(func: Callable[..., T], data: Dict[str, Any]) -> T:
    """Create an object from a dictionary, filtering to only valid parameters.

    This allows constructing objects from API responses that may contain
    additional fields beyond what the constructor expects, making the SDK
    more resilient to API changes.

    Args:
        func: Constructor or factory function to call
        data: Dictionary of data to pass as kwargs

    Returns:
        Instance created by calling func with filtered data

    """
    sig = inspect.signature(func)
    valid_keys = sig.parameters.keys()
    filtered_data = {k: v for k, v in data.items() if k in valid_keys}
    return func(**filtered_data)


# ============================================================================
# SERIALIZATION / DESERIALIZATION
# ============================================================================


def decimal_as_str(obj: object) -> str:
    """Serialize Decimal objects to JSON strings.

    Converts Decimal to string to preserve precision in JSON serialization.
    """
    if isinstance(obj, Decimal):
        return str(obj)

    raise TypeError


def serialize_request(request: Json | None) -> bytes | None:
    """Serialize a request object to JSON bytes.

    Args:
        request: Request data to serialize

    Returns:
        JSON bytes or None if request is None

    Raises:
        SerializationError: If serialization fails

    """
    if request is None:
        return None
    try:
        return orjson.dumps(request, default=decimal_as_str)
    except Exception as e:
        raise SerializationError(f"Failed to serialize {request=}") from e


def deserialize_response(response_body: bytes, url: str) -> Json:
    """Deserialize a JSON response body.

    Args:
        response_body: Response bytes to deserialize
        url: URL that was requested (for error messages)

    Returns:
        Deserialized JSON object, or an empty object for an empty body

    Raises:
        DeserializationError: If the body is not valid JSON or not a JSON object

    """
    if not response_body or not response_body.strip():
        return {}
    try:
        body = orjson.loads(response_body)
    except Exception as e:
        raise DeserializationError(
            f"Failed to parse JSON response from {url}: {e}"
        ) from e
    if not isinstance(body, dict):
        raise DeserializationError(
            f"Expected a JSON object from {url}, got {type(body).__name__}"
        )
    return body


# ============================================================================
# TIME UTILITIES
# ============================================================================


def current_nonce() -> Nonce:
    """Return a nonce based on the current epoch time in milliseconds.

    Note: This is based on wall time. Two calls within the same millisecond
    return the same value, so callers signing in a tight loop should supply
    their own nonces.
    """
    return time_ns() // 1_000_000
