"""Python SDK for signing and submitting requests to the Limits trading backend."""

from limits_sdk.api import LimitsApiClient
from limits_sdk.api_async import AsyncLimitsApiClient
from limits_sdk.batch import aggregate
from limits_sdk.errors import (
    BaseError,
    HttpError,
    MissingCredentialsError,
    NetworkError,
    TransportError,
    UnknownError,
    UnsupportedOperationError,
    ValidationError,
)
from limits_sdk.permits import build_permit, wrap_for_signing
from limits_sdk.schemas import schema_for
from limits_sdk.signing import PrivateKeySigner, Signer, build_payload, split_signature
from limits_sdk.types import (
    ApiResponse,
    BatchItem,
    BatchResult,
    OperationKind,
    Permit,
    PermitSubmissionError,
    PermitSubmissionSuccess,
    PermitType,
    Signature,
    SigningPayload,
    Tif,
)

__version__ = "0.1.0"


def get_version() -> str:
    return __version__


__all__ = [
    "LimitsApiClient",
    "AsyncLimitsApiClient",
    "build_payload",
    "build_permit",
    "wrap_for_signing",
    "aggregate",
    "schema_for",
    "split_signature",
    "Signer",
    "PrivateKeySigner",
    "ApiResponse",
    "BatchItem",
    "BatchResult",
    "OperationKind",
    "Permit",
    "PermitSubmissionError",
    "PermitSubmissionSuccess",
    "PermitType",
    "Signature",
    "SigningPayload",
    "Tif",
    "BaseError",
    "ValidationError",
    "MissingCredentialsError",
    "UnsupportedOperationError",
    "TransportError",
    "NetworkError",
    "HttpError",
    "UnknownError",
    "get_version",
]
