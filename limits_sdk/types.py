"""Type definitions for the Limits Python SDK.

This module contains type definitions, enums, and dataclasses used throughout
the SDK, organized into logical sections for clarity.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Mapping, Self, TypeAlias, overload

from limits_sdk.errors import ValidationError

# ============================================================================
# TYPE ALIASES
# ============================================================================

Nonce: TypeAlias = int

# JSON type hierarchy
JsonObject: TypeAlias = dict[str, "JsonValue"]
JsonArray: TypeAlias = list["JsonValue"]
JsonValue: TypeAlias = None | bool | int | float | str | JsonObject | JsonArray
# Responses are decoded as objects only, the backend never answers with a bare array
Json: TypeAlias = JsonObject

LimitsNumericInput: TypeAlias = Decimal | str | float | int


# ============================================================================
# NUMERIC CONVERSION UTILITIES
# ============================================================================

DECIMAL_PATTERN = re.compile(r"^\d+(\.\d+)?$")


def full_precision_string(n: LimitsNumericInput) -> str:
    """Convert a numeric input to a full precision string representation."""
    if isinstance(n, bool):
        raise ValidationError(f"Invalid numeric input {n}")
    if isinstance(n, str):
        if not DECIMAL_PATTERN.match(n):
            raise ValidationError(f"Invalid numeric input {n}")
        return n
    if isinstance(n, (int, float)):
        n = Decimal(str(n))
    if not isinstance(n, Decimal):
        raise ValidationError(f"Invalid numeric input type {n} - {type(n)}")
    return format(n, "f")


@overload
def numeric_to_decimal(n: LimitsNumericInput) -> Decimal: ...


@overload
def numeric_to_decimal(n: None) -> None: ...


def numeric_to_decimal(n: LimitsNumericInput | None) -> Decimal | None:
    """Convert various numeric input types to Decimal, or None if input is None."""
    if n is None:
        return n
    if isinstance(n, bool):
        raise ValidationError(f"Invalid numeric input {n}")
    if isinstance(n, str):
        if not DECIMAL_PATTERN.match(n):
            raise ValidationError(f"Invalid numeric input {n}")
        return Decimal(n)
    if isinstance(n, (int, float)):
        n = Decimal(str(n))
    if not isinstance(n, Decimal):
        raise ValidationError(f"Invalid numeric input type {n} - {type(n)}")
    return n


# ============================================================================
# CORE ENUMS
# ============================================================================


class OperationKind(Enum):
    """Operations signed against the trading backend domain."""

    CREATE_ORDER = "createOrder"
    CREATE_ORDERS = "createOrders"
    UPDATE_LEVERAGE = "updateLeverage"
    VERIFY_DEVICE = "verifyDevice"


class PermitType(Enum):
    """Delegated-authority permits signed against the permit service domain."""

    APPROVE_BUILDER_FEE = "approveBuilderFee"
    APPROVE_AGENT = "approveAgent"


class Tif(Enum):
    """Time in force for limit orders."""

    ALO = "Alo"
    IOC = "Ioc"
    GTC = "Gtc"
    FRONTEND_MARKET = "FrontendMarket"


# ============================================================================
# TYPED DATA (EIP-712) TYPES
# ============================================================================


@dataclass(frozen=True)
class FieldSpec:
    """A single named, typed field of an EIP-712 struct."""

    name: str
    type: str

    def to_json(self) -> JsonObject:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True)
class SigningDomain:
    """EIP-712 domain separator values."""

    name: str
    version: str
    chainId: int
    verifyingContract: str | None = None

    def struct_fields(self) -> tuple[FieldSpec, ...]:
        """Return the ``EIP712Domain`` struct describing this domain's own fields."""
        fields = [
            FieldSpec("name", "string"),
            FieldSpec("version", "string"),
            FieldSpec("chainId", "uint256"),
        ]
        if self.verifyingContract is not None:
            fields.append(FieldSpec("verifyingContract", "address"))
        return tuple(fields)

    def to_json(self) -> JsonObject:
        data: JsonObject = {
            "name": self.name,
            "version": self.version,
            "chainId": self.chainId,
        }
        if self.verifyingContract is not None:
            data["verifyingContract"] = self.verifyingContract
        return data


@dataclass
class SigningPayload:
    """A complete ``domain + types + message`` document ready to be signed.

    ``types`` maps struct names to their ordered fields. ``message`` holds exactly
    the fields of ``types[primaryType]``, in the same order.
    """

    domain: SigningDomain
    types: dict[str, tuple[FieldSpec, ...]]
    message: JsonObject
    primaryType: str

    def to_typed_data(self) -> JsonObject:
        """Render the payload as an EIP-712 typed data JSON document.

        The ``EIP712Domain`` struct is added from the domain when the payload
        does not already declare it inline.

        Returns:
            JSON object with ``types``, ``primaryType``, ``domain`` and ``message``.

        """
        types: JsonObject = {}
        if "EIP712Domain" not in self.types:
            types["EIP712Domain"] = [f.to_json() for f in self.domain.struct_fields()]
        for struct_name, fields in self.types.items():
            types[struct_name] = [f.to_json() for f in fields]
        return {
            "types": types,
            "primaryType": self.primaryType,
            "domain": self.domain.to_json(),
            "message": self.message,
        }


@dataclass(frozen=True)
class Signature:
    """Canonical ECDSA signature components.

    ``r`` and ``s`` are 0x-prefixed 32 byte hex strings, ``v`` is 27 or 28.
    """

    r: str
    s: str
    v: int

    def to_json(self) -> JsonObject:
        return {"r": self.r, "s": self.s, "v": self.v}


# ============================================================================
# REQUEST TYPES
# ============================================================================


class BatchItem:
    """One order of a batch submission.

    Only ``coin``, ``is_buy`` and ``reduce_only`` are covered by the batch
    signature. ``size`` and ``client_order_id`` are sent alongside unsigned.
    """

    coin: str
    is_buy: bool
    size: Decimal
    reduce_only: bool
    client_order_id: str | None

    def __init__(
        self,
        coin: str,
        is_buy: bool,
        size: LimitsNumericInput,
        reduce_only: bool = False,
        client_order_id: str | None = None,
    ):
        """Initialize a BatchItem.

        Args:
            coin: Asset to trade (e.g. "BTC").
            is_buy: True for a buy, False for a sell.
            size: Order size (converted to Decimal).
            reduce_only: Only reduce an existing position.
            client_order_id: Optional caller chosen identifier.

        """
        self.coin = coin
        self.is_buy = is_buy
        self.size = numeric_to_decimal(size)
        self.reduce_only = reduce_only
        self.client_order_id = client_order_id

    def to_json(self) -> JsonObject:
        data: JsonObject = {
            "coin": self.coin,
            "isBuy": self.is_buy,
            "size": full_precision_string(self.size),
            "reduceOnly": self.reduce_only,
        }
        if self.client_order_id is not None:
            data["clientOrderId"] = self.client_order_id
        return data


# ============================================================================
# RESPONSE TYPES
# ============================================================================


@dataclass
class ApiResponse:
    """Envelope returned by every backend endpoint."""

    success: bool
    message: str
    data: Any = None
    error: str | None = None


@dataclass
class ConnectUserResponse:
    """Result of connecting a user."""

    userAddress: str
    hypePublicKey: str


@dataclass
class VerifyDeviceResponse:
    """Result of a device verification."""

    verified: bool
    userAddress: str


@dataclass
class VerifyKeysResponse:
    """Result of an agent key verification."""

    verified: bool
    userAddress: str
    message: str


@dataclass
class VerifyCodeResponse:
    """Result of an invite code verification."""

    verified: bool
    userAddress: str
    message: str


# ============================================================================
# BATCH RESULT TYPES
# ============================================================================


@dataclass
class BatchSuccess:
    """A batch item the backend reported as successful."""

    index: int
    outcome: Any
    order: Any


@dataclass
class BatchFailure:
    """A batch item that failed or was never reported."""

    index: int
    error: str
    order: Any


@dataclass
class BatchResult:
    """Per-item outcome of a batch submission, aligned to the submitted order.

    ``successful + failed == total == len(submitted)`` and every submitted index
    appears in exactly one of ``results`` or ``errors``.
    """

    total: int
    successful: int
    failed: int
    results: list[BatchSuccess] = field(default_factory=list)
    errors: list[BatchFailure] = field(default_factory=list)


# ============================================================================
# PERMIT TYPES
# ============================================================================


@dataclass(frozen=True)
class Permit:
    """An unsigned delegated-authority permit."""

    permit_type: PermitType
    primary_type: str
    types: Mapping[str, tuple[FieldSpec, ...]]
    message: Mapping[str, Any]

    @property
    def nonce(self) -> Nonce:
        return self.message["nonce"]


@dataclass
class PermitSubmissionSuccess:
    """The permit service accepted the permit."""

    response: Any
    status: Literal["success"] = "success"


@dataclass
class PermitSubmissionError:
    """The permit could not be submitted or was rejected.

    Returned as data, never raised.
    """

    error: str
    status: Literal["error"] = "error"

    @classmethod
    def from_exception(cls, e: Exception) -> Self:
        return cls(error=str(e) or type(e).__name__)


PermitSubmissionResult: TypeAlias = PermitSubmissionSuccess | PermitSubmissionError
