"""Signing schemas for operations verified by the trading backend.

Each operation kind maps to a fixed set of EIP-712 structs. Field order is part of
the hash layout the backend reproduces, so the tuples below are the single source
of truth for both message layout and field names.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from limits_sdk.errors import UnsupportedOperationError
from limits_sdk.types import FieldSpec, OperationKind, SigningDomain

TRADING_DOMAIN_NAME = "Limits"
TRADING_DOMAIN_VERSION = "1"

PRIMITIVE_TYPES = frozenset(
    {"string", "bool", "address", "uint64", "uint256", "bytes32"}
)

# Field spellings used by earlier revisions of the backend, mapped to the canonical name
DEPRECATED_FIELD_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "is_buy": "isBuy",
        "reduce_only": "reduceOnly",
        "sz": "size",
        "limit_px": "limitPrice",
        "cloid": "clientOrderId",
        "leverageType": "isCross",
    }
)


@dataclass(frozen=True)
class OperationSchema:
    """Typed data schema of one operation kind."""

    kind: OperationKind
    primary_type: str
    structs: Mapping[str, tuple[FieldSpec, ...]]
    domain_name: str = TRADING_DOMAIN_NAME
    domain_version: str = TRADING_DOMAIN_VERSION

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        """Ordered fields of the primary struct."""
        return self.structs[self.primary_type]

    def domain(self, chain_id: int) -> SigningDomain:
        """Return the signing domain for this operation on the given chain."""
        return SigningDomain(
            name=self.domain_name,
            version=self.domain_version,
            chainId=chain_id,
        )


def struct_reference(type_name: str) -> str | None:
    """Return the referenced struct name for a struct or struct array type.

    ``"OrderDetails[]"`` and ``"OrderDetails"`` both yield ``"OrderDetails"``;
    primitive types yield None.
    """
    base = type_name[:-2] if type_name.endswith("[]") else type_name
    if base in PRIMITIVE_TYPES:
        return None
    return base


def _schema(
    kind: OperationKind,
    primary_type: str,
    structs: dict[str, tuple[FieldSpec, ...]],
) -> OperationSchema:
    return OperationSchema(
        kind=kind,
        primary_type=primary_type,
        structs=MappingProxyType(structs),
    )


_ORDER_DETAILS = (
    FieldSpec("coin", "string"),
    FieldSpec("isBuy", "bool"),
    FieldSpec("reduceOnly", "bool"),
)

SCHEMA_REGISTRY: Mapping[OperationKind, OperationSchema] = MappingProxyType(
    {
        OperationKind.CREATE_ORDER: _schema(
            OperationKind.CREATE_ORDER,
            "VerifyOrder",
            {
                "VerifyOrder": (
                    FieldSpec("userAddress", "string"),
                    FieldSpec("coin", "string"),
                    FieldSpec("nonce", "uint64"),
                    FieldSpec("isBuy", "bool"),
                    FieldSpec("reduceOnly", "bool"),
                ),
            },
        ),
        OperationKind.CREATE_ORDERS: _schema(
            OperationKind.CREATE_ORDERS,
            "VerifyOrders",
            {
                # address and nonce live on the envelope, not on each order
                "OrderDetails": _ORDER_DETAILS,
                "VerifyOrders": (
                    FieldSpec("userAddress", "string"),
                    FieldSpec("nonce", "uint64"),
                    FieldSpec("orders", "OrderDetails[]"),
                ),
            },
        ),
        OperationKind.UPDATE_LEVERAGE: _schema(
            OperationKind.UPDATE_LEVERAGE,
            "VerifyLeverage",
            {
                "VerifyLeverage": (
                    FieldSpec("userAddress", "string"),
                    FieldSpec("coin", "string"),
                    FieldSpec("nonce", "uint64"),
                    FieldSpec("leverage", "uint64"),
                    FieldSpec("isCross", "bool"),
                ),
            },
        ),
        OperationKind.VERIFY_DEVICE: _schema(
            OperationKind.VERIFY_DEVICE,
            "VerifyDevice",
            {
                "VerifyDevice": (
                    FieldSpec("userAddress", "string"),
                    FieldSpec("agentAddress", "address"),
                    FieldSpec("nonce", "uint64"),
                ),
            },
        ),
    }
)


def schema_for(kind: OperationKind) -> OperationSchema:
    """Look up the signing schema of an operation kind.

    Args:
        kind: The operation kind.

    Returns:
        The registered, immutable schema.

    Raises:
        UnsupportedOperationError: If no schema is registered for ``kind``.

    """
    try:
        return SCHEMA_REGISTRY[kind]
    except (KeyError, TypeError) as e:
        raise UnsupportedOperationError(kind) from e
