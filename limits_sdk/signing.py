"""Typed data payload construction and signing.

``build_payload`` turns an operation request into the exact EIP-712 document the
backend verifies. Signing itself happens behind the ``Signer`` interface so keys
can live in a wallet, an HSM or a remote service; ``PrivateKeySigner`` is the
local implementation.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Mapping, override

from eth_account import Account
from eth_account.messages import encode_typed_data

from limits_sdk.errors import UnsupportedOperationError, ValidationError
from limits_sdk.schemas import (
    DEPRECATED_FIELD_NAMES,
    OperationSchema,
    schema_for,
    struct_reference,
)
from limits_sdk.types import (
    BatchItem,
    FieldSpec,
    JsonObject,
    OperationKind,
    Signature,
    SigningPayload,
)

log = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
BYTES32_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")

_UINT_BITS = {"uint64": 64, "uint256": 256}


# ============================================================================
# FIELD VALIDATION
# ============================================================================


def is_address(value: Any) -> bool:
    """Return True if ``value`` is a 0x-prefixed 20 byte hex string."""
    return isinstance(value, str) and ADDRESS_PATTERN.match(value) is not None


def _is_valid_primitive(type_name: str, value: Any) -> bool:
    if type_name == "string":
        return isinstance(value, str) and value != ""
    if type_name == "bool":
        return isinstance(value, bool)
    if type_name in _UINT_BITS:
        # bool is an int subclass and must not pass as a number
        return (
            isinstance(value, int)
            and not isinstance(value, bool)
            and 0 <= value < 2 ** _UINT_BITS[type_name]
        )
    if type_name == "address":
        return is_address(value)
    if type_name == "bytes32":
        if isinstance(value, (bytes, bytearray)):
            return len(value) == 32
        return isinstance(value, str) and BYTES32_PATTERN.match(value) is not None
    return False


class _Problems:
    """Accumulates missing and malformed field paths for one request."""

    def __init__(self) -> None:
        self.missing: list[str] = []
        self.malformed: list[str] = []

    def __bool__(self) -> bool:
        return bool(self.missing or self.malformed)

    def as_error(self, kind: OperationKind) -> ValidationError:
        parts = []
        if self.missing:
            parts.append(f"missing required field(s): {', '.join(self.missing)}")
        if self.malformed:
            parts.append(f"malformed field(s): {', '.join(self.malformed)}")
        return ValidationError(
            f"{kind.value}: {'; '.join(parts)}",
            operation=kind.value,
            fields=self.missing + self.malformed,
        )


def _collect_struct(
    structs: Mapping[str, tuple[FieldSpec, ...]],
    struct_name: str,
    data: Mapping[str, Any],
    path: str,
    problems: _Problems,
) -> JsonObject:
    """Copy the fields of ``struct_name`` out of ``data`` in schema order."""
    message: JsonObject = {}
    for field_spec in structs[struct_name]:
        field_path = f"{path}{field_spec.name}"
        value = data.get(field_spec.name)
        if value is None:
            problems.missing.append(field_path)
            continue

        ref = struct_reference(field_spec.type)
        if ref is None:
            if not _is_valid_primitive(field_spec.type, value):
                problems.malformed.append(field_path)
                continue
            message[field_spec.name] = value
        elif field_spec.type.endswith("[]"):
            if not isinstance(value, (list, tuple)) or len(value) == 0:
                problems.malformed.append(field_path)
                continue
            items: list[Any] = []
            for i, item in enumerate(value):
                if not isinstance(item, Mapping):
                    problems.malformed.append(f"{field_path}[{i}]")
                    continue
                items.append(
                    _collect_struct(structs, ref, item, f"{field_path}[{i}].", problems)
                )
            message[field_spec.name] = items
        else:
            if not isinstance(value, Mapping):
                problems.malformed.append(field_path)
                continue
            message[field_spec.name] = _collect_struct(
                structs, ref, value, f"{field_path}.", problems
            )
    return message


def _deprecated_fields(data: Mapping[str, Any], path: str = "") -> list[str]:
    found = []
    for key, value in data.items():
        if key in DEPRECATED_FIELD_NAMES:
            found.append(f"{path}{key}")
        if isinstance(value, (list, tuple)):
            for i, item in enumerate(value):
                if isinstance(item, Mapping):
                    found.extend(_deprecated_fields(item, f"{path}{key}[{i}]."))
    return found


def _reject_deprecated(kind: OperationKind, request: Mapping[str, Any]) -> None:
    deprecated = _deprecated_fields(request)
    if not deprecated:
        return
    hints = ", ".join(
        f"{name} (use {DEPRECATED_FIELD_NAMES[name.rsplit('.', 1)[-1]]})"
        for name in deprecated
    )
    raise ValidationError(
        f"{kind.value}: deprecated field name(s): {hints}",
        operation=kind.value,
        fields=deprecated,
    )


# ============================================================================
# PAYLOAD BUILDER
# ============================================================================


def coerce_operation_kind(kind: OperationKind | str) -> OperationKind:
    """Return ``kind`` as an OperationKind.

    Raises:
        UnsupportedOperationError: If ``kind`` names no known operation.

    """
    if isinstance(kind, OperationKind):
        return kind
    try:
        return OperationKind(kind)
    except ValueError as e:
        raise UnsupportedOperationError(kind) from e


def _batch_request(request: Mapping[str, Any]) -> Mapping[str, Any]:
    """Expand BatchItem objects of a batch request into their JSON form."""
    orders = request.get("orders")
    if not isinstance(orders, (list, tuple)):
        return request
    if not any(isinstance(o, BatchItem) for o in orders):
        return request
    return {
        **request,
        "orders": [o.to_json() if isinstance(o, BatchItem) else o for o in orders],
    }


def build_payload(
    kind: OperationKind | str, request: Mapping[str, Any]
) -> SigningPayload:
    """Build the typed data payload that authorizes ``request``.

    All required fields are validated before anything is assembled, so a payload
    is never produced for incomplete data.

    Args:
        kind: The operation kind, as an OperationKind or its string value.
        request: The request, using canonical camelCase field names and
            carrying the ``chainId`` to sign for.

    Returns:
        SigningPayload whose message holds exactly the schema fields, in schema order.

    Raises:
        UnsupportedOperationError: If ``kind`` is not a known operation kind.
        ValidationError: If ``request`` uses deprecated names, misses required
            fields, or carries values of the wrong shape.

    Example:
        .. code-block:: python

            payload = build_payload(
                OperationKind.CREATE_ORDER,
                {
                    "userAddress": "0x1234567890123456789012345678901234567890",
                    "coin": "BTC",
                    "nonce": 1700000000000,
                    "isBuy": True,
                    "reduceOnly": False,
                    "chainId": 42161,
                },
            )

    """
    kind = coerce_operation_kind(kind)
    if not isinstance(request, Mapping):
        raise ValidationError(
            f"{kind.value}: request must be a mapping, got {type(request).__name__}",
            operation=kind.value,
        )

    _reject_deprecated(kind, request)

    problems = _Problems()
    schema: OperationSchema
    if kind is OperationKind.CREATE_ORDER:
        schema = schema_for(kind)
    elif kind is OperationKind.CREATE_ORDERS:
        schema = schema_for(kind)
        request = _batch_request(request)
    elif kind is OperationKind.UPDATE_LEVERAGE:
        schema = schema_for(kind)
        leverage = request.get("leverage")
        if (
            isinstance(leverage, int)
            and not isinstance(leverage, bool)
            and leverage < 1
        ):
            problems.malformed.append("leverage")
    elif kind is OperationKind.VERIFY_DEVICE:
        schema = schema_for(kind)
    else:
        raise UnsupportedOperationError(kind)

    chain_id = request.get("chainId")
    if chain_id is None:
        problems.missing.append("chainId")
    elif not _is_valid_primitive("uint256", chain_id):
        problems.malformed.append("chainId")

    message = _collect_struct(
        schema.structs, schema.primary_type, request, "", problems
    )
    if problems:
        raise problems.as_error(kind)

    log.debug("Built %s payload on chain %s", schema.primary_type, chain_id)
    return SigningPayload(
        domain=schema.domain(chain_id),  # type: ignore[arg-type]
        types=dict(schema.structs),
        message=message,
        primaryType=schema.primary_type,
    )


# ============================================================================
# SIGNATURES
# ============================================================================


def split_signature(signature: str | bytes | Signature) -> Signature:
    """Decompose a 65 byte ``r || s || v`` signature into its components.

    Recovery ids 0/1 are normalized to 27/28.

    Args:
        signature: Hex string (with or without 0x prefix), raw bytes, or an
            already split Signature.

    Returns:
        The canonical Signature.

    Raises:
        ValidationError: If the signature is not 65 bytes or has an invalid ``v``.

    """
    if isinstance(signature, Signature):
        return signature

    if isinstance(signature, str):
        hex_part = signature[2:] if signature.startswith(("0x", "0X")) else signature
        try:
            raw = bytes.fromhex(hex_part)
        except ValueError as e:
            raise ValidationError("Signature is not valid hex") from e
    elif isinstance(signature, (bytes, bytearray)):
        raw = bytes(signature)
    else:
        message = f"Unexpected type for signature {type(signature)}"
        raise ValidationError(message) from TypeError(message)

    if len(raw) != 65:
        raise ValidationError(f"Signature must be 65 bytes, got {len(raw)}")

    v = raw[64]
    if v < 27:
        v += 27
    if v not in (27, 28):
        raise ValidationError(f"Invalid signature recovery id {raw[64]}")

    return Signature(r="0x" + raw[:32].hex(), s="0x" + raw[32:64].hex(), v=v)


class Signer(ABC):
    """Produces signatures over typed data payloads.

    Implementations may hold a key locally or delegate to an external wallet.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        """The address whose key produces the signatures."""
        ...

    @abstractmethod
    def sign_typed_data(self, payload: SigningPayload) -> Signature:
        """Sign ``payload`` and return its canonical components.

        Args:
            payload: The payload to sign.

        Returns:
            Signature with ``r``, ``s`` and ``v``.

        """
        ...


class PrivateKeySigner(Signer):
    """Signer backed by a local secp256k1 private key."""

    def __init__(self, private_key: str):
        """Initialize the signer.

        Args:
            private_key: Hex encoded private key, with or without 0x prefix.

        Raises:
            ValidationError: If the key cannot be parsed.

        """
        try:
            self._account = Account.from_key(private_key)
        except Exception as e:
            # the key itself must never end up in the message
            raise ValidationError("Invalid private key") from e

    @property
    @override
    def address(self) -> str:
        return self._account.address

    @override
    def sign_typed_data(self, payload: SigningPayload) -> Signature:
        signable = encode_typed_data(full_message=payload.to_typed_data())
        signed = self._account.sign_message(signable)
        log.debug("Signed %s for %s", payload.primaryType, self.address)
        return Signature(
            r=f"0x{signed.r:064x}",
            s=f"0x{signed.s:064x}",
            v=signed.v,
        )
