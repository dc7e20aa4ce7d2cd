"""Delegated-authority permits for the Hyperliquid signing service.

Permits let the trading backend act on a user's behalf: ``approveBuilderFee``
allows the builder to charge a capped fee, ``approveAgent`` registers an agent
key. They are signed against the permit service's own domain, which expects the
``EIP712Domain`` struct declared inline next to the permit struct.
"""

import logging
from types import MappingProxyType
from typing import Any, Mapping

from limits_sdk.errors import UnsupportedOperationError, ValidationError
from limits_sdk.signing import is_address
from limits_sdk.types import (
    FieldSpec,
    JsonObject,
    Nonce,
    Permit,
    PermitType,
    Signature,
    SigningDomain,
    SigningPayload,
)

log = logging.getLogger(__name__)

PERMIT_DOMAIN_NAME = "HyperliquidSignTransaction"
PERMIT_DOMAIN_VERSION = "1"
PERMIT_VERIFYING_CONTRACT = "0x0000000000000000000000000000000000000000"
PERMIT_PATH = "/exchange"

MAX_BUILDER_FEE_RATE = "0.1%"
BUILDER_ADDRESS = "0x7E1D3a4B6c0f5E2d8A9b3C4d5E6f7A8b9C0d1E2F"
FALLBACK_AGENT_ADDRESS = "0x5F2a8C1e9B4d7A3f6E0c2B8d4A9e1F7c3D5b6A0E"
AGENT_NAME = "limits"
# 180 days, in the same millisecond unit as the nonce
PERMIT_VALIDITY_WINDOW_MS = 15_552_000_000

PERMIT_SCHEMAS: Mapping[PermitType, tuple[str, tuple[FieldSpec, ...]]] = (
    MappingProxyType(
        {
            PermitType.APPROVE_BUILDER_FEE: (
                "HyperliquidTransaction:ApproveBuilderFee",
                (
                    FieldSpec("hyperliquidChain", "string"),
                    FieldSpec("maxFeeRate", "string"),
                    FieldSpec("builder", "address"),
                    FieldSpec("nonce", "uint64"),
                ),
            ),
            PermitType.APPROVE_AGENT: (
                "HyperliquidTransaction:ApproveAgent",
                (
                    FieldSpec("hyperliquidChain", "string"),
                    FieldSpec("agentAddress", "address"),
                    FieldSpec("agentName", "string"),
                    FieldSpec("nonce", "uint64"),
                ),
            ),
        }
    )
)


def permit_domain(chain_id: int) -> SigningDomain:
    """Return the permit service's signing domain on the given chain."""
    return SigningDomain(
        name=PERMIT_DOMAIN_NAME,
        version=PERMIT_DOMAIN_VERSION,
        chainId=chain_id,
        verifyingContract=PERMIT_VERIFYING_CONTRACT,
    )


def coerce_permit_type(permit_type: PermitType | str) -> PermitType:
    if isinstance(permit_type, PermitType):
        return permit_type
    try:
        return PermitType(permit_type)
    except ValueError as e:
        raise UnsupportedOperationError(permit_type) from e


def _delegate(address: str | None, fallback: str, field_name: str) -> str:
    address = fallback if address is None else address
    if not is_address(address):
        raise ValidationError(
            f"{field_name} must be a 0x-prefixed 20 byte address, got {address!r}",
            fields=(field_name,),
        )
    return address.lower()


def agent_name(nonce: Nonce) -> str:
    """Return the agent name carrying the permit's expiry.

    The expiry is derived from the nonce so the readable validity claim and the
    signed nonce always agree. It is always ``nonce + PERMIT_VALIDITY_WINDOW_MS``,
    so a nonce of 1000 yields ``valid_until 15552001000``.
    """
    return f"{AGENT_NAME} valid_until {nonce + PERMIT_VALIDITY_WINDOW_MS}"


def build_permit(
    permit_type: PermitType | str,
    nonce: Nonce,
    chain_id: int,
    delegate_address: str | None = None,
    *,
    hyperliquid_chain: str = "Mainnet",
) -> Permit:
    """Build an unsigned permit.

    Args:
        permit_type: ``approveBuilderFee`` or ``approveAgent``.
        nonce: Permit nonce in epoch milliseconds.
        chain_id: Chain id the permit will be signed for.
        delegate_address: Builder or agent address. Defaults to the fixed
            builder address or the fallback agent address.
        hyperliquid_chain: ``"Mainnet"`` or ``"Testnet"``.

    Returns:
        Permit holding the permit struct and its message, in struct order.

    Raises:
        UnsupportedOperationError: If ``permit_type`` is unknown.
        ValidationError: If the nonce, chain id or delegate address is malformed.

    """
    permit_type = coerce_permit_type(permit_type)
    operation = permit_type.value
    if not isinstance(nonce, int) or isinstance(nonce, bool) or nonce < 0:
        raise ValidationError(
            f"{operation}: nonce must be a non-negative integer",
            operation=operation,
            fields=("nonce",),
        )
    if not isinstance(chain_id, int) or isinstance(chain_id, bool) or chain_id < 0:
        raise ValidationError(
            f"{operation}: chainId must be a non-negative integer",
            operation=operation,
            fields=("chainId",),
        )

    values: dict[str, Any]
    if permit_type is PermitType.APPROVE_BUILDER_FEE:
        values = {
            "hyperliquidChain": hyperliquid_chain,
            "maxFeeRate": MAX_BUILDER_FEE_RATE,
            "builder": _delegate(delegate_address, BUILDER_ADDRESS, "builder"),
            "nonce": nonce,
        }
    elif permit_type is PermitType.APPROVE_AGENT:
        values = {
            "hyperliquidChain": hyperliquid_chain,
            "agentAddress": _delegate(
                delegate_address, FALLBACK_AGENT_ADDRESS, "agentAddress"
            ),
            "agentName": agent_name(nonce),
            "nonce": nonce,
        }
    else:
        raise UnsupportedOperationError(permit_type)

    primary_type, fields = PERMIT_SCHEMAS[permit_type]
    return Permit(
        permit_type=permit_type,
        primary_type=primary_type,
        types=MappingProxyType({primary_type: fields}),
        message=MappingProxyType({f.name: values[f.name] for f in fields}),
    )


def wrap_for_signing(
    types: Mapping[str, tuple[FieldSpec, ...]],
    message: Mapping[str, Any],
    chain_id: int,
) -> SigningPayload:
    """Wrap permit types and message into a payload on the permit domain.

    The ``EIP712Domain`` struct is declared first, followed by the permit struct.

    Args:
        types: The permit struct, as returned on ``Permit.types``.
        message: The permit message.
        chain_id: Chain id to sign for.

    Returns:
        SigningPayload ready for a Signer.

    Raises:
        ValidationError: If ``types`` does not declare exactly one permit struct.

    """
    struct_names = [name for name in types if name != "EIP712Domain"]
    if len(struct_names) != 1:
        raise ValidationError(
            f"Expected exactly one permit struct, got {struct_names}"
        )
    domain = permit_domain(chain_id)
    return SigningPayload(
        domain=domain,
        types={"EIP712Domain": domain.struct_fields(), **types},
        message=dict(message),
        primaryType=struct_names[0],
    )


def permit_action(permit: Permit, chain_id: int) -> JsonObject:
    """Build the wire action submitted alongside a permit signature.

    Only the fields of the permit's own type are included.
    """
    message = permit.message
    action: JsonObject = {
        "type": permit.permit_type.value,
        "hyperliquidChain": message["hyperliquidChain"],
        "signatureChainId": hex(chain_id),
    }
    if permit.permit_type is PermitType.APPROVE_BUILDER_FEE:
        action["maxFeeRate"] = message["maxFeeRate"]
        action["builder"] = message["builder"]
    elif permit.permit_type is PermitType.APPROVE_AGENT:
        action["agentAddress"] = message["agentAddress"]
        action["agentName"] = message["agentName"]
    else:
        raise UnsupportedOperationError(permit.permit_type)
    action["nonce"] = message["nonce"]
    return action


def permit_request(permit: Permit, signature: Signature, chain_id: int) -> JsonObject:
    """Build the request body POSTed to the permit service."""
    return {
        "action": permit_action(permit, chain_id),
        "nonce": permit.nonce,
        "signature": signature.to_json(),
    }
