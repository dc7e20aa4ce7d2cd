"""Tests for delegated-authority permit construction."""

import pytest

from limits_sdk.errors import UnsupportedOperationError, ValidationError
from limits_sdk.permits import (
    BUILDER_ADDRESS,
    FALLBACK_AGENT_ADDRESS,
    build_permit,
    permit_action,
    permit_request,
    wrap_for_signing,
)
from limits_sdk.types import FieldSpec, PermitType, Signature

NONCE = 1_000_000
CHAIN_ID = 42161
AGENT = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"


def test_builder_fee_permit():
    permit = build_permit(PermitType.APPROVE_BUILDER_FEE, NONCE, CHAIN_ID)

    assert permit.primary_type == "HyperliquidTransaction:ApproveBuilderFee"
    assert list(permit.types) == ["HyperliquidTransaction:ApproveBuilderFee"]
    assert dict(permit.message) == {
        "hyperliquidChain": "Mainnet",
        "maxFeeRate": "0.1%",
        "builder": BUILDER_ADDRESS.lower(),
        "nonce": NONCE,
    }
    assert permit.nonce == NONCE


def test_agent_permit_defaults_to_fallback_agent():
    permit = build_permit("approveAgent", NONCE, CHAIN_ID)

    assert permit.permit_type is PermitType.APPROVE_AGENT
    assert permit.primary_type == "HyperliquidTransaction:ApproveAgent"
    assert list(permit.message) == [
        "hyperliquidChain",
        "agentAddress",
        "agentName",
        "nonce",
    ]
    assert permit.message["agentAddress"] == FALLBACK_AGENT_ADDRESS.lower()


def test_agent_name_carries_expiry_derived_from_nonce():
    permit = build_permit(PermitType.APPROVE_AGENT, NONCE, CHAIN_ID, AGENT)

    assert "15553000000" in permit.message["agentName"]
    assert permit.message["agentAddress"] == AGENT.lower()


def test_agent_name_adds_validity_window_to_nonce():
    permit = build_permit(PermitType.APPROVE_AGENT, 1000, 1)

    assert permit.message["agentName"] == "limits valid_until 15552001000"


def test_testnet_permit():
    permit = build_permit(
        PermitType.APPROVE_BUILDER_FEE, NONCE, 421614, hyperliquid_chain="Testnet"
    )

    assert permit.message["hyperliquidChain"] == "Testnet"


def test_permit_is_read_only():
    permit = build_permit(PermitType.APPROVE_BUILDER_FEE, NONCE, CHAIN_ID)

    with pytest.raises(TypeError):
        permit.message["nonce"] = 1  # type: ignore[index]


def test_unknown_permit_type():
    with pytest.raises(UnsupportedOperationError):
        build_permit("approveWithdrawal", NONCE, CHAIN_ID)


@pytest.mark.parametrize(
    "nonce, chain_id, delegate",
    [
        (-1, CHAIN_ID, None),
        (True, CHAIN_ID, None),
        (NONCE, "42161", None),
        (NONCE, CHAIN_ID, "0x1234"),
    ],
)
def test_invalid_permit_inputs(nonce, chain_id, delegate):
    with pytest.raises(ValidationError):
        build_permit(PermitType.APPROVE_AGENT, nonce, chain_id, delegate)


def test_wrap_for_signing_declares_domain_first():
    permit = build_permit(PermitType.APPROVE_BUILDER_FEE, NONCE, CHAIN_ID)

    payload = wrap_for_signing(permit.types, permit.message, CHAIN_ID)
    typed = payload.to_typed_data()

    assert list(typed["types"]) == [
        "EIP712Domain",
        "HyperliquidTransaction:ApproveBuilderFee",
    ]
    assert typed["primaryType"] == "HyperliquidTransaction:ApproveBuilderFee"
    assert typed["domain"] == {
        "name": "HyperliquidSignTransaction",
        "version": "1",
        "chainId": CHAIN_ID,
        "verifyingContract": "0x0000000000000000000000000000000000000000",
    }
    assert [f["name"] for f in typed["types"]["EIP712Domain"]] == [
        "name",
        "version",
        "chainId",
        "verifyingContract",
    ]


def test_wrap_for_signing_requires_one_struct():
    types = {
        "A": (FieldSpec("nonce", "uint64"),),
        "B": (FieldSpec("nonce", "uint64"),),
    }

    with pytest.raises(ValidationError):
        wrap_for_signing(types, {"nonce": 1}, CHAIN_ID)


def test_builder_fee_action_omits_agent_fields():
    permit = build_permit(PermitType.APPROVE_BUILDER_FEE, NONCE, CHAIN_ID)

    action = permit_action(permit, CHAIN_ID)

    assert action == {
        "type": "approveBuilderFee",
        "hyperliquidChain": "Mainnet",
        "signatureChainId": "0xa4b1",
        "maxFeeRate": "0.1%",
        "builder": BUILDER_ADDRESS.lower(),
        "nonce": NONCE,
    }


def test_agent_action_omits_builder_fields():
    permit = build_permit(PermitType.APPROVE_AGENT, NONCE, CHAIN_ID, AGENT)

    action = permit_action(permit, CHAIN_ID)

    assert "builder" not in action
    assert "maxFeeRate" not in action
    assert action["agentAddress"] == AGENT.lower()
    assert action["agentName"] == permit.message["agentName"]


def test_permit_request_body():
    permit = build_permit(PermitType.APPROVE_AGENT, NONCE, CHAIN_ID)
    signature = Signature(r="0x" + "01" * 32, s="0x" + "02" * 32, v=27)

    body = permit_request(permit, signature, CHAIN_ID)

    assert body["nonce"] == NONCE
    assert body["signature"] == {"r": signature.r, "s": signature.s, "v": 27}
    assert body["action"]["type"] == "approveAgent"
