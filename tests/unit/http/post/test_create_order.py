from decimal import Decimal

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from limits_sdk.api import LimitsApiClient
from limits_sdk.errors import MissingCredentialsError, ValidationError
from limits_sdk.executors.interface import HttpResponse
from limits_sdk.signing import build_payload
from limits_sdk.types import OperationKind, Tif
from tests.mock_executors import MockHttpExecutor, MockSuccessfulOutput, ok
from tests.unit.conftest import TEST_CHAIN_ID, TEST_NONCE

ORDER_RESPONSE = {
    "success": True,
    "message": "Order placed",
    "data": {"orderId": "591118037937030144"},
}


def recovered_signer(body) -> str:
    payload = build_payload(OperationKind.CREATE_ORDER, body)
    raw = (
        bytes.fromhex(body["r"][2:]) + bytes.fromhex(body["s"][2:]) + bytes([body["v"]])
    )
    return Account.recover_message(
        encode_typed_data(full_message=payload.to_typed_data()), signature=raw
    )


def test_create_market_order(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(
        MockSuccessfulOutput(
            output=ok(ORDER_RESPONSE),
            call_validation=lambda call: call.function_name == "send_request"
            and call.arg_pack[0:2] == ("POST", "/order")
            and call.arg_pack[2] is not None,
        )
    )

    response = client.create_order("BTC", is_buy=True, size=0.1, nonce=TEST_NONCE)

    assert response.success is True
    assert response.message == "Order placed"
    assert response.data == {"orderId": "591118037937030144"}

    _, _, body = mock_http.call_log[0].arg_pack
    assert body["userAddress"] == client.user_address
    assert body["coin"] == "BTC"
    assert body["isBuy"] is True
    assert body["reduceOnly"] is False
    assert body["size"] == "0.1"
    assert body["nonce"] == TEST_NONCE
    assert body["chainId"] == TEST_CHAIN_ID
    assert "limitPrice" not in body
    assert body["v"] in (27, 28)
    assert recovered_signer(body) == client.signer.address


def test_create_limit_order(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(MockSuccessfulOutput(output=ok(ORDER_RESPONSE)))

    client.create_order(
        "ETH",
        is_buy=False,
        size=Decimal("2.50"),
        reduce_only=True,
        limit_price="3500.5",
        tif=Tif.IOC,
        client_order_id="my-order-1",
    )

    _, _, body = mock_http.call_log[0].arg_pack
    assert body["size"] == "2.50"
    assert body["limitPrice"] == "3500.5"
    assert body["orderType"] == {"limit": {"tif": "Ioc"}}
    assert body["clientOrderId"] == "my-order-1"
    assert body["reduceOnly"] is True
    assert isinstance(body["nonce"], int)


def test_limit_order_defaults_to_gtc(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(MockSuccessfulOutput(output=ok(ORDER_RESPONSE)))

    client.create_order("ETH", is_buy=True, size=1, limit_price=3000)

    _, _, body = mock_http.call_log[0].arg_pack
    assert body["orderType"] == {"limit": {"tif": "Gtc"}}


def test_tif_without_limit_price_rejected(mock_http_client):
    client, mock_http = mock_http_client

    with pytest.raises(ValidationError) as exc_info:
        client.create_order("ETH", is_buy=True, size=1, tif=Tif.ALO)

    assert "tif can only be set on limit orders" in str(exc_info.value)

    assert mock_http.call_log == []


@pytest.mark.parametrize("size", ["-1", "abc", True])
def test_invalid_size_rejected_before_sending(mock_http_client, size):
    client, mock_http = mock_http_client

    with pytest.raises(ValidationError):
        client.create_order("BTC", is_buy=True, size=size)

    assert mock_http.call_log == []


def test_missing_signer_rejected_before_sending():
    mock_http = MockHttpExecutor()
    client = LimitsApiClient(
        user_address="0x1234567890123456789012345678901234567890",
        executor=mock_http,
    )

    with pytest.raises(MissingCredentialsError):
        client.create_order("BTC", is_buy=True, size=1)

    assert mock_http.call_log == []


def test_backend_rejection_is_returned(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(
        MockSuccessfulOutput(
            output=HttpResponse(
                status=200,
                body={"success": False, "message": "Rejected", "error": "min size"},
            )
        )
    )

    response = client.create_order("BTC", is_buy=True, size=0.0001)

    assert response.success is False
    assert response.error == "min size"
