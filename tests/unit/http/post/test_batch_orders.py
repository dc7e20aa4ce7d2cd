import pytest

from limits_sdk.errors import ValidationError
from limits_sdk.types import BatchItem
from tests.mock_executors import MockSuccessfulOutput, ok
from tests.unit.conftest import TEST_CHAIN_ID, TEST_NONCE, load_json_all_cases


@pytest.mark.parametrize("test_data", load_json_all_cases("test.batch_orders"))
def test_batch_orders(mock_http_client, test_data):
    payload, path = test_data
    client, mock_http = mock_http_client

    orders_to_create = payload["input.orders"]
    batch_response = payload["response.batch"]
    expected = payload["expected"]

    mock_http.stage_output(
        MockSuccessfulOutput(
            output=ok(batch_response),
            call_validation=lambda call: call.function_name == "send_request"
            and call.arg_pack[0:2] == ("POST", "/batchOrder")
            and call.arg_pack[2] is not None,
        )
    )

    orders = [
        BatchItem(
            coin=o["coin"],
            is_buy=o["isBuy"],
            size=o["size"],
            reduce_only=o["reduceOnly"],
            client_order_id=o.get("clientOrderId"),
        )
        for o in orders_to_create
    ]

    result = client.create_batch_orders(orders)

    assert result.total == len(orders)
    assert [r.index for r in result.results] == expected["successful"]
    assert {str(e.index): e.error for e in result.errors} == expected["failed"]
    for failure in result.errors:
        assert failure.order is orders[failure.index]

    _, _, body = mock_http.call_log[0].arg_pack
    assert body["orders"] == orders_to_create


def test_batch_request_body(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(
        MockSuccessfulOutput(output=ok({"success": True, "message": "ok"}))
    )

    client.create_batch_orders(
        [{"coin": "BTC", "isBuy": True, "size": "1", "reduceOnly": False}],
        nonce=TEST_NONCE,
    )

    _, _, body = mock_http.call_log[0].arg_pack
    assert body["userAddress"] == client.user_address
    assert body["nonce"] == TEST_NONCE
    assert body["chainId"] == TEST_CHAIN_ID
    assert {"r", "s", "v"} <= body.keys()


def test_batch_item_without_size_rejected(mock_http_client):
    client, mock_http = mock_http_client

    with pytest.raises(ValidationError) as exc_info:
        client.create_batch_orders(
            [
                BatchItem("BTC", is_buy=True, size=1),
                {"coin": "ETH", "isBuy": True, "reduceOnly": False},
            ]
        )

    assert exc_info.value.fields == ("orders[1].size",)
    assert mock_http.call_log == []


@pytest.mark.parametrize("orders", [[], None])
def test_empty_batch_rejected(mock_http_client, orders):
    client, mock_http = mock_http_client

    with pytest.raises(ValidationError):
        client.create_batch_orders(orders)

    assert mock_http.call_log == []


def test_batch_orders_must_be_a_list(mock_http_client):
    client, mock_http = mock_http_client

    with pytest.raises(ValidationError) as exc_info:
        client.create_batch_orders({"coin": "BTC"})  # type: ignore

    assert "Unexpected type for orders" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, TypeError)
    assert mock_http.call_log == []
