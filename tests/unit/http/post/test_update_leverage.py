import pytest

from limits_sdk.errors import ValidationError
from tests.mock_executors import MockSuccessfulOutput, ok
from tests.unit.conftest import TEST_CHAIN_ID, TEST_NONCE


def test_update_leverage(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(
        MockSuccessfulOutput(
            output=ok({"success": True, "message": "Leverage updated"}),
            call_validation=lambda call: call.arg_pack[0:2] == ("POST", "/leverage"),
        )
    )

    response = client.update_leverage("ETH", 10, is_cross=False, nonce=TEST_NONCE)

    assert response.success is True

    _, _, body = mock_http.call_log[0].arg_pack
    assert body == {
        "userAddress": client.user_address,
        "coin": "ETH",
        "leverage": 10,
        "isCross": False,
        "nonce": TEST_NONCE,
        "chainId": TEST_CHAIN_ID,
        "r": body["r"],
        "s": body["s"],
        "v": body["v"],
    }


@pytest.mark.parametrize("leverage", [0, -3, 2.5, "10"])
def test_invalid_leverage(mock_http_client, leverage):
    client, mock_http = mock_http_client

    with pytest.raises(ValidationError):
        client.update_leverage("ETH", leverage)

    assert mock_http.call_log == []
