import pytest

from limits_sdk.errors import ValidationError
from tests.mock_executors import MockSuccessfulOutput, ok


def test_create_twap_order(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(
        MockSuccessfulOutput(
            output=ok({"success": True, "message": "TWAP created"}),
            call_validation=lambda call: call.arg_pack[0:2] == ("POST", "/twap"),
        )
    )

    response = client.create_twap_order(
        "HYPE", size="100", frequency=5, runtime=60, is_buy=True, threshold=0.01
    )

    assert response.message == "TWAP created"

    _, _, body = mock_http.call_log[0].arg_pack
    assert body == {
        "userAddress": client.user_address,
        "token": "HYPE",
        "size": "100",
        "frequency": "5",
        "runtime": "60",
        "randomize": False,
        "isBuy": True,
        "threshold": 0.01,
    }


@pytest.mark.parametrize("frequency, runtime", [(0, 60), (5, 0), (30, 10)])
def test_invalid_twap_schedule(mock_http_client, frequency, runtime):
    client, mock_http = mock_http_client

    with pytest.raises(ValidationError) as exc_info:
        client.create_twap_order(
            "HYPE",
            size="100",
            frequency=frequency,
            runtime=runtime,
            is_buy=True,
            threshold=0.01,
        )

    assert "runtime" in exc_info.value.message
    assert mock_http.call_log == []
