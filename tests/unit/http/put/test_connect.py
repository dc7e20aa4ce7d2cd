from limits_sdk.types import ConnectUserResponse, VerifyCodeResponse, VerifyKeysResponse
from tests.mock_executors import MockSuccessfulOutput, ok

AGENT = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"


def test_connect_user(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(
        MockSuccessfulOutput(
            output=ok(
                {
                    "success": True,
                    "message": "Connected",
                    "data": {
                        "userAddress": client.user_address,
                        "hypePublicKey": "0xfeed",
                        "extra": "ignored",
                    },
                }
            ),
            call_validation=lambda call: call.arg_pack
            == (
                "POST",
                "/connect",
                {"userAddress": client.user_address, "devicePublicKey": "0xbeef"},
            ),
        )
    )

    response = client.connect_user("0xbeef")

    assert response == ConnectUserResponse(
        userAddress=client.user_address, hypePublicKey="0xfeed"
    )


def test_verify_keys(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(
        MockSuccessfulOutput(
            output=ok(
                {
                    "success": True,
                    "message": "ok",
                    "data": {
                        "verified": False,
                        "userAddress": client.user_address,
                        "message": "Agent key expired",
                    },
                }
            ),
            call_validation=lambda call: call.arg_pack[0:2] == ("PUT", "/connect")
            and call.arg_pack[2]["agentAddress"] == AGENT,
        )
    )

    response = client.verify_keys(AGENT)

    assert isinstance(response, VerifyKeysResponse)
    assert response.verified is False
    assert response.message == "Agent key expired"


def test_verify_code(mock_http_client):
    client, mock_http = mock_http_client

    mock_http.stage_output(
        MockSuccessfulOutput(
            output=ok(
                {
                    "success": True,
                    "message": "ok",
                    "data": {
                        "verified": True,
                        "userAddress": client.user_address,
                        "message": "Welcome",
                    },
                }
            ),
            call_validation=lambda call: call.arg_pack
            == (
                "POST",
                "/verifyCode",
                {"userAddress": client.user_address, "inviteCode": "LIMITS2024"},
            ),
        )
    )

    response = client.verify_code("LIMITS2024")

    assert response == VerifyCodeResponse(
        verified=True, userAddress=client.user_address, message="Welcome"
    )
