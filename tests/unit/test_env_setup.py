import pytest

from limits_sdk.api import LimitsApiClient
from limits_sdk.env_setup import setup_environment
from limits_sdk.errors import ValidationError
from limits_sdk.helpers import DEFAULT_API_URL, DEFAULT_CHAIN_ID, DEFAULT_PERMIT_API_URL
from tests.mock_executors import MockHttpExecutor
from tests.unit.conftest import TEST_PRIVATE_KEY


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # keep a developer's .env out of the test
    monkeypatch.chdir(tmp_path)
    for suffix in ("PRODUCTION", "STAGING"):
        for name in ("API_URL", "PERMIT_API_URL", "PRIVATE_KEY", "CHAIN_ID"):
            # set before deleting so values loaded from .env are undone too
            monkeypatch.setenv(f"LIMITS_{name}_{suffix}", "")
            monkeypatch.delenv(f"LIMITS_{name}_{suffix}")
    monkeypatch.setenv("ENVIRONMENT", "")
    monkeypatch.delenv("ENVIRONMENT")
    return monkeypatch


def test_defaults(clean_env):
    assert setup_environment() == (
        DEFAULT_API_URL,
        DEFAULT_PERMIT_API_URL,
        None,
        DEFAULT_CHAIN_ID,
    )


def test_environment_specific_variables(clean_env):
    clean_env.setenv("ENVIRONMENT", "staging")
    clean_env.setenv("LIMITS_API_URL_STAGING", "https://staging.example/dmp")
    clean_env.setenv("LIMITS_PRIVATE_KEY_STAGING", TEST_PRIVATE_KEY)
    clean_env.setenv("LIMITS_CHAIN_ID_STAGING", "0x66eee")

    api_url, permit_api_url, private_key, chain_id = setup_environment()

    assert api_url == "https://staging.example/dmp"
    assert permit_api_url == DEFAULT_PERMIT_API_URL
    assert private_key == TEST_PRIVATE_KEY
    assert chain_id == 421614


def test_dotenv_file_loaded(clean_env, tmp_path):
    tmp_path.joinpath(".env").write_text("LIMITS_CHAIN_ID_PRODUCTION=421614\n")

    assert setup_environment()[3] == 421614


def test_invalid_chain_id(clean_env):
    clean_env.setenv("LIMITS_CHAIN_ID_PRODUCTION", "arbitrum")

    with pytest.raises(ValidationError):
        setup_environment()


def test_client_from_environment(clean_env):
    clean_env.setenv("LIMITS_PRIVATE_KEY_PRODUCTION", TEST_PRIVATE_KEY)
    clean_env.setenv("LIMITS_CHAIN_ID_PRODUCTION", "421614")

    client = LimitsApiClient.from_environment(executor=MockHttpExecutor())

    assert client.chain_id == 421614
    assert client.user_address == client.signer.address
