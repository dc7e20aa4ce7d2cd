import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Generator

import orjson
import pytest

from limits_sdk.api import LimitsApiClient
from limits_sdk.api_async import AsyncLimitsApiClient
from tests.mock_executors import (
    MockAsyncHttpExecutor,
    MockHttpExecutor,
    MockOutputNotExhausted,
)

DATA_DIR = Path(__file__).parent.joinpath("data")

# well known throwaway key, never funded
TEST_PRIVATE_KEY = "0x" + "11" * 32
TEST_CHAIN_ID = 42161
TEST_NONCE = 1700000000000

log = logging.getLogger(__name__)


@pytest.fixture
def mock_http_client() -> Generator[
    tuple[LimitsApiClient, MockHttpExecutor], None, None
]:
    mock_http = MockHttpExecutor()
    client = LimitsApiClient(
        # these don't matter as they will not be used with the mock in place
        api_url="api.gaierror.xyz",
        permit_api_url="permit.gaierror.xyz",
        private_key=TEST_PRIVATE_KEY,
        chain_id=TEST_CHAIN_ID,
        # replace real network requests with our mock
        executor=mock_http,
    )

    yield (client, mock_http)

    if len(mock_http.staged_outputs) > 0:
        raise MockOutputNotExhausted(mock_http.staged_outputs)


@pytest.fixture
def mock_async_http_client() -> Generator[
    tuple[AsyncLimitsApiClient, MockAsyncHttpExecutor], None, None
]:
    mock_http = MockAsyncHttpExecutor()
    client = AsyncLimitsApiClient(
        private_key=TEST_PRIVATE_KEY,
        chain_id=TEST_CHAIN_ID,
        executor=mock_http,
    )

    yield (client, mock_http)

    if len(mock_http.staged_outputs) > 0:
        raise MockOutputNotExhausted(mock_http.staged_outputs)


@lru_cache(maxsize=1)
def data_files() -> list[Path]:
    return list(DATA_DIR.iterdir())


@lru_cache(maxsize=16)
def json_data_files(name: str) -> list[Path]:
    return list(
        sorted(
            path
            for path in data_files()
            if path.match(f"*/{name}.*.json", case_sensitive=True)
        )
    )


def load_json(name: str, case: int | None = None) -> dict[str, Any]:
    case_part = f"{case}." if case else ""
    path = Path(__file__).parent / "data" / f"{name}.{case_part}json"
    with open(path, "rb") as fh:
        return orjson.loads(fh.read())


def load_json_all_cases(name: str) -> list[tuple[dict[str, Any], Path]]:
    """Load all json payloads for a given base name (case0, case1, ...)."""
    results = []
    for path in json_data_files(name):
        with open(path, "rb") as fh:
            payload = orjson.loads(fh.read())
            results.append((payload, path))
    return results
