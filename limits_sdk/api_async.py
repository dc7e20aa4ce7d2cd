"""Asyncio HTTP API client for the Limits trading backend.

AsyncLimitsApiClient offers the same operations as LimitsApiClient. Payload
construction and signing are shared; only sending is awaited.
"""

import logging
from types import TracebackType
from typing import Any, Mapping, Self, Sequence

from limits_sdk.api import (
    BaseLimitsClient,
    parse_api_response,
    parse_permit_response,
    parse_response_data,
    raise_response_errors,
)
from limits_sdk.batch import aggregate
from limits_sdk.env_setup import setup_environment
from limits_sdk.errors import BaseError
from limits_sdk.executors import DEFAULT_ASYNC_HTTP_EXECUTOR, AsyncHttpExecutor
from limits_sdk.helpers import (
    DEFAULT_API_URL,
    DEFAULT_CHAIN_ID,
    DEFAULT_PERMIT_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
)
from limits_sdk.permits import PERMIT_PATH, permit_request
from limits_sdk.signing import Signer, split_signature
from limits_sdk.types import (
    ApiResponse,
    BatchItem,
    BatchResult,
    ConnectUserResponse,
    Json,
    LimitsNumericInput,
    Nonce,
    Permit,
    PermitSubmissionError,
    PermitSubmissionResult,
    PermitType,
    Signature,
    Tif,
    VerifyCodeResponse,
    VerifyDeviceResponse,
    VerifyKeysResponse,
)

log = logging.getLogger(__name__)


class AsyncLimitsApiClient(BaseLimitsClient):
    """Asyncio variant of LimitsApiClient.

    Examples:
        .. code-block:: python

            async with AsyncLimitsApiClient(private_key=key) as client:
                await client.update_leverage("ETH", 5)
                result = await client.create_batch_orders(orders)

    """

    _http_executor: AsyncHttpExecutor

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        permit_api_url: str = DEFAULT_PERMIT_API_URL,
        user_address: str | None = None,
        private_key: str | None = None,
        signer: Signer | None = None,
        chain_id: int = DEFAULT_CHAIN_ID,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
        hyperliquid_chain: str = "Mainnet",
        executor: AsyncHttpExecutor | None = None,
    ):
        super().__init__(
            user_address=user_address,
            private_key=private_key,
            signer=signer,
            chain_id=chain_id,
            hyperliquid_chain=hyperliquid_chain,
        )
        self._http_executor = (
            executor
            if executor is not None
            else DEFAULT_ASYNC_HTTP_EXECUTOR(
                api_url=api_url,
                permit_api_url=permit_api_url,
                timeout=timeout,
                headers=headers,
            )
        )

    @classmethod
    def from_environment(cls, **kwargs: Any) -> Self:
        """Create a client configured from the environment (see setup_environment)."""
        api_url, permit_api_url, private_key, chain_id = setup_environment()
        return cls(
            api_url=api_url,
            permit_api_url=permit_api_url,
            private_key=private_key,
            chain_id=chain_id,
            **kwargs,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http_executor.close()

    """ Trading """

    async def create_order(
        self,
        coin: str,
        is_buy: bool,
        size: LimitsNumericInput,
        reduce_only: bool = False,
        limit_price: LimitsNumericInput | None = None,
        tif: Tif | None = None,
        client_order_id: str | None = None,
        nonce: Nonce | None = None,
    ) -> ApiResponse:
        """Sign and place a single order. See LimitsApiClient.create_order."""
        request = self._order_request(
            coin, is_buy, size, reduce_only, limit_price, tif, client_order_id, nonce
        )
        return parse_api_response(await self.__send("POST", "/order", request))

    async def create_batch_orders(
        self,
        orders: Sequence[BatchItem | Mapping[str, Any]],
        nonce: Nonce | None = None,
    ) -> BatchResult:
        """Sign and place several orders. See LimitsApiClient.create_batch_orders."""
        request = self._batch_request(orders, nonce)
        body = await self.__send("POST", "/batchOrder", request)
        return aggregate(list(orders), body)

    async def update_leverage(
        self,
        coin: str,
        leverage: int,
        is_cross: bool = True,
        nonce: Nonce | None = None,
    ) -> ApiResponse:
        request = self._leverage_request(coin, leverage, is_cross, nonce)
        return parse_api_response(await self.__send("POST", "/leverage", request))

    async def create_twap_order(
        self,
        token: str,
        size: LimitsNumericInput,
        frequency: int,
        runtime: int,
        is_buy: bool,
        threshold: float,
        randomize: bool = False,
    ) -> ApiResponse:
        request = self._twap_request(
            token, size, frequency, runtime, is_buy, threshold, randomize
        )
        return parse_api_response(await self.__send("POST", "/twap", request))

    """ Account connection and verification """

    async def connect_user(self, device_public_key: str) -> ConnectUserResponse:
        body = await self.__send(
            "POST",
            "/connect",
            {"userAddress": self.user_address, "devicePublicKey": device_public_key},
        )
        return parse_response_data(ConnectUserResponse, body)

    async def verify_keys(self, agent_address: str) -> VerifyKeysResponse:
        body = await self.__send(
            "PUT",
            "/connect",
            {"userAddress": self.user_address, "agentAddress": agent_address},
        )
        return parse_response_data(VerifyKeysResponse, body)

    async def verify_device(
        self, agent_address: str, nonce: Nonce | None = None
    ) -> VerifyDeviceResponse:
        request = self._verify_device_request(agent_address, nonce)
        body = await self.__send("POST", "/verifyDevice", request)
        return parse_response_data(VerifyDeviceResponse, body)

    async def verify_code(self, invite_code: str) -> VerifyCodeResponse:
        body = await self.__send(
            "POST",
            "/verifyCode",
            {"userAddress": self.user_address, "inviteCode": invite_code},
        )
        return parse_response_data(VerifyCodeResponse, body)

    """ Permits """

    async def submit_permit(
        self,
        permit: Permit,
        signature: str | bytes | Signature,
        chain_id: int | None = None,
    ) -> PermitSubmissionResult:
        """Submit a signed permit. Never raises, see LimitsApiClient.submit_permit."""
        chain_id = self.chain_id if chain_id is None else chain_id
        try:
            body = permit_request(permit, split_signature(signature), chain_id)
            response = await self._http_executor.send_permit_request(PERMIT_PATH, body)
            result = parse_permit_response(response)
        except BaseError as e:
            log.warning("Failed to submit %s permit: %s", permit.permit_type.value, e)
            return PermitSubmissionError.from_exception(e)
        if isinstance(result, PermitSubmissionError):
            log.warning(
                "%s permit rejected: %s", permit.permit_type.value, result.error
            )
        return result

    async def approve_builder_fee(
        self, builder_address: str | None = None, nonce: Nonce | None = None
    ) -> PermitSubmissionResult:
        permit = self._permit(PermitType.APPROVE_BUILDER_FEE, builder_address, nonce)
        return await self.submit_permit(permit, self.sign_permit(permit))

    async def approve_agent(
        self, agent_address: str | None = None, nonce: Nonce | None = None
    ) -> PermitSubmissionResult:
        permit = self._permit(PermitType.APPROVE_AGENT, agent_address, nonce)
        return await self.submit_permit(permit, self.sign_permit(permit))

    """ Deferred helpers """

    async def __send(self, method: str, path: str, json: Json | None = None) -> Json:
        log.debug("Sending %s %s", method, path)
        response = await self._http_executor.send_request(method, path, json)
        raise_response_errors(response)
        return response.body
