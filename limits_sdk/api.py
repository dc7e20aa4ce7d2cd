"""HTTP API client for the Limits trading backend.

This module provides the main LimitsApiClient class for signing and submitting
orders, leverage changes, device verifications and delegated permits.
"""

import logging
from typing import Any, Mapping, Self, Sequence, TypeVar

from limits_sdk.batch import aggregate
from limits_sdk.env_setup import setup_environment
from limits_sdk.errors import (
    BadGateway,
    BadRequest,
    BaseError,
    DeserializationError,
    Forbidden,
    GatewayTimeout,
    HttpError,
    InternalServerError,
    MissingCredentialsError,
    NotFound,
    RateLimited,
    ServiceUnavailable,
    Unauthorized,
    ValidationError,
)
from limits_sdk.executors import DEFAULT_HTTP_EXECUTOR, HttpExecutor
from limits_sdk.executors.interface import HttpResponse
from limits_sdk.helpers import (
    DEFAULT_API_URL,
    DEFAULT_CHAIN_ID,
    DEFAULT_PERMIT_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    create_with,
    current_nonce,
)
from limits_sdk.permits import (
    PERMIT_PATH,
    build_permit,
    permit_request,
    wrap_for_signing,
)
from limits_sdk.signing import (
    PrivateKeySigner,
    Signer,
    build_payload,
    is_address,
    split_signature,
)
from limits_sdk.types import (
    ApiResponse,
    BatchItem,
    BatchResult,
    ConnectUserResponse,
    Json,
    JsonObject,
    LimitsNumericInput,
    Nonce,
    OperationKind,
    Permit,
    PermitSubmissionError,
    PermitSubmissionResult,
    PermitSubmissionSuccess,
    PermitType,
    Signature,
    Tif,
    VerifyCodeResponse,
    VerifyDeviceResponse,
    VerifyKeysResponse,
    full_precision_string,
)

log = logging.getLogger(__name__)

T = TypeVar("T")


def raise_response_errors(response: HttpResponse) -> None:
    """Check HTTP response status and raise appropriate errors.

    Validates the response status code and raises pre-defined exceptions for non-2XX
    status codes with the error message extracted from the response body.

    Args:
        response: The HTTP response to validate

    Raises:
        BadRequest: For 400 status codes
        Unauthorized: For 401 status codes
        Forbidden: For 403 status codes
        NotFound: For 404 status codes
        RateLimited: For 429 status codes
        HttpError: For other non-2XX status codes
        InternalServerError: For 500 status codes
        BadGateway: For 502 status codes
        ServiceUnavailable: For 503 status codes
        GatewayTimeout: For 504 status codes

    """
    status = response.status

    if 200 <= status < 300:
        return

    body = response.body if isinstance(response.body, dict) else {}

    backend_message = body.get("message") or body.get("error")
    raw_code = body.get("code")
    code = str(raw_code) if raw_code is not None else None

    def message(default: str) -> str:
        return f"{default}: {backend_message}" if backend_message else default

    error_class: type[HttpError]
    if status == 400:
        error_class, text = BadRequest, message("Bad request")
    elif status == 401:
        error_class, text = Unauthorized, message("Unauthorized")
    elif status == 403:
        error_class, text = Forbidden, message("Forbidden")
    elif status == 404:
        error_class, text = NotFound, message("Not found")
    elif status == 429:
        error_class, text = RateLimited, message("Rate limit exceeded")
    elif status == 500:
        error_class, text = InternalServerError, message("Internal server error")
    elif status == 502:
        error_class, text = BadGateway, message("Bad gateway")
    elif status == 503:
        error_class, text = ServiceUnavailable, message("Service unavailable")
    elif status == 504:
        error_class, text = GatewayTimeout, message("Gateway timeout")
    elif 400 <= status < 500:
        error_class, text = HttpError, message(f"Client error ({status})")
    elif 500 <= status < 600:
        error_class, text = InternalServerError, message(f"Server error ({status})")
    else:
        # 3xx or other unexpected codes should not happen against this API
        error_class, text = HttpError, message(f"Unexpected status code ({status})")

    raise error_class(status, text, body=response.body, code=code)


def parse_api_response(body: Json) -> ApiResponse:
    """Parse the ``{success, message, data?, error?}`` envelope."""
    if not isinstance(body, dict):
        raise DeserializationError(f"Received invalid response {body=}")
    try:
        return create_with(ApiResponse, body)
    except (TypeError, ValueError) as e:
        raise DeserializationError(f"Received invalid response {body=}") from e


def parse_response_data(cls: type[T], body: Json) -> T:
    """Build ``cls`` from the ``data`` member of a response envelope."""
    data = body.get("data") if isinstance(body, dict) else None
    if not isinstance(data, dict):
        raise DeserializationError(f"Received invalid response {body=}")
    try:
        return create_with(cls, data)
    except (TypeError, ValueError) as e:
        raise DeserializationError(f"Received invalid response {body=}") from e


def parse_permit_response(response: HttpResponse) -> PermitSubmissionResult:
    """Map a permit service response onto the permit result channel.

    Raises:
        DeserializationError: If a successful response is not a JSON object.

    """
    try:
        raise_response_errors(response)
    except HttpError as e:
        return PermitSubmissionError.from_exception(e)
    body = response.body
    if not isinstance(body, dict):
        raise DeserializationError(f"Received invalid permit response {body=}")
    status = body.get("status")
    if status in ("err", "error"):
        error = body.get("response") or body.get("error") or "permit rejected"
        return PermitSubmissionError(error=str(error))
    return PermitSubmissionSuccess(response=body)


class BaseLimitsClient:
    """Configuration, signing and request construction shared by the clients.

    Subclasses only decide how requests are sent.
    """

    _signer: Signer | None = None
    _user_address: str | None = None

    def __init__(
        self,
        user_address: str | None = None,
        private_key: str | None = None,
        signer: Signer | None = None,
        chain_id: int = DEFAULT_CHAIN_ID,
        hyperliquid_chain: str = "Mainnet",
    ):
        """Initialize the signing configuration.

        Args:
            user_address: Address the requests are made for. Defaults to the
                signer's address.
            private_key: Hex private key used to build a PrivateKeySigner.
            signer: Custom signer. Takes precedence over ``private_key``.
            chain_id: Chain id echoed into every signature and request.
            hyperliquid_chain: ``"Mainnet"`` or ``"Testnet"`` for permits.

        """
        if signer is not None:
            self.set_signer(signer)
        elif private_key is not None:
            self.set_private_key(private_key)
        self.set_user_address(user_address)
        self.set_chain_id(chain_id)
        self.hyperliquid_chain = hyperliquid_chain

    @property
    def signer(self) -> Signer:
        """Get the configured signer.

        Raises:
            MissingCredentialsError: If neither a signer nor a private key was set.

        """
        if self._signer is None:
            raise MissingCredentialsError("signer")
        return self._signer

    @property
    def user_address(self) -> str:
        """Get the address requests are made for.

        Raises:
            ValidationError: If no address was set and no signer is configured.

        """
        if self._user_address is not None:
            return self._user_address
        if self._signer is not None:
            return self._signer.address
        raise ValidationError("user_address has not been set")

    @property
    def chain_id(self) -> int:
        return self._chain_id

    def set_signer(self, signer: Signer) -> None:
        if not isinstance(signer, Signer):
            message = f"Unexpected type for signer {type(signer)}"
            raise ValidationError(message) from TypeError(message)
        self._signer = signer

    def set_private_key(self, private_key: str) -> None:
        """Sign with a local private key (hex, with or without 0x prefix)."""
        self._signer = PrivateKeySigner(private_key)

    def set_user_address(self, user_address: str | None) -> None:
        """Set the address requests are made for.

        Raises:
            ValidationError: If the address is not a 0x-prefixed 20 byte hex string.

        """
        if user_address is not None and not is_address(user_address):
            raise ValidationError(f"Invalid {user_address=}")
        self._user_address = user_address

    def set_chain_id(self, chain_id: int) -> None:
        if not isinstance(chain_id, int) or isinstance(chain_id, bool):
            message = f"Unexpected type for chain_id {type(chain_id)}"
            raise ValidationError(message) from TypeError(message)
        self._chain_id = chain_id

    """ Signing """

    def sign_request(
        self, kind: OperationKind | str, request: Mapping[str, Any]
    ) -> JsonObject:
        """Sign ``request`` and return it with the signature attached.

        Args:
            kind: The operation kind the request is signed as.
            request: The request, including ``chainId``.

        Returns:
            A copy of ``request`` with ``r``, ``s``, ``v`` and ``chainId`` added.

        """
        payload = build_payload(kind, request)
        signature = self.signer.sign_typed_data(payload)
        return {
            **request,
            **signature.to_json(),
            "chainId": payload.domain.chainId,
        }

    def sign_permit(self, permit: Permit, chain_id: int | None = None) -> Signature:
        """Sign a permit on the permit service domain."""
        chain_id = self.chain_id if chain_id is None else chain_id
        payload = wrap_for_signing(permit.types, permit.message, chain_id)
        return self.signer.sign_typed_data(payload)

    def _permit(self, permit_type: PermitType, delegate: str | None, nonce: Nonce | None) -> Permit:
        return build_permit(
            permit_type,
            current_nonce() if nonce is None else nonce,
            self.chain_id,
            delegate,
            hyperliquid_chain=self.hyperliquid_chain,
        )

    """ Request construction """

    def _order_request(
        self,
        coin: str,
        is_buy: bool,
        size: LimitsNumericInput,
        reduce_only: bool,
        limit_price: LimitsNumericInput | None,
        tif: Tif | None,
        client_order_id: str | None,
        nonce: Nonce | None,
    ) -> JsonObject:
        if tif is not None and limit_price is None:
            message = "tif can only be set on limit orders"
            raise ValidationError(message) from ValueError(message)
        request: JsonObject = {
            "userAddress": self.user_address,
            "coin": coin,
            "isBuy": is_buy,
            "size": full_precision_string(size),
            "reduceOnly": reduce_only,
            "nonce": current_nonce() if nonce is None else nonce,
            "chainId": self.chain_id,
        }
        if limit_price is not None:
            request["limitPrice"] = full_precision_string(limit_price)
            request["orderType"] = {"limit": {"tif": (tif or Tif.GTC).value}}
        if client_order_id is not None:
            request["clientOrderId"] = client_order_id
        return self.sign_request(OperationKind.CREATE_ORDER, request)

    def _batch_request(
        self, orders: Sequence[BatchItem | Mapping[str, Any]], nonce: Nonce | None
    ) -> JsonObject:
        if not isinstance(orders, (list, tuple)):
            message = f"Unexpected type for orders {type(orders)}"
            raise ValidationError(message) from TypeError(message)
        items: list[Any] = [
            o.to_json() if isinstance(o, BatchItem) else o for o in orders
        ]
        missing_size = [
            f"orders[{i}].size"
            for i, o in enumerate(items)
            if isinstance(o, Mapping) and o.get("size") is None
        ]
        if missing_size:
            raise ValidationError(
                f"createOrders: missing required field(s): {', '.join(missing_size)}",
                operation=OperationKind.CREATE_ORDERS.value,
                fields=missing_size,
            )
        request: JsonObject = {
            "userAddress": self.user_address,
            "nonce": current_nonce() if nonce is None else nonce,
            "chainId": self.chain_id,
            "orders": items,  # type: ignore[dict-item]
        }
        return self.sign_request(OperationKind.CREATE_ORDERS, request)

    def _leverage_request(
        self, coin: str, leverage: int, is_cross: bool, nonce: Nonce | None
    ) -> JsonObject:
        request: JsonObject = {
            "userAddress": self.user_address,
            "coin": coin,
            "leverage": leverage,
            "isCross": is_cross,
            "nonce": current_nonce() if nonce is None else nonce,
            "chainId": self.chain_id,
        }
        return self.sign_request(OperationKind.UPDATE_LEVERAGE, request)

    def _verify_device_request(
        self, agent_address: str, nonce: Nonce | None
    ) -> JsonObject:
        request: JsonObject = {
            "userAddress": self.user_address,
            "agentAddress": agent_address,
            "nonce": current_nonce() if nonce is None else nonce,
            "chainId": self.chain_id,
        }
        return self.sign_request(OperationKind.VERIFY_DEVICE, request)

    def _twap_request(
        self,
        token: str,
        size: LimitsNumericInput,
        frequency: int,
        runtime: int,
        is_buy: bool,
        threshold: float,
        randomize: bool,
    ) -> JsonObject:
        if frequency <= 0 or runtime <= 0:
            message = "frequency and runtime must be positive minutes"
            raise ValidationError(message) from ValueError(message)
        if runtime < frequency:
            message = "runtime must be at least one frequency interval"
            raise ValidationError(message) from ValueError(message)
        return {
            "userAddress": self.user_address,
            "token": token,
            "size": full_precision_string(size),
            # the backend expects minutes as strings
            "frequency": str(frequency),
            "runtime": str(runtime),
            "randomize": randomize,
            "isBuy": is_buy,
            "threshold": threshold,
        }


class LimitsApiClient(BaseLimitsClient):
    """Limits API client for signed trading operations.

    Examples:
        .. code-block:: python

            from limits_sdk import LimitsApiClient, BatchItem

            client = LimitsApiClient(
                api_url="https://api.example.com/dmp",
                private_key=os.environ["LIMITS_PRIVATE_KEY"],
                chain_id=42161,
            )

            client.update_leverage("BTC", 10, is_cross=True)
            client.create_order("BTC", is_buy=True, size="0.1")

            result = client.create_batch_orders([
                BatchItem("BTC", is_buy=True, size="0.1"),
                BatchItem("ETH", is_buy=False, size=2, reduce_only=True),
            ])
            print(f"{result.successful}/{result.total} orders placed")
    """

    _http_executor: HttpExecutor

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
        executor: HttpExecutor | None = None,
    ):
        """Initialize the Limits API client.

        Args:
            api_url: Base URL of the trading backend
            permit_api_url: Base URL of the permit signing service
            user_address: Address requests are made for (defaults to the signer's)
            private_key: Private key for signing requests (hex, with or without 0x)
            signer: Custom signer, used instead of ``private_key``
            chain_id: Chain id echoed into every signature and request
            timeout: Request timeout in seconds
            headers: Extra headers sent with every request
            hyperliquid_chain: ``"Mainnet"`` or ``"Testnet"`` for permits
            executor: Custom HTTP executor (optional, uses default if not provided)

        """
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
            else DEFAULT_HTTP_EXECUTOR(
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

    def close(self) -> None:
        self._http_executor.close()

    """ Trading """

    def create_order(
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
        """Sign and place a single order.

        Args:
            coin: Asset to trade (e.g. "BTC")
            is_buy: True for a buy, False for a sell
            size: Order size
            reduce_only: Only reduce an existing position
            limit_price: Limit price; market order if omitted
            tif: Time in force for limit orders (defaults to GTC)
            client_order_id: Optional caller chosen identifier
            nonce: Custom nonce (defaults to current epoch time in ms)

        Returns:
            ApiResponse: The backend's response envelope

        Raises:
            ValidationError: If the order is invalid or no signer is configured

        Endpoint:
            POST /order

        """
        request = self._order_request(
            coin, is_buy, size, reduce_only, limit_price, tif, client_order_id, nonce
        )
        return parse_api_response(self.__send("POST", "/order", request))

    def create_batch_orders(
        self,
        orders: Sequence[BatchItem | Mapping[str, Any]],
        nonce: Nonce | None = None,
    ) -> BatchResult:
        """Sign and place several orders with a single signature.

        The signature covers the ordered list of ``coin``, ``isBuy`` and
        ``reduceOnly``. Sizes and client ids are sent alongside unsigned.

        Args:
            orders: Orders in submission order
            nonce: Custom nonce for the batch (defaults to current epoch time in ms)

        Returns:
            BatchResult: Per-order outcome aligned with ``orders``

        Raises:
            ValidationError: If any order is invalid or the batch is empty

        Example::

            result = client.create_batch_orders([
                BatchItem("BTC", is_buy=True, size="0.1"),
                BatchItem("SOL", is_buy=False, size=10, reduce_only=True),
            ])
            for failure in result.errors:
                print(failure.index, failure.error)

        Endpoint:
            POST /batchOrder

        """
        request = self._batch_request(orders, nonce)
        body = self.__send("POST", "/batchOrder", request)
        return aggregate(list(orders), body)

    def update_leverage(
        self,
        coin: str,
        leverage: int,
        is_cross: bool = True,
        nonce: Nonce | None = None,
    ) -> ApiResponse:
        """Sign and submit a leverage change.

        Args:
            coin: Asset to change leverage for
            leverage: New leverage, at least 1
            is_cross: Cross margin if True, isolated otherwise
            nonce: Custom nonce (defaults to current epoch time in ms)

        Returns:
            ApiResponse: The backend's response envelope

        Endpoint:
            POST /leverage

        """
        request = self._leverage_request(coin, leverage, is_cross, nonce)
        return parse_api_response(self.__send("POST", "/leverage", request))

    def create_twap_order(
        self,
        token: str,
        size: LimitsNumericInput,
        frequency: int,
        runtime: int,
        is_buy: bool,
        threshold: float,
        randomize: bool = False,
    ) -> ApiResponse:
        """Create a TWAP order executed by the backend.

        Args:
            token: Asset to trade
            size: Total size
            frequency: Minutes between child orders
            runtime: Total runtime in minutes
            is_buy: True for a buy, False for a sell
            threshold: Price threshold
            randomize: Randomize child order timing

        Endpoint:
            POST /twap

        """
        request = self._twap_request(
            token, size, frequency, runtime, is_buy, threshold, randomize
        )
        return parse_api_response(self.__send("POST", "/twap", request))

    """ Account connection and verification """

    def connect_user(self, device_public_key: str) -> ConnectUserResponse:
        """Connect the user's device to the platform.

        Endpoint:
            POST /connect

        """
        body = self.__send(
            "POST",
            "/connect",
            {"userAddress": self.user_address, "devicePublicKey": device_public_key},
        )
        return parse_response_data(ConnectUserResponse, body)

    def verify_keys(self, agent_address: str) -> VerifyKeysResponse:
        """Check that the backend holds a valid agent key for the user.

        Endpoint:
            PUT /connect

        """
        body = self.__send(
            "PUT",
            "/connect",
            {"userAddress": self.user_address, "agentAddress": agent_address},
        )
        return parse_response_data(VerifyKeysResponse, body)

    def verify_device(
        self, agent_address: str, nonce: Nonce | None = None
    ) -> VerifyDeviceResponse:
        """Sign and submit a device verification for an agent address.

        Endpoint:
            POST /verifyDevice

        """
        request = self._verify_device_request(agent_address, nonce)
        body = self.__send("POST", "/verifyDevice", request)
        return parse_response_data(VerifyDeviceResponse, body)

    def verify_code(self, invite_code: str) -> VerifyCodeResponse:
        """Verify an invite code.

        Endpoint:
            POST /verifyCode

        """
        body = self.__send(
            "POST",
            "/verifyCode",
            {"userAddress": self.user_address, "inviteCode": invite_code},
        )
        return parse_response_data(VerifyCodeResponse, body)

    """ Permits """

    def submit_permit(
        self,
        permit: Permit,
        signature: str | bytes | Signature,
        chain_id: int | None = None,
    ) -> PermitSubmissionResult:
        """Submit a signed permit to the permit signing service.

        Never raises: every failure comes back as a PermitSubmissionError.

        Args:
            permit: The permit that was signed
            signature: The permit signature, as hex, bytes or a Signature
            chain_id: Chain id the permit was signed for (defaults to the client's)

        Returns:
            PermitSubmissionSuccess or PermitSubmissionError

        """
        chain_id = self.chain_id if chain_id is None else chain_id
        try:
            body = permit_request(permit, split_signature(signature), chain_id)
            response = self._http_executor.send_permit_request(PERMIT_PATH, body)
            result = parse_permit_response(response)
        except BaseError as e:
            log.warning("Failed to submit %s permit: %s", permit.permit_type.value, e)
            return PermitSubmissionError.from_exception(e)
        if isinstance(result, PermitSubmissionError):
            log.warning(
                "%s permit rejected: %s", permit.permit_type.value, result.error
            )
        return result

    def approve_builder_fee(
        self, builder_address: str | None = None, nonce: Nonce | None = None
    ) -> PermitSubmissionResult:
        """Sign and submit an ``approveBuilderFee`` permit.

        Args:
            builder_address: Builder to approve (defaults to the Limits builder)
            nonce: Custom nonce (defaults to current epoch time in ms)

        Raises:
            MissingCredentialsError: If no signer is configured

        """
        permit = self._permit(PermitType.APPROVE_BUILDER_FEE, builder_address, nonce)
        return self.submit_permit(permit, self.sign_permit(permit))

    def approve_agent(
        self, agent_address: str | None = None, nonce: Nonce | None = None
    ) -> PermitSubmissionResult:
        """Sign and submit an ``approveAgent`` permit.

        Args:
            agent_address: Agent to approve (defaults to the Limits agent)
            nonce: Custom nonce (defaults to current epoch time in ms)

        Raises:
            MissingCredentialsError: If no signer is configured

        """
        permit = self._permit(PermitType.APPROVE_AGENT, agent_address, nonce)
        return self.submit_permit(permit, self.sign_permit(permit))

    """ Deferred helpers """

    def __send(self, method: str, path: str, json: Json | None = None) -> Json:
        """Send a request to the backend and raise on non-2XX responses.

        Args:
            method: HTTP method (GET, POST, PUT)
            path: The API endpoint path
            json: Optional JSON payload for the request body

        Returns:
            Json: The parsed JSON response body

        """
        log.debug("Sending %s %s", method, path)
        response = self._http_executor.send_request(method, path, json)
        raise_response_errors(response)
        return response.body
