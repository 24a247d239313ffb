"""HTTP client for the Aori REST API.

One ``AoriApi`` owns one ``httpx.AsyncClient`` for the lifetime of an engine
instance. Transport failures surface as ``NetworkError``, non-2xx responses
as ``ApiError`` carrying the server's own error text.
"""

import logging
from typing import Any, Optional, Union

import httpx

from aori.constants import AORI_API
from aori.contracts import (
    CancelTx,
    ChainInfo,
    OrderDetails,
    OrderStatus,
    QueryOrdersParams,
    QueryOrdersResponse,
    QuoteRequest,
    QuoteResponse,
    SwapRequest,
    SwapResponse,
    TokenInfo,
)
from aori.errors import ApiError, NetworkError, QuoteError

logger = logging.getLogger(__name__)


class AoriApi:
    """Async REST client.

    Args:
        base_url: API base URL
        api_key: Sent as the ``x-api-key`` header when set
        timeout: Per-request timeout in seconds
        status_path: Template for the order status endpoint
        cancel_path: Template for the cancellation data endpoint
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        base_url: str = AORI_API,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        status_path: str = "/data/status/{order_hash}",
        cancel_path: str = "/cancel/{order_hash}",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.status_path = status_path
        self.cancel_path = cancel_path
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._get_headers(),
            timeout=timeout,
            transport=transport,
        )

    def _get_headers(self) -> dict:
        """Get API headers with authorization."""
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AoriApi":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ======================
    # Transport
    # ======================

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> httpx.Response:
        """Send a request, mapping transport failures to NetworkError."""
        logger.debug(f"{method} {path} params={params}")
        try:
            return await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"Request to {path} failed: {e}", endpoint=path) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, path: str, what: str) -> None:
        if response.is_success:
            return
        text = response.text
        logger.warning(f"{what}: {response.status_code} {text}")
        raise ApiError(
            f"{what}: {text}",
            status_code=response.status_code,
            endpoint=path,
            server_message=text,
        )

    async def _get_json(self, path: str, what: str, params: Optional[dict] = None) -> Any:
        response = await self._request("GET", path, params=params)
        self._raise_for_status(response, path, what)
        try:
            return response.json()
        except ValueError as e:
            raise self._invalid_response(response, path, what, e) from e

    @staticmethod
    def _invalid_response(
        response: httpx.Response, path: str, what: str, error: Exception
    ) -> ApiError:
        """ApiError for a 2xx response whose body cannot be used."""
        text = response.text
        logger.warning(f"{what}: invalid response body ({error})")
        return ApiError(
            f"{what}: invalid response: {text}",
            status_code=response.status_code,
            endpoint=path,
            server_message=text,
        )

    # ======================
    # Quotes and swaps
    # ======================

    async def get_quote(self, request: QuoteRequest) -> QuoteResponse:
        """Request a quote. Never retried.

        Raises:
            QuoteError: on any transport or API failure, with the server text
        """
        try:
            response = await self._request("POST", "/quote", json=request.to_payload())
        except NetworkError as e:
            raise QuoteError(f"Quote request failed: {e}") from e

        if not response.is_success:
            raise QuoteError(
                f"Quote request failed: {response.text}", status_code=response.status_code
            )

        quote = QuoteResponse.model_validate(response.json())
        logger.info(
            f"Quote {quote.order_hash}: {quote.input_amount} {quote.input_chain} -> "
            f"{quote.output_amount} {quote.output_chain}"
        )
        return quote

    async def submit_swap(self, request: SwapRequest) -> SwapResponse:
        """Submit a signed order."""
        response = await self._request("POST", "/swap", json=request.to_payload())
        self._raise_for_status(response, "/swap", "Swap request failed")
        swap = SwapResponse.model_validate(response.json())
        logger.info(f"Order {swap.order_hash} submitted (status: {swap.status})")
        return swap

    # ======================
    # Order data
    # ======================

    async def get_order_status(self, order_hash: str) -> OrderStatus:
        path = self.status_path.format(order_hash=order_hash)
        data = await self._get_json(path, "Failed to fetch order status")
        status = OrderStatus.model_validate(data)
        if status.order_hash is None:
            status.order_hash = order_hash
        return status

    async def get_order_details(self, order_hash: str) -> OrderDetails:
        path = f"/data/details/{order_hash}"
        data = await self._get_json(path, "Failed to fetch order details")
        return OrderDetails.model_validate(data)

    async def query_orders(
        self, params: Optional[QueryOrdersParams] = None
    ) -> QueryOrdersResponse:
        """Query historical orders. A 404 means no matches, not an error."""
        params = params or QueryOrdersParams()
        path = "/data/query"
        response = await self._request("GET", path, params=params.to_query())
        if response.status_code == 404:
            return QueryOrdersResponse.empty(params)
        self._raise_for_status(response, path, "Failed to query orders")
        return QueryOrdersResponse.model_validate(response.json())

    # ======================
    # Chains and tokens
    # ======================

    async def fetch_chains(self) -> list[ChainInfo]:
        data = await self._get_json("/chains", "Failed to fetch chains")
        # Some deployments return a mapping keyed by chain key
        if isinstance(data, dict):
            data = list(data.values())
        return [ChainInfo.model_validate(item) for item in data]

    async def fetch_tokens(self, chain: Union[str, int, None] = None) -> list[TokenInfo]:
        """Fetch tokens, optionally filtered by chain key or chain id."""
        params = {}
        if isinstance(chain, str):
            params["chainKey"] = chain.lower()
        elif chain is not None:
            params["chainId"] = str(chain)
        data = await self._get_json("/tokens", "Failed to fetch tokens", params=params or None)
        return [TokenInfo.model_validate(item) for item in data]

    # ======================
    # Cancellation
    # ======================

    async def get_cancel_tx(self, order_hash: str) -> CancelTx:
        """Fetch the server-computed cancellation transaction."""
        path = self.cancel_path.format(order_hash=order_hash)
        what = "Failed to get cancel data"
        response = await self._request("GET", path)
        self._raise_for_status(response, path, what)
        try:
            data = response.json()
            if isinstance(data, dict) and "orderHash" not in data and "order_hash" not in data:
                data = {**data, "orderHash": order_hash}
            return CancelTx.model_validate(data)
        except ValueError as e:
            raise self._invalid_response(response, path, what, e) from e
